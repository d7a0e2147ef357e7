import pytest
from werkzeug.security import generate_password_hash

from app.billing import create_app
from app.billing.db import session_scope
from app.billing.models import Base, Customer, User

# Cheap hash so the suite stays fast; production default is scrypt.
TEST_HASH_METHOD = "pbkdf2:sha256:1000"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret1"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("CSRF_ENABLED", "0")
    monkeypatch.setenv("LISTING_CACHE_ENABLED", "1")
    monkeypatch.setenv("LISTING_CACHE_DIR", str(tmp_path / "listing_cache"))
    monkeypatch.setenv("PASSWORD_HASH_METHOD", TEST_HASH_METHOD)

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add(
            User(
                id="u-admin",
                name="Admin",
                email=ADMIN_EMAIL,
                password=generate_password_hash(ADMIN_PASSWORD, method=TEST_HASH_METHOD),
            )
        )
        s.add_all(
            [
                Customer(id="c1", name="Amy Burns", email="amy@burns.com", image_url="/customers/amy-burns.png"),
                Customer(id="c2", name="Lee Robinson", email="lee@robinson.com", image_url="/customers/lee-robinson.png"),
            ]
        )

    yield app
    app.extensions["listing_cache"].close()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db(app):
    s = app.extensions["sqlalchemy_sessionmaker"]()
    try:
        yield s
    finally:
        s.close()


def login(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
    return client.post("/login", data={"email": email, "password": password}, follow_redirects=False)


@pytest.fixture()
def auth_client(client):
    r = login(client)
    assert r.status_code == 302
    return client
