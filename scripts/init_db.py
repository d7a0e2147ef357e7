import sys
from pathlib import Path
import os

from werkzeug.security import generate_password_hash
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from contextlib import contextmanager

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.billing.models import Customer, Invoice, User

DEMO_CUSTOMERS = (
    ("Evil Rabbit", "evil@rabbit.com", "/customers/evil-rabbit.png"),
    ("Delba de Oliveira", "delba@oliveira.com", "/customers/delba-de-oliveira.png"),
    ("Lee Robinson", "lee@robinson.com", "/customers/lee-robinson.png"),
    ("Michael Novotny", "michael@novotny.com", "/customers/michael-novotny.png"),
    ("Amy Burns", "amy@burns.com", "/customers/amy-burns.png"),
    ("Balazs Orban", "balazs@orban.com", "/customers/balazs-orban.png"),
)

# (customer email, amount in cents, status, date)
DEMO_INVOICES = (
    ("evil@rabbit.com", 15795, "pending", "2022-12-06"),
    ("delba@oliveira.com", 20348, "pending", "2022-11-14"),
    ("amy@burns.com", 3040, "paid", "2022-10-29"),
    ("michael@novotny.com", 44800, "paid", "2023-09-10"),
    ("balazs@orban.com", 34577, "pending", "2023-08-05"),
    ("lee@robinson.com", 54246, "pending", "2023-07-16"),
    ("evil@rabbit.com", 666, "pending", "2023-06-27"),
    ("michael@novotny.com", 32545, "paid", "2023-06-09"),
    ("amy@burns.com", 1250, "paid", "2023-06-17"),
    ("balazs@orban.com", 8546, "paid", "2023-06-07"),
    ("delba@oliveira.com", 500, "paid", "2023-08-19"),
    ("balazs@orban.com", 8945, "paid", "2023-06-03"),
    ("amy@burns.com", 1000, "paid", "2022-06-05"),
)


@contextmanager
def _session_scope(database_url: str):
    engine = create_engine(database_url, future=True)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def seed_only(*, database_url: str | None = None, with_demo_data: bool = True) -> None:
    """
    Seed the admin user (and optionally demo customers/invoices) in an idempotent way.
    Does NOT overwrite an existing user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "user@nextmail.com").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "123456"
    hash_method = (os.environ.get("PASSWORD_HASH_METHOD") or "scrypt").strip()

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///billing.db").strip()

    # Use direct engine/session so this can run in release without importing app.wsgi.
    with _session_scope(db_url) as s:
        user = s.execute(select(User).where(User.email == admin_email)).scalar_one_or_none()
        if not user:
            s.add(User(name="User", email=admin_email, password=generate_password_hash(admin_password, method=hash_method)))

        if not with_demo_data:
            return

        by_email: dict[str, Customer] = {}
        for name, email, image_url in DEMO_CUSTOMERS:
            c = s.execute(select(Customer).where(Customer.email == email)).scalar_one_or_none()
            if not c:
                c = Customer(name=name, email=email, image_url=image_url)
                s.add(c)
            by_email[email] = c
        s.flush()

        has_invoices = s.execute(select(Invoice.id).limit(1)).first() is not None
        if not has_invoices:
            for email, amount, status, day in DEMO_INVOICES:
                s.add(Invoice(customer_id=by_email[email].id, amount=amount, status=status, date=day))

    print("Initialized database (seed_only).")
    print(f"Login email: {admin_email}")
    print("Login password: (from ADMIN_PASSWORD)")


def main() -> None:
    seed_only(database_url=None, with_demo_data=(os.environ.get("SEED_DEMO_DATA") or "1").strip() == "1")


if __name__ == "__main__":
    main()
