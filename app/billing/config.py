import os
import tempfile
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    password_hash_method: str
    csrf_enabled: bool
    listing_cache_enabled: bool
    listing_cache_dir: str
    listing_cache_ttl: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getflag(name: str, default: bool) -> bool:
    raw = _getenv(name, "")
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///billing.db"),
        password_hash_method=_getenv("PASSWORD_HASH_METHOD", "scrypt"),
        csrf_enabled=_getflag("CSRF_ENABLED", True),
        listing_cache_enabled=_getflag("LISTING_CACHE_ENABLED", True),
        listing_cache_dir=_getenv("LISTING_CACHE_DIR", os.path.join(tempfile.gettempdir(), "billing_listing_cache")),
        listing_cache_ttl=int(_getenv("LISTING_CACHE_TTL", "300")),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        # work factor for werkzeug.security.generate_password_hash
        "PASSWORD_HASH_METHOD": s.password_hash_method,
        "CSRF_ENABLED": s.csrf_enabled,
        "LISTING_CACHE_ENABLED": s.listing_cache_enabled,
        "LISTING_CACHE_DIR": s.listing_cache_dir,
        # seconds before a cached listing is reloaded even without a mutation
        "LISTING_CACHE_TTL": s.listing_cache_ttl,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
    }
