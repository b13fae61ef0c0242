"""
Runtime configuration for the coupon allocator.

Values come from the process environment (a ``.env`` file is loaded by
``main.py`` through python-dotenv before this module is imported).
Services read these attributes at call time, so tests may patch them.
"""
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

# Database
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./coupons.db")

# Claim window
CLAIM_WINDOW_SECONDS = _env_int("CLAIM_WINDOW_SECONDS", 3600)

# Batch creation
MAX_BATCH_SIZE = _env_int("MAX_BATCH_SIZE", 100)
DEFAULT_BATCH_SIZE = _env_int("DEFAULT_BATCH_SIZE", 1)

# Identity
TRUST_FORWARDED_FOR = _env_bool("TRUST_FORWARDED_FOR", True)

# HTTP
FRONTEND_URL = os.environ.get("FRONTEND_URL", "*")
CLAIM_COOKIE_NAME = os.environ.get("CLAIM_COOKIE_NAME", "couponClaimed")
PORT = _env_int("PORT", 8000)


def is_production() -> bool:
    return ENVIRONMENT.lower() == "production"


def get_cors_origins() -> list:
    """Split FRONTEND_URL into a list of allowed origins."""
    origins = [o.strip() for o in FRONTEND_URL.split(",") if o.strip()]
    return origins or ["*"]
