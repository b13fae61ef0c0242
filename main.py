"""Application entry point."""
# Load environment variables from .env file before config is read
from dotenv import load_dotenv

load_dotenv()

import uvicorn
from api.app import create_app
from coupon_allocator import config
from coupon_allocator.services.claim_ledger_service import purge_expired_claims
from db.db import init_db, session_scope


def prepare_database() -> None:
    """Ensure tables exist and drop claim records that expired while down."""
    init_db()
    with session_scope() as db:
        purge_expired_claims(db)


prepare_database()
app = create_app()


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("Coupon Distributor API Starting")
    print("=" * 60)
    print(f"Environment:     {config.ENVIRONMENT}")
    print(f"Claim window:    {config.CLAIM_WINDOW_SECONDS}s")
    print("=" * 60 + "\n")

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=config.PORT,
        log_level="info"
    )
