"""Health check routes."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from db.db import get_db
from coupon_allocator.version import __version__

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthcheck(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Tests database connectivity; the allocator is useless without it.
    """
    try:
        db.execute(text("SELECT 1"))

        return {
            "status": "healthy",
            "database": "connected",
            "version": __version__
        }
    except Exception:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "database": "disconnected",
                "version": __version__
            }
        )


@router.get("/ready")
def readiness():
    return {"status": "ready"}


@router.get("/live")
def liveness():
    return {"status": "alive"}
