"""Coupon routes: claim, bulk create, list and dashboard stats."""
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from api.models.requests import CreateCouponsRequest
from api.models.responses import APIResponse, serialize_coupon
from db.db import get_db
from coupon_allocator import config
from coupon_allocator.allocator import claim_coupon
from coupon_allocator.services.coupon_pool_service import create_batch, list_coupons
from coupon_allocator.services.reporting_service import get_dashboard_stats

router = APIRouter(prefix="/coupon", tags=["coupons"])


def set_claim_cookie(response: Response) -> None:
    """
    Mark the browser as having claimed.

    The cookie only lets the client disable its claim button early; the
    claim ledger alone decides whether a claim is allowed.
    """
    production = config.is_production()
    response.set_cookie(
        key=config.CLAIM_COOKIE_NAME,
        value="true",
        max_age=config.CLAIM_WINDOW_SECONDS,
        httponly=True,
        secure=production,
        samesite="none" if production else "lax",
        path="/"
    )


@router.post("/claim")
def claim(request: Request, db: Session = Depends(get_db)):
    """
    Claim one coupon for the requesting client.

    The claim cookie is not read here. Only the claim ledger decides
    whether the client may claim; the cookie is set on success for the
    browser's benefit.
    """
    trace_id = getattr(request.state, "trace_id", None)

    result = claim_coupon(
        db=db,
        forwarded_for=request.headers.get("X-Forwarded-For"),
        peer_address=request.client.host if request.client else None,
        trace_id=trace_id
    )

    response = APIResponse.success(
        data=serialize_coupon(result.coupon),
        message="Coupon claimed successfully"
    )
    set_claim_cookie(response)
    return response


@router.post("/create")
def create(
    request: Request,
    payload: Optional[CreateCouponsRequest] = None,
    db: Session = Depends(get_db)
):
    """Create a batch of coupons (at most config.MAX_BATCH_SIZE per call)."""
    count = payload.count if payload else None
    coupons = create_batch(db, count, trace_id=getattr(request.state, "trace_id", None))

    return APIResponse.success(
        data=[serialize_coupon(c) for c in coupons],
        message=f"Successfully created {len(coupons)} coupons",
        status_code=201
    )


@router.get("/")
def list_all(request: Request, status: Optional[str] = None, db: Session = Depends(get_db)):
    """List coupons; status=claimed|unclaimed filters, anything else does not."""
    coupons = list_coupons(db, status, trace_id=getattr(request.state, "trace_id", None))
    return APIResponse.success(data=[serialize_coupon(c) for c in coupons])


@router.get("/dashboard-stats")
def dashboard_stats(request: Request, db: Session = Depends(get_db)):
    stats = get_dashboard_stats(db, trace_id=getattr(request.state, "trace_id", None))
    return APIResponse.success(data=stats)
