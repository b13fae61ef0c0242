"""
Claim allocator - the end-to-end claim protocol.

A claim runs through four steps, each a short independent transaction:

    resolve identity -> check ledger -> allocate coupon -> record claim

Correctness under concurrency comes from the store: the conditional
UPDATE in allocate_one and the unique identity index behind record_claim.
No application-level lock is held between steps.

When two requests for the same identity both pass the ledger check, the
second one to reach record_claim gets DuplicateIdentityError. Its coupon
is released back to the pool and the request is answered as
AlreadyClaimedError, so an identity never gets two coupons in a window.

Trade-off: between allocate_one and release_coupon the losing request
holds a coupon it will give back. If that was the last free coupon, a
different client claiming in that gap sees PoolExhaustedError even though
the pool is about to refill. Recording the claim before allocating would
close the gap, but then an exhausted pool leaves a ledger row that must be
rolled back instead, which locks out an identity that got nothing if the
rollback fails. Allocating first keeps every failure mode on the side of
the pool.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from db.models.coupons import CouponModel
from coupon_allocator.exceptions import (
    AlreadyClaimedError, PoolExhaustedError, DuplicateIdentityError
)
from coupon_allocator.services.identity_service import resolve_client_identity
from coupon_allocator.services.claim_ledger_service import has_active_claim, record_claim
from coupon_allocator.services.coupon_pool_service import allocate_one, release_coupon
from coupon_allocator.utils.logging import get_context_logger, with_context


@dataclass
class ClaimResult:
    identity: str
    coupon: CouponModel


def claim_coupon(
    db: Session,
    forwarded_for: Optional[str] = None,
    peer_address: Optional[str] = None,
    trace_id: Optional[str] = None
) -> ClaimResult:
    """
    Claim one coupon for the requesting client.

    Args:
        db: Database session
        forwarded_for: Raw X-Forwarded-For header (optional)
        peer_address: Socket peer address (optional)
        trace_id: Trace ID for logging (optional)

    Returns:
        ClaimResult with the resolved identity and the allocated coupon

    Raises:
        IdentityResolutionError: No identity could be derived
        AlreadyClaimedError: The identity claimed within the window
        PoolExhaustedError: No unclaimed coupon is left
        DatabaseError: Storage failure
    """
    logger = get_context_logger("claim_allocator", trace_id=trace_id)

    identity = resolve_client_identity(forwarded_for, peer_address, trace_id=trace_id)
    logger = with_context(logger, identity=identity)

    active, remaining = has_active_claim(db, identity, trace_id=trace_id)
    if active:
        logger.info(f"Claim rejected, {remaining}s remaining in window")
        raise AlreadyClaimedError(remaining_seconds=remaining)

    coupon = allocate_one(db, trace_id=trace_id)
    if coupon is None:
        logger.info("Claim rejected, pool exhausted")
        raise PoolExhaustedError()

    try:
        record_claim(db, identity, trace_id=trace_id)
    except DuplicateIdentityError as e:
        logger.warning(f"Concurrent claim won by another request, releasing coupon {coupon.id}")
        release_coupon(db, coupon.code, trace_id=trace_id)
        raise AlreadyClaimedError(remaining_seconds=e.remaining_seconds)

    logger.info(f"Coupon {coupon.id} allocated")
    return ClaimResult(identity=identity, coupon=coupon)
