"""
Coupon pool service.

Owns coupon records and their claimed/unclaimed status.

ALLOCATION:
- Candidates are taken lowest id first, so coupons go out in creation order
- The claim itself is a conditional UPDATE (is_claimed = false -> true);
  only a one-row update counts as a win, so no coupon is handed out twice
  no matter how many workers or instances share the database
- Where the dialect supports it the candidate row is read with
  FOR UPDATE SKIP LOCKED so concurrent allocators pick different rows
"""
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from db.models.coupons import CouponModel
from coupon_allocator import config
from coupon_allocator.exceptions import DatabaseError, ErrorCode
from coupon_allocator.utils.logging import get_context_logger
from coupon_allocator.utils.datetime_utils import get_current_datetime
from coupon_allocator.utils.error_handling import handle_database_error

MAX_ALLOCATION_ATTEMPTS = 100

STATUS_FILTERS = {
    "claimed": True,
    "unclaimed": False,
}


def generate_coupon_code() -> str:
    return str(uuid.uuid4())


def clamp_batch_size(count: Optional[int]) -> int:
    """
    Bring a requested batch size into [0, MAX_BATCH_SIZE].

    A missing count means DEFAULT_BATCH_SIZE. Oversized requests are
    clamped silently and negative ones create nothing.
    """
    if count is None:
        count = config.DEFAULT_BATCH_SIZE
    return max(0, min(int(count), config.MAX_BATCH_SIZE))


def create_batch(
    db: Session,
    count: Optional[int] = None,
    trace_id: Optional[str] = None
) -> List[CouponModel]:
    """
    Create a batch of unclaimed coupons with fresh unique codes.

    Args:
        db: Database session
        count: Requested number of coupons (clamped, see clamp_batch_size)
        trace_id: Trace ID for logging (optional)

    Returns:
        The persisted coupons
    """
    logger = get_context_logger("coupon_pool", trace_id=trace_id)
    batch_size = clamp_batch_size(count)

    if count is not None and batch_size != count:
        logger.info(f"Requested batch size {count} clamped to {batch_size}")

    if batch_size == 0:
        return []

    now = get_current_datetime()
    coupons = [
        CouponModel(code=generate_coupon_code(), is_claimed=False, created_at=now)
        for _ in range(batch_size)
    ]

    try:
        db.add_all(coupons)
        db.commit()
        for coupon in coupons:
            db.refresh(coupon)
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "create_batch", logger)

    logger.info(f"Created {len(coupons)} coupons")
    return coupons


def allocate_one(db: Session, trace_id: Optional[str] = None) -> Optional[CouponModel]:
    """
    Atomically claim one unclaimed coupon.

    Returns:
        The coupon as it is after the update (is_claimed=True), or None
        when the pool is exhausted

    Raises:
        DatabaseError: On storage failure
    """
    logger = get_context_logger("coupon_pool", trace_id=trace_id)

    try:
        for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
            candidate_id = (db.query(CouponModel.id)
                .filter(CouponModel.is_claimed == False)
                .order_by(CouponModel.id.asc())
                .limit(1)
                .with_for_update(skip_locked=True)
                .scalar())

            if candidate_id is None:
                db.rollback()
                logger.info("Coupon pool exhausted")
                return None

            updated = (db.query(CouponModel)
                .filter(
                    CouponModel.id == candidate_id,
                    CouponModel.is_claimed == False
                )
                .update(
                    {CouponModel.is_claimed: True, CouponModel.claimed_at: get_current_datetime()},
                    synchronize_session=False
                ))

            if updated == 1:
                db.commit()
                coupon = db.get(CouponModel, candidate_id)
                logger.info(f"Allocated coupon {coupon.id}")
                return coupon

            # Another worker took this row between read and update
            db.rollback()
            logger.debug(f"Lost allocation race for coupon {candidate_id} (attempt {attempt})")

    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "allocate_one", logger)

    logger.error(f"Gave up allocating after {MAX_ALLOCATION_ATTEMPTS} lost races")
    raise DatabaseError(
        "Allocation contention limit reached",
        error_code=ErrorCode.DATABASE_ERROR,
        operation="allocate_one",
        details={"attempts": MAX_ALLOCATION_ATTEMPTS}
    )


def release_coupon(db: Session, code: str, trace_id: Optional[str] = None) -> bool:
    """
    Return a claimed coupon to the pool.

    Only used to compensate an allocation whose claim could not be
    recorded. Returns True if the coupon went from claimed to unclaimed.
    """
    logger = get_context_logger("coupon_pool", trace_id=trace_id)

    try:
        updated = (db.query(CouponModel)
            .filter(
                CouponModel.code == code,
                CouponModel.is_claimed == True
            )
            .update(
                {CouponModel.is_claimed: False, CouponModel.claimed_at: None},
                synchronize_session=False
            ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "release_coupon", logger)

    if updated:
        logger.info("Released coupon back to pool")
    else:
        logger.warning("Coupon to release was not claimed")
    return updated == 1


def list_coupons(
    db: Session,
    status: Optional[str] = None,
    trace_id: Optional[str] = None
) -> List[CouponModel]:
    """
    List coupons filtered by status.

    ``claimed`` and ``unclaimed`` filter on is_claimed; any other value
    (or None) returns every coupon. Results are ordered by id.
    """
    logger = get_context_logger("coupon_pool", trace_id=trace_id)

    try:
        query = db.query(CouponModel)
        if status in STATUS_FILTERS:
            query = query.filter(CouponModel.is_claimed == STATUS_FILTERS[status])
        return query.order_by(CouponModel.id.asc()).all()
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "list_coupons", logger)


def count_coupons(
    db: Session,
    is_claimed: Optional[bool] = None,
    trace_id: Optional[str] = None
) -> int:
    logger = get_context_logger("coupon_pool", trace_id=trace_id)

    try:
        query = db.query(CouponModel)
        if is_claimed is not None:
            query = query.filter(CouponModel.is_claimed == is_claimed)
        return query.count()
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "count_coupons", logger)
