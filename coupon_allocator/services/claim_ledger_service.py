"""
Claim ledger service.

The ledger is the sole authority on whether an identity has claimed a
coupon within the claim window. Each identity owns at most one row in
``claim_records``; the unique index on ``identity`` turns the insert into
an atomic insert-if-absent. Rows carry their own ``expires_at`` and are
treated as absent once it has passed, whether or not they have been
purged yet.
"""
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from db.models.claim_records import ClaimRecordModel
from coupon_allocator import config
from coupon_allocator.exceptions import DuplicateIdentityError, ValidationError
from coupon_allocator.utils.logging import get_context_logger
from coupon_allocator.utils.datetime_utils import get_current_datetime, seconds_until
from coupon_allocator.utils.error_handling import handle_database_error


def get_window_seconds() -> int:
    return config.CLAIM_WINDOW_SECONDS


def _validate_identity(identity: str) -> None:
    if not identity or not isinstance(identity, str):
        raise ValidationError(
            "identity must be a non-empty string",
            field="identity"
        )


def get_active_claim(
    db: Session,
    identity: str,
    trace_id: Optional[str] = None
) -> Optional[ClaimRecordModel]:
    """Return the live claim record for identity, or None."""
    _validate_identity(identity)
    logger = get_context_logger("claim_ledger", trace_id=trace_id, identity=identity)

    try:
        now = get_current_datetime()
        return (db.query(ClaimRecordModel)
            .filter(
                ClaimRecordModel.identity == identity,
                ClaimRecordModel.expires_at > now
            )
            .first())
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "get_active_claim", logger)


def has_active_claim(
    db: Session,
    identity: str,
    trace_id: Optional[str] = None
) -> Tuple[bool, int]:
    """
    Check whether identity holds a live claim.

    Returns:
        (True, remaining_seconds) when a live record exists,
        (False, 0) otherwise
    """
    record = get_active_claim(db, identity, trace_id=trace_id)
    if record is None:
        return False, 0

    return True, seconds_until(record.expires_at)


def record_claim(
    db: Session,
    identity: str,
    trace_id: Optional[str] = None
) -> ClaimRecordModel:
    """
    Insert a claim record for identity, stamped with the current time.

    A stale (expired) row for the same identity is removed first. If a live
    row exists the insert loses on the unique index and the collision is
    reported rather than overwritten. Once the claim is committed, expired
    rows of every other identity are swept as well.

    Raises:
        DuplicateIdentityError: A live record already exists
        DatabaseError: Any other storage failure
    """
    _validate_identity(identity)
    logger = get_context_logger("claim_ledger", trace_id=trace_id, identity=identity)

    now = get_current_datetime()
    record = ClaimRecordModel(
        identity=identity,
        claimed_at=now,
        expires_at=now + timedelta(seconds=get_window_seconds())
    )

    try:
        (db.query(ClaimRecordModel)
            .filter(
                ClaimRecordModel.identity == identity,
                ClaimRecordModel.expires_at <= now
            )
            .delete(synchronize_session=False))

        db.add(record)
        db.commit()
        db.refresh(record)

        logger.info("Claim recorded")

    except IntegrityError:
        db.rollback()
        existing = get_active_claim(db, identity, trace_id=trace_id)
        remaining = seconds_until(existing.expires_at) if existing else get_window_seconds()
        logger.warning("Claim record already exists for identity")
        raise DuplicateIdentityError(
            "A live claim record already exists for this identity",
            identity=identity,
            remaining_seconds=remaining
        )
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "record_claim", logger)

    _sweep_expired_claims(db, now, logger)
    return record


def _sweep_expired_claims(db: Session, now, logger) -> int:
    """
    Delete every claim record that expired before ``now``.

    Runs after a claim has been committed so the table stays bounded while
    the service is up. The claim already stands, so a failed sweep is logged
    and left for the next one.
    """
    try:
        deleted = (db.query(ClaimRecordModel)
            .filter(ClaimRecordModel.expires_at <= now)
            .delete(synchronize_session=False))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Expired claim sweep failed: {e}")
        return 0

    if deleted:
        logger.debug(f"Swept {deleted} expired claim records")
    return deleted


def release_claim(
    db: Session,
    identity: str,
    trace_id: Optional[str] = None
) -> bool:
    """Delete the claim record for identity. Returns True if one was removed."""
    _validate_identity(identity)
    logger = get_context_logger("claim_ledger", trace_id=trace_id, identity=identity)

    try:
        deleted = (db.query(ClaimRecordModel)
            .filter(ClaimRecordModel.identity == identity)
            .delete(synchronize_session=False))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "release_claim", logger)

    if deleted:
        logger.info("Claim record released")
    return deleted > 0


def purge_expired_claims(db: Session, trace_id: Optional[str] = None) -> int:
    """Physically delete every expired claim record. Returns the row count."""
    logger = get_context_logger("claim_ledger", trace_id=trace_id)

    try:
        deleted = (db.query(ClaimRecordModel)
            .filter(ClaimRecordModel.expires_at <= get_current_datetime())
            .delete(synchronize_session=False))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "purge_expired_claims", logger)

    if deleted:
        logger.info(f"Purged {deleted} expired claim records")
    return deleted


def count_active_claims(db: Session, trace_id: Optional[str] = None) -> int:
    """Number of live claim records."""
    logger = get_context_logger("claim_ledger", trace_id=trace_id)

    try:
        return (db.query(ClaimRecordModel)
            .filter(ClaimRecordModel.expires_at > get_current_datetime())
            .count())
    except SQLAlchemyError as e:
        db.rollback()
        handle_database_error(e, "count_active_claims", logger)
