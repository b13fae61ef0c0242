# ============================================================================
# FILE: test/coupon_allocator_services/test_claim_ledger_service.py
# Tests for coupon_allocator/services/claim_ledger_service.py
# ============================================================================

import pytest
from datetime import timedelta
from unittest.mock import patch

from coupon_allocator.services.claim_ledger_service import (
    has_active_claim,
    record_claim,
    release_claim,
    purge_expired_claims,
    count_active_claims
)
from coupon_allocator.exceptions import (
    DuplicateIdentityError,
    ValidationError,
    ErrorCode
)
from coupon_allocator.utils.datetime_utils import get_current_datetime, ensure_timezone_aware
from db.models.claim_records import ClaimRecordModel

LEDGER = "coupon_allocator.services.claim_ledger_service"


# ============================================================================
# SECTION 1: has_active_claim
# ============================================================================

class TestHasActiveClaim:
    """Test has_active_claim function."""

    def test_unknown_identity(self, db_session):
        """✓ No record → (False, 0)"""
        assert has_active_claim(db_session, "203.0.113.1") == (False, 0)

    def test_fresh_record_full_window(self, db_session):
        """✓ Just recorded → remaining ≈ window"""
        record_claim(db_session, "203.0.113.1")

        active, remaining = has_active_claim(db_session, "203.0.113.1")

        assert active is True
        assert 3595 <= remaining <= 3600

    def test_remaining_is_window_minus_elapsed(self, db_session, make_claim_record):
        """✓ Claimed 10 minutes ago → remaining ≈ 3000"""
        make_claim_record("203.0.113.2", age_seconds=600)

        active, remaining = has_active_claim(db_session, "203.0.113.2")

        assert active is True
        assert 2995 <= remaining <= 3000

    def test_expired_record_not_active(self, db_session, make_claim_record):
        """✓ Record past expiry → (False, 0) even before purge"""
        make_claim_record("203.0.113.3", age_seconds=3601)

        assert has_active_claim(db_session, "203.0.113.3") == (False, 0)

    def test_empty_identity_rejected(self, db_session):
        """✓ Empty identity → ValidationError"""
        with pytest.raises(ValidationError) as exc_info:
            has_active_claim(db_session, "")

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR


# ============================================================================
# SECTION 2: record_claim
# ============================================================================

class TestRecordClaim:
    """Test record_claim function."""

    def test_record_sets_expiry_one_window_out(self, db_session):
        """✓ expires_at = claimed_at + 3600s"""
        record = record_claim(db_session, "198.51.100.1")

        claimed_at = ensure_timezone_aware(record.claimed_at)
        expires_at = ensure_timezone_aware(record.expires_at)
        assert expires_at - claimed_at == timedelta(seconds=3600)

    def test_live_duplicate_raises(self, db_session):
        """✓ Second insert while live → DuplicateIdentityError, not overwrite"""
        first = record_claim(db_session, "198.51.100.2")
        first_claimed_at = first.claimed_at

        with pytest.raises(DuplicateIdentityError) as exc_info:
            record_claim(db_session, "198.51.100.2")

        assert exc_info.value.error_code == ErrorCode.DUPLICATE_IDENTITY
        assert exc_info.value.remaining_seconds > 3500

        rows = db_session.query(ClaimRecordModel).filter_by(identity="198.51.100.2").all()
        assert len(rows) == 1
        assert rows[0].claimed_at == first_claimed_at

    def test_expired_record_replaced(self, db_session, make_claim_record):
        """✓ Stale record does not block a fresh claim"""
        make_claim_record("198.51.100.3", age_seconds=7200)

        record = record_claim(db_session, "198.51.100.3")

        rows = db_session.query(ClaimRecordModel).filter_by(identity="198.51.100.3").all()
        assert len(rows) == 1
        assert rows[0].id == record.id
        assert has_active_claim(db_session, "198.51.100.3")[0] is True

    def test_record_expires_after_window(self, db_session):
        """✓ One window later the claim is no longer active"""
        record_claim(db_session, "198.51.100.4")

        later = get_current_datetime() + timedelta(seconds=3601)
        with patch(f"{LEDGER}.get_current_datetime", return_value=later):
            assert has_active_claim(db_session, "198.51.100.4")[0] is False
            record_claim(db_session, "198.51.100.4")

    def test_window_follows_config(self, db_session, monkeypatch):
        """✓ CLAIM_WINDOW_SECONDS drives the expiry"""
        from coupon_allocator import config
        monkeypatch.setattr(config, "CLAIM_WINDOW_SECONDS", 60)

        record = record_claim(db_session, "198.51.100.5")

        delta = ensure_timezone_aware(record.expires_at) - ensure_timezone_aware(record.claimed_at)
        assert delta == timedelta(seconds=60)

    def test_record_sweeps_other_expired_records(self, db_session, make_claim_record):
        """✓ Recording a claim removes every expired row, not just its own"""
        for i in range(5):
            make_claim_record(f"192.0.2.{i}", age_seconds=7200)
        make_claim_record("192.0.2.100", age_seconds=60)

        record_claim(db_session, "198.51.100.6")

        identities = {r.identity for r in db_session.query(ClaimRecordModel).all()}
        assert identities == {"192.0.2.100", "198.51.100.6"}


# ============================================================================
# SECTION 3: Maintenance operations
# ============================================================================

class TestLedgerMaintenance:
    """Test release, purge and counting."""

    def test_release_claim(self, db_session):
        """✓ Released identity may claim again"""
        record_claim(db_session, "192.0.2.1")

        assert release_claim(db_session, "192.0.2.1") is True
        assert has_active_claim(db_session, "192.0.2.1") == (False, 0)
        assert release_claim(db_session, "192.0.2.1") is False

    def test_purge_removes_only_expired(self, db_session, make_claim_record):
        """✓ Purge deletes dead rows, keeps live ones"""
        make_claim_record("192.0.2.2", age_seconds=4000)
        make_claim_record("192.0.2.3", age_seconds=3700)
        make_claim_record("192.0.2.4", age_seconds=10)

        assert purge_expired_claims(db_session) == 2

        remaining = [r.identity for r in db_session.query(ClaimRecordModel).all()]
        assert remaining == ["192.0.2.4"]

    def test_count_active_claims_ignores_expired(self, db_session, make_claim_record):
        """✓ Only live records counted"""
        make_claim_record("192.0.2.5", age_seconds=5000)
        make_claim_record("192.0.2.6")
        make_claim_record("192.0.2.7")

        assert count_active_claims(db_session) == 2
