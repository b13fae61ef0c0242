# ============================================================================
# FILE: test/coupon_allocator_core/test_allocator.py
# Tests for coupon_allocator/allocator.py
# ============================================================================

import logging
import pytest
from unittest.mock import patch

from coupon_allocator.allocator import claim_coupon, ClaimResult
from coupon_allocator.exceptions import (
    AlreadyClaimedError,
    PoolExhaustedError,
    IdentityResolutionError,
    DuplicateIdentityError,
    ErrorCode
)
from coupon_allocator.services.claim_ledger_service import has_active_claim
from coupon_allocator.services.coupon_pool_service import count_coupons
from db.models.claim_records import ClaimRecordModel


# ============================================================================
# SECTION 1: Happy path
# ============================================================================

class TestClaimCoupon:
    """Test claim_coupon end to end against the store."""

    def test_successful_claim(self, db_session, make_coupons):
        """✓ Claim → coupon allocated and ledger row recorded"""
        make_coupons(2)

        result = claim_coupon(db_session, forwarded_for="203.0.113.5", peer_address="10.0.0.1")

        assert isinstance(result, ClaimResult)
        assert result.identity == "203.0.113.5"
        assert result.coupon.is_claimed is True
        assert has_active_claim(db_session, "203.0.113.5")[0] is True
        assert count_coupons(db_session, is_claimed=True) == 1

    def test_no_identity_to_coupon_link_kept(self, db_session, make_coupons):
        """✓ Ledger row carries only identity and timestamps"""
        make_coupons(1)
        claim_coupon(db_session, peer_address="203.0.113.6")

        columns = set(ClaimRecordModel.__table__.columns.keys())
        assert columns == {"id", "identity", "claimed_at", "expires_at"}

    def test_distinct_identities_get_distinct_coupons(self, db_session, make_coupons):
        """✓ Uniqueness across successful claims"""
        make_coupons(5)

        codes = [
            claim_coupon(db_session, peer_address=f"198.51.100.{i}").coupon.code
            for i in range(5)
        ]

        assert len(set(codes)) == 5

    def test_claims_keep_ledger_bounded(self, db_session, make_coupons, make_claim_record):
        """✓ Expired rows of other clients are gone after fresh claims"""
        make_coupons(20)
        for i in range(50):
            make_claim_record(f"192.0.2.{i}", age_seconds=7200)

        for i in range(20):
            claim_coupon(db_session, peer_address=f"198.51.100.{i}")

        assert db_session.query(ClaimRecordModel).count() == 20

    def test_claim_logs_carry_identity(self, db_session, make_coupons, caplog):
        """✓ Allocation log line is tagged with trace_id and identity"""
        make_coupons(1)

        with caplog.at_level(logging.INFO, logger="claim_allocator"):
            claim_coupon(db_session, peer_address="198.51.100.77", trace_id="t-claim")

        record = [r for r in caplog.records if r.name == "claim_allocator"][-1]
        assert record.trace_id == "t-claim"
        assert record.identity == "198.51.100.77"


# ============================================================================
# SECTION 2: Rejections
# ============================================================================

class TestClaimRejections:
    """Test the REJECTED and EXHAUSTED terminal states."""

    def test_repeat_claim_rejected_with_remaining_time(self, db_session, make_coupons):
        """✓ Same identity inside window → AlreadyClaimedError"""
        make_coupons(2)
        claim_coupon(db_session, peer_address="192.0.2.20")

        with pytest.raises(AlreadyClaimedError) as exc_info:
            claim_coupon(db_session, peer_address="192.0.2.20")

        assert exc_info.value.error_code == ErrorCode.ALREADY_CLAIMED
        assert 3590 <= exc_info.value.remaining_seconds <= 3600
        assert count_coupons(db_session, is_claimed=True) == 1

    def test_rejected_before_allocation(self, db_session, make_coupons, make_claim_record):
        """✓ Live record → no coupon touched"""
        make_coupons(1)
        make_claim_record("192.0.2.21", age_seconds=1200)

        with pytest.raises(AlreadyClaimedError) as exc_info:
            claim_coupon(db_session, peer_address="192.0.2.21")

        assert 2395 <= exc_info.value.remaining_seconds <= 2400
        assert count_coupons(db_session, is_claimed=False) == 1

    def test_expired_record_allows_new_claim(self, db_session, make_coupons, make_claim_record):
        """✓ Claim after expiry succeeds"""
        make_coupons(1)
        make_claim_record("192.0.2.22", age_seconds=3601)

        result = claim_coupon(db_session, peer_address="192.0.2.22")

        assert result.coupon.is_claimed is True

    def test_pool_exhausted(self, db_session, make_coupons):
        """✓ No coupons → PoolExhaustedError, pool unchanged, no ledger row"""
        make_coupons(2, claimed=True)

        with pytest.raises(PoolExhaustedError) as exc_info:
            claim_coupon(db_session, peer_address="192.0.2.23")

        assert exc_info.value.error_code == ErrorCode.POOL_EXHAUSTED
        assert count_coupons(db_session, is_claimed=True) == 2
        assert has_active_claim(db_session, "192.0.2.23") == (False, 0)

    def test_unresolvable_identity(self, db_session, make_coupons):
        """✓ No header and no peer → IdentityResolutionError, pool untouched"""
        make_coupons(1)

        with pytest.raises(IdentityResolutionError):
            claim_coupon(db_session)

        assert count_coupons(db_session, is_claimed=False) == 1


# ============================================================================
# SECTION 3: Duplicate identity race
# ============================================================================

class TestDuplicateIdentityRace:
    """Two requests for one identity both pass the ledger check."""

    def test_loser_releases_coupon_and_is_rejected(self, db_session, make_coupons, make_claim_record):
        """✓ record_claim collision → coupon released, AlreadyClaimedError"""
        make_coupons(1)
        make_claim_record("192.0.2.30")

        # Simulate the race: the ledger check runs before the winner's insert lands
        with patch("coupon_allocator.allocator.has_active_claim", return_value=(False, 0)):
            with pytest.raises(AlreadyClaimedError) as exc_info:
                claim_coupon(db_session, peer_address="192.0.2.30")

        assert exc_info.value.remaining_seconds > 3500
        assert count_coupons(db_session, is_claimed=False) == 1

    def test_duplicate_error_never_escapes(self, db_session, make_coupons):
        """✓ DuplicateIdentityError mapped to AlreadyClaimedError"""
        make_coupons(1)

        with patch(
            "coupon_allocator.allocator.record_claim",
            side_effect=DuplicateIdentityError("race", identity="192.0.2.31", remaining_seconds=42)
        ):
            with pytest.raises(AlreadyClaimedError) as exc_info:
                claim_coupon(db_session, peer_address="192.0.2.31")

        assert not isinstance(exc_info.value, DuplicateIdentityError)
        assert exc_info.value.remaining_seconds == 42
        assert count_coupons(db_session, is_claimed=False) == 1
