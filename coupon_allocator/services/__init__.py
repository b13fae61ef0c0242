"""
Service layer for business logic.

This module provides access to the identity, ledger, pool and reporting
services composed by the claim allocator.
"""
from .identity_service import resolve_client_identity

from .claim_ledger_service import (
    has_active_claim,
    record_claim,
    release_claim,
    purge_expired_claims,
    count_active_claims
)

from .coupon_pool_service import (
    create_batch,
    allocate_one,
    release_coupon,
    list_coupons,
    count_coupons
)

from .reporting_service import get_dashboard_stats

__all__ = [
    "resolve_client_identity",
    "has_active_claim",
    "record_claim",
    "release_claim",
    "purge_expired_claims",
    "count_active_claims",
    "create_batch",
    "allocate_one",
    "release_coupon",
    "list_coupons",
    "count_coupons",
    "get_dashboard_stats",
]
