"""
Inventory and reporting queries.

Read-only aggregates over the coupon pool and the claim ledger.
"""
from typing import Dict, Any, Optional

from sqlalchemy.orm import Session

from coupon_allocator.services.coupon_pool_service import count_coupons
from coupon_allocator.services.claim_ledger_service import count_active_claims


def get_dashboard_stats(db: Session, trace_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Collect pool and ledger counts for the admin dashboard.

    Counts are taken with separate queries, so under concurrent claims
    ``claimed + unclaimed`` may momentarily differ from ``total``.
    """
    return {
        "coupons": {
            "total": count_coupons(db, trace_id=trace_id),
            "claimed": count_coupons(db, is_claimed=True, trace_id=trace_id),
            "unclaimed": count_coupons(db, is_claimed=False, trace_id=trace_id),
            "activeClaimCount": count_active_claims(db, trace_id=trace_id),
        }
    }
