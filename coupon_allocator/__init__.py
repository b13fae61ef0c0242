"""
Coupon claim allocation.

This package hands out single-use coupons to anonymous clients, one per
client per claim window, coordinating identity resolution, the claim
ledger and the coupon pool.
"""
from .allocator import claim_coupon, ClaimResult
from .version import __version__

__all__ = [
    "claim_coupon",
    "ClaimResult",
    "__version__",
]
