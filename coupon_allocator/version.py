"""
Version information for the coupon allocator package.
"""

__version__ = "1.0.0"
