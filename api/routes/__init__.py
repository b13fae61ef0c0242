"""API route modules."""
from api.routes import coupons, health

__all__ = ["coupons", "health"]
