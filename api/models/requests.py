"""Request models for API endpoints."""
from typing import Optional
from pydantic import BaseModel, Field


class CreateCouponsRequest(BaseModel):
    """Bulk coupon creation request."""
    count: Optional[int] = Field(
        None,
        description="Number of coupons to create; clamped to the server maximum, defaults to 1"
    )
