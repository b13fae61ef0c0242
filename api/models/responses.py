"""Response models and builders for API endpoints."""
from datetime import datetime
from typing import Any, Optional
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from coupon_allocator.utils.datetime_utils import format_iso_datetime


class CouponData(BaseModel):
    """Wire form of a coupon."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    code: str
    is_claimed: bool = Field(serialization_alias="isClaimed")
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")
    claimed_at: Optional[datetime] = Field(None, serialization_alias="claimedAt")

    @field_serializer("created_at", "claimed_at")
    def _serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return format_iso_datetime(value)


def serialize_coupon(coupon) -> dict:
    return CouponData.model_validate(coupon).model_dump(by_alias=True)


class APIResponse:
    """Standardized API response builder."""

    @staticmethod
    def success(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
        """Build a success response."""
        content = {"success": True}

        if data is not None:
            content["data"] = data

        if message:
            content["message"] = message

        return JSONResponse(status_code=status_code, content=content)
