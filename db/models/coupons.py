# db/models/coupons.py
from sqlalchemy import Column, Integer, String, Boolean, Index
from sqlalchemy.types import TIMESTAMP

from db.models.base import Base

class CouponModel(Base):
    __tablename__ = 'coupons'

    # Allocation order follows id
    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    is_claimed = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False)
    claimed_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index('coupons_is_claimed_id_idx', is_claimed, id),
    )

    def __repr__(self):
        return f"<CouponModel id={self.id} code={self.code} is_claimed={self.is_claimed}>"
