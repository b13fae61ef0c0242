# Import all models here to ensure they're registered with Base
from db.models.base import Base
from db.models.coupons import CouponModel
from db.models.claim_records import ClaimRecordModel
