# db/models/claim_records.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.types import TIMESTAMP

from db.models.base import Base

class ClaimRecordModel(Base):
    __tablename__ = 'claim_records'

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity = Column(String(255), unique=True, nullable=False, index=True)
    claimed_at = Column(TIMESTAMP(timezone=True), nullable=False)
    # Rows past expires_at are dead; the ledger ignores and purges them
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False, index=True)
