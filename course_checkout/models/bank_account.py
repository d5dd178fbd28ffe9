"""Bank account model for transfer payments."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from course_checkout.core.database import Base
from course_checkout.models.shared import UUIDType, generate_uuid


class BankAccount(Base):
    """An account students can pay into by bank transfer.

    Accounts referenced by orders are deactivated instead of deleted.
    """

    __tablename__ = "bank_accounts"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    bank_name = Column(String(255), nullable=False)
    account_holder = Column(String(255), nullable=False)
    account_type = Column(String(50), nullable=False)
    account_number = Column(String(64), nullable=False)
    currency = Column(String(3), nullable=False, index=True)
    swift_code = Column(String(20), nullable=True)
    routing_number = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
