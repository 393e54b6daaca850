"""Fee type catalog (Tuition, Admission, Exam, Transport)."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String, Text, UniqueConstraint, Uuid

from schoolfees.db.session import Base


class FeeType(Base):
    """Category of charge with a recurrence flag. Soft delete via is_active."""

    __tablename__ = "fee_types"
    __table_args__ = (
        UniqueConstraint("code", name="uq_fee_type_code"),
        CheckConstraint(
            "category IN ('ACADEMIC','FACILITY','TRANSPORT','OTHER')",
            name="chk_fee_type_category",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    code = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    # Stored as string; constrained by chk_fee_type_category
    category = Column(String(30), nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
