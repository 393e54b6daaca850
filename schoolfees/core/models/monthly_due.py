"""Monthly due: one calendar-month installment of a recurring student fee."""

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from schoolfees.core.enums import FeeStatus
from schoolfees.db.session import Base


class MonthlyDue(Base):
    """Created in a batch of twelve with its student fee; only payments mutate it afterwards."""

    __tablename__ = "monthly_dues"
    __table_args__ = (
        UniqueConstraint("student_fee_id", "month", "year", name="uq_monthly_due_fee_month_year"),
        CheckConstraint("month BETWEEN 1 AND 12", name="chk_monthly_due_month"),
        CheckConstraint(
            "status IN ('PENDING','PARTIAL','PAID')",
            name="chk_monthly_due_status",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_fee_id = Column(
        Uuid,
        ForeignKey("student_fees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id = Column(Uuid, nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=FeeStatus.PENDING.value)
    due_date = Column(Date, nullable=False)
    paid_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student_fee = relationship("StudentFee", back_populates="monthly_dues")
