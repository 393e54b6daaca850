"""Payment: append-only receipt of money applied to one student fee."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from schoolfees.core.enums import PaymentStatus
from schoolfees.db.session import Base


class Payment(Base):
    """Payment against a student fee. Never updated or deleted once written."""

    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("receipt_number", name="uq_payment_receipt_number"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_fee_id = Column(
        Uuid,
        ForeignKey("student_fees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    student_id = Column(Uuid, nullable=False, index=True)
    academic_year = Column(String(20), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_reason = Column(String(255), nullable=True)
    payment_method = Column(String(30), nullable=False)  # CASH, CARD, UPI, BANK_TRANSFER, CHEQUE, ONLINE
    transaction_id = Column(String(100), nullable=True)
    receipt_number = Column(String(40), nullable=False)
    remarks = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=PaymentStatus.COMPLETED.value)
    collected_by = Column(Uuid, nullable=True)
    payment_date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student_fee = relationship("StudentFee")
