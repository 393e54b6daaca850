"""Student fee: the per-student ledger record for one assigned fee structure."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from schoolfees.core.enums import FeeStatus
from schoolfees.db.session import Base


class StudentFee(Base):
    """
    Ledger record per (student, fee structure, academic year).
    total_amount == paid_amount + discount_amount + due_amount after every write.
    status is recomputed from the amounts on every write.
    """

    __tablename__ = "student_fees"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "fee_structure_id",
            "academic_year",
            name="uq_student_fee_student_structure_year",
        ),
        CheckConstraint(
            "status IN ('PENDING','PARTIAL','PAID')",
            name="chk_student_fee_status",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, nullable=False, index=True)
    fee_structure_id = Column(
        Uuid,
        ForeignKey("fee_structures.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    fee_type_id = Column(
        Uuid,
        ForeignKey("fee_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    academic_year = Column(String(20), nullable=False)

    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    due_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=FeeStatus.PENDING.value)
    due_date = Column(Date, nullable=True)
    last_payment_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    fee_structure = relationship("FeeStructure")
    fee_type = relationship("FeeType")
    monthly_dues = relationship(
        "MonthlyDue",
        back_populates="student_fee",
        cascade="all, delete-orphan",
        order_by="MonthlyDue.due_date",
    )
