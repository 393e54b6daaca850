"""Fee structure: price of a fee type for one class in one academic year."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from schoolfees.db.session import Base


class FeeStructure(Base):
    """
    Amount and frequency of a fee type for a class and academic year.
    Already-created student fees keep the amount they were assigned with.
    """

    __tablename__ = "fee_structures"
    __table_args__ = (
        UniqueConstraint(
            "class_id",
            "fee_type_id",
            "academic_year",
            name="uq_fee_structure_class_type_year",
        ),
        CheckConstraint(
            "frequency IN ('ONE_TIME','MONTHLY','YEARLY')",
            name="chk_fee_structure_frequency",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Class ids come from the class directory; no FK into it.
    class_id = Column(Uuid, nullable=False, index=True)
    fee_type_id = Column(
        Uuid,
        ForeignKey("fee_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    academic_year = Column(String(20), nullable=False)  # e.g. "2024-25"
    amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(String(20), nullable=False)  # ONE_TIME, MONTHLY, YEARLY
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    fee_type = relationship("FeeType", lazy="joined")
