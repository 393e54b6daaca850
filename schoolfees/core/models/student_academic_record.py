import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Uuid

from schoolfees.db.session import Base


class StudentAcademicRecord(Base):
    """
    Student enrollment per academic year, owned by the student directory.
    The ledger only reads it: class membership for bulk assignment and class filters.
    """

    __tablename__ = "student_academic_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, nullable=False, index=True)
    class_id = Column(Uuid, nullable=False, index=True)
    academic_year = Column(String(20), nullable=False)
    roll_number = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE | PROMOTED | LEFT
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
