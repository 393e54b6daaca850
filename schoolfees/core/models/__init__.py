from schoolfees.core.models.fee_type import FeeType
from schoolfees.core.models.fee_structure import FeeStructure
from schoolfees.core.models.student_fee import StudentFee
from schoolfees.core.models.monthly_due import MonthlyDue
from schoolfees.core.models.payment import Payment
from schoolfees.core.models.student_academic_record import StudentAcademicRecord
from schoolfees.core.models.fee_audit_log import FeeAuditLog

__all__ = [
    "FeeType",
    "FeeStructure",
    "StudentFee",
    "MonthlyDue",
    "Payment",
    "StudentAcademicRecord",
    "FeeAuditLog",
]
