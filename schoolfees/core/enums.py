from enum import Enum


class FeeCategory(str, Enum):
    ACADEMIC = "ACADEMIC"
    FACILITY = "FACILITY"
    TRANSPORT = "TRANSPORT"
    OTHER = "OTHER"


class FeeFrequency(str, Enum):
    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class FeeStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    # Never stored; applied at read time when due > 0 and the due date has passed.
    OVERDUE = "OVERDUE"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    ONLINE = "ONLINE"


class PaymentStatus(str, Enum):
    COMPLETED = "COMPLETED"


class AssignmentOutcome(str, Enum):
    assigned = "assigned"
    skipped = "skipped"
    failed = "failed"
