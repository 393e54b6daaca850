"""
Ledger rules shared by assignment, payment allocation and reporting.
Pure functions only; callers own the session and the transaction.
"""

from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import List, NamedTuple, Optional

from schoolfees.core.enums import FeeStatus
from schoolfees.core.money import ZERO, round_money, to_decimal

INSTALLMENTS_PER_YEAR = 12


class Installment(NamedTuple):
    month: int
    year: int
    amount: Decimal
    due_date: date


def derive_status(paid_amount, due_amount) -> FeeStatus:
    """Stored status of a ledger record. OVERDUE is never stored."""
    paid = to_decimal(paid_amount)
    due = to_decimal(due_amount)
    if due <= ZERO:
        return FeeStatus.PAID
    if paid > ZERO:
        return FeeStatus.PARTIAL
    return FeeStatus.PENDING


def effective_status(status: str, due_amount, due_date: Optional[date], today: date) -> FeeStatus:
    """Status as reported: unpaid balance past its due date reads as OVERDUE."""
    if to_decimal(due_amount) > ZERO and due_date is not None and due_date < today:
        return FeeStatus.OVERDUE
    return FeeStatus(status)


def build_installment_schedule(
    total_amount,
    start: date,
    due_day: int,
    mode: str = "flat",
) -> List[Installment]:
    """
    Twelve consecutive calendar months starting with start's month.

    flat: every installment carries total_amount.
    divided: total_amount / 12 rounded down to cents; the last month absorbs the remainder.
    """
    total = to_decimal(total_amount)
    if mode == "divided":
        # Rounded down so the last month never goes negative.
        per_month = round_money(total / INSTALLMENTS_PER_YEAR, rounding=ROUND_DOWN)
        amounts = [per_month] * (INSTALLMENTS_PER_YEAR - 1)
        amounts.append(total - per_month * (INSTALLMENTS_PER_YEAR - 1))
    elif mode == "flat":
        amounts = [total] * INSTALLMENTS_PER_YEAR
    else:
        raise ValueError(f"Unknown installment mode: {mode}")

    schedule = []
    for i, amount in enumerate(amounts):
        offset = start.month - 1 + i
        year = start.year + offset // 12
        month = offset % 12 + 1
        schedule.append(Installment(month, year, amount, date(year, month, due_day)))
    return schedule
