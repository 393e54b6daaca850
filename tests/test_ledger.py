"""Unit tests for ledger status rules and installment schedules."""

from datetime import date
from decimal import Decimal

import pytest

from schoolfees.core.enums import FeeStatus
from schoolfees.core.ledger import build_installment_schedule, derive_status, effective_status


def test_status_pending_when_nothing_paid() -> None:
    assert derive_status(Decimal("0"), Decimal("1000")) == FeeStatus.PENDING


def test_status_partial_when_some_paid() -> None:
    assert derive_status(Decimal("400"), Decimal("600")) == FeeStatus.PARTIAL


def test_status_paid_when_nothing_due() -> None:
    assert derive_status(Decimal("1000"), Decimal("0")) == FeeStatus.PAID


def test_status_paid_when_discount_covers_balance() -> None:
    """A fully discounted fee with no cash paid is settled."""
    assert derive_status(Decimal("0"), Decimal("0")) == FeeStatus.PAID


def test_overdue_only_when_balance_and_past_due() -> None:
    today = date(2024, 9, 15)
    assert effective_status("PENDING", Decimal("100"), date(2024, 9, 10), today) == FeeStatus.OVERDUE
    assert effective_status("PARTIAL", Decimal("100"), date(2024, 9, 10), today) == FeeStatus.OVERDUE
    assert effective_status("PENDING", Decimal("100"), date(2024, 9, 15), today) == FeeStatus.PENDING
    assert effective_status("PENDING", Decimal("100"), None, today) == FeeStatus.PENDING
    assert effective_status("PAID", Decimal("0"), date(2024, 1, 1), today) == FeeStatus.PAID


def test_flat_schedule_repeats_full_amount() -> None:
    schedule = build_installment_schedule(Decimal("5000"), date(2024, 4, 20), 10, "flat")
    assert len(schedule) == 12
    assert all(inst.amount == Decimal("5000") for inst in schedule)
    assert schedule[0].due_date == date(2024, 4, 10)


def test_schedule_rolls_over_year_end() -> None:
    schedule = build_installment_schedule(Decimal("100"), date(2024, 11, 3), 10, "flat")
    assert [(i.month, i.year) for i in schedule[:4]] == [(11, 2024), (12, 2024), (1, 2025), (2, 2025)]
    assert schedule[-1].due_date == date(2025, 10, 10)
    due_dates = [i.due_date for i in schedule]
    assert due_dates == sorted(due_dates)


def test_divided_schedule_sums_to_total() -> None:
    schedule = build_installment_schedule(Decimal("1000"), date(2024, 1, 1), 5, "divided")
    assert schedule[0].amount == Decimal("83.33")
    assert schedule[-1].amount == Decimal("83.37")
    assert sum(i.amount for i in schedule) == Decimal("1000")


def test_unknown_schedule_mode_rejected() -> None:
    with pytest.raises(ValueError):
        build_installment_schedule(Decimal("1000"), date(2024, 1, 1), 10, "weekly")


def test_divided_schedule_never_negative() -> None:
    """0.18 / 12 = 0.015: months take 0.01 and the last month carries the rest."""
    schedule = build_installment_schedule(Decimal("0.18"), date(2024, 1, 1), 10, "divided")
    assert all(i.amount >= 0 for i in schedule)
    assert schedule[0].amount == Decimal("0.01")
    assert schedule[-1].amount == Decimal("0.07")
    assert sum(i.amount for i in schedule) == Decimal("0.18")
