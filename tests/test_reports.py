"""Dues, monthly breakdown, collections and student ledger reports."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import ACADEMIC_YEAR
from schoolfees.api.v1.fee_reports import service as reports
from schoolfees.api.v1.fees import service
from schoolfees.api.v1.fees.schemas import AssignFeesRequest, PaymentCreate
from schoolfees.core.enums import FeeStatus


async def _assign(session_factory, fee_structure_id, student_ids, due_date=None):
    async with session_factory() as s:
        result = await service.assign_to_students(
            s,
            AssignFeesRequest(
                student_ids=student_ids,
                fee_structure_id=fee_structure_id,
                academic_year=ACADEMIC_YEAR,
                due_date=due_date,
            ),
        )
    return [d.student_fee_id for d in result.details]


async def _pay(session_factory, student_fee_id, student_id, amount, method="CASH"):
    async with session_factory() as s:
        return await service.record_payment(
            s,
            PaymentCreate(
                student_fee_id=student_fee_id,
                student_id=student_id,
                amount=Decimal(amount),
                payment_method=method,
            ),
            collected_by=None,
        )


@pytest.fixture()
async def exam_class(session_factory, make_fee_type, make_structure, enroll):
    """Two students in one class with an exam fee: one past due and unpaid, one paid in full."""
    ft = await make_fee_type("EXAM", is_recurring=False)
    class_id = uuid4()
    fs = await make_structure(ft, amount="1000", frequency="ONE_TIME", class_id=class_id)
    late = await enroll(class_id)
    settled = await enroll(class_id)
    [late_fee] = await _assign(session_factory, fs.id, [late], due_date=date(2024, 1, 15))
    [settled_fee] = await _assign(session_factory, fs.id, [settled], due_date=date(2099, 12, 31))
    await _pay(session_factory, settled_fee, settled, "1000")
    return {
        "class_id": class_id,
        "fee_type_id": ft.id,
        "late": late,
        "late_fee": late_fee,
        "settled": settled,
    }


@pytest.mark.asyncio
async def test_dues_default_lists_unpaid(client, auth_headers, exam_class) -> None:
    resp = await client.get("/api/v1/fees/dues", params={"academic_year": ACADEMIC_YEAR}, headers=auth_headers())
    assert resp.status_code == 200
    body = resp.json()
    assert [i["student_id"] for i in body["items"]] == [str(exam_class["late"])]
    item = body["items"][0]
    assert item["status"] == "PENDING"
    assert item["effective_status"] == "OVERDUE"
    assert item["fee_type_code"] == "EXAM"
    assert item["class_id"] == str(exam_class["class_id"])
    assert body["summary"]["total_dues"] == 1
    assert Decimal(body["summary"]["total_due_amount"]) == Decimal("1000")


@pytest.mark.asyncio
async def test_dues_status_and_class_filters(client, auth_headers, exam_class, make_fee_type, make_structure, enroll, session_factory) -> None:
    other_class = uuid4()
    ft = await make_fee_type("LAB", is_recurring=False, category="FACILITY")
    fs = await make_structure(ft, amount="200", frequency="ONE_TIME", class_id=other_class)
    outsider = await enroll(other_class)
    await _assign(session_factory, fs.id, [outsider])

    resp = await client.get(
        "/api/v1/fees/dues",
        params={"academic_year": ACADEMIC_YEAR, "fee_status": "PAID"},
        headers=auth_headers(),
    )
    assert [i["student_id"] for i in resp.json()["items"]] == [str(exam_class["settled"])]

    resp = await client.get(
        "/api/v1/fees/dues",
        params={"academic_year": ACADEMIC_YEAR, "class_id": str(exam_class["class_id"])},
        headers=auth_headers(),
    )
    assert [i["student_id"] for i in resp.json()["items"]] == [str(exam_class["late"])]

    resp = await client.get(
        "/api/v1/fees/dues",
        params={"academic_year": ACADEMIC_YEAR, "fee_type_id": str(ft.id)},
        headers=auth_headers(),
    )
    assert [i["student_id"] for i in resp.json()["items"]] == [str(outsider)]

    resp = await client.get("/api/v1/fees/dues", params={"academic_year": "2030-31"}, headers=auth_headers())
    assert resp.json()["items"] == []
    assert resp.json()["summary"]["total_dues"] == 0


@pytest.mark.asyncio
async def test_dues_overdue_filter(session_factory, exam_class) -> None:
    async with session_factory() as s:
        before = await reports.query_dues(s, ACADEMIC_YEAR, status_filter=FeeStatus.OVERDUE, today=date(2024, 1, 1))
        after = await reports.query_dues(s, ACADEMIC_YEAR, status_filter=FeeStatus.OVERDUE, today=date(2024, 2, 1))
    assert before.items == []
    assert [i.student_id for i in after.items] == [exam_class["late"]]
    assert after.items[0].effective_status == FeeStatus.OVERDUE


@pytest.mark.asyncio
async def test_dues_pagination(client, auth_headers, session_factory, make_fee_type, make_structure, enroll) -> None:
    ft = await make_fee_type("EXAM", is_recurring=False)
    class_id = uuid4()
    fs = await make_structure(ft, amount="100", frequency="ONE_TIME", class_id=class_id)
    students = [await enroll(class_id) for _ in range(3)]
    await _assign(session_factory, fs.id, students)

    resp = await client.get(
        "/api/v1/fees/dues",
        params={"academic_year": ACADEMIC_YEAR, "page": 2, "page_size": 2},
        headers=auth_headers(),
    )
    body = resp.json()
    assert len(body["items"]) == 1
    assert body["pagination"] == {"page": 2, "page_size": 2, "total": 3, "total_pages": 2}
    # Summary covers the whole filtered set, not the page.
    assert Decimal(body["summary"]["total_amount"]) == Decimal("300")


@pytest.mark.asyncio
async def test_monthly_breakdown(client, auth_headers, session_factory, make_fee_type, make_structure, enroll) -> None:
    ft = await make_fee_type()
    class_id = uuid4()
    fs = await make_structure(ft, amount="1000", class_id=class_id)
    first, second = await enroll(class_id), await enroll(class_id)
    fee_ids = await _assign(session_factory, fs.id, [first, second])
    await _pay(session_factory, fee_ids[0], first, "1000")

    resp = await client.get(
        "/api/v1/fees/dues/monthly", params={"class_id": str(class_id)}, headers=auth_headers()
    )
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["items"]) == 23
    assert len(body["breakdown"]) == 12
    months = [(b["year"], b["month"]) for b in body["breakdown"]]
    assert months == sorted(months, reverse=True)
    assert sum(b["count"] for b in body["breakdown"]) == 23

    resp = await client.get(
        "/api/v1/fees/dues/monthly",
        params={"student_id": str(first), "fee_status": "PAID"},
        headers=auth_headers(),
    )
    [paid] = resp.json()["items"]
    assert Decimal(paid["paid_amount"]) == Decimal("1000")
    assert Decimal(paid["due_amount"]) == Decimal("0")
    assert paid["fee_type_name"] == "Tuition"


@pytest.mark.asyncio
async def test_monthly_breakdown_overdue(session_factory, make_fee_type, make_structure, enroll) -> None:
    ft = await make_fee_type()
    class_id = uuid4()
    fs = await make_structure(ft, amount="500", class_id=class_id)
    student_id = await enroll(class_id)
    await _assign(session_factory, fs.id, [student_id])

    async with session_factory() as s:
        result = await reports.query_monthly_breakdown(
            s, student_id=student_id, status_filter=FeeStatus.OVERDUE, today=date(2200, 1, 1)
        )
    assert len(result.items) == 12
    assert all(i.status == FeeStatus.OVERDUE for i in result.items)
    assert all(b.due_amount == Decimal("500") for b in result.breakdown)


@pytest.mark.asyncio
async def test_collections(client, auth_headers, session_factory, make_fee_type, make_structure, enroll) -> None:
    ft = await make_fee_type("EXAM", is_recurring=False)
    class_id = uuid4()
    fs = await make_structure(ft, amount="1000", frequency="ONE_TIME", class_id=class_id)
    a, b = await enroll(class_id), await enroll(class_id)
    fee_a, fee_b = await _assign(session_factory, fs.id, [a, b])
    await _pay(session_factory, fee_a, a, "300", method="CASH")
    await _pay(session_factory, fee_a, a, "200", method="UPI")
    await _pay(session_factory, fee_b, b, "1000", method="UPI")

    resp = await client.get("/api/v1/fees/collections", headers=auth_headers())
    body = resp.json()
    assert body["pagination"]["total"] == 3
    assert Decimal(body["total_collected"]) == Decimal("1500")
    assert all(i["fee_type_name"] == "Exam" for i in body["items"])

    resp = await client.get(
        "/api/v1/fees/collections", params={"payment_method": "UPI"}, headers=auth_headers()
    )
    assert Decimal(resp.json()["total_collected"]) == Decimal("1200")

    resp = await client.get(
        "/api/v1/fees/collections", params={"student_id": str(a)}, headers=auth_headers()
    )
    assert [Decimal(i["amount"]) for i in resp.json()["items"]] == [Decimal("200"), Decimal("300")]

    resp = await client.get(
        "/api/v1/fees/collections",
        params={"start_date": "2000-01-01", "end_date": "2000-12-31"},
        headers=auth_headers(),
    )
    assert resp.json()["items"] == []
    assert Decimal(resp.json()["total_collected"]) == Decimal("0")


@pytest.mark.asyncio
async def test_student_ledger(client, auth_headers, session_factory, make_fee_type, make_structure, enroll) -> None:
    tuition = await make_fee_type("TUITION")
    exam = await make_fee_type("EXAM", is_recurring=False)
    class_id = uuid4()
    fs_tuition = await make_structure(tuition, amount="1000", class_id=class_id)
    fs_exam = await make_structure(exam, amount="300", frequency="ONE_TIME", class_id=class_id)
    student_id = await enroll(class_id)
    await _assign(session_factory, fs_tuition.id, [student_id])
    await _assign(session_factory, fs_exam.id, [student_id])

    resp = await client.get(f"/api/v1/fees/student/{student_id}", headers=auth_headers("PARENT"))
    assert resp.status_code == 200
    ledger = {item["fee_type_code"]: item for item in resp.json()}
    assert set(ledger) == {"TUITION", "EXAM"}
    assert len(ledger["TUITION"]["monthly_dues"]) == 12
    assert ledger["EXAM"]["monthly_dues"] == []

    resp = await client.get(f"/api/v1/fees/student/{uuid4()}", headers=auth_headers())
    assert resp.json() == []
