from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from airinvoice.domain.passenger import InvoiceData, PassengerRecord
from airinvoice.domain.summary import (
    coerce_threshold,
    high_value_invoices,
    list_invoices,
    progress_counts,
    progress_to_dict,
    summarize_invoices,
    summary_to_dict,
)


def _parsed(passenger_id: str, airline: str, amount: str, day: int) -> PassengerRecord:
    return PassengerRecord(
        id=passenger_id,
        ticket_number=f"T-{passenger_id}",
        first_name="Jane",
        last_name="Doe",
        download_status="success",
        parse_status="success",
        document_ref=f"uploads/{passenger_id}.pdf",
        document_source="portal",
        invoice_data=InvoiceData(f"INV-{passenger_id}", date(2024, 10, day), airline, Decimal(amount)),
    )


def _roster() -> list[PassengerRecord]:
    return [
        _parsed("a", "IndiGo", "10000", 1),
        _parsed("b", "Thai Airways International", "35000", 3),
        _parsed("c", "Thai Airways International", "40000", 2),
        PassengerRecord(id="d", ticket_number="T-d", first_name="", last_name="", download_status="not_found"),
        PassengerRecord(
            id="e",
            ticket_number="T-e",
            first_name="",
            last_name="",
            download_status="success",
            parse_status="error",
            document_ref="uploads/e.pdf",
        ),
    ]


def test_summary_over_three_parsed_invoices() -> None:
    summary = summarize_invoices(_roster())

    assert summary.total_invoices == 3
    assert summary.total_amount == Decimal("85000")
    assert len(summary.high_value_invoices) == 2
    assert summary.airline_totals["IndiGo"].count == 1
    assert summary.airline_totals["Thai Airways International"].amount == Decimal("75000")
    assert summary_to_dict(summary)["totalAmount"] == 85000


def test_high_value_is_strictly_above_threshold() -> None:
    records = _roster()

    assert [i.invoice_number for i in high_value_invoices(records, Decimal("35000"))] == ["INV-c"]
    assert len(high_value_invoices(records, Decimal("30000"))) == 2
    assert len(high_value_invoices(records, Decimal("0"))) == 3


def test_zero_amount_invoices_are_never_high_value() -> None:
    records = [_parsed("z", "Unknown", "0", 5)]

    assert high_value_invoices(records, Decimal("0")) == []


def test_invoices_are_listed_newest_first() -> None:
    assert [invoice.invoice_number for invoice in list_invoices(_roster())] == ["INV-b", "INV-c", "INV-a"]


def test_empty_snapshot() -> None:
    summary = summarize_invoices([])

    assert summary.total_invoices == 0
    assert summary.total_amount == Decimal("0")
    assert summary.airline_totals == {}
    assert summary.high_value_invoices == []


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, Decimal("30000")),
        ("", Decimal("30000")),
        ("abc", Decimal("30000")),
        ("-1", Decimal("30000")),
        ("NaN", Decimal("30000")),
        ("Infinity", Decimal("30000")),
        (True, Decimal("30000")),
        ("0", Decimal("0")),
        (" 50000 ", Decimal("50000")),
        (12.5, Decimal("12.5")),
    ],
)
def test_coerce_threshold(raw: object, expected: Decimal) -> None:
    assert coerce_threshold(raw) == expected


def test_progress_counts() -> None:
    progress = progress_counts(_roster())

    assert progress_to_dict(progress) == {
        "total": 5,
        "downloadSuccess": 4,
        "downloadFailed": 1,
        "parseSuccess": 3,
        "parseFailed": 1,
    }
