"""Invoice aggregation over a snapshot of passenger records."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .passenger import InvoiceData, PassengerRecord, invoice_to_dict, json_number

DEFAULT_HIGH_VALUE_THRESHOLD = Decimal("30000")


@dataclass(frozen=True)
class AirlineTotal:
    count: int
    amount: Decimal


@dataclass(frozen=True)
class InvoiceSummary:
    """Totals over every successfully parsed invoice."""

    total_invoices: int
    total_amount: Decimal
    airline_totals: dict[str, AirlineTotal]
    high_value_invoices: list[InvoiceData]


@dataclass(frozen=True)
class ProgressCounts:
    """Download/parse progress across the roster."""

    total: int
    download_success: int
    download_failed: int
    parse_success: int
    parse_failed: int


def list_invoices(records: Iterable[PassengerRecord]) -> list[InvoiceData]:
    """Return parsed invoices, newest first."""
    invoices = [r.invoice_data for r in records if r.parse_status == "success" and r.invoice_data is not None]
    return sorted(invoices, key=lambda invoice: invoice.date, reverse=True)


def coerce_threshold(value: object, default: Decimal = DEFAULT_HIGH_VALUE_THRESHOLD) -> Decimal:
    """
    Turn a caller-supplied threshold into a non-negative Decimal.

    Missing, non-numeric, non-finite and negative values fall back to ``default``.
    Zero is a valid threshold.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        threshold = Decimal(str(value).strip())
    except InvalidOperation:
        return default
    if not threshold.is_finite() or threshold < 0:
        return default
    return threshold


def high_value_invoices(
    records: Iterable[PassengerRecord],
    threshold: Decimal = DEFAULT_HIGH_VALUE_THRESHOLD,
) -> list[InvoiceData]:
    """Invoices whose amount is strictly above ``threshold``, newest first."""
    return [invoice for invoice in list_invoices(records) if invoice.amount > threshold]


def summarize_invoices(
    records: Iterable[PassengerRecord],
    threshold: Decimal = DEFAULT_HIGH_VALUE_THRESHOLD,
) -> InvoiceSummary:
    invoices = list_invoices(records)

    counts: dict[str, int] = {}
    amounts: dict[str, Decimal] = {}
    for invoice in invoices:
        counts[invoice.airline] = counts.get(invoice.airline, 0) + 1
        amounts[invoice.airline] = amounts.get(invoice.airline, Decimal("0")) + invoice.amount

    return InvoiceSummary(
        total_invoices=len(invoices),
        total_amount=sum((invoice.amount for invoice in invoices), Decimal("0")),
        airline_totals={airline: AirlineTotal(count=counts[airline], amount=amounts[airline]) for airline in counts},
        high_value_invoices=[invoice for invoice in invoices if invoice.amount > threshold],
    )


def progress_counts(records: Iterable[PassengerRecord]) -> ProgressCounts:
    snapshot = list(records)
    return ProgressCounts(
        total=len(snapshot),
        download_success=sum(1 for r in snapshot if r.download_status == "success"),
        download_failed=sum(1 for r in snapshot if r.download_status in ("error", "not_found")),
        parse_success=sum(1 for r in snapshot if r.parse_status == "success"),
        parse_failed=sum(1 for r in snapshot if r.parse_status == "error"),
    )


def summary_to_dict(summary: InvoiceSummary) -> dict[str, Any]:
    return {
        "totalInvoices": summary.total_invoices,
        "totalAmount": json_number(summary.total_amount),
        "airlineTotals": {
            airline: {"count": total.count, "amount": json_number(total.amount)}
            for airline, total in summary.airline_totals.items()
        },
        "highValueInvoices": [invoice_to_dict(invoice) for invoice in summary.high_value_invoices],
    }


def progress_to_dict(progress: ProgressCounts) -> dict[str, int]:
    return {
        "total": progress.total,
        "downloadSuccess": progress.download_success,
        "downloadFailed": progress.download_failed,
        "parseSuccess": progress.parse_success,
        "parseFailed": progress.parse_failed,
    }
