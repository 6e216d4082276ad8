"""Read-only passenger and invoice views."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from airinvoice.application.passengers.workflow import PassengerWorkflow, get_workflow
from airinvoice.domain.passenger import InvoiceData, PassengerRecord
from airinvoice.domain.summary import (
    InvoiceSummary,
    ProgressCounts,
    coerce_threshold,
    high_value_invoices,
    list_invoices,
    progress_counts,
    summarize_invoices,
)
from airinvoice.runtime.settings import get_settings


@dataclass(frozen=True)
class HighValueListing:
    threshold: Decimal
    invoices: list[InvoiceData]


def _resolve_threshold(threshold: object) -> Decimal:
    return coerce_threshold(threshold, default=get_settings().high_value_threshold)


def run_list_passengers(workflow: PassengerWorkflow | None = None) -> list[PassengerRecord]:
    return (workflow or get_workflow()).get_all()


def run_list_invoices(workflow: PassengerWorkflow | None = None) -> list[InvoiceData]:
    """Parsed invoices, newest first."""
    return list_invoices((workflow or get_workflow()).get_all())


def run_invoice_summary(threshold: object = None, workflow: PassengerWorkflow | None = None) -> InvoiceSummary:
    records = (workflow or get_workflow()).get_all()
    return summarize_invoices(records, _resolve_threshold(threshold))


def run_high_value_invoices(threshold: object = None, workflow: PassengerWorkflow | None = None) -> HighValueListing:
    """Invoices strictly above the threshold; bad thresholds fall back to the configured default."""
    resolved = _resolve_threshold(threshold)
    records = (workflow or get_workflow()).get_all()
    return HighValueListing(threshold=resolved, invoices=high_value_invoices(records, resolved))


def run_progress(workflow: PassengerWorkflow | None = None) -> ProgressCounts:
    return progress_counts((workflow or get_workflow()).get_all())
