"""Passenger invoice workflows."""

from airinvoice.application.passengers.listing import (
    run_high_value_invoices,
    run_invoice_summary,
    run_list_invoices,
    run_list_passengers,
    run_progress,
)
from airinvoice.application.passengers.workflow import PassengerWorkflow, get_workflow

__all__ = [
    "PassengerWorkflow",
    "get_workflow",
    "run_list_passengers",
    "run_list_invoices",
    "run_invoice_summary",
    "run_high_value_invoices",
    "run_progress",
]
