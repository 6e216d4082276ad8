"""Core domain models for the airinvoice project.

This module provides the core data models used throughout the project:
- PassengerRecord: one roster passenger and their invoice progress
- InvoiceData, PortalFields: invoice values and raw portal detail fields
- InvoiceSummary, ProgressCounts: derived aggregates

Usage:
    from airinvoice.domain import PassengerRecord, InvoiceData
"""

from airinvoice.domain.errors import ParsePreconditionError, PassengerNotFoundError
from airinvoice.domain.passenger import InvoiceData, PassengerRecord, PortalFields
from airinvoice.domain.summary import InvoiceSummary, ProgressCounts

__all__ = [
    "PassengerRecord",
    "InvoiceData",
    "PortalFields",
    "InvoiceSummary",
    "ProgressCounts",
    "PassengerNotFoundError",
    "ParsePreconditionError",
]
