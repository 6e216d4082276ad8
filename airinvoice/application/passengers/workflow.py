"""Passenger invoice workflow: download, then parse.

Each passenger moves through two tracks::

    download: pending -> success | not_found | error
    parse:    pending -> success | error      (only after a successful download)

Every transition is persisted before the operation returns. Operations on the
same passenger id are serialized; different ids may run concurrently.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from airinvoice.domain.errors import ParsePreconditionError, PassengerNotFoundError
from airinvoice.domain.passenger import PassengerRecord
from airinvoice.invoice.extraction import extract_invoice, has_portal_invoice
from airinvoice.invoice.patterns import PORTAL_AIRLINE, IssuerMarker
from airinvoice.runtime.airline_rules import load_issuer_markers
from airinvoice.runtime.document_text import DocumentReadError, read_document_text
from airinvoice.runtime.logging import get_logger
from airinvoice.runtime.passenger_storage import PassengerStore, get_passenger_store
from airinvoice.runtime.portal_agent import Acquisition, AcquisitionError, get_portal_agent

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "Invoice not found for this passenger"
PARSE_FAILED_MESSAGE = "Failed to extract invoice data from PDF"


class InvoiceAcquirer(Protocol):
    def acquire(self, passenger: PassengerRecord) -> Acquisition | None: ...


class PassengerWorkflow:
    """Runs download and parse operations against the passenger store."""

    def __init__(
        self,
        store: PassengerStore,
        agent: InvoiceAcquirer,
        read_text: Callable[[Path], str] = read_document_text,
        issuer_markers: Sequence[IssuerMarker] | None = None,
        portal_airline: str = PORTAL_AIRLINE,
    ) -> None:
        self.store = store
        self.agent = agent
        self.read_text = read_text
        self.issuer_markers = tuple(issuer_markers) if issuer_markers is not None else load_issuer_markers()
        self.portal_airline = portal_airline
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _passenger_lock(self, passenger_id: str) -> Iterator[None]:
        # Unknown ids never get a lock entry.
        self._require(passenger_id)
        with self._locks_guard:
            lock = self._locks.setdefault(passenger_id, threading.Lock())
        with lock:
            yield

    def _require(self, passenger_id: str) -> PassengerRecord:
        record = self.store.get_by_id(passenger_id)
        if record is None:
            raise PassengerNotFoundError(passenger_id)
        return record

    def get_all(self) -> list[PassengerRecord]:
        return self.store.get_all()

    def get_by_id(self, passenger_id: str) -> PassengerRecord:
        return self._require(passenger_id)

    def download_invoice(self, passenger_id: str) -> PassengerRecord:
        """
        Acquire the invoice document for a passenger.

        Raises:
            PassengerNotFoundError: Unknown passenger id.
        """
        with self._passenger_lock(passenger_id):
            record = self._require(passenger_id)
            logger.info("Downloading invoice for %s (ticket %s)", record.full_name, record.ticket_number)

            # A new document invalidates everything derived from the old one.
            record.download_status = "pending"
            record.document_ref = None
            record.document_source = None
            record.portal_fields = None
            record.parse_status = "pending"
            record.invoice_data = None
            self.store.save(record)

            try:
                acquisition = self.agent.acquire(record)
            except AcquisitionError as exc:
                logger.warning("Download failed for ticket %s: %s", record.ticket_number, exc)
                record.download_status = "error"
                record.error_message = str(exc)
            except Exception as exc:
                logger.exception("Unexpected download failure for ticket %s", record.ticket_number)
                record.download_status = "error"
                record.error_message = str(exc) or "Download failed"
            else:
                if acquisition is None:
                    record.download_status = "not_found"
                    record.error_message = NOT_FOUND_MESSAGE
                else:
                    record.download_status = "success"
                    record.document_ref = str(acquisition.document_path)
                    record.document_source = acquisition.source
                    record.portal_fields = acquisition.portal_fields
                    record.error_message = None

            self.store.save(record)
            return record

    def parse_invoice(self, passenger_id: str) -> PassengerRecord:
        """
        Extract invoice data from the passenger's downloaded document.

        Portal fields captured during the download take precedence and are
        consumed by this call; the document text is only read when they do not
        identify an invoice.

        Raises:
            PassengerNotFoundError: Unknown passenger id.
            ParsePreconditionError: No successfully downloaded document.
        """
        with self._passenger_lock(passenger_id):
            record = self._require(passenger_id)
            if not record.document_ref or record.download_status != "success":
                raise ParsePreconditionError()

            record.parse_status = "pending"
            record.invoice_data = None
            self.store.save(record)

            portal_fields = record.portal_fields
            record.portal_fields = None
            try:
                if has_portal_invoice(portal_fields):
                    text = ""
                else:
                    text = self.read_text(Path(record.document_ref))
                invoice = extract_invoice(
                    text,
                    portal_fields,
                    issuer_markers=self.issuer_markers,
                    portal_airline=self.portal_airline,
                )
            except DocumentReadError as exc:
                logger.warning("Could not read document for ticket %s: %s", record.ticket_number, exc)
                record.parse_status = "error"
                record.error_message = str(exc)
            except Exception as exc:
                logger.exception("Unexpected parse failure for ticket %s", record.ticket_number)
                record.parse_status = "error"
                record.error_message = str(exc) or "Parsing failed"
            else:
                if invoice is None:
                    logger.info("No invoice data found in %s", record.document_ref)
                    record.parse_status = "error"
                    record.error_message = PARSE_FAILED_MESSAGE
                else:
                    record.parse_status = "success"
                    record.invoice_data = invoice
                    record.error_message = None

            self.store.save(record)
            return record

    def process_passenger(self, passenger_id: str) -> PassengerRecord:
        """Download, then parse when the download succeeded."""
        record = self.download_invoice(passenger_id)
        if record.download_status != "success":
            return record
        return self.parse_invoice(passenger_id)


_workflow: PassengerWorkflow | None = None


def get_workflow() -> PassengerWorkflow:
    """Get the process-wide workflow wired to the default store and portal agent."""
    global _workflow
    if _workflow is None:
        _workflow = PassengerWorkflow(store=get_passenger_store(), agent=get_portal_agent())
    return _workflow


def reset_workflow() -> None:
    global _workflow
    _workflow = None
