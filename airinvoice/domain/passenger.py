"""Data models for passenger invoice tracking.

The persisted/wire representation uses camelCase keys so that stored data and
HTTP payloads share one shape. Conversion lives here so that storage and the
transport layer never disagree on field names.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, cast

DownloadStatus = Literal["pending", "success", "not_found", "error"]
ParseStatus = Literal["pending", "success", "error"]
DocumentSource = Literal["portal", "placeholder"]

DOWNLOAD_STATUSES: tuple[str, ...] = ("pending", "success", "not_found", "error")
PARSE_STATUSES: tuple[str, ...] = ("pending", "success", "error")
DOCUMENT_SOURCES: tuple[str, ...] = ("portal", "placeholder")


@dataclass(frozen=True)
class InvoiceData:
    """Structured fields recovered from one airline invoice."""

    invoice_number: str
    date: date
    airline: str
    amount: Decimal  # local currency of the invoice
    gstin: str | None = None


@dataclass(frozen=True)
class PortalFields:
    """Fields read straight off the portal's invoice detail page.

    Values are kept exactly as displayed (e.g. "14/10/2024", "35,000.00");
    empty string means the field was not present on the page.
    """

    invoice_number: str = ""
    invoice_date: str = ""
    passenger_name: str = ""
    gst_number: str = ""
    total_amount: str = ""
    gst_total: str = ""
    tax_location: str = ""
    itinerary: str = ""

    @property
    def is_empty(self) -> bool:
        return not any(asdict(self).values())


@dataclass
class PassengerRecord:
    """One roster passenger and the progress of their invoice."""

    id: str
    ticket_number: str
    first_name: str
    last_name: str
    download_status: DownloadStatus = "pending"
    parse_status: ParseStatus = "pending"
    document_ref: str | None = None
    document_source: DocumentSource | None = None
    portal_fields: PortalFields | None = None
    invoice_data: InvoiceData | None = None
    error_message: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def copy(self) -> PassengerRecord:
        # Nested values are frozen, a shallow copy is enough.
        return replace(self)


_PORTAL_FIELD_KEYS: tuple[tuple[str, str], ...] = (
    ("invoice_number", "invoiceNumber"),
    ("invoice_date", "invoiceDate"),
    ("passenger_name", "passengerName"),
    ("gst_number", "gstNumber"),
    ("total_amount", "totalAmount"),
    ("gst_total", "gstTotal"),
    ("tax_location", "taxLocation"),
    ("itinerary", "itinerary"),
)


def json_number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def invoice_to_dict(invoice: InvoiceData) -> dict[str, Any]:
    data: dict[str, Any] = {
        "invoiceNumber": invoice.invoice_number,
        "date": invoice.date.isoformat(),
        "airline": invoice.airline,
        "amount": json_number(invoice.amount),
    }
    if invoice.gstin:
        data["gstin"] = invoice.gstin
    return data


def invoice_from_dict(data: dict[str, Any]) -> InvoiceData:
    _require_object(data, "invoiceData")
    try:
        amount = Decimal(str(data["amount"]))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid invoice amount: {data.get('amount')!r}") from exc
    return InvoiceData(
        invoice_number=str(data["invoiceNumber"]),
        date=date.fromisoformat(str(data["date"])),
        airline=str(data.get("airline") or "Unknown"),
        amount=amount,
        gstin=data.get("gstin") or None,
    )


def _require_object(value: object, what: str) -> None:
    if not isinstance(value, dict):
        raise ValueError(f"Expected {what} to be an object, got {type(value).__name__}")


def portal_fields_to_dict(fields: PortalFields) -> dict[str, str]:
    return {wire: getattr(fields, attr) for attr, wire in _PORTAL_FIELD_KEYS}


def portal_fields_from_dict(data: dict[str, Any]) -> PortalFields:
    _require_object(data, "portalFields")
    values = {attr: str(data.get(wire) or "") for attr, wire in _PORTAL_FIELD_KEYS}
    return PortalFields(**values)


def record_to_dict(record: PassengerRecord) -> dict[str, Any]:
    """Serialize a record; optional fields are omitted when unset."""
    data: dict[str, Any] = {
        "id": record.id,
        "ticketNumber": record.ticket_number,
        "firstName": record.first_name,
        "lastName": record.last_name,
        "downloadStatus": record.download_status,
        "parseStatus": record.parse_status,
    }
    if record.document_ref is not None:
        data["documentRef"] = record.document_ref
    if record.document_source is not None:
        data["documentSource"] = record.document_source
    if record.portal_fields is not None:
        data["portalFields"] = portal_fields_to_dict(record.portal_fields)
    if record.invoice_data is not None:
        data["invoiceData"] = invoice_to_dict(record.invoice_data)
    if record.error_message is not None:
        data["errorMessage"] = record.error_message
    return data


def record_from_dict(data: dict[str, Any]) -> PassengerRecord:
    """Rebuild a record from its stored form.

    Raises:
        ValueError: unknown status values or malformed nested fields.
        KeyError: a required key is missing.
    """
    _require_object(data, "passenger entry")
    download_status = str(data.get("downloadStatus", "pending"))
    if download_status not in DOWNLOAD_STATUSES:
        raise ValueError(f"Unknown download status: {download_status!r}")
    parse_status = str(data.get("parseStatus", "pending"))
    if parse_status not in PARSE_STATUSES:
        raise ValueError(f"Unknown parse status: {parse_status!r}")
    document_source = data.get("documentSource")
    if document_source is not None and document_source not in DOCUMENT_SOURCES:
        raise ValueError(f"Unknown document source: {document_source!r}")

    portal_fields = data.get("portalFields")
    invoice_data = data.get("invoiceData")
    # Older files stored the document path under "pdfPath".
    document_ref = data.get("documentRef", data.get("pdfPath"))
    return PassengerRecord(
        id=str(data["id"]),
        ticket_number=str(data["ticketNumber"]),
        first_name=str(data.get("firstName", "")),
        last_name=str(data.get("lastName", "")),
        download_status=cast(DownloadStatus, download_status),
        parse_status=cast(ParseStatus, parse_status),
        document_ref=str(document_ref) if document_ref is not None else None,
        document_source=cast(DocumentSource | None, document_source),
        portal_fields=portal_fields_from_dict(portal_fields) if portal_fields is not None else None,
        invoice_data=invoice_from_dict(invoice_data) if invoice_data is not None else None,
        error_message=data.get("errorMessage"),
    )


def invariant_violations(record: PassengerRecord) -> list[str]:
    """Return human-readable descriptions of broken record invariants."""
    problems: list[str] = []
    if record.parse_status == "success":
        if record.invoice_data is None:
            problems.append("parse succeeded without invoice data")
        if record.download_status != "success":
            problems.append("parse succeeded without a successful download")
    elif record.invoice_data is not None:
        problems.append(f"invoice data present while parse status is {record.parse_status}")
    if record.document_ref is not None and record.download_status != "success":
        problems.append(f"document reference present while download status is {record.download_status}")
    return problems
