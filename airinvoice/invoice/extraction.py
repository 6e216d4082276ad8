"""Turn retrieved invoice documents into structured invoice fields.

Two sources feed the engine:

1. ``PortalFields`` captured on the portal detail view while the document was
   acquired. When they carry an invoice number they are authoritative and the
   document text is not consulted.
2. The raw text of the document itself, scanned with the pattern catalogue in
   ``patterns``.

The engine never invents an invoice: if neither an invoice number, an amount nor
a GSTIN can be found, ``extract_invoice`` returns ``None``.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from airinvoice.domain.passenger import InvoiceData, PortalFields

from .date_utils import normalize_invoice_date, parse_invoice_date
from .patterns import (
    AMOUNT_TOKEN_RE,
    DATE_ANY_RE,
    DATE_LABELLED_RE,
    DEFAULT_ISSUER_MARKERS,
    GSTIN_BARE_RE,
    GSTIN_LABELLED_RE,
    INVOICE_NUMBER_BARE_RE,
    INVOICE_NUMBER_GENERIC_RE,
    INVOICE_NUMBER_LABELLED_RE,
    PORTAL_AIRLINE,
    TOTAL_RE,
    UNKNOWN_AIRLINE,
    IssuerMarker,
    compile_marker,
)

logger = logging.getLogger(__name__)

MISSING_INVOICE_NUMBER = "N/A"


@dataclass(frozen=True)
class TextFields:
    """Raw tokens found in document text, before defaults are applied."""

    airline: str | None = None
    invoice_number: str | None = None
    date_token: str | None = None
    amount: Decimal | None = None
    gstin: str | None = None

    @property
    def has_invoice_evidence(self) -> bool:
        return self.invoice_number is not None or self.amount is not None or self.gstin is not None


def parse_amount(token: str) -> Decimal | None:
    """Parse "35,000.00" style amounts; returns None for anything else."""
    cleaned = token.replace(",", "").strip()
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def has_portal_invoice(fields: PortalFields | None) -> bool:
    return fields is not None and bool(fields.invoice_number.strip())


def invoice_from_portal_fields(
    fields: PortalFields,
    *,
    airline: str = PORTAL_AIRLINE,
    today: date | None = None,
) -> InvoiceData:
    """Convert portal detail fields; caller guarantees an invoice number is present."""
    if fields.invoice_date and parse_invoice_date(fields.invoice_date) is None:
        logger.info("Unparseable portal invoice date %r, using today", fields.invoice_date)
    return InvoiceData(
        invoice_number=fields.invoice_number.strip(),
        date=normalize_invoice_date(fields.invoice_date, today),
        airline=airline,
        amount=parse_amount(fields.total_amount) or Decimal("0"),
        gstin=fields.gst_number.strip() or None,
    )


def normalize_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _detect_airline(text: str, markers: Sequence[IssuerMarker]) -> str | None:
    for marker in markers:
        for pattern in compile_marker(marker):
            if pattern.search(text):
                return marker.airline
    return None


def _find_invoice_number(text: str) -> str | None:
    for pattern in (INVOICE_NUMBER_LABELLED_RE, INVOICE_NUMBER_BARE_RE, INVOICE_NUMBER_GENERIC_RE):
        match = pattern.search(text)
        if match:
            return match.group(1).upper()
    return None


def _find_date_token(text: str) -> str | None:
    for pattern in (DATE_LABELLED_RE, DATE_ANY_RE):
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _find_amount(text: str) -> Decimal | None:
    # A labelled total wins; its last figure is the local-currency amount.
    match = TOTAL_RE.search(text)
    if match:
        figures = [match.group(1), *match.group(2).split()]
        amount = parse_amount(figures[-1])
        if amount is not None:
            return amount

    candidates = [parse_amount(token) for token in AMOUNT_TOKEN_RE.findall(text)]
    amounts = [amount for amount in candidates if amount is not None]
    return max(amounts) if amounts else None


def _find_gstin(text: str) -> str | None:
    for pattern in (GSTIN_LABELLED_RE, GSTIN_BARE_RE):
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def scan_invoice_text(
    text: str,
    issuer_markers: Sequence[IssuerMarker] = DEFAULT_ISSUER_MARKERS,
) -> TextFields:
    normalized = normalize_text(text)
    return TextFields(
        airline=_detect_airline(normalized, issuer_markers),
        invoice_number=_find_invoice_number(normalized),
        date_token=_find_date_token(normalized),
        amount=_find_amount(normalized),
        gstin=_find_gstin(normalized),
    )


def extract_from_text(
    text: str,
    *,
    issuer_markers: Sequence[IssuerMarker] = DEFAULT_ISSUER_MARKERS,
    today: date | None = None,
) -> InvoiceData | None:
    fields = scan_invoice_text(text, issuer_markers)
    if not fields.has_invoice_evidence:
        return None

    if fields.date_token is None:
        invoice_date = today or date.today()
    else:
        if parse_invoice_date(fields.date_token) is None:
            logger.info("Unparseable invoice date %r, using today", fields.date_token)
        invoice_date = normalize_invoice_date(fields.date_token, today)

    return InvoiceData(
        invoice_number=fields.invoice_number or MISSING_INVOICE_NUMBER,
        date=invoice_date,
        airline=fields.airline or UNKNOWN_AIRLINE,
        amount=fields.amount if fields.amount is not None else Decimal("0"),
        gstin=fields.gstin,
    )


def extract_invoice(
    text: str,
    portal_fields: PortalFields | None = None,
    *,
    issuer_markers: Sequence[IssuerMarker] = DEFAULT_ISSUER_MARKERS,
    portal_airline: str = PORTAL_AIRLINE,
    today: date | None = None,
) -> InvoiceData | None:
    """
    Extract invoice data, preferring portal fields over document text.

    Args:
        text: Raw document text; may be empty when only portal fields are available.
        portal_fields: Fields captured from the portal detail view, if any.
        issuer_markers: Airline brand markers, first match wins.
        portal_airline: Airline attributed to portal-sourced invoices.
        today: Fallback date for missing or unparseable dates.

    Returns:
        InvoiceData, or None when the input carries no invoice evidence.
    """
    if has_portal_invoice(portal_fields):
        assert portal_fields is not None
        return invoice_from_portal_fields(portal_fields, airline=portal_airline, today=today)
    return extract_from_text(text, issuer_markers=issuer_markers, today=today)
