"""Field extraction from the text of the portal's invoice detail view."""

import re

from airinvoice.domain.passenger import PortalFields

from .patterns import GSTIN_CODE, ISSUER_INVOICE_CODE, LABELLED_AMOUNT, SLASH_DATE

_INVOICE_NO_RE = re.compile(rf"Invoice No\.\s*:\s*({ISSUER_INVOICE_CODE})")
_INVOICE_DATE_RE = re.compile(rf"Invoice Date\s*:\s*({SLASH_DATE})")
_PASSENGER_NAME_RE = re.compile(r"Passenger Name\s*:\s*([A-Z][A-Z/ ]*)")
_GST_NO_RE = re.compile(rf"GST No\.\s*:\s*({GSTIN_CODE})")
# The detail table prints each amount twice: fare currency, then local currency.
_TOTAL_RE = re.compile(rf"(?<!GST )\bTotal\s+({LABELLED_AMOUNT})\s+({LABELLED_AMOUNT})")
_GST_TOTAL_RE = re.compile(rf"GST Total\s+({LABELLED_AMOUNT})\s+({LABELLED_AMOUNT})")
_TAX_LOCATION_RE = re.compile(r"Tax Location\s*:\s*([A-Z]{3})")
_ITINERARY_RE = re.compile(r"Itinerary\s*:\s*([A-Z()]+)")

_NAME_TITLES = {"MR", "MRS", "MS", "MISS", "MSTR", "DR"}


def _first_group(pattern: re.Pattern[str], text: str, group: int = 1) -> str:
    match = pattern.search(text)
    return match.group(group).strip() if match else ""


def _clean_passenger_name(raw: str) -> str:
    """Trim a captured SURNAME/GIVEN TITLE run that may bleed into the next label."""
    tokens = raw.split()
    for i, token in enumerate(tokens):
        if token in _NAME_TITLES:
            return " ".join(tokens[: i + 1])
    return tokens[0] if tokens else ""


def parse_portal_detail_text(page_text: str) -> PortalFields:
    """Read the labelled invoice fields from a detail page's text content."""
    text = re.sub(r"\s+", " ", page_text).strip()
    return PortalFields(
        invoice_number=_first_group(_INVOICE_NO_RE, text),
        invoice_date=_first_group(_INVOICE_DATE_RE, text),
        passenger_name=_clean_passenger_name(_first_group(_PASSENGER_NAME_RE, text)),
        gst_number=_first_group(_GST_NO_RE, text),
        total_amount=_first_group(_TOTAL_RE, text, group=2),
        gst_total=_first_group(_GST_TOTAL_RE, text, group=2),
        tax_location=_first_group(_TAX_LOCATION_RE, text),
        itinerary=_first_group(_ITINERARY_RE, text),
    )
