"""Pure invoice parsing: portal detail fields, document text extraction, placeholder rendering."""

from .extraction import extract_invoice, has_portal_invoice, scan_invoice_text
from .patterns import DEFAULT_ISSUER_MARKERS, PORTAL_AIRLINE, UNKNOWN_AIRLINE, IssuerMarker
from .placeholder import build_placeholder_html
from .portal_page import parse_portal_detail_text

__all__ = [
    "extract_invoice",
    "has_portal_invoice",
    "scan_invoice_text",
    "parse_portal_detail_text",
    "build_placeholder_html",
    "IssuerMarker",
    "DEFAULT_ISSUER_MARKERS",
    "PORTAL_AIRLINE",
    "UNKNOWN_AIRLINE",
]
