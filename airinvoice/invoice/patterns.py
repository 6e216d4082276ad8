"""Shared regex catalogue and issuer markers for airline invoice parsing."""

import re
from dataclasses import dataclass

# Airline name used for fields read off the e-tax portal detail view.
PORTAL_AIRLINE = "Thai Airways International"
UNKNOWN_AIRLINE = "Unknown"


@dataclass(frozen=True)
class IssuerMarker:
    """Brand patterns that identify the airline that issued a document."""

    airline: str
    patterns: tuple[str, ...]  # case-insensitive regexes


# Order matters: first match wins, so more specific brands go first.
DEFAULT_ISSUER_MARKERS: tuple[IssuerMarker, ...] = (
    IssuerMarker(PORTAL_AIRLINE, (r"THAI\s*AIRWAYS",)),
    IssuerMarker("Air India Express", (r"AIR\s*INDIA\s*EXPRESS",)),
    IssuerMarker("Air India", (r"\bAIR\s*INDIA\b",)),
    IssuerMarker("IndiGo", (r"\bINDIGO\b", r"INTERGLOBE\s+AVIATION")),
    IssuerMarker("SpiceJet", (r"SPICE\s*JET",)),
    IssuerMarker("Vistara", (r"\bVISTARA\b", r"TATA\s+SIA\s+AIRLINES")),
)

# Invoice numbers on the e-tax portal look like 27P2410IV002348.
ISSUER_INVOICE_CODE = r"[0-9]{2}[A-Z][0-9]{4}[A-Z]{2}[0-9]{6}"
# Indian GSTIN, e.g. 27AABCB3524G1Z1.
GSTIN_CODE = r"[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]"
SLASH_DATE = r"\d{1,2}/\d{1,2}/\d{4}"
# Labelled amounts may be whole numbers; unlabelled ones must carry paise/satang.
LABELLED_AMOUNT = r"(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{1,2})?"
AMOUNT_TOKEN = r"(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}"

INVOICE_NUMBER_LABELLED_RE = re.compile(rf"Invoice\s*No\b[.:]?\s*:?\s*({ISSUER_INVOICE_CODE})", re.IGNORECASE)
INVOICE_NUMBER_BARE_RE = re.compile(rf"\b({ISSUER_INVOICE_CODE})\b")
INVOICE_NUMBER_GENERIC_RE = re.compile(
    r"Invoice\s*(?:No\b|Number\b|#)[.:]?\s*:?\s*((?=[A-Z0-9/-]*\d)[A-Z0-9][A-Z0-9/-]{4,})",
    re.IGNORECASE,
)

DATE_LABELLED_RE = re.compile(rf"(?:Invoice\s*Date|Date)\s*:?\s*({SLASH_DATE})", re.IGNORECASE)
DATE_ANY_RE = re.compile(rf"\b({SLASH_DATE})\b")

# "Total 1,000.00 35,000.00" lists the foreign then the local currency amount; wider
# layouts add columns, and the local-currency total is always the last figure.
TOTAL_RE = re.compile(
    rf"(?<!GST )(?<!Sub )(?<!Sub-)\bTotal\b(?:\s*Amount)?\s*:?\s*(?:INR|Rs\.?|THB|₹)?\s*"
    rf"({LABELLED_AMOUNT})(?![\d/])((?:\s+{LABELLED_AMOUNT}(?![\d/]))*)",
    re.IGNORECASE,
)
AMOUNT_TOKEN_RE = re.compile(rf"(?<![\d.,/])({AMOUNT_TOKEN})(?![\d/])")

GSTIN_LABELLED_RE = re.compile(rf"GST(?:IN)?\s*(?:No)?[.:]?\s*:?\s*({GSTIN_CODE})")
GSTIN_BARE_RE = re.compile(rf"\b({GSTIN_CODE})\b")


def compile_marker(marker: IssuerMarker) -> list[re.Pattern[str]]:
    return [re.compile(pattern, re.IGNORECASE) for pattern in marker.patterns]


def keyword_to_pattern(keyword: str) -> str:
    """Turn a literal brand keyword into a whitespace-tolerant regex."""
    return r"\s*".join(re.escape(word) for word in keyword.split())
