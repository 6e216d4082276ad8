"""Date helpers for invoice parsing."""

from datetime import date, datetime

# Day-first: the portal and the Indian GST invoices both print dd/mm/yyyy.
INVOICE_DATE_FORMATS = ("%d/%m/%Y", "%d-%m-%Y", "%Y-%m-%d")


def parse_invoice_date(token: str) -> date | None:
    """Parse a date token, returning None when it is not a real calendar date."""
    token = token.strip()
    if not token:
        return None
    for fmt in INVOICE_DATE_FORMATS:
        try:
            return datetime.strptime(token, fmt).date()
        except ValueError:
            continue
    return None


def normalize_invoice_date(token: str, today: date | None = None) -> date:
    """
    Normalize a date token to a calendar date.

    Falls back to today only when the token cannot be parsed; callers decide
    whether a token was found at all.
    """
    parsed = parse_invoice_date(token)
    if parsed is not None:
        return parsed
    return today or date.today()
