"""Placeholder document used when the portal cannot be reached."""

from datetime import datetime
from html import escape

PLACEHOLDER_BANNER = "PLACEHOLDER"
PLACEHOLDER_NOTICE = "No invoice was retrieved from the airline portal."

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{banner} - {ticket}</title>
<style>
  body {{ font-family: Arial, sans-serif; margin: 40px; }}
  .banner {{ border: 3px dashed #b00; color: #b00; padding: 12px; text-align: center; font-size: 28px; }}
  table {{ margin-top: 24px; border-collapse: collapse; }}
  td {{ padding: 6px 12px; border: 1px solid #ccc; }}
</style>
</head>
<body>
<div class="banner">{banner}</div>
<p>{notice}</p>
<table>
  <tr><td>Ticket</td><td>{ticket}</td></tr>
  <tr><td>Passenger</td><td>{name}</td></tr>
  <tr><td>Generated</td><td>{generated}</td></tr>
</table>
</body>
</html>
"""


def build_placeholder_html(ticket_number: str, first_name: str, last_name: str, generated_at: datetime) -> str:
    """
    Render the placeholder page.

    It carries only the ticket, the passenger name and the generation time, so
    text extraction can never read an invoice out of it.
    """
    name = f"{first_name} {last_name}".strip()
    return _TEMPLATE.format(
        banner=PLACEHOLDER_BANNER,
        notice=escape(PLACEHOLDER_NOTICE),
        ticket=escape(ticket_number),
        name=escape(name),
        generated=escape(generated_at.strftime("%Y-%m-%d %H:%M:%S")),
    )
