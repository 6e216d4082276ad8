"""Read the text content of acquired invoice documents."""

from __future__ import annotations

import html
import re
from pathlib import Path

import pdfplumber

from airinvoice.runtime.logging import get_logger

logger = get_logger(__name__)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


class DocumentReadError(RuntimeError):
    """Raised when a stored document cannot be opened or decoded."""


def html_to_text(markup: str) -> str:
    without_code = _SCRIPT_STYLE_RE.sub(" ", markup)
    return html.unescape(_TAG_RE.sub(" ", without_code))


def _read_pdf_text(path: Path) -> str:
    parts: list[str] = []
    with pdfplumber.open(path) as pdf:
        for page in pdf.pages:
            parts.append(page.extract_text() or "")
    return "\n".join(parts)


def read_document_text(path: Path | str) -> str:
    """
    Return the plain text of a PDF, HTML or text document.

    Raises:
        DocumentReadError: The file is missing, has an unsupported type, or
            cannot be decoded.
    """
    document = Path(path)
    if not document.exists():
        raise DocumentReadError(f"Document not found: {document}")

    suffix = document.suffix.lower()
    try:
        if suffix == ".pdf":
            text = _read_pdf_text(document)
        elif suffix in (".html", ".htm"):
            text = html_to_text(document.read_text(encoding="utf-8"))
        elif suffix == ".txt":
            text = document.read_text(encoding="utf-8")
        else:
            raise DocumentReadError(f"Unsupported document type: {document.name}")
    except DocumentReadError:
        raise
    except Exception as exc:
        # pdfminer raises a variety of parser exceptions for corrupt files.
        raise DocumentReadError(f"Failed to read document {document.name}: {exc}") from exc

    logger.debug("Read %d characters from %s", len(text), document)
    return text
