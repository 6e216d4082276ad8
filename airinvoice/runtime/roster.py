"""Passenger roster import from data/data.csv.

Expected layout (the header row is skipped, extra trailing columns ignored)::

    Ticket Number,First Name,Last Name,
    2172345678901,Victor,Wagner,
"""

from __future__ import annotations

import csv
import uuid
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import NamedTuple

from airinvoice.domain.passenger import PassengerRecord
from airinvoice.runtime.logging import get_logger

logger = get_logger(__name__)


class RosterEntry(NamedTuple):
    ticket_number: str
    first_name: str
    last_name: str


def load_roster_csv(path: Path) -> list[RosterEntry]:
    """
    Read roster rows in file order.

    Rows that are blank or have no ticket number are skipped. A missing file
    yields an empty roster.
    """
    if not path.exists():
        logger.warning("Roster file not found: %s", path)
        return []

    entries: list[RosterEntry] = []
    with open(path, encoding="utf-8-sig", newline="") as handle:
        reader = csv.reader(handle)
        # Skip header
        next(reader, None)
        for row in reader:
            cells = [cell.strip() for cell in row[:3]]
            cells.extend([""] * (3 - len(cells)))
            ticket_number, first_name, last_name = cells
            if not ticket_number:
                continue
            entries.append(RosterEntry(ticket_number, first_name, last_name))

    logger.info("Read %d roster entries from %s", len(entries), path)
    return entries


def materialize_roster(
    entries: Iterable[RosterEntry],
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> list[PassengerRecord]:
    """Create fresh pending records, one per roster entry."""
    return [
        PassengerRecord(
            id=id_factory(),
            ticket_number=entry.ticket_number,
            first_name=entry.first_name,
            last_name=entry.last_name,
        )
        for entry in entries
    ]
