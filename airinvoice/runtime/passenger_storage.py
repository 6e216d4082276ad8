"""Persistent store of passenger records.

The whole working set is kept in memory and rewritten to data/passengers.json
after each mutation. Existing data always wins over the roster: the roster CSV
is only read when no data file exists yet.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from airinvoice.domain.passenger import PassengerRecord, record_from_dict, record_to_dict
from airinvoice.runtime.logging import get_logger
from airinvoice.runtime.paths import get_paths
from airinvoice.runtime.roster import load_roster_csv, materialize_roster

logger = get_logger(__name__)

RosterLoader = Callable[[], list[PassengerRecord]]


class StoreState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


def serialize_records(records: list[PassengerRecord]) -> str:
    return json.dumps([record_to_dict(record) for record in records], indent=2, ensure_ascii=False) + "\n"


def deserialize_records(content: str) -> list[PassengerRecord]:
    """Raises ValueError/KeyError/TypeError on malformed content."""
    raw = json.loads(content)
    if not isinstance(raw, list):
        raise ValueError("Passenger data must be a JSON list")
    return [record_from_dict(item) for item in raw]


class PassengerStore:
    """In-memory passenger working set backed by a JSON snapshot file."""

    def __init__(self, data_file: Path, roster_loader: RosterLoader) -> None:
        self.data_file = data_file
        self._roster_loader = roster_loader
        self._lock = threading.RLock()
        self._records: dict[str, PassengerRecord] = {}
        self._state = StoreState.UNINITIALIZED
        self.persist_failures = 0

    @property
    def state(self) -> StoreState:
        return self._state

    def load_or_initialize(self) -> None:
        """Load the data file, or seed from the roster when there is none. Runs once."""
        with self._lock:
            if self._state is StoreState.READY:
                return

            records: list[PassengerRecord] | None = None
            seeded = False
            if self.data_file.exists():
                try:
                    records = deserialize_records(self.data_file.read_text(encoding="utf-8"))
                    logger.info("Loaded %d passengers from %s", len(records), self.data_file)
                except (OSError, ValueError, KeyError, TypeError) as exc:
                    logger.error("Could not load passenger data from %s: %s", self.data_file, exc)

            if records is None:
                records = self._roster_loader()
                seeded = not self.data_file.exists()
                logger.info("Loaded %d passengers from roster", len(records))

            self._records = {record.id: record for record in records}
            self._state = StoreState.READY

            # An unreadable data file is left in place until the next mutation.
            if seeded:
                self.persist_all()

    def get_all(self) -> list[PassengerRecord]:
        self.load_or_initialize()
        with self._lock:
            return [record.copy() for record in self._records.values()]

    def get_by_id(self, passenger_id: str) -> PassengerRecord | None:
        self.load_or_initialize()
        with self._lock:
            record = self._records.get(passenger_id)
            return record.copy() if record is not None else None

    def upsert(self, record: PassengerRecord) -> None:
        self.load_or_initialize()
        with self._lock:
            self._records[record.id] = record.copy()

    def save(self, record: PassengerRecord) -> bool:
        """Upsert then persist; returns whether the snapshot reached disk."""
        with self._lock:
            self.upsert(record)
            return self.persist_all()

    def persist_all(self) -> bool:
        """
        Rewrite the full snapshot atomically.

        Failures are logged and counted, never raised; the in-memory working set
        keeps the mutation either way.
        """
        with self._lock:
            content = serialize_records(list(self._records.values()))
            tmp_name: str | None = None
            try:
                self.data_file.parent.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=self.data_file.parent,
                    prefix=f".{self.data_file.name}.",
                    suffix=".tmp",
                    delete=False,
                ) as handle:
                    tmp_name = handle.name
                    handle.write(content)
                os.replace(tmp_name, self.data_file)
                tmp_name = None
                return True
            except OSError as exc:
                self.persist_failures += 1
                logger.error("Failed to persist passengers to %s: %s", self.data_file, exc)
                return False
            finally:
                if tmp_name is not None:
                    try:
                        os.unlink(tmp_name)
                    except OSError:
                        logger.debug("Could not remove temp file %s", tmp_name)


def default_roster_loader(roster_csv: Path) -> RosterLoader:
    def _load() -> list[PassengerRecord]:
        return materialize_roster(load_roster_csv(roster_csv))

    return _load


_store: PassengerStore | None = None


def get_passenger_store() -> PassengerStore:
    """Get the process-wide store rooted at the project paths."""
    global _store
    if _store is None:
        paths = get_paths()
        _store = PassengerStore(paths.passengers_json, default_roster_loader(paths.roster_csv))
    return _store


def reset_passenger_store() -> None:
    global _store
    _store = None
