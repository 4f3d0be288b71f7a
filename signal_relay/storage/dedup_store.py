"""
Dedup store for delivered signal ids.

Keeps an insertion-ordered set of ids that were already pushed so a later run
never re-delivers them. Retention is count based: once the set grows past
``retain`` entries the oldest-inserted ids are dropped. An evicted id can be
delivered again if the source still serves it.

Persistence is best effort. An unreadable backing file means "nothing seen
yet" and a failed write is logged and ignored; both leave the relay running.
"""

import json
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple, Union

from signal_relay.core.errors import PersistenceError
from signal_relay.core.logging import system_logger

DEFAULT_RETAIN = 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class DedupRecord:
    processed_ids: Tuple[str, ...] = ()
    last_modified: int = 0


class DedupBackend:
    """Where a DedupRecord lives. Implementations raise PersistenceError."""

    def read(self) -> DedupRecord:
        raise NotImplementedError

    def write(self, record: DedupRecord) -> None:
        raise NotImplementedError


class MemoryDedupBackend(DedupBackend):
    def __init__(self, record: DedupRecord = None):
        self.record = record or DedupRecord()

    def read(self) -> DedupRecord:
        return self.record

    def write(self, record: DedupRecord) -> None:
        self.record = record


class JsonFileDedupBackend(DedupBackend):
    """JSON file ``{"processed_ids": [...], "last_modified": ms}``."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> DedupRecord:
        if not self.path.exists():
            return DedupRecord()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"cannot read dedup file {self.path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("processed_ids", []), list):
            raise PersistenceError(f"dedup file {self.path} has unexpected shape")
        try:
            last_modified = int(data.get("last_modified") or 0)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"dedup file {self.path} has a bad last_modified: {e}") from e
        return DedupRecord(
            processed_ids=tuple(str(i) for i in data.get("processed_ids", [])),
            last_modified=last_modified,
        )

    def write(self, record: DedupRecord) -> None:
        payload = {
            "processed_ids": list(record.processed_ids),
            "last_modified": record.last_modified,
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"cannot write dedup file {self.path}: {e}") from e


class DedupStore:
    """Insertion-ordered set of delivered ids with count-based eviction."""

    def __init__(self, backend: DedupBackend, retain: int = DEFAULT_RETAIN):
        if retain <= 0:
            raise ValueError("retain must be positive")
        self.backend = backend
        self.retain = retain
        # dict keeps insertion order; values unused
        self._ids: Dict[str, None] = {}
        self._loaded = False
        self._last_modified = 0
        self._read_failures = 0
        self._write_failures = 0

    def load(self) -> None:
        """(Re)read the backing record; failures degrade to an empty set."""
        try:
            record = self.backend.read()
        except PersistenceError as e:
            self._read_failures += 1
            system_logger.warning("Dedup store unreadable, treating all signals as new", {
                "error": str(e),
            })
            record = DedupRecord()
        self._ids = dict.fromkeys(record.processed_ids)
        self._last_modified = record.last_modified
        self._loaded = True

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _persist(self) -> None:
        self._last_modified = _now_ms()
        record = DedupRecord(processed_ids=tuple(self._ids), last_modified=self._last_modified)
        try:
            self.backend.write(record)
        except PersistenceError as e:
            self._write_failures += 1
            system_logger.error("Failed to persist dedup store", {"error": str(e)})

    def _drop_oldest(self, retain: int) -> int:
        excess = len(self._ids) - retain
        if excess <= 0:
            return 0
        for key in list(self._ids)[:excess]:
            del self._ids[key]
        return excess

    def seen(self, signal_id) -> bool:
        self._ensure_loaded()
        return str(signal_id) in self._ids

    def mark_seen(self, signal_id) -> None:
        """Record a delivered id and persist; evicts past the retention count."""
        self._ensure_loaded()
        key = str(signal_id)
        if key in self._ids:
            return
        self._ids[key] = None
        evicted = self._drop_oldest(self.retain)
        if evicted:
            system_logger.debug(f"Evicted {evicted} oldest dedup entries", {"retain": self.retain})
        self._persist()

    def evict_oldest(self, retain: int = None) -> int:
        """Drop oldest-inserted ids until at most ``retain`` remain."""
        self._ensure_loaded()
        retain = self.retain if retain is None else retain
        if retain < 0:
            raise ValueError("retain must not be negative")
        evicted = self._drop_oldest(retain)
        if evicted:
            self._persist()
            system_logger.info(f"Evicted {evicted} oldest dedup entries", {
                "retain": retain,
                "remaining": len(self._ids),
            })
        return evicted

    def known_ids(self) -> List[str]:
        self._ensure_loaded()
        return list(self._ids)

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._ids)

    def get_stats(self) -> Dict:
        return {
            "known_ids": len(self._ids),
            "retain": self.retain,
            "last_modified": self._last_modified,
            "read_failures": self._read_failures,
            "write_failures": self._write_failures,
        }
