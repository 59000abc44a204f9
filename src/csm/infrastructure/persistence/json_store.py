"""Shared file plumbing for the JSON-backed repositories.

Each repository keeps one JSON array per file.  Every read-check-write
cycle runs under a lock shared by all store instances pointing at the
same file, so compare-and-swap saves are atomic within one process.
Writes go through a temporary file and ``os.replace``.
"""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from csm.domain.exceptions import ConcurrencyConflict

_LOCKS: dict[Path, threading.RLock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _LOCKS_GUARD:
        return _LOCKS.setdefault(path, threading.RLock())


class JsonFileStore:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.resolve()
        self._lock = _lock_for(self._file_path)
        self._ensure_file()

    @contextmanager
    def _locked(self) -> Iterator[list[dict]]:
        """Hold the file lock, yield the raw records and write them back."""
        with self._lock:
            records = self._load_raw()
            yield records
            self._persist_raw(records)

    def _compare_and_swap(
        self,
        entity: object,
        key: str,
        key_value: object,
        to_raw: Callable[[], dict],
        what: str,
    ) -> None:
        """Insert or replace the record whose *key* equals *key_value*.

        The stored ``version`` must equal ``entity.version``; on success
        the version is bumped on both the record and the entity.
        """
        with self._locked() as records:
            current = entity.version  # type: ignore[attr-defined]
            for i, raw in enumerate(records):
                if raw[key] == key_value:
                    if raw["version"] != current:
                        raise ConcurrencyConflict(
                            f"{what} {key_value} was modified concurrently "
                            f"(expected version {current}, found {raw['version']})"
                        )
                    entity.version = current + 1  # type: ignore[attr-defined]
                    records[i] = to_raw()
                    return
            if current != 0:
                raise ConcurrencyConflict(f"{what} {key_value} no longer exists")
            entity.version = 1  # type: ignore[attr-defined]
            records.append(to_raw())

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, records: list[dict]) -> None:
        tmp = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        tmp.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp, self._file_path)

    def _ensure_file(self) -> None:
        with self._lock:
            if not self._file_path.exists():
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
                self._file_path.write_text("[]", encoding="utf-8")
