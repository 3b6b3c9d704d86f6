from __future__ import annotations

import csv
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Callable, Generic, List, Optional, TypeVar

from library_app.csv_codec import CsvCodec, PathLike
from library_app.errors import (
    CapacityExceededError,
    DuplicateIdError,
    NotFoundError,
    PersistenceError,
)
from library_app.utils import generate_id

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RecordStore(Generic[T]):
    """Ordered, file-backed collection of records keyed by their ``id``.

    Every mutating operation rewrites the backing file before returning.
    Lookups hand out copies; the stored objects only change through
    ``add``, ``update`` and ``delete``.
    """

    entity = "record"
    id_prefix = ""

    def __init__(
        self,
        path: PathLike,
        codec: CsvCodec[T],
        *,
        capacity: Optional[int] = None,
        id_factory: Callable[[str], str] = generate_id,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self.path = Path(path)
        self.codec = codec
        self.capacity = capacity
        self.id_factory = id_factory
        self.lock = lock if lock is not None else threading.RLock()
        self._records: List[T] = []
        self.load()

    # ------------------------- Persistence ------------------------- #
    def load(self) -> None:
        with self.lock:
            try:
                self._records = self.codec.load(self.path)
            except (OSError, UnicodeDecodeError, csv.Error) as e:
                logger.error(f"Failed to load {self.entity} data from {self.path}: {e}")
                raise PersistenceError(f"Could not load {self.entity} data from {self.path}: {e}", [self.path]) from e
            logger.info(f"Loaded {len(self._records)} {self.entity} record(s) from {self.path}")

    def save(self) -> None:
        with self.lock:
            try:
                self.codec.save(self.path, self._records)
            except OSError as e:
                logger.error(f"Failed to save {self.entity} data to {self.path}: {e}")
                raise PersistenceError(f"Could not save {self.entity} data to {self.path}: {e}", [self.path]) from e

    # ------------------------- Core operations ------------------------- #
    def add(self, record: T) -> str:
        """Append a record and persist; an empty id is replaced by a generated one."""
        with self.lock:
            if self.is_full():
                raise CapacityExceededError(self.entity, self.capacity)
            self.validate(record)
            if not record.id:
                record.id = self._new_id()
            elif self._index_of(record.id) is not None:
                raise DuplicateIdError(self.entity, record.id)

            self._records.append(replace(record))
            logger.info(f"Added {self.entity} {record.id}")
            self.save()
            return record.id

    def delete(self, record_id: str) -> None:
        with self.lock:
            index = self._require_index(record_id)
            self.check_delete(self._records[index])
            del self._records[index]
            logger.info(f"Deleted {self.entity} {record_id}")
            self.save()

    def update(self, record: T, *, persist: bool = True) -> None:
        """Replace the stored record with the same id."""
        with self.lock:
            index = self._require_index(record.id)
            merged = self.merge(self._records[index], replace(record))
            self.validate(merged)
            self._records[index] = merged
            logger.info(f"Updated {self.entity} {record.id}")
            if persist:
                self.save()

    def find_by_id(self, record_id: str) -> Optional[T]:
        with self.lock:
            index = self._index_of(record_id)
            return replace(self._records[index]) if index is not None else None

    def get_all(self, limit: Optional[int] = None) -> List[T]:
        return self._scan(lambda r: True, limit)

    def is_full(self) -> bool:
        with self.lock:
            return self.capacity is not None and len(self._records) >= self.capacity

    def __len__(self) -> int:
        with self.lock:
            return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        with self.lock:
            return self._index_of(record_id) is not None

    # ------------------------- Hooks ------------------------- #
    def validate(self, record: T) -> None:
        """Raise a ValidationError when ``record`` breaks an entity invariant."""

    def check_delete(self, record: T) -> None:
        """Raise when ``record`` must not be removed."""

    def merge(self, stored: T, incoming: T) -> T:
        """Return the record to store when ``incoming`` replaces ``stored``."""
        return incoming

    def not_found(self, record_id: str) -> NotFoundError:
        return NotFoundError(f"{self.entity.capitalize()} {record_id} not found.")

    # ------------------------- Utilities ------------------------- #
    def _scan(self, predicate: Callable[[T], bool], limit: Optional[int]) -> List[T]:
        """Linear scan in insertion order, truncated at ``limit``."""
        if limit is not None and limit <= 0:
            return []
        result: List[T] = []
        with self.lock:
            for record in self._records:
                if limit is not None and len(result) >= limit:
                    break
                if predicate(record):
                    result.append(replace(record))
        return result

    def _index_of(self, record_id: object) -> Optional[int]:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        return None

    def _require_index(self, record_id: str) -> int:
        index = self._index_of(record_id)
        if index is None:
            raise self.not_found(record_id)
        return index

    def _new_id(self) -> str:
        while True:
            candidate = self.id_factory(self.id_prefix)
            if self._index_of(candidate) is None:
                return candidate
