"""Line oriented persistence for one record collection.

Each file holds a header line followed by one comma separated line per
record. A field is double-quoted only when it contains a comma, a quote or
whitespace; quotes inside a quoted field are doubled.
"""

from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Callable, Generic, Iterable, List, Sequence, TypeVar, Union

T = TypeVar("T")

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def format_field(value: object) -> str:
    text = "" if value is None else str(value)
    if any(ch == "," or ch == '"' or ch.isspace() for ch in text):
        return '"' + text.replace('"', '""') + '"'
    return text


def format_line(fields: Iterable[object]) -> str:
    return ",".join(format_field(f) for f in fields)


class CsvCodec(Generic[T]):
    """Load/save contract for a single entity collection.

    ``to_row`` turns a record into its column values; ``from_row`` builds a
    record back from the decoded strings and raises ``ValueError`` for
    values it cannot convert.
    """

    def __init__(
        self,
        header: Sequence[str],
        to_row: Callable[[T], Sequence[object]],
        from_row: Callable[[List[str]], T],
    ) -> None:
        self.header = list(header)
        self.to_row = to_row
        self.from_row = from_row

    def load(self, path: PathLike) -> List[T]:
        """Read every well-formed record; a missing file is an empty collection."""
        path = Path(path)
        if not path.exists():
            return []

        records: List[T] = []
        with open(path, "r", encoding="utf-8", newline="") as fh:
            reader = csv.reader(fh)
            # header line
            if next(reader, None) is None:
                return []
            for fields in reader:
                if not fields:
                    continue
                if len(fields) != len(self.header):
                    logger.warning(
                        f"Skipping malformed line {reader.line_num} in {path}: "
                        f"expected {len(self.header)} fields, got {len(fields)}"
                    )
                    continue
                try:
                    records.append(self.from_row(fields))
                except ValueError as e:
                    logger.warning(f"Skipping malformed line {reader.line_num} in {path}: {e}")
        return records

    def save(self, path: PathLike, records: Iterable[T]) -> None:
        """Rewrite the whole file from scratch."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(",".join(self.header) + "\n")
            for record in records:
                fh.write(format_line(self.to_row(record)) + "\n")
