from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import List, Optional

from library_app.csv_codec import CsvCodec
from library_app.errors import InvalidRecordError, ReaderHasLoansError, ReaderNotFoundError
from library_app.record_store import RecordStore
from library_app.utils import contains_ignore_case

READER_HEADER = ["id", "name", "gender", "phone", "email", "address", "max_borrow_count", "current_borrow_count"]

DEFAULT_MAX_BORROW_COUNT = 5

logger = logging.getLogger(__name__)


@dataclass
class Reader:
    name: str
    gender: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    max_borrow_count: int = DEFAULT_MAX_BORROW_COUNT
    current_borrow_count: int = 0
    id: str = ""

    def __post_init__(self) -> None:
        self.name = self.name.strip()
        self.phone = self.phone.strip()
        self.email = self.email.strip()

    def can_borrow(self) -> bool:
        return self.current_borrow_count < self.max_borrow_count

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> "Reader":
        return Reader(
            id=data.get("id", ""),
            name=data["name"],
            gender=data.get("gender", ""),
            phone=data.get("phone", ""),
            email=data.get("email", ""),
            address=data.get("address", ""),
            max_borrow_count=int(data.get("max_borrow_count", DEFAULT_MAX_BORROW_COUNT)),
            current_borrow_count=int(data.get("current_borrow_count", 0)),
        )

    def to_row(self) -> list:
        return [self.id, self.name, self.gender, self.phone, self.email, self.address,
                self.max_borrow_count, self.current_borrow_count]

    @staticmethod
    def from_row(fields: List[str]) -> "Reader":
        return Reader.from_dict(dict(zip(READER_HEADER, fields)))


def reader_codec() -> CsvCodec[Reader]:
    return CsvCodec(READER_HEADER, Reader.to_row, Reader.from_row)


class ReaderStore(RecordStore[Reader]):
    """Owns the reader collection.

    ``current_borrow_count`` belongs to the borrow ledger: ``update`` keeps
    the stored value, and only ``set_borrow_count`` changes it.
    """

    entity = "reader"
    id_prefix = "R"

    def __init__(self, path, **kwargs) -> None:
        super().__init__(path, reader_codec(), **kwargs)

    def validate(self, reader: Reader) -> None:
        if not 0 <= reader.current_borrow_count <= reader.max_borrow_count:
            raise InvalidRecordError(
                f"Current borrow count {reader.current_borrow_count} must be between 0 and "
                f"max borrow count {reader.max_borrow_count}."
            )

    def check_delete(self, reader: Reader) -> None:
        if reader.current_borrow_count > 0:
            raise ReaderHasLoansError(reader.id, reader.current_borrow_count)

    def merge(self, stored: Reader, incoming: Reader) -> Reader:
        incoming.current_borrow_count = stored.current_borrow_count
        return incoming

    def not_found(self, reader_id: str) -> ReaderNotFoundError:
        return ReaderNotFoundError(reader_id)

    def find_by_name(self, name: str, limit: Optional[int] = None) -> List[Reader]:
        return self._scan(lambda r: contains_ignore_case(r.name, name), limit)

    def set_borrow_count(self, reader_id: str, count: int, *, persist: bool = True) -> None:
        """Direct write of ``current_borrow_count`` for the borrow ledger."""
        with self.lock:
            index = self._require_index(reader_id)
            self._records[index].current_borrow_count = count
            logger.info(f"Reader {reader_id} now has {count} book(s) on loan")
            if persist:
                self.save()
