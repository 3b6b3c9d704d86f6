from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from enum import IntEnum
from typing import Callable, List, Optional

from library_app.book import BookStore
from library_app.csv_codec import CsvCodec
from library_app.errors import (
    AlreadyReturnedError,
    BookNotFoundError,
    BookOnLoanError,
    BookUnavailableError,
    CapacityExceededError,
    InvalidRecordError,
    OverdueError,
    PersistenceError,
    ReaderLimitReachedError,
    ReaderNotFoundError,
    RecordNotFoundError,
    RenewLimitExceededError,
)
from library_app.reader import ReaderStore
from library_app.record_store import RecordStore
from library_app.utils import current_time, days

BORROW_HEADER = ["id", "book_id", "reader_id", "borrow_date", "due_date", "return_date", "status", "renew_count"]

DEFAULT_LOAN_DAYS = 30
RENEW_DAYS = 15
MAX_RENEW_COUNT = 2

logger = logging.getLogger(__name__)


class BorrowStatus(IntEnum):
    BORROWED = 0
    RETURNED = 1
    OVERDUE = 2
    RENEWED = 3


@dataclass
class BorrowRecord:
    """One loan of one book to one reader. ``return_date`` stays 0 until returned."""

    book_id: str
    reader_id: str
    borrow_date: int
    due_date: int
    return_date: int = 0
    status: BorrowStatus = BorrowStatus.BORROWED
    renew_count: int = 0
    id: str = ""

    @property
    def is_returned(self) -> bool:
        return self.status is BorrowStatus.RETURNED

    def is_overdue(self, now: int) -> bool:
        return not self.is_returned and self.due_date < now

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.name
        return data

    def to_row(self) -> list:
        return [self.id, self.book_id, self.reader_id, self.borrow_date, self.due_date,
                self.return_date, int(self.status), self.renew_count]

    @staticmethod
    def from_row(fields: List[str]) -> "BorrowRecord":
        data = dict(zip(BORROW_HEADER, fields))
        return BorrowRecord(
            id=data["id"],
            book_id=data["book_id"],
            reader_id=data["reader_id"],
            borrow_date=int(data["borrow_date"]),
            due_date=int(data["due_date"]),
            return_date=int(data["return_date"]),
            status=BorrowStatus(int(data["status"])),
            renew_count=int(data["renew_count"]),
        )


def borrow_codec() -> CsvCodec[BorrowRecord]:
    return CsvCodec(BORROW_HEADER, BorrowRecord.to_row, BorrowRecord.from_row)


class BorrowLedger(RecordStore[BorrowRecord]):
    """Append-only ledger of borrow records.

    Borrow and return touch three collections. Every rule is checked before
    anything changes; the in-memory changes are then applied to all three
    stores and the three files are saved. Save failures are collected and
    raised as one ``PersistenceError`` without rolling memory back.
    """

    entity = "borrow record"
    id_prefix = "BR"

    def __init__(
        self,
        path,
        books: BookStore,
        readers: ReaderStore,
        *,
        clock: Callable[[], int] = current_time,
        loan_days: int = DEFAULT_LOAN_DAYS,
        renew_days: int = RENEW_DAYS,
        max_renew_count: int = MAX_RENEW_COUNT,
        **kwargs,
    ) -> None:
        super().__init__(path, borrow_codec(), **kwargs)
        self.books = books
        self.readers = readers
        self.clock = clock
        self.loan_days = loan_days
        self.renew_days = renew_days
        self.max_renew_count = max_renew_count

    def not_found(self, record_id: str) -> RecordNotFoundError:
        return RecordNotFoundError(record_id)

    # Records are only created by borrow_book and only change through the
    # transactions below; none is ever removed.
    def add(self, record: BorrowRecord) -> str:
        raise InvalidRecordError("Borrow records can only be created by borrowing a book.")

    def update(self, record: BorrowRecord, *, persist: bool = True) -> None:
        raise InvalidRecordError("Borrow records can only change through return, renew or the overdue check.")

    def delete(self, record_id: str) -> None:
        raise InvalidRecordError(f"Borrow record {record_id} cannot be deleted.")

    # ------------------------- Transactions ------------------------- #
    def borrow_book(self, book_id: str, reader_id: str, loan_days: Optional[int] = None) -> BorrowRecord:
        """Lend one copy of ``book_id`` to ``reader_id``.

        Raises, in check order: CapacityExceededError, BookNotFoundError,
        BookUnavailableError, ReaderNotFoundError, ReaderLimitReachedError.
        """
        with self.lock:
            if self.is_full():
                raise CapacityExceededError(self.entity, self.capacity)

            book = self.books.find_by_id(book_id)
            if book is None:
                raise BookNotFoundError(book_id)
            if book.available_count <= 0:
                raise BookUnavailableError(book_id)

            reader = self.readers.find_by_id(reader_id)
            if reader is None:
                raise ReaderNotFoundError(reader_id)
            if not reader.can_borrow():
                raise ReaderLimitReachedError(reader_id, reader.max_borrow_count)

            loan_days = self.loan_days if loan_days is None else loan_days
            if loan_days <= 0:
                raise InvalidRecordError("Loan period must be at least one day.")

            book.available_count -= 1
            self.books.validate(book)

            now = self.clock()
            record = BorrowRecord(
                id=self._new_id(),
                book_id=book_id,
                reader_id=reader_id,
                borrow_date=now,
                due_date=now + days(loan_days),
            )
            self._records.append(record)
            self.books.update(book, persist=False)
            self.readers.set_borrow_count(reader_id, reader.current_borrow_count + 1, persist=False)

            self._persist_all(self, self.books, self.readers)
            logger.info(f"Reader {reader_id} borrowed book {book_id} as {record.id}")
            return replace(record)

    def return_book(self, record_id: str) -> BorrowRecord:
        """Close a loan. A second return of the same record raises AlreadyReturnedError."""
        with self.lock:
            record = self._records[self._require_index(record_id)]
            if record.is_returned:
                raise AlreadyReturnedError(record_id)

            book = self.books.find_by_id(record.book_id)
            if book is None:
                raise BookNotFoundError(record.book_id)
            reader = self.readers.find_by_id(record.reader_id)
            if reader is None:
                raise ReaderNotFoundError(record.reader_id)

            book.available_count = min(book.total_count, book.available_count + 1)
            self.books.validate(book)

            record.return_date = self.clock()
            record.status = BorrowStatus.RETURNED

            self.books.update(book, persist=False)
            # floor at zero; borrow increments unconditionally
            if reader.current_borrow_count > 0:
                self.readers.set_borrow_count(reader.id, reader.current_borrow_count - 1, persist=False)

            self._persist_all(self, self.books, self.readers)
            logger.info(f"Borrow record {record_id} returned")
            return replace(record)

    def renew_book(self, record_id: str, new_due_date: Optional[int] = None) -> BorrowRecord:
        """Extend a loan by ``renew_days`` or to ``new_due_date`` when given.

        ``new_due_date`` is taken verbatim. A loan already past its due date
        is marked OVERDUE (and saved) before OverdueError is raised.
        """
        with self.lock:
            record = self._records[self._require_index(record_id)]
            if record.is_returned:
                raise AlreadyReturnedError(record_id)
            if record.renew_count >= self.max_renew_count:
                raise RenewLimitExceededError(record_id, self.max_renew_count)

            now = self.clock()
            if record.status is BorrowStatus.OVERDUE or record.due_date < now:
                if record.status is not BorrowStatus.OVERDUE:
                    record.status = BorrowStatus.OVERDUE
                    self.save()
                raise OverdueError(record_id)

            if not new_due_date:
                record.due_date += days(self.renew_days)
            else:
                record.due_date = new_due_date
            record.renew_count += 1
            record.status = BorrowStatus.RENEWED

            self.save()
            logger.info(f"Borrow record {record_id} renewed ({record.renew_count}/{self.max_renew_count})")
            return replace(record)

    # ------------------------- Queries ------------------------- #
    def find_by_reader(self, reader_id: str, limit: Optional[int] = None) -> List[BorrowRecord]:
        return self._scan(lambda r: r.reader_id == reader_id, limit)

    def find_by_book(self, book_id: str, limit: Optional[int] = None) -> List[BorrowRecord]:
        return self._scan(lambda r: r.book_id == book_id, limit)

    def outstanding_for_book(self, book_id: str) -> List[BorrowRecord]:
        return self._scan(lambda r: r.book_id == book_id and not r.is_returned, None)

    def get_overdue(self, limit: Optional[int] = None) -> List[BorrowRecord]:
        """Return unreturned loans past their due date.

        Side effect: each match is switched to OVERDUE, and the ledger is
        saved once when at least one status changed. The scan stops once
        ``limit`` records have been collected.
        """
        if limit is not None and limit <= 0:
            return []
        with self.lock:
            now = self.clock()
            result: List[BorrowRecord] = []
            changed = 0
            for record in self._records:
                if limit is not None and len(result) >= limit:
                    break
                if not record.is_overdue(now):
                    continue
                if record.status is not BorrowStatus.OVERDUE:
                    record.status = BorrowStatus.OVERDUE
                    changed += 1
                result.append(replace(record))

            if changed:
                logger.info(f"Marked {changed} borrow record(s) overdue")
                self.save()
            return result

    # ------------------------- Policy ------------------------- #
    def delete_book(self, book_id: str) -> None:
        """Delete a book only when no unreturned loan references it."""
        with self.lock:
            if book_id not in self.books:
                raise BookNotFoundError(book_id)
            outstanding = self.outstanding_for_book(book_id)
            if outstanding:
                raise BookOnLoanError(book_id, len(outstanding))
            self.books.delete(book_id)

    # ------------------------- Utilities ------------------------- #
    @staticmethod
    def _persist_all(*stores: RecordStore) -> None:
        failures: List[PersistenceError] = []
        for store in stores:
            try:
                store.save()
            except PersistenceError as e:
                failures.append(e)
        if failures:
            paths = [p for f in failures for p in f.paths]
            raise PersistenceError(
                "Transaction applied in memory but not fully saved: " + "; ".join(str(f) for f in failures),
                paths,
            )
