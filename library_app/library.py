from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from library_app.book import Book, BookStore
from library_app.borrow import BorrowLedger, BorrowRecord, BorrowStatus
from library_app.config import Settings, settings
from library_app.reader import Reader, ReaderStore
from library_app.utils import current_time, generate_id

logger = logging.getLogger(__name__)


class Library:
    """Wires the book store, reader store and borrow ledger together.

    The three stores share a single re-entrant lock so a borrow or return
    is never observed half applied by another caller in the same process.
    """

    def __init__(
        self,
        data_dir: Optional[str] = None,
        *,
        config: Settings = settings,
        clock: Callable[[], int] = current_time,
        id_factory: Callable[[str], str] = generate_id,
    ) -> None:
        if data_dir is not None:
            config = replace(config, data_dir=str(data_dir))
        self.settings = config
        self.lock = threading.RLock()

        self.books = BookStore(
            config.path_for(config.books_file),
            capacity=config.max_books,
            id_factory=id_factory,
            lock=self.lock,
        )
        self.readers = ReaderStore(
            config.path_for(config.readers_file),
            capacity=config.max_readers,
            id_factory=id_factory,
            lock=self.lock,
        )
        self.ledger = BorrowLedger(
            config.path_for(config.borrows_file),
            self.books,
            self.readers,
            clock=clock,
            loan_days=config.loan_days,
            renew_days=config.renew_days,
            max_renew_count=config.max_renew_count,
            capacity=config.max_borrows,
            id_factory=id_factory,
            lock=self.lock,
        )
        logger.info(f"Library opened from {config.data_dir}")

    # ------------------------- Books ------------------------- #
    def add_book(self, book: Book) -> str:
        return self.books.add(book)

    def update_book(self, book: Book) -> None:
        self.books.update(book)

    def delete_book(self, book_id: str) -> None:
        """Delete a book that has no unreturned loans."""
        self.ledger.delete_book(book_id)

    def find_book(self, book_id: str) -> Optional[Book]:
        return self.books.find_by_id(book_id)

    def search_books(self, title: str, limit: Optional[int] = None) -> List[Book]:
        return self.books.find_by_title(title, limit)

    def list_books(self, limit: Optional[int] = None) -> List[Book]:
        return self.books.get_all(limit)

    # ------------------------- Readers ------------------------- #
    def add_reader(self, reader: Reader) -> str:
        return self.readers.add(reader)

    def update_reader(self, reader: Reader) -> None:
        self.readers.update(reader)

    def delete_reader(self, reader_id: str) -> None:
        self.readers.delete(reader_id)

    def find_reader(self, reader_id: str) -> Optional[Reader]:
        return self.readers.find_by_id(reader_id)

    def search_readers(self, name: str, limit: Optional[int] = None) -> List[Reader]:
        return self.readers.find_by_name(name, limit)

    def list_readers(self, limit: Optional[int] = None) -> List[Reader]:
        return self.readers.get_all(limit)

    # ------------------------- Circulation ------------------------- #
    def borrow(self, book_id: str, reader_id: str, loan_days: Optional[int] = None) -> BorrowRecord:
        return self.ledger.borrow_book(book_id, reader_id, loan_days)

    def return_book(self, record_id: str) -> BorrowRecord:
        return self.ledger.return_book(record_id)

    def renew(self, record_id: str, new_due_date: Optional[int] = None) -> BorrowRecord:
        return self.ledger.renew_book(record_id, new_due_date)

    def find_record(self, record_id: str) -> Optional[BorrowRecord]:
        return self.ledger.find_by_id(record_id)

    def list_records(
        self,
        *,
        reader_id: Optional[str] = None,
        book_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[BorrowRecord]:
        if reader_id:
            return self.ledger.find_by_reader(reader_id, limit)
        if book_id:
            return self.ledger.find_by_book(book_id, limit)
        return self.ledger.get_all(limit)

    def overdue(self, limit: Optional[int] = None) -> List[BorrowRecord]:
        """Overdue loans; marks them OVERDUE and saves the ledger when that changes anything."""
        return self.ledger.get_overdue(limit)

    # ------------------------- Reporting ------------------------- #
    def get_statistics(self) -> Dict[str, Any]:
        with self.lock:
            books = self.books.get_all()
            records = self.ledger.get_all()
            return {
                "total_books": len(books),
                "total_copies": sum(b.total_count for b in books),
                "available_copies": sum(b.available_count for b in books),
                "total_readers": len(self.readers),
                "active_loans": sum(1 for r in records if not r.is_returned),
                "overdue_loans": sum(1 for r in records if r.status is BorrowStatus.OVERDUE),
            }
