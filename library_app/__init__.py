"""Library App - record store for books, readers and borrow transactions.

This package contains:
- Record models and stores (book.py, reader.py)
- Borrow ledger and transaction rules (borrow.py)
- Shared record store and CSV persistence (record_store.py, csv_codec.py)
- Library facade wiring the stores (library.py)
- CLI interface (main.py)
"""

from .book import Book, BookStore
from .borrow import BorrowLedger, BorrowRecord, BorrowStatus
from .errors import (
    AlreadyReturnedError,
    BookNotFoundError,
    BookOnLoanError,
    BookUnavailableError,
    CapacityExceededError,
    DuplicateIdError,
    ErrorKind,
    InvalidRecordError,
    LibraryError,
    NotFoundError,
    OverdueError,
    PersistenceError,
    ReaderHasLoansError,
    ReaderLimitReachedError,
    ReaderNotFoundError,
    RecordNotFoundError,
    RenewLimitExceededError,
    ValidationError,
)
from .library import Library
from .reader import Reader, ReaderStore

__all__ = [
    # models & stores
    "Book",
    "BookStore",
    "Reader",
    "ReaderStore",
    "BorrowRecord",
    "BorrowStatus",
    "BorrowLedger",
    # facade
    "Library",
    # errors
    "ErrorKind",
    "LibraryError",
    "NotFoundError",
    "BookNotFoundError",
    "ReaderNotFoundError",
    "RecordNotFoundError",
    "CapacityExceededError",
    "ValidationError",
    "BookUnavailableError",
    "ReaderLimitReachedError",
    "ReaderHasLoansError",
    "BookOnLoanError",
    "AlreadyReturnedError",
    "RenewLimitExceededError",
    "OverdueError",
    "DuplicateIdError",
    "InvalidRecordError",
    "PersistenceError",
]
