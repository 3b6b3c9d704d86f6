from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    VALIDATION_FAILED = "validation_failed"
    PERSISTENCE_FAILED = "persistence_failed"


class LibraryError(Exception):
    """Base exception for library record store errors."""

    kind: ErrorKind = ErrorKind.VALIDATION_FAILED


class NotFoundError(LibraryError, LookupError):
    kind = ErrorKind.NOT_FOUND


class BookNotFoundError(NotFoundError):
    """Requested book id does not exist."""

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book {book_id} not found.")
        self.book_id = book_id


class ReaderNotFoundError(NotFoundError):
    """Requested reader id does not exist."""

    def __init__(self, reader_id: str) -> None:
        super().__init__(f"Reader {reader_id} not found.")
        self.reader_id = reader_id


class RecordNotFoundError(NotFoundError):
    """Requested borrow record id does not exist."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Borrow record {record_id} not found.")
        self.record_id = record_id


class CapacityExceededError(LibraryError):
    kind = ErrorKind.CAPACITY_EXCEEDED

    def __init__(self, entity: str, capacity: int) -> None:
        super().__init__(f"Cannot add {entity}: capacity of {capacity} reached.")
        self.capacity = capacity


class ValidationError(LibraryError, ValueError):
    """A business rule rejected the operation."""

    kind = ErrorKind.VALIDATION_FAILED


class BookUnavailableError(ValidationError):
    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book {book_id} has no available copies.")
        self.book_id = book_id


class ReaderLimitReachedError(ValidationError):
    def __init__(self, reader_id: str, limit: int) -> None:
        super().__init__(f"Reader {reader_id} has reached the borrow limit of {limit}.")
        self.reader_id = reader_id


class ReaderHasLoansError(ValidationError):
    def __init__(self, reader_id: str, count: int) -> None:
        super().__init__(f"Reader {reader_id} still has {count} book(s) on loan.")
        self.reader_id = reader_id


class BookOnLoanError(ValidationError):
    def __init__(self, book_id: str, count: int) -> None:
        super().__init__(f"Book {book_id} has {count} unreturned borrow record(s).")
        self.book_id = book_id


class AlreadyReturnedError(ValidationError):
    def __init__(self, record_id: str) -> None:
        super().__init__(f"Borrow record {record_id} has already been returned.")
        self.record_id = record_id


class RenewLimitExceededError(ValidationError):
    def __init__(self, record_id: str, limit: int) -> None:
        super().__init__(f"Borrow record {record_id} has already been renewed {limit} times.")
        self.record_id = record_id


class OverdueError(ValidationError):
    def __init__(self, record_id: str) -> None:
        super().__init__(f"Borrow record {record_id} is overdue and cannot be renewed.")
        self.record_id = record_id


class DuplicateIdError(ValidationError):
    def __init__(self, entity: str, record_id: str) -> None:
        super().__init__(f"{entity.capitalize()} with id {record_id} already exists.")
        self.record_id = record_id


class InvalidRecordError(ValidationError):
    pass


class PersistenceError(LibraryError):
    """Saving or loading a collection file failed.

    The in-memory state is not rolled back, so memory and disk may differ
    until the next successful save.
    """

    kind = ErrorKind.PERSISTENCE_FAILED

    def __init__(self, message: str, paths=()) -> None:
        super().__init__(message)
        self.paths = list(paths)
