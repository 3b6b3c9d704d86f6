from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import List, Optional

from library_app.csv_codec import CsvCodec
from library_app.errors import BookNotFoundError, InvalidRecordError
from library_app.record_store import RecordStore
from library_app.utils import contains_ignore_case

BOOK_HEADER = ["id", "title", "author", "publisher", "isbn", "publish_year", "total_count", "available_count"]


@dataclass
class Book:
    """A title held by the library and how many of its copies are on the shelf."""

    title: str
    author: str
    publisher: str = ""
    isbn: str = ""
    publish_year: int = 0
    total_count: int = 0
    available_count: int = 0
    id: str = ""

    def __post_init__(self) -> None:
        self.title = self.title.strip()
        self.author = self.author.strip()
        self.publisher = self.publisher.strip()
        self.isbn = self.isbn.strip()

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ISBN: {self.isbn})"

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data.get("id", ""),
            title=data["title"],
            author=data["author"],
            publisher=data.get("publisher", ""),
            isbn=data.get("isbn", ""),
            publish_year=int(data.get("publish_year", 0)),
            total_count=int(data.get("total_count", 0)),
            available_count=int(data.get("available_count", 0)),
        )

    def to_row(self) -> list:
        return [self.id, self.title, self.author, self.publisher, self.isbn,
                self.publish_year, self.total_count, self.available_count]

    @staticmethod
    def from_row(fields: List[str]) -> "Book":
        return Book.from_dict(dict(zip(BOOK_HEADER, fields)))


def book_codec() -> CsvCodec[Book]:
    return CsvCodec(BOOK_HEADER, Book.to_row, Book.from_row)


class BookStore(RecordStore[Book]):
    """Owns the book collection.

    Deleting a book here does not look at borrow records; use
    ``BorrowLedger.delete_book`` for the checked variant.
    """

    entity = "book"
    id_prefix = "B"

    def __init__(self, path, **kwargs) -> None:
        super().__init__(path, book_codec(), **kwargs)

    def validate(self, book: Book) -> None:
        if not 0 <= book.available_count <= book.total_count:
            raise InvalidRecordError(
                f"Available count {book.available_count} must be between 0 and "
                f"total count {book.total_count}."
            )

    def not_found(self, book_id: str) -> BookNotFoundError:
        return BookNotFoundError(book_id)

    def find_by_title(self, title: str, limit: Optional[int] = None) -> List[Book]:
        """Case-insensitive substring match on the title, in insertion order."""
        return self._scan(lambda b: contains_ignore_case(b.title, title), limit)
