import logging
import os
from typing import NoReturn, Optional

import typer

from library_app.book import Book
from library_app.config import settings
from library_app.errors import LibraryError
from library_app.library import Library
from library_app.reader import Reader
from library_app.ui_helpers import (
    print_book_list,
    print_reader_list,
    print_record_list,
    print_stats_result,
    set_output_mode,
)
from library_app.utils import format_timestamp, parse_date

APP_NAME = "Library CLI"

logger = logging.getLogger(__name__)


class LibraryManager:
    """Holds the Library instance for the running CLI process."""

    _instance: Optional[Library] = None
    _data_dir_snapshot: Optional[str] = None

    @classmethod
    def get_instance(cls) -> Library:
        # Re-open when the data directory changes (e.g. per-test directories)
        data_dir = os.environ.get("LIBRARY_DATA_DIR", settings.data_dir)
        if cls._instance is None or data_dir != cls._data_dir_snapshot:
            cls._instance = Library(data_dir)
            cls._data_dir_snapshot = data_dir
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None
        cls._data_dir_snapshot = None


def _fail(error: Exception) -> NoReturn:
    logger.warning(f"Operation rejected: {error}")
    print(f"Error: {error}")
    raise typer.Exit(code=1)


def _require_text(label: str, value: str) -> str:
    if not value or not value.strip():
        _fail(ValueError(f"{label} cannot be empty."))
    return value.strip()


def _require_positive(label: str, value: int) -> int:
    if value <= 0:
        _fail(ValueError(f"{label} must be greater than 0."))
    return value


# --- Typer CLI Application ---
app = typer.Typer(help=APP_NAME)
book_app = typer.Typer(help="Manage books.")
reader_app = typer.Typer(help="Manage readers.")
app.add_typer(book_app, name="book")
app.add_typer(reader_app, name="reader")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (e.g. output mode)."""
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.WARNING))
    if output:
        set_output_mode(output)


# ------------------------- Books ------------------------- #
@book_app.command("add")
def cli_book_add(
    title: str = typer.Option(..., "--title", "-t"),
    author: str = typer.Option(..., "--author", "-a"),
    publisher: str = typer.Option(..., "--publisher", "-p"),
    isbn: str = typer.Option(..., "--isbn"),
    year: int = typer.Option(..., "--year", "-y", help="Publish year"),
    count: int = typer.Option(..., "--count", "-c", help="Number of copies"),
    book_id: str = typer.Option("", "--id", help="Explicit id (generated when omitted)"),
):
    """Add a book; all copies start out available."""
    book = Book(
        id=book_id,
        title=_require_text("Title", title),
        author=_require_text("Author", author),
        publisher=_require_text("Publisher", publisher),
        isbn=_require_text("ISBN", isbn),
        publish_year=_require_positive("Year", year),
        total_count=_require_positive("Count", count),
        available_count=count,
    )
    try:
        new_id = LibraryManager.get_instance().add_book(book)
    except LibraryError as e:
        _fail(e)
    print(f"Successfully added: {book.title} by {book.author} (ID: {new_id})")


@book_app.command("list")
def cli_book_list(limit: int = typer.Option(settings.default_page_size, "--limit", "-l")):
    """List books in insertion order."""
    print_book_list(LibraryManager.get_instance().list_books(limit))


@book_app.command("find")
def cli_book_find(book_id: str):
    """Show one book by id."""
    book = LibraryManager.get_instance().find_book(book_id)
    if not book:
        _fail(LookupError(f"Book with ID {book_id} not found."))
    print("Book Found")
    print(f"ID: {book.id}")
    print(f"Title: {book.title}")
    print(f"Author: {book.author}")
    print(f"Publisher: {book.publisher}")
    print(f"ISBN: {book.isbn}")
    print(f"Year: {book.publish_year}")
    print(f"Available: {book.available_count}/{book.total_count}")


@book_app.command("search")
def cli_book_search(
    title: str = typer.Argument(..., help="Part of the title, case-insensitive"),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum results to show"),
):
    """Search books by title."""
    print_book_list(LibraryManager.get_instance().search_books(title, limit))


@book_app.command("update")
def cli_book_update(
    book_id: str,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    publisher: Optional[str] = typer.Option(None, "--publisher", "-p"),
    isbn: Optional[str] = typer.Option(None, "--isbn"),
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    total: Optional[int] = typer.Option(None, "--total"),
    available: Optional[int] = typer.Option(None, "--available"),
):
    """Update the given fields of a book; the rest stay unchanged."""
    lib = LibraryManager.get_instance()
    book = lib.find_book(book_id)
    if not book:
        _fail(LookupError(f"Book with ID {book_id} not found."))
    if title is not None:
        book.title = _require_text("Title", title)
    if author is not None:
        book.author = _require_text("Author", author)
    if publisher is not None:
        book.publisher = _require_text("Publisher", publisher)
    if isbn is not None:
        book.isbn = _require_text("ISBN", isbn)
    if year is not None:
        book.publish_year = _require_positive("Year", year)
    if total is not None:
        book.total_count = _require_positive("Total", total)
    if available is not None:
        book.available_count = available
    try:
        lib.update_book(book)
    except LibraryError as e:
        _fail(e)
    print(f"Book {book_id} updated.")


@book_app.command("delete")
def cli_book_delete(book_id: str, yes: bool = typer.Option(False, "--yes", help="Skip confirmation")):
    """Delete a book that has no unreturned loans."""
    if not yes and not typer.confirm(f"Delete book {book_id}?"):
        print("Aborted.")
        return
    try:
        LibraryManager.get_instance().delete_book(book_id)
    except LibraryError as e:
        _fail(e)
    print(f"Book with ID {book_id} has been removed.")


# ------------------------- Readers ------------------------- #
@reader_app.command("add")
def cli_reader_add(
    name: str = typer.Option(..., "--name", "-n"),
    phone: str = typer.Option(..., "--phone"),
    gender: str = typer.Option("", "--gender", "-g"),
    email: str = typer.Option("", "--email", "-e"),
    address: str = typer.Option("", "--address"),
    max_borrow: int = typer.Option(settings.default_max_borrow, "--max-borrow", "-m"),
    reader_id: str = typer.Option("", "--id", help="Explicit id (generated when omitted)"),
):
    """Register a reader."""
    reader = Reader(
        id=reader_id,
        name=_require_text("Name", name),
        phone=_require_text("Phone", phone),
        gender=gender,
        email=email,
        address=address,
        max_borrow_count=_require_positive("Max borrow count", max_borrow),
    )
    try:
        new_id = LibraryManager.get_instance().add_reader(reader)
    except LibraryError as e:
        _fail(e)
    print(f"Successfully added reader: {reader.name} (ID: {new_id})")


@reader_app.command("list")
def cli_reader_list(limit: int = typer.Option(settings.default_page_size, "--limit", "-l")):
    """List readers in insertion order."""
    print_reader_list(LibraryManager.get_instance().list_readers(limit))


@reader_app.command("find")
def cli_reader_find(reader_id: str):
    """Show one reader by id."""
    reader = LibraryManager.get_instance().find_reader(reader_id)
    if not reader:
        _fail(LookupError(f"Reader with ID {reader_id} not found."))
    print("Reader Found")
    print(f"ID: {reader.id}")
    print(f"Name: {reader.name}")
    print(f"Gender: {reader.gender}")
    print(f"Phone: {reader.phone}")
    print(f"Email: {reader.email}")
    print(f"Address: {reader.address}")
    print(f"Loans: {reader.current_borrow_count}/{reader.max_borrow_count}")


@reader_app.command("search")
def cli_reader_search(
    name: str = typer.Argument(..., help="Part of the name, case-insensitive"),
    limit: int = typer.Option(10, "--limit", "-l"),
):
    """Search readers by name."""
    print_reader_list(LibraryManager.get_instance().search_readers(name, limit))


@reader_app.command("update")
def cli_reader_update(
    reader_id: str,
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    phone: Optional[str] = typer.Option(None, "--phone"),
    gender: Optional[str] = typer.Option(None, "--gender", "-g"),
    email: Optional[str] = typer.Option(None, "--email", "-e"),
    address: Optional[str] = typer.Option(None, "--address"),
    max_borrow: Optional[int] = typer.Option(None, "--max-borrow", "-m"),
):
    """Update the given fields of a reader. The loan count is never changed here."""
    lib = LibraryManager.get_instance()
    reader = lib.find_reader(reader_id)
    if not reader:
        _fail(LookupError(f"Reader with ID {reader_id} not found."))
    if name is not None:
        reader.name = _require_text("Name", name)
    if phone is not None:
        reader.phone = _require_text("Phone", phone)
    if gender is not None:
        reader.gender = gender
    if email is not None:
        reader.email = email
    if address is not None:
        reader.address = address
    if max_borrow is not None:
        reader.max_borrow_count = _require_positive("Max borrow count", max_borrow)
    try:
        lib.update_reader(reader)
    except LibraryError as e:
        _fail(e)
    print(f"Reader {reader_id} updated.")


@reader_app.command("delete")
def cli_reader_delete(reader_id: str, yes: bool = typer.Option(False, "--yes", help="Skip confirmation")):
    """Delete a reader with no books on loan."""
    if not yes and not typer.confirm(f"Delete reader {reader_id}?"):
        print("Aborted.")
        return
    try:
        LibraryManager.get_instance().delete_reader(reader_id)
    except LibraryError as e:
        _fail(e)
    print(f"Reader with ID {reader_id} has been removed.")


# ------------------------- Circulation ------------------------- #
@app.command("borrow")
def cli_borrow(
    book_id: str,
    reader_id: str,
    loan_days: Optional[int] = typer.Option(None, "--days", "-d", help="Loan period in days"),
):
    """Lend a book to a reader."""
    if loan_days is not None:
        _require_positive("Loan days", loan_days)
    try:
        record = LibraryManager.get_instance().borrow(book_id, reader_id, loan_days)
    except LibraryError as e:
        _fail(e)
    print(f"Borrowed: record {record.id}, due {format_timestamp(record.due_date, '%Y-%m-%d')}")


@app.command("return")
def cli_return(record_id: str):
    """Return a borrowed book."""
    try:
        LibraryManager.get_instance().return_book(record_id)
    except LibraryError as e:
        _fail(e)
    print(f"Borrow record {record_id} returned.")


@app.command("renew")
def cli_renew(
    record_id: str,
    due: Optional[str] = typer.Option(None, "--due", help="New due date YYYY-MM-DD (default: +15 days)"),
):
    """Renew a loan (at most twice)."""
    try:
        record = LibraryManager.get_instance().renew(record_id, parse_date(due))
    except (LibraryError, ValueError) as e:
        _fail(e)
    print(
        f"Borrow record {record_id} renewed until {format_timestamp(record.due_date, '%Y-%m-%d')} "
        f"({record.renew_count} renewal(s))."
    )


@app.command("records")
def cli_records(
    reader_id: Optional[str] = typer.Option(None, "--reader", "-r", help="Only this reader's records"),
    book_id: Optional[str] = typer.Option(None, "--book", "-b", help="Only this book's records"),
    limit: int = typer.Option(settings.default_page_size, "--limit", "-l"),
):
    """List borrow records."""
    records = LibraryManager.get_instance().list_records(reader_id=reader_id, book_id=book_id, limit=limit)
    print_record_list(records)


@app.command("overdue")
def cli_overdue(limit: int = typer.Option(settings.default_page_size, "--limit", "-l")):
    """List overdue loans. Matching records are marked OVERDUE and saved."""
    try:
        records = LibraryManager.get_instance().overdue(limit)
    except LibraryError as e:
        _fail(e)
    print_record_list(records)


@app.command("stats")
def cli_stats():
    """Show library statistics."""
    print_stats_result(LibraryManager.get_instance().get_statistics())


if __name__ == "__main__":
    app()
