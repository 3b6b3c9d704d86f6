import json
import os
from typing import Any, Dict, List, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from library_app.book import Book
from library_app.borrow import BorrowRecord
from library_app.reader import Reader
from library_app.utils import format_timestamp

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _print_rows(
    title: str,
    columns: Sequence[str],
    rows: List[Sequence[str]],
    payload: List[Dict[str, Any]],
    empty_message: str,
) -> None:
    """Render rows as plain ' - ' joined lines, a JSON array or a rich table."""
    mode = get_output_mode()

    if not rows:
        print(empty_message)
        return

    if mode == "json":
        print(json.dumps(payload, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title=title, show_lines=True, header_style="bold cyan")
        for i, column in enumerate(columns):
            table.add_column(column, style="magenta" if i == 0 else "white", no_wrap=(i == 0))
        for row in rows:
            table.add_row(*[str(v) for v in row])
        _console.print(table)
    else:
        for row in rows:
            print(" - ".join(str(v) for v in row))


def print_book_list(books: List[Book]) -> None:
    _print_rows(
        "📚 Books",
        ["ID", "Title", "Author", "Publisher", "ISBN", "Year", "Available"],
        [
            [b.id, b.title, b.author, b.publisher, b.isbn, b.publish_year, f"{b.available_count}/{b.total_count}"]
            for b in books
        ],
        [b.to_dict() for b in books],
        "No books in library.",
    )


def print_reader_list(readers: List[Reader]) -> None:
    _print_rows(
        "👤 Readers",
        ["ID", "Name", "Gender", "Phone", "Email", "Loans"],
        [
            [r.id, r.name, r.gender, r.phone, r.email, f"{r.current_borrow_count}/{r.max_borrow_count}"]
            for r in readers
        ],
        [r.to_dict() for r in readers],
        "No readers registered.",
    )


def print_record_list(records: List[BorrowRecord]) -> None:
    _print_rows(
        "🔖 Borrow records",
        ["ID", "Book", "Reader", "Borrowed", "Due", "Returned", "Status", "Renewals"],
        [
            [
                r.id,
                r.book_id,
                r.reader_id,
                format_timestamp(r.borrow_date, "%Y-%m-%d"),
                format_timestamp(r.due_date, "%Y-%m-%d"),
                format_timestamp(r.return_date, "%Y-%m-%d"),
                r.status.name,
                r.renew_count,
            ]
            for r in records
        ],
        [r.to_dict() for r in records],
        "No borrow records.",
    )


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print statistics in the current output mode."""
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    labels = {
        "total_books": "Total Books",
        "total_copies": "Total Copies",
        "available_copies": "Available Copies",
        "total_readers": "Readers",
        "active_loans": "Active Loans",
        "overdue_loans": "Overdue Loans",
    }

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{labels.get(k, k)}:[/] {v}" for k, v in stats.items())
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        for key, value in stats.items():
            print(f"{labels.get(key, key)}: {value}")
