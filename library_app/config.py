import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    return int(raw) if raw else None


@dataclass
class Settings:
    # Data files
    data_dir: str = os.getenv("LIBRARY_DATA_DIR", "data")
    books_file: str = os.getenv("LIBRARY_BOOKS_FILE", "books.csv")
    readers_file: str = os.getenv("LIBRARY_READERS_FILE", "readers.csv")
    borrows_file: str = os.getenv("LIBRARY_BORROWS_FILE", "borrows.csv")

    # Loan rules
    loan_days: int = int(os.getenv("LIBRARY_LOAN_DAYS", "30"))
    renew_days: int = int(os.getenv("LIBRARY_RENEW_DAYS", "15"))
    max_renew_count: int = int(os.getenv("LIBRARY_MAX_RENEW_COUNT", "2"))
    default_max_borrow: int = int(os.getenv("LIBRARY_DEFAULT_MAX_BORROW", "5"))

    # Capacity limits (unset means unlimited)
    max_books: Optional[int] = _optional_int("LIBRARY_MAX_BOOKS")
    max_readers: Optional[int] = _optional_int("LIBRARY_MAX_READERS")
    max_borrows: Optional[int] = _optional_int("LIBRARY_MAX_BORROWS")

    # Listing
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "100"))

    log_level: str = os.getenv("LOG_LEVEL", "WARNING")

    def path_for(self, filename: str) -> str:
        # relative names live under data_dir
        if os.path.isabs(filename):
            return filename
        return os.path.join(self.data_dir, filename)


settings = Settings()
