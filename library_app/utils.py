import random
import time
from datetime import datetime
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def generate_id(prefix: str) -> str:
    """Build an id from a prefix, the local timestamp and three random digits."""
    stamp = datetime.now().strftime("%Y%m%d%H%M%S")
    return f"{prefix}{stamp}{random.randrange(1000):03d}"


def current_time() -> int:
    return int(time.time())


def days(count: int) -> int:
    return count * SECONDS_PER_DAY


def format_timestamp(timestamp: int, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Render epoch seconds in local time; 0 means "not set"."""
    if not timestamp:
        return "N/A"
    return datetime.fromtimestamp(timestamp).strftime(fmt)


def parse_date(text: Optional[str], fmt: str = "%Y-%m-%d") -> int:
    """Parse a local date string into epoch seconds (0 for empty input)."""
    if not text or not text.strip():
        return 0
    try:
        return int(datetime.strptime(text.strip(), fmt).timestamp())
    except ValueError as exc:
        raise ValueError(f"Invalid date '{text}', expected format {fmt}.") from exc


def contains_ignore_case(text: str, fragment: str) -> bool:
    return fragment.lower() in (text or "").lower()
