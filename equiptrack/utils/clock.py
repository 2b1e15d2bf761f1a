from datetime import datetime, timezone
from typing import Callable

# All persisted timestamps are naive UTC (SQLite DateTime columns).
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
