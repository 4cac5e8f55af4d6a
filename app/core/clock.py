"""Clock used by services that compute due times and expiries."""

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, matching stored timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
