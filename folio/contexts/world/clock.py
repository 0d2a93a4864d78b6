"""Per-compile clock so that "today" stays fixed for a whole compile."""

import threading
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from folio.utils.timestamp import utc_now

MAX_OFFSET_HOURS = 23


class Clock:
    """
    Captures the current time at most once between resets.

    Attributes:
        fixed: When set, this instant is always used instead of the system time
    """

    def __init__(self, fixed: Optional[datetime] = None, source: Callable[[], datetime] = utc_now):
        if fixed is not None and fixed.tzinfo is None:
            fixed = fixed.replace(tzinfo=timezone.utc)
        self.fixed = fixed
        self._source = source
        self._lock = threading.Lock()
        self._snapshot: Optional[datetime] = None

    def now(self) -> datetime:
        """The snapshot for the current compile, captured on first use."""
        if self.fixed is not None:
            return self.fixed
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._source()
            return self._snapshot

    def reset(self) -> None:
        """Forget the snapshot; the next now() captures a fresh one."""
        with self._lock:
            self._snapshot = None

    def today(self, offset: Optional[int] = None) -> Optional[date]:
        """
        Calendar date of the snapshot.

        Args:
            offset: Whole-hour UTC offset; None uses the local timezone

        Returns:
            The date, or None when the offset is not a valid whole-hour offset
        """
        instant = self.now()
        if offset is None:
            return instant.astimezone().date()
        if not isinstance(offset, int) or abs(offset) > MAX_OFFSET_HOURS:
            return None
        return instant.astimezone(timezone(timedelta(hours=offset))).date()
