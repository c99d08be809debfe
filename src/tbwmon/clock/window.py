"""Daily execution window."""

from dataclasses import dataclass
from datetime import datetime, time, timedelta


@dataclass(frozen=True)
class DailyWindow:
    """Clock-face interval during which new samples may be registered.

    ``end`` may be earlier than ``start``, in which case the window crosses
    midnight. Both bounds are exclusive.
    """
    start: time = time(17, 0)
    end: time = time(0, 0)

    @property
    def crosses_midnight(self) -> bool:
        return not self.start < self.end

    def contains(self, moment: time) -> bool:
        if self.crosses_midnight:
            return moment > self.start or moment < self.end
        return self.start < moment < self.end

    def next_start(self, now: datetime) -> datetime:
        """Next occurrence of the window start strictly after ``now``."""
        candidate = datetime.combine(now.date(), self.start)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate

    def seconds_until_start(self, now: datetime) -> float:
        return (self.next_start(now) - now).total_seconds()
