"""
Work Calendar and Date Arithmetic.

Working-day rules (a weekday set plus dated exceptions) and the work-day
aware date calculations shared by every CPM pass.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Union

from scheduler.config.settings import settings
from .exceptions import DateError


DateLike = Union[date, datetime, str]

WEEKDAY_NAMES = ('Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat')

# Safety limit when stepping day by day
MAX_SCAN_DAYS = 365 * 10


def to_date(value: DateLike, task_id: Optional[str] = None) -> date:
    """
    Normalize a date-like value to a calendar date.

    datetimes (pandas Timestamps included) keep their own calendar day and
    drop the time of day, so weekday lookup can never shift across a
    timezone boundary. Strings must start with an ISO date (YYYY-MM-DD),
    optionally followed by a time part.

    Raises:
        DateError: value is not a usable date (scoped to task_id when given)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10 or (len(text) > 10 and text[10] in 'T '):
            try:
                return date.fromisoformat(text[:10])
            except ValueError:
                pass
    raise DateError(f"Invalid date: {value!r}", task_id=task_id)


def weekday_index(dt: date) -> int:
    """Weekday as 0=Sunday ... 6=Saturday."""
    # Python weekday() is 0=Monday ... 6=Sunday
    return (dt.weekday() + 1) % 7


@dataclass(frozen=True)
class CalendarException:
    """Override of a single date: a holiday or an extra working day."""

    working: bool = False
    label: str = ''

    @classmethod
    def from_value(cls, value) -> 'CalendarException':
        """
        Normalize either exception shape.

        Structured records are mappings with 'working' and 'label' (or
        'description'). Anything else is the legacy bare marker, which means
        a non-working day; a string marker is kept as the label. Falsy bare
        markers are dropped before this is called (see is_marker).
        """
        if isinstance(value, CalendarException):
            return value
        if isinstance(value, dict):
            label = value.get('label') or value.get('description') or ''
            return cls(working=bool(value.get('working', False)), label=str(label))
        if isinstance(value, str):
            return cls(working=False, label=value)
        return cls(working=False)

    @staticmethod
    def is_marker(value) -> bool:
        """False for bare markers that do not override the weekday (None, '', false)."""
        return isinstance(value, (CalendarException, dict)) or bool(value)


@dataclass
class WorkCalendar:
    """
    Work calendar for day-granular scheduling.

    Exceptions are checked first: a non-working exception forces a day off,
    a working exception forces a work day. Otherwise the weekday decides.
    """

    # Weekday indices, 0=Sunday ... 6=Saturday
    working_days: frozenset = field(default_factory=lambda: frozenset(settings.DEFAULT_WORKING_DAYS))

    # Exception dates (keys may be ISO strings on input; normalized to date)
    exceptions: dict[date, CalendarException] = field(default_factory=dict)

    name: str = ''

    def __post_init__(self):
        self.working_days = frozenset(int(d) for d in self.working_days)
        bad_days = sorted(d for d in self.working_days if d < 0 or d > 6)
        if bad_days:
            raise ValueError(f"Weekday indices must be 0..6 (0=Sunday), got {bad_days}")

        self.exceptions = {
            to_date(key): CalendarException.from_value(value)
            for key, value in (self.exceptions or {}).items()
            if CalendarException.is_marker(value)
        }

        if not self.working_days and not any(e.working for e in self.exceptions.values()):
            raise ValueError("Calendar has no working days")

    @classmethod
    def from_dict(cls, data: dict) -> 'WorkCalendar':
        """Build from a {workingDays, exceptions} mapping."""
        working_days = data.get('workingDays', data.get('working_days'))
        if working_days is None:
            working_days = settings.DEFAULT_WORKING_DAYS
        return cls(
            working_days=frozenset(working_days),
            exceptions=dict(data.get('exceptions') or {}),
            name=data.get('name', ''),
        )

    def get_exception(self, dt: date) -> Optional[CalendarException]:
        return self.exceptions.get(dt)

    def is_work_day(self, dt: DateLike) -> bool:
        """Check if a date is a work day."""
        dt = to_date(dt)
        exception = self.exceptions.get(dt)
        if exception is not None:
            return exception.working
        return weekday_index(dt) in self.working_days

    def next_work_day(self, dt: DateLike) -> date:
        """Return dt if it is a work day, else the next one."""
        return self._roll(to_date(dt), 1)

    def previous_work_day(self, dt: DateLike) -> date:
        """Return dt if it is a work day, else the one before it."""
        return self._roll(to_date(dt), -1)

    def _roll(self, current: date, direction: int) -> date:
        step = timedelta(days=direction)
        for _ in range(MAX_SCAN_DAYS):
            if self.is_work_day(current):
                return current
            current += step
        raise DateError(f"No work day within {MAX_SCAN_DAYS} days of {current}")

    def add_work_days(self, start: DateLike, days: int) -> date:
        """
        Move by a number of work days.

        Positive days step forward, negative days step backward, each step
        landing on a work day. Zero rolls start forward to the next work day
        (start itself when it already is one).
        """
        current = to_date(start)
        if days == 0:
            return self._roll(current, 1)

        step = timedelta(days=1 if days > 0 else -1)
        remaining = abs(days)
        scanned = 0

        while remaining > 0:
            current += step
            scanned += 1
            if scanned > MAX_SCAN_DAYS + abs(days):
                raise DateError(f"Could not move {days} work days from {start}")
            if self.is_work_day(current):
                remaining -= 1

        return current

    def work_days_difference(self, start: DateLike, end: DateLike) -> int:
        """
        Signed number of work days from start to end.

        Counts work days in (start, end] when end is later and returns the
        negated count of (end, start] when it is earlier, so that
        add_work_days(start, n) == end implies a difference of n for any
        work-day start.
        """
        start, end = to_date(start), to_date(end)
        if start == end:
            return 0
        if end < start:
            return -self.work_days_difference(end, start)

        count = 0
        current = start
        while current < end:
            current += timedelta(days=1)
            if self.is_work_day(current):
                count += 1
        return count

    def count_work_days(self, start: DateLike, end: DateLike) -> int:
        """Count work days between two dates (inclusive)."""
        start, end = to_date(start), to_date(end)
        count = 0
        current = start
        while current <= end:
            if self.is_work_day(current):
                count += 1
            current += timedelta(days=1)
        return count

    def __repr__(self) -> str:
        days = ','.join(WEEKDAY_NAMES[d] for d in sorted(self.working_days))
        return f"WorkCalendar({self.name or 'default'}, days={days}, {len(self.exceptions)} exceptions)"
