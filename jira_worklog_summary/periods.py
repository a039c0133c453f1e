"""Resolution of free-form period expressions (quarter, month or day)."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta

from .errors import InvalidPeriodError

DEFAULT_TZ = timezone.utc

MONTHS = {
    name: number
    for number, names in enumerate(
        [
            ("jan", "january"),
            ("feb", "february"),
            ("mar", "march"),
            ("apr", "april"),
            ("may",),
            ("jun", "june"),
            ("jul", "july"),
            ("aug", "august"),
            ("sep", "september"),
            ("oct", "october"),
            ("nov", "november"),
            ("dec", "december"),
        ],
        start=1,
    )
    for name in names
}

_QUARTER_RE = re.compile(r"(?P<year>\d{4}),? [qQ](?P<quarter>[1-4])")
_MONTH_NUM_RE = re.compile(r"(?P<year>\d{4})[- ](?P<month>\d{2})")
_MONTH_NAME_RE = re.compile(r"(?P<name>[A-Za-z]+),? (?P<year>\d{4})")
_DAY_RE = re.compile(r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})")


@dataclass(frozen=True)
class TimePeriod:
    """Closed interval [start, end] at second granularity."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError("TimePeriod start must not be after end")


def _unit_bounds(start: datetime, step: relativedelta) -> TimePeriod:
    return TimePeriod(start, start + step - timedelta(seconds=1))


def _start_of(year: int, month: int, day: int, text: str) -> datetime:
    try:
        return datetime(year, month, day, tzinfo=DEFAULT_TZ)
    except ValueError:
        raise InvalidPeriodError(text) from None


def resolve_period(text: str) -> TimePeriod:
    """Parse a quarter, month or day expression into a TimePeriod.

    The whole string must match one of the accepted forms; quarters are tried
    first, then months, then days.

    Raises:
        InvalidPeriodError: if no form matches or the date does not exist.
    """
    s = (text or "").strip()

    m = _QUARTER_RE.fullmatch(s)
    if m:
        first_month = (int(m.group("quarter")) - 1) * 3 + 1
        start = _start_of(int(m.group("year")), first_month, 1, text)
        return _unit_bounds(start, relativedelta(months=3))

    m = _MONTH_NUM_RE.fullmatch(s)
    if m:
        start = _start_of(int(m.group("year")), int(m.group("month")), 1, text)
        return _unit_bounds(start, relativedelta(months=1))

    m = _MONTH_NAME_RE.fullmatch(s)
    if m and m.group("name").lower() in MONTHS:
        start = _start_of(int(m.group("year")), MONTHS[m.group("name").lower()], 1, text)
        return _unit_bounds(start, relativedelta(months=1))

    m = _DAY_RE.fullmatch(s)
    if m:
        start = _start_of(int(m.group("year")), int(m.group("month")), int(m.group("day")), text)
        return _unit_bounds(start, relativedelta(days=1))

    raise InvalidPeriodError(text)
