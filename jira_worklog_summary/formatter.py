"""Ordering and text rendering of the aggregated worklog."""

import locale
import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from colorama import Fore, Style

from .aggregator import Bucket

ORDER_CHOICES = ("username", "duration")

DEFAULT_HOURS_IN_DAY = 6.0
DEFAULT_DAYS_IN_YEAR = 247.0


@dataclass
class ReportRow:
    label: str
    total_seconds: int
    details: List[Tuple[str, int]]


def use_system_collation():
    """Collate usernames with the user's locale; keep the C order if it is unavailable."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        pass


def _username_key(label: str):
    return locale.strxfrm(label.casefold())


def order_buckets(buckets: Iterable[Bucket], order_by: str = "username",
                  use_display_name: bool = False) -> List[ReportRow]:
    """Turn buckets into report rows sorted by username or by total duration.

    Ties keep the incoming order. Issue details are always sorted by
    duration, longest first.
    """
    rows = [
        ReportRow(
            label=b.assignee.label(use_display_name),
            total_seconds=b.total_seconds,
            details=sorted(b.per_issue_seconds.items(), key=lambda kv: kv[1], reverse=True),
        )
        for b in buckets
    ]
    if order_by == "username":
        return sorted(rows, key=lambda r: _username_key(r.label))
    if order_by == "duration":
        return sorted(rows, key=lambda r: r.total_seconds, reverse=True)
    raise ValueError(f"Unsupported sort order '{order_by}'")


def work_units(hours_in_day: float, days_in_year: float) -> List[Tuple[str, float]]:
    """Work-calendar units (name, size in minutes), largest first."""
    day = 60 * hours_in_day
    return [
        ("year", day * days_in_year),
        ("month", day * days_in_year / 12),
        ("week", day * days_in_year / (365.25 / 7)),
        ("day", day),
        ("hour", 60.0),
        ("minute", 1.0),
    ]


def humanize_duration(seconds: int, hours_in_day: float = DEFAULT_HOURS_IN_DAY,
                      days_in_year: float = DEFAULT_DAYS_IN_YEAR) -> str:
    """Render seconds as e.g. '1 week, 2 days, 3 hours' on a working calendar."""
    remaining = float(round(seconds / 60))
    parts = []
    for name, size in work_units(hours_in_day, days_in_year):
        count = math.floor(remaining / size + 1e-9)
        if count:
            remaining -= count * size
            parts.append(f"{count} {name}{'s' if count != 1 else ''}")
    return ", ".join(parts) if parts else "0 minutes"


def format_duration(seconds: int, hours_in_day: float = DEFAULT_HOURS_IN_DAY,
                    days_in_year: float = DEFAULT_DAYS_IN_YEAR, humanize: bool = False,
                    no_units: bool = False) -> str:
    if humanize:
        return humanize_duration(seconds, hours_in_day, days_in_year)
    text = f"{seconds / 3600 / hours_in_day:.2f}"
    return text if no_units else text + "d"


def _paint(text: str, style: str, color: bool) -> str:
    return f"{style}{text}{Style.RESET_ALL}" if color else text


def render_lines(rows: List[ReportRow], fmt: Callable[[int], str], delimiter: str = "\t",
                 detailed: bool = False, hide_total: bool = False, color: bool = True,
                 browse_url: Optional[Callable[[str], str]] = None) -> List[str]:
    """Build the output lines of the report."""
    lines = []
    total = 0
    for row in rows:
        total += row.total_seconds
        label = _paint(row.label, Style.BRIGHT + Fore.BLUE, color)
        lines.append(f"{label}{delimiter}{_paint(fmt(row.total_seconds), Fore.GREEN, color)}")
        if detailed:
            for key, seconds in row.details:
                link = _paint(key, Style.BRIGHT + Fore.CYAN, color)
                if browse_url:
                    link = f"{link} ({browse_url(key)})"
                lines.append(f"\t{link}{delimiter}{_paint(fmt(seconds), Fore.GREEN, color)}")
            lines.append("")
    if not hide_total:
        if not detailed:
            lines.append("")
        title = _paint("Total", Style.BRIGHT + Fore.LIGHTBLUE_EX, color)
        lines.append(f"{title}{delimiter}{_paint(fmt(total), Style.BRIGHT + Fore.LIGHTGREEN_EX, color)}")
    return lines
