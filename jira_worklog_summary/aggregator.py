"""Accumulation of worklog durations per assignee and per issue."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from .periods import DEFAULT_TZ, TimePeriod
from .users import Assignee


def normalize_key(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def parse_started(raw: str) -> datetime:
    """Parse Jira's 'started' timestamp (e.g. 2020-07-01T10:00:00.000+0000)."""
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    elif len(raw) > 5 and raw[-5] in "+-" and raw[-4:].isdigit():
        raw = raw[:-2] + ":" + raw[-2:]
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=DEFAULT_TZ)
    return dt


@dataclass(frozen=True)
class WorklogEntry:
    author_key: str
    started_at: datetime
    duration_seconds: int

    @classmethod
    def from_json(cls, wl: Dict[str, Any]) -> "WorklogEntry":
        author = wl.get("author") or {}
        return cls(
            author_key=normalize_key(author.get("key") or author.get("accountId") or author.get("name")),
            started_at=parse_started(wl["started"]),
            duration_seconds=int(wl.get("timeSpentSeconds") or 0),
        )

    def credited_seconds(self, period: Optional[TimePeriod]) -> Optional[int]:
        """Seconds of this entry inside period, or None if it lies outside."""
        if period is None:
            return self.duration_seconds
        ended_at = self.started_at + timedelta(seconds=self.duration_seconds)
        # period.end is the last second of the unit, inclusive
        period_end = period.end + timedelta(seconds=1)
        if self.started_at >= period_end or ended_at < period.start:
            return None
        start = max(self.started_at, period.start)
        end = min(ended_at, period_end)
        return int((end - start).total_seconds())


@dataclass
class Bucket:
    assignee: Assignee
    total_seconds: int = 0
    per_issue_seconds: Dict[str, int] = field(default_factory=dict)

    def add(self, issue_key: str, seconds: int):
        self.per_issue_seconds[issue_key] = self.per_issue_seconds.get(issue_key, 0) + seconds
        self.total_seconds += seconds


def issue_worklogs(issue: Dict[str, Any]) -> List[Dict[str, Any]]:
    worklog = (issue.get("fields") or {}).get("worklog") or {}
    return worklog.get("worklogs") or []


def aggregate(issues: Iterable[Dict[str, Any]], assignees: Iterable[Assignee],
              period: Optional[TimePeriod] = None) -> List[Bucket]:
    """Sum worklog time per assignee and issue.

    Every assignee gets a bucket even without matching entries. Tokens that
    resolved to the same account share one bucket. With a period, entries are
    clipped to it and entries entirely outside are ignored.
    """
    buckets: Dict[str, Bucket] = {}
    for assignee in assignees:
        buckets.setdefault(normalize_key(assignee.account_key), Bucket(assignee))

    for issue in issues:
        key = issue["key"]
        for wl in issue_worklogs(issue):
            entry = WorklogEntry.from_json(wl)
            bucket = buckets.get(entry.author_key)
            if bucket is None:
                continue
            seconds = entry.credited_seconds(period)
            if seconds:
                bucket.add(key, seconds)
    return list(buckets.values())
