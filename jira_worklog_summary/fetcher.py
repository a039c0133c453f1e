"""Issue retrieval: search, subtask flattening, dedup and worklog refill."""

import sys
from typing import Any, Dict, List

from tqdm import tqdm

from .api import vprint
from .errors import ErrorKind, JiraApiError
from .query import expand_subtasks

WORKLOG_FIELDS = ("worklog",)
WORKLOG_AND_SUBTASK_FIELDS = ("worklog", "subtasks")


def has_worklog(issue: Dict[str, Any]) -> bool:
    return isinstance((issue.get("fields") or {}).get("worklog"), dict)


def is_truncated(worklog: Dict[str, Any]) -> bool:
    """True when the inline worklog page holds fewer entries than exist."""
    return worklog.get("total", 0) > worklog.get("maxResults", len(worklog.get("worklogs", [])))


def flatten_subtasks(issues: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return the issues followed by the subtasks attached to each of them."""
    flat = list(issues)
    for issue in issues:
        flat.extend((issue.get("fields") or {}).get("subtasks") or [])
    return flat


def dedupe_issues(issues: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep one issue per key, preferring the copy that carries worklog data."""
    ordered = sorted(issues, key=lambda i: not has_worklog(i))
    seen = set()
    unique = []
    for issue in ordered:
        key = issue.get("key")
        if key in seen:
            continue
        seen.add(key)
        unique.append(issue)
    return unique


class IssueFetcher:
    """Loads every issue matching a query with its complete worklog."""

    def __init__(self, api, gate, verbose: bool = False, progress: bool = True):
        self.api = api
        self.gate = gate
        self.verbose = verbose
        self.progress = progress

    def search(self, jql: str, include_subtasks: bool = False) -> List[Dict[str, Any]]:
        """Run the search, expanding to subtasks with ScriptRunner when asked.

        A Jira without the subtasksOf function answers 400; the plain query is
        then run once more asking for the subtasks field instead.
        """
        if not include_subtasks:
            return self.gate.call(self.api.search, jql, WORKLOG_FIELDS)
        expanded = expand_subtasks(jql)
        vprint(self.verbose, "JQL (with subtasks):", expanded, file=sys.stderr)
        try:
            return self.gate.call(self.api.search, expanded, WORKLOG_AND_SUBTASK_FIELDS)
        except JiraApiError as e:
            if e.kind is not ErrorKind.BAD_REQUEST:
                raise
            vprint(self.verbose, f"Subtask expansion rejected ({e}); falling back to the subtasks field.",
                   file=sys.stderr)
        return self.gate.call(self.api.search, jql, WORKLOG_AND_SUBTASK_FIELDS)

    def complete(self, issue: Dict[str, Any]) -> Dict[str, Any]:
        """Return issue with its full worklog attached."""
        key = issue["key"]
        if not has_worklog(issue):
            issue = self.gate.call(self.api.get_issue, key, WORKLOG_FIELDS)
        worklog = (issue.get("fields") or {}).get("worklog") or {}
        if is_truncated(worklog):
            full = self.gate.call(self.api.get_full_worklog, key)
            issue = dict(issue, fields=dict(issue["fields"], worklog=full))
        return issue

    def fetch(self, jql: str, include_subtasks: bool = False) -> List[Dict[str, Any]]:
        issues = self.search(jql, include_subtasks)
        vprint(self.verbose, f"Issues returned by the search: {len(issues)}", file=sys.stderr)
        working = dedupe_issues(flatten_subtasks(issues))
        vprint(self.verbose, f"Issues to process after flattening: {len(working)}", file=sys.stderr)
        completed = []
        for issue in tqdm(working, desc="Loading worklogs", unit="issue", disable=not self.progress,
                          file=sys.stderr):
            completed.append(self.complete(issue))
        return completed
