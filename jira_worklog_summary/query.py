"""JQL construction for the worklog search."""

from typing import Iterable, Optional

from .errors import UnsupportedFilterError
from .periods import TimePeriod

ITEM_TYPE_FILTERS = {
    "supportrequests": 'type = "Support Request"',
    "externalbugs": 'type = Bug AND "How Found" = External',
}


def quote_jql_value(value: str) -> str:
    """Return value as a double-quoted JQL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def item_type_filter(name: str) -> str:
    """Map a predefined filter name (case-insensitive) to its JQL clause."""
    try:
        return ITEM_TYPE_FILTERS[name.strip().lower()]
    except KeyError:
        raise UnsupportedFilterError(name) from None


def period_clause(period: TimePeriod) -> str:
    date_from = period.start.date().isoformat()
    date_to = period.end.date().isoformat()
    return f'worklogDate >= "{date_from}" AND worklogDate <= "{date_to}"'


def build_query(login_names: Iterable[str], period: Optional[TimePeriod] = None,
                item_type: Optional[str] = None, raw_query: Optional[str] = None) -> str:
    """Build the JQL selecting issues with worklogs by any of login_names.

    The author clause is narrowed, in order, by the period, the predefined
    item type and the user's own JQL fragment (kept in parentheses so its
    OR clauses cannot leak out).
    """
    authors = ", ".join(quote_jql_value(n) for n in login_names)
    clauses = [f"worklogAuthor in ({authors})"]
    if period is not None:
        clauses.append(period_clause(period))
    if item_type:
        clauses.append(item_type_filter(item_type))
    if raw_query and raw_query.strip():
        clauses.append(f"({raw_query.strip()})")
    return " AND ".join(clauses)


def expand_subtasks(base: str) -> str:
    """Extend base with the subtasks of its matches (ScriptRunner syntax).

    The nested copy of base is quoted with ' unless base contains one, then
    with "; if both occur the chosen quote is escaped.
    """
    if "'" not in base:
        nested = f"'{base}'"
    elif '"' not in base:
        nested = f'"{base}"'
    else:
        nested = "'" + base.replace("\\", "\\\\").replace("'", "\\'") + "'"
    return f"({base}) OR issueFunction in subtasksOf({nested})"
