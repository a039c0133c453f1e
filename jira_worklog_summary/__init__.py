"""
jira_worklog_summary package

- Re-exports the building blocks of the worklog summary engine.
- Provides a package-level main() suitable for console_scripts entrypoints.
"""

from .aggregator import Bucket, WorklogEntry, aggregate  # noqa: F401
from .errors import (ErrorKind, InvalidPeriodError, JiraApiError, UnknownUserError,  # noqa: F401
                     UnsupportedFilterError, WorklogSummaryError)
from .periods import TimePeriod, resolve_period  # noqa: F401
from .query import build_query, expand_subtasks  # noqa: F401

__version__ = "1.0.0"


def main() -> None:
    """Package entrypoint. Delegates to core.main()."""
    from .core import main as _main
    _main()
