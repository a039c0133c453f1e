"""
jira-worklog-summary

Prints how much time each requested person logged in Jira, optionally within
a quarter, month or day, with per-issue details.

- Assignees are resolved against the Jira user directory (asks when a name is ambiguous)
- Subtasks can be included via ScriptRunner's subtasksOf(), with a fallback
  to the subtasks field when ScriptRunner is missing
- Credentials are asked again whenever Jira refuses them
- Optional Excel export (--out)
"""

import argparse
import configparser
import os
import sys
from typing import Any, Dict, List, Optional

import colorama
import urllib3

from .aggregator import aggregate
from .api import JiraApi, make_session, vprint
from .credentials import APP_ID, CredentialGate, CredentialStore, PromptCredentialProvider
from .errors import JiraApiError, WorklogSummaryError
from .export import default_out_name, write_excel
from .fetcher import IssueFetcher
from .formatter import (DEFAULT_DAYS_IN_YEAR, DEFAULT_HOURS_IN_DAY, ORDER_CHOICES, format_duration,
                        order_buckets, render_lines, use_system_collation)
from .periods import resolve_period
from .prompt import ConsolePrompt
from .query import build_query, item_type_filter
from .users import UserResolver


def app_dir() -> str:
    """Return the application directory.

    When running as a PyInstaller-frozen executable, this points to the
    directory of the bundled executable. Otherwise, it returns the directory
    of this source file.
    """
    if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
        return os.path.dirname(sys.executable)
    return os.path.dirname(os.path.abspath(__file__))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed command-line options provided via CLI.
    """
    default_cfg = os.path.join(app_dir(), "config.ini")

    p = argparse.ArgumentParser(prog="jira-worklog-summary",
                                description="Retrieves the worklog of the given assignees for all items matching a JQL query.")
    p.add_argument("--config", default=default_cfg, help=f"Path to config.ini (default: {default_cfg})")
    p.add_argument("-j", "--url", default="", help="Jira URL (overrides base_url from the config)")
    p.add_argument("-u", "--username", default="", help="Jira username (overrides the config)")
    p.add_argument("-q", "--query", default="",
                   help='A JQL query to retrieve the items; the "worklogAuthor" clause is added automatically')
    p.add_argument("-a", "--assignees", required=True,
                   help="A comma-separated list of assignees to get the worklog for")
    p.add_argument("-t", "--timeperiod", default="",
                   help="A quarter, month or day to retrieve the worklog for, e.g. 2020 Q3, 2020-06, June 2020, 2020-06-17")
    p.add_argument("--hoursinaday", type=float, default=None,
                   help=f"How many worklog hours make a day (default={DEFAULT_HOURS_IN_DAY:g})")
    p.add_argument("--daysinayear", type=float, default=None,
                   help=f"How many working days make a year (default={DEFAULT_DAYS_IN_YEAR:g})")
    p.add_argument("-d", "--detailed", action="store_true", help="Show the worklog of each Jira item")
    p.add_argument("--itemtype", default="", help="A predefined filter: SupportRequests or ExternalBugs")
    p.add_argument("--orderby", type=str.lower, choices=ORDER_CHOICES, default="username",
                   help="Sort order: username or duration (default=username)")
    p.add_argument("--delimiter", default="\t", help="Separator between the username and the duration (default=tab)")
    p.add_argument("--humanize", action="store_true", help="Print durations in a human-readable format")
    p.add_argument("--nounits", action="store_true", help="Omit the duration units, printing only numbers")
    p.add_argument("--no-color", dest="no_color", action="store_true", help="Disable colors")
    p.add_argument("--hidetotal", action="store_true", help="Hide the total")
    p.add_argument("--displayname", action="store_true", help="Show display names instead of usernames")
    p.add_argument("--subtasks", action="store_true", help="Include the subtasks of the matching items")
    p.add_argument("--out", nargs="?", const="", default=None,
                   help="Also export to .xlsx; without a value uses jira-worklog-summary-YYYY-MM-DD-HHMM.xlsx")
    p.add_argument("--timeout", type=int, default=120, help="Timeout per request (s) (default=120)")
    p.add_argument("--insecure", action="store_true", help="DISABLES SSL verification (NOT RECOMMENDED)")
    p.add_argument("--no-progress", dest="no_progress", action="store_true", help="Hide the progress bar")
    p.add_argument("--verbose", action="store_true", help="Detailed diagnostics on stderr")
    return p.parse_args(argv)


def _float_or_none(s: str) -> Optional[float]:
    try:
        return float(s) if s else None
    except ValueError:
        return None


def read_config(path: str) -> Dict[str, Any]:
    """Read configuration from an INI file with environment fallbacks.

    A missing file or [jira] section is not an error; every value may also
    come from the command line or be asked interactively.

    Returns:
        Dict[str, Any]: Normalized configuration values.
    """
    cp = configparser.ConfigParser(interpolation=None)
    cp.read(path, encoding="utf-8")
    sec = cp["jira"] if "jira" in cp else {}
    base_url = sec.get("base_url", "").strip()
    username = sec.get("username", "").strip()
    password = (sec.get("password", "") or sec.get("api_token", "")).strip()
    # Fallback to environment variables
    base_url = (base_url or os.environ.get("JIRA_BASE_URL", "")).strip().rstrip("/")
    username = (username or os.environ.get("JIRA_USERNAME", "")).strip()
    password = (password or os.environ.get("JIRA_PASSWORD", "") or os.environ.get("JIRA_API_TOKEN", "")).strip()

    return {
        "base_url": base_url,
        "username": username,
        "password": password,
        "verify_ssl": sec.get("verify_ssl", "true").strip().lower() in ("1", "true", "yes", "on"),
        "ca_bundle": sec.get("ca_bundle", "").strip(),
        "http_proxy": sec.get("http_proxy", "").strip(),
        "https_proxy": sec.get("https_proxy", "").strip(),
        "credentials_file": os.path.expanduser(sec.get("credentials_file", "").strip()),
        "hours_in_day": _float_or_none(sec.get("hours_in_day", "").strip()),
        "days_in_year": _float_or_none(sec.get("days_in_year", "").strip()),
    }


def run(args: argparse.Namespace, cfg: Dict[str, Any], prompt=None) -> List[str]:
    """Resolve, fetch, aggregate and render; returns the report lines."""
    verbose = args.verbose
    base_url = (args.url or cfg["base_url"]).strip().rstrip("/")
    if not base_url:
        raise WorklogSummaryError("A Jira URL is required (--url, base_url in config.ini or JIRA_BASE_URL).")

    period = resolve_period(args.timeperiod) if args.timeperiod.strip() else None
    if period:
        vprint(verbose, f"Effective period (UTC): {period.start.isoformat()} to {period.end.isoformat()}",
               file=sys.stderr)
    if args.itemtype:
        item_type_filter(args.itemtype)

    verify_val = False if args.insecure else cfg["verify_ssl"]
    if not verify_val and not cfg["ca_bundle"]:
        sys.stderr.write("WARNING: SSL certificate verification is DISABLED. Use only for testing.\n")
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    prompt = prompt or ConsolePrompt()
    store = CredentialStore(cfg["credentials_file"], APP_ID) if cfg["credentials_file"] else None
    provider = PromptCredentialProvider(prompt, store)
    username = args.username or cfg["username"]
    password = cfg["password"] if username == cfg["username"] else ""
    username, password = provider.initial(username, password)

    session = make_session(username, password, verify=verify_val, ca_bundle=cfg["ca_bundle"],
                           http_proxy=cfg["http_proxy"], https_proxy=cfg["https_proxy"])
    api = JiraApi(base_url, session, timeout=args.timeout, verbose=verbose)
    gate = CredentialGate(api, provider)

    assignees = UserResolver(api, gate, prompt).resolve(args.assignees.split(","))
    if not assignees:
        raise WorklogSummaryError("At least one assignee is required.")
    for a in assignees:
        vprint(verbose, f"Assignee '{a.token}' -> {a.login_name} ({a.display_name})", file=sys.stderr)

    jql = build_query([a.login_name for a in assignees], period, args.itemtype or None, args.query)
    vprint(verbose, "JQL:", jql, file=sys.stderr)

    fetcher = IssueFetcher(api, gate, verbose=verbose, progress=not args.no_progress)
    issues = fetcher.fetch(jql, include_subtasks=args.subtasks)
    buckets = aggregate(issues, assignees, period)
    rows = order_buckets(buckets, args.orderby, use_display_name=args.displayname)

    hours_in_day = args.hoursinaday or cfg["hours_in_day"] or DEFAULT_HOURS_IN_DAY
    days_in_year = args.daysinayear or cfg["days_in_year"] or DEFAULT_DAYS_IN_YEAR

    def fmt(seconds: int) -> str:
        return format_duration(seconds, hours_in_day, days_in_year, humanize=args.humanize, no_units=args.nounits)

    if args.out is not None:
        try:
            out_path = write_excel(rows, args.out.strip() or default_out_name())
        except OSError as e:
            sys.stderr.write(f"ERROR: failed to write the Excel file: {e}\n")
            sys.exit(4)
        vprint(verbose, f"Excel file written: {out_path}", file=sys.stderr)

    return render_lines(rows, fmt, delimiter=args.delimiter, detailed=args.detailed, hide_total=args.hidetotal,
                        color=not args.no_color, browse_url=api.browse_url)


def main():
    """Program entry point."""
    args = parse_args()
    cfg = read_config(args.config)
    use_system_collation()
    if not args.no_color:
        colorama.init()
    try:
        lines = run(args, cfg)
    except KeyboardInterrupt:
        sys.stderr.write("\nAborted.\n")
        sys.exit(130)
    except JiraApiError as e:
        sys.stderr.write(f"ERROR: {e}\n")
        sys.exit(3)
    except WorklogSummaryError as e:
        sys.stderr.write(f"ERROR: {e}\n")
        sys.exit(2)
    for line in lines:
        print(line)


if __name__ == "__main__":
    main()
