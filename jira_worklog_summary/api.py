"""Thin Jira REST API v2 client used by the worklog summary."""

import sys
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from .errors import ErrorKind, JiraApiError

SEARCH_PAGE_SIZE = 1000
USER_SEARCH_LIMIT = 50


def vprint(verbose: bool, *args, **kwargs):
    """Print arguments only when verbose is True."""
    if verbose:
        print(*args, **kwargs)


def make_session(username: str, password: str, verify: Optional[bool] = True, ca_bundle: Optional[str] = "",
                 http_proxy: str = "", https_proxy: str = "") -> requests.Session:
    """Create a configured requests.Session for Jira API access.

    Applies basic auth, JSON headers, optional proxies, and SSL verification
    or a custom CA bundle.

    Args:
        username: Jira username (or account email).
        password: Jira password (or API token).
        verify: Whether to verify SSL certs (ignored if ca_bundle provided).
        ca_bundle: Path to CA bundle to use for SSL verification.
        http_proxy: HTTP proxy URL.
        https_proxy: HTTPS proxy URL.

    Returns:
        requests.Session: Configured session instance.
    """
    s = requests.Session()
    s.auth = (username, password)
    s.headers.update({"Accept": "application/json", "Content-Type": "application/json"})
    if http_proxy or https_proxy:
        proxies = {}
        if http_proxy:
            proxies["http"] = http_proxy
        if https_proxy:
            proxies["https"] = https_proxy
        s.proxies.update(proxies)
    if ca_bundle:
        s.verify = ca_bundle
    else:
        s.verify = verify
    return s


def http_get_with_retry(session: requests.Session, url: str, params: Optional[Dict[str, Any]] = None,
                        timeout: int = 120, max_tries: int = 5, backoff_base: float = 0.5) -> requests.Response:
    """HTTP GET with retry/backoff on 429 and 5xx responses.

    Honors the Retry-After header when present. Other statuses are returned
    at once; after max_tries the last response is returned even if it is an
    error.
    """
    tries = 0
    while True:
        tries += 1
        r = session.get(url, params=params, timeout=timeout)
        if (r.status_code == 429 or 500 <= r.status_code < 600) and tries < max_tries:
            retry_after = r.headers.get("Retry-After")
            wait = backoff_base * (2 ** (tries - 1))
            if retry_after:
                try:
                    wait = float(retry_after)
                except ValueError:
                    pass
            time.sleep(wait)
            continue
        return r


def error_from_response(r: requests.Response) -> JiraApiError:
    """Translate a failed Jira response into a JiraApiError."""
    status = r.status_code
    if status == 400:
        try:
            messages = (r.json() or {}).get("errorMessages") or []
        except ValueError:
            messages = []
        if messages:
            return JiraApiError(ErrorKind.BAD_REQUEST, "\n".join(messages), status)
        return JiraApiError(ErrorKind.BAD_REQUEST,
                            "The request to the Jira API is invalid. Please contact the administrator.", status)
    if status == 401:
        return JiraApiError(ErrorKind.INVALID_CREDENTIALS,
                            "Invalid credentials. Please check that your username and password are correct.",
                            status)
    if status == 403:
        return JiraApiError(ErrorKind.ACCESS_DENIED,
                            "You do not have access to the entities you're querying. "
                            "Please contact the Jira administrator or try other credentials.", status)
    return JiraApiError(ErrorKind.OTHER, f"Jira API request failed ({status}): {getattr(r, 'text', '')}", status)


class JiraApi:
    """Jira REST client returning decoded JSON or raising JiraApiError."""

    def __init__(self, base_url: str, session: requests.Session, timeout: int = 120, verbose: bool = False):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout
        self.verbose = verbose

    @property
    def credentials(self) -> Optional[Tuple[str, str]]:
        return self.session.auth

    @credentials.setter
    def credentials(self, value: Tuple[str, str]):
        self.session.auth = value

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/rest/api/2/{path.lstrip('/')}"
        try:
            r = http_get_with_retry(self.session, url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise JiraApiError(ErrorKind.OTHER, f"Request to {url} failed: {e}") from e
        vprint(self.verbose, f"GET {url} -> {r.status_code}", file=sys.stderr)
        if r.status_code >= 400:
            raise error_from_response(r)
        try:
            return r.json()
        except ValueError as e:
            raise JiraApiError(ErrorKind.OTHER, f"Jira returned a non-JSON response for {url} ({r.status_code}).",
                               r.status_code) from e

    def get_issue(self, key: str, fields: Sequence[str] = ("worklog",)) -> Dict[str, Any]:
        return self._get(f"issue/{key}", params={"fields": ",".join(fields)})

    def get_full_worklog(self, key: str) -> Dict[str, Any]:
        """Return the complete worklog container ({total, maxResults, worklogs}) of an issue."""
        return self._get(f"issue/{key}/worklog")

    def search(self, jql: str, fields: Sequence[str] = ("worklog",)) -> List[Dict[str, Any]]:
        """Run a JQL search and return all matching issues, following startAt pages."""
        issues_all: List[Dict[str, Any]] = []
        start_at = 0
        while True:
            params = {"jql": jql, "fields": ",".join(fields), "startAt": start_at, "maxResults": SEARCH_PAGE_SIZE}
            data = self._get("search", params=params)
            issues = data.get("issues", [])
            issues_all.extend(issues)
            start_at += len(issues)
            if not issues or start_at >= data.get("total", 0):
                break
        return issues_all

    def search_users(self, text: str) -> List[Dict[str, Any]]:
        """Free-text user directory search."""
        return self._get("user/search", params={"username": text, "maxResults": USER_SEARCH_LIMIT})

    def browse_url(self, key: str) -> str:
        return f"{self.base_url}/browse/{key}"
