import os
import sys
# Ensure project root is importable for tests, regardless of runner CWD
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import types
from typing import Any, Dict, List, Optional

import pytest
import requests

from jira_worklog_summary.errors import ErrorKind, JiraApiError


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Optional[Any] = None,
        text: str = "",
        headers: Optional[Dict[str, str]] = None,
        raise_for_status_exc: Optional[Exception] = None,
    ):
        self.status_code = status_code
        self._json_data = json_data
        self.text = text
        self.headers = headers or {}
        self._raise_exc = raise_for_status_exc

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON body")
        return self._json_data

    def raise_for_status(self):
        if self._raise_exc is not None:
            raise self._raise_exc
        if 400 <= self.status_code:
            err = requests.HTTPError(f"HTTP {self.status_code}")
            # attach minimal response info for code under test
            err.response = types.SimpleNamespace(status_code=self.status_code, text=self.text)
            raise err


def make_http_error(status: int) -> requests.HTTPError:
    err = requests.HTTPError(f"HTTP {status}")
    err.response = types.SimpleNamespace(status_code=status, text=f"{status} error")
    return err


class ScriptedPrompt:
    """Prompt double answering from prepared lists and recording questions."""

    def __init__(self, texts=None, secrets=None, ints=None):
        self.texts = list(texts or [])
        self.secrets = list(secrets or [])
        self.ints = list(ints or [])
        self.asked: List[str] = []

    def ask_text(self, question, default=None):
        self.asked.append(question)
        answer = self.texts.pop(0) if self.texts else ""
        return answer or default

    def ask_secret(self, question):
        self.asked.append(question)
        return self.secrets.pop(0)

    def ask_int(self, question, low, high):
        self.asked.append(question)
        value = self.ints.pop(0)
        assert low <= value <= high
        return value


class FakeJira:
    """In-memory stand-in for JiraApi.

    ``failures`` maps a method name to a list of errors raised, one per call,
    before the method starts answering normally.
    """

    def __init__(self, users=None, search_results=None, issues=None, worklogs=None, failures=None):
        self.credentials = ("user", "secret")
        self.users = users or {}
        self.search_results = search_results or {}
        self.issues = issues or {}
        self.worklogs = worklogs or {}
        self.failures = failures or {}
        self.calls: List[tuple] = []

    def _maybe_fail(self, name):
        pending = self.failures.get(name)
        if pending:
            raise pending.pop(0)

    def search_users(self, text):
        self.calls.append(("search_users", text, self.credentials))
        self._maybe_fail("search_users")
        return self.users.get(text, [])

    def search(self, jql, fields=("worklog",)):
        self.calls.append(("search", jql, tuple(fields)))
        self._maybe_fail("search")
        return self.search_results.get(jql, [])

    def get_issue(self, key, fields=("worklog",)):
        self.calls.append(("get_issue", key))
        self._maybe_fail("get_issue")
        return self.issues[key]

    def get_full_worklog(self, key):
        self.calls.append(("get_full_worklog", key))
        self._maybe_fail("get_full_worklog")
        return self.worklogs[key]

    def browse_url(self, key):
        return f"https://jira.example.com/browse/{key}"


class PassThroughGate:
    """Gate double that simply invokes the call."""

    def call(self, fn, *args, **kwargs):
        return fn(*args, **kwargs)


def api_error(kind: ErrorKind, message: str = "boom") -> JiraApiError:
    return JiraApiError(kind, message)


def user(key: str, name: Optional[str] = None, display: Optional[str] = None, email: str = "") -> Dict[str, Any]:
    return {"key": key, "name": name or key, "displayName": display or key.title(), "emailAddress": email}


def worklog_entry(author_key: str, started: str, seconds: int) -> Dict[str, Any]:
    return {"author": {"key": author_key, "name": author_key}, "started": started, "timeSpentSeconds": seconds}


def issue(key: str, entries=None, total=None, max_results=20, subtasks=None, with_worklog=True) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    if with_worklog:
        entries = entries or []
        fields["worklog"] = {
            "startAt": 0,
            "maxResults": max_results,
            "total": len(entries) if total is None else total,
            "worklogs": entries,
        }
    if subtasks is not None:
        fields["subtasks"] = subtasks
    return {"key": key, "fields": fields}


@pytest.fixture
def no_sleep(monkeypatch):
    """Make time.sleep a no-op for faster retry tests."""
    monkeypatch.setattr("time.sleep", lambda *_args, **_kwargs: None)
    yield


@pytest.fixture
def tmp_config_file(tmp_path):
    """Create a minimal valid config.ini and return its path."""
    p = tmp_path / "config.ini"
    p.write_text(
        "[jira]\n"
        "base_url = https://jira.example.com\n"
        "username = jdoe\n"
        "password = secret123\n"
        "verify_ssl = true\n",
        encoding="utf-8",
    )
    return p


# Expose utilities for tests
__all__ = [
    "FakeResponse", "make_http_error", "ScriptedPrompt", "FakeJira", "PassThroughGate",
    "api_error", "user", "worklog_entry", "issue",
]
