"""Credential handling: the authorization-retry gate and its providers."""

import configparser
import os
import sys
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import JiraApiError

APP_ID = "jira-worklog-summary"

Credentials = Tuple[str, str]


class MemoryCredentialStore:
    """Keeps credentials for the lifetime of the process only."""

    def __init__(self):
        self._secrets: Dict[str, str] = {}

    def load(self, username: str) -> Optional[str]:
        return self._secrets.get(username)

    def save(self, username: str, password: str):
        self._secrets[username] = password

    def delete(self, username: str):
        self._secrets.pop(username, None)


class CredentialStore:
    """INI-file credential store, one section per '<app_id>:<username>'."""

    def __init__(self, path: str, app_id: str = APP_ID):
        self.path = path
        self.app_id = app_id

    def _section(self, username: str) -> str:
        return f"{self.app_id}:{username}"

    def _read(self) -> configparser.ConfigParser:
        cp = configparser.ConfigParser(interpolation=None)
        cp.read(self.path, encoding="utf-8")
        return cp

    def _write(self, cp: configparser.ConfigParser):
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            cp.write(fh)

    def load(self, username: str) -> Optional[str]:
        cp = self._read()
        section = self._section(username)
        if section not in cp:
            return None
        return cp[section].get("password") or None

    def save(self, username: str, password: str):
        cp = self._read()
        cp[self._section(username)] = {"password": password}
        self._write(cp)

    def delete(self, username: str):
        cp = self._read()
        if cp.remove_section(self._section(username)):
            self._write(cp)


class PromptCredentialProvider:
    """Supplies credentials from the store, falling back to asking the user."""

    def __init__(self, prompt, store=None):
        self.prompt = prompt
        self.store = store if store is not None else MemoryCredentialStore()

    def initial(self, username: str = "", password: str = "") -> Credentials:
        """Credentials to start with: explicit ones, then stored, then asked."""
        if username and not password:
            password = self.store.load(username) or ""
        if username and password:
            return username, password
        return self.request(username or None)

    def invalidate(self, credentials: Optional[Credentials]):
        if credentials:
            self.store.delete(credentials[0])

    def request(self, previous_username: Optional[str] = None) -> Credentials:
        username = self.prompt.ask_text("Jira username", default=previous_username)
        password = self.prompt.ask_secret(f"Jira password (or API token) for {username}")
        self.store.save(username, password)
        return username, password


class CredentialGate:
    """Runs tracker calls, renewing credentials whenever Jira refuses them.

    The client must expose a read/write ``credentials`` attribute. There is
    no retry limit: the loop ends when the call succeeds, fails for another
    reason, or the user aborts.
    """

    def __init__(self, client, provider):
        self.client = client
        self.provider = provider

    def call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        while True:
            try:
                return fn(*args, **kwargs)
            except JiraApiError as e:
                if not e.is_auth_failure:
                    raise
                print(f"WARNING: {e}", file=sys.stderr)
                held = self.client.credentials
                self.provider.invalidate(held)
                self.client.credentials = self.provider.request(held[0] if held else None)
