"""Resolution of assignee tokens to Jira user identities."""

import sys
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from .errors import UnknownUserError


@dataclass(frozen=True)
class Assignee:
    token: str
    account_key: str
    login_name: str
    display_name: str
    email: str

    @classmethod
    def from_json(cls, token: str, user: Dict[str, Any]) -> "Assignee":
        login = user.get("name") or user.get("accountId") or ""
        return cls(
            token=token,
            account_key=user.get("key") or user.get("accountId") or login,
            login_name=login,
            display_name=user.get("displayName") or login,
            email=user.get("emailAddress") or "",
        )

    def label(self, use_display_name: bool = False) -> str:
        return self.display_name if use_display_name else self.login_name


def describe_user(user: Dict[str, Any]) -> str:
    parts = [user.get("displayName") or "", f"({user.get('name') or user.get('accountId') or ''})"]
    if user.get("emailAddress"):
        parts.append(f"<{user['emailAddress']}>")
    return " ".join(p for p in parts if p)


class UserResolver:
    """Maps each assignee token to exactly one Jira user.

    Lookups go through the credential gate one token at a time, since an
    ambiguous match blocks on the prompt.
    """

    def __init__(self, api, gate, prompt, out=None):
        self.api = api
        self.gate = gate
        self.prompt = prompt
        self.out = out or sys.stderr

    def resolve(self, tokens: Iterable[str]) -> List[Assignee]:
        resolved: List[Assignee] = []
        for token in (t.strip() for t in tokens):
            if token:
                resolved.append(self.resolve_one(token))
        return resolved

    def resolve_one(self, token: str) -> Assignee:
        candidates = self.gate.call(self.api.search_users, token) or []
        if not candidates:
            raise UnknownUserError(token)
        if len(candidates) == 1:
            return Assignee.from_json(token, candidates[0])

        exact = [u for u in candidates if token in (u.get("emailAddress"), u.get("key"), u.get("name"))]
        if len(exact) == 1:
            return Assignee.from_json(token, exact[0])

        print(f"Several Jira users match '{token}':", file=self.out)
        for i, user in enumerate(candidates, start=1):
            print(f"  {i}. {describe_user(user)}", file=self.out)
        choice = self.prompt.ask_int(f"Select the user for '{token}'", 1, len(candidates))
        return Assignee.from_json(token, candidates[choice - 1])
