"""Interactive console questions (free text, masked text, bounded integer)."""

import sys
from getpass import getpass
from typing import Optional


class ConsolePrompt:
    """Asks questions on the terminal; blocks until a valid answer is given."""

    def __init__(self, input_func=input, secret_func=getpass, out=None):
        self._input = input_func
        self._secret = secret_func
        self._out = out or sys.stderr

    def ask_text(self, question: str, default: Optional[str] = None) -> str:
        suffix = f" [{default}]" if default else ""
        while True:
            answer = self._input(f"{question}{suffix}: ").strip()
            if answer:
                return answer
            if default:
                return default

    def ask_secret(self, question: str) -> str:
        while True:
            answer = self._secret(f"{question}: ")
            if answer:
                return answer

    def ask_int(self, question: str, low: int, high: int) -> int:
        """Ask for an integer in [low, high], re-asking on anything else."""
        while True:
            answer = self._input(f"{question} [{low}-{high}]: ").strip()
            try:
                value = int(answer)
            except ValueError:
                value = None
            if value is not None and low <= value <= high:
                return value
            print(f"Please enter a number between {low} and {high}.", file=self._out)
