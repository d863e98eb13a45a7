"""Interactive yes/no and menu prompts."""

from __future__ import annotations

import sys
from collections.abc import Callable, Sequence
from typing import Protocol, TextIO


class Prompter(Protocol):
    @property
    def interactive(self) -> bool: ...

    def confirm(self, question: str, *, default: bool = False) -> bool: ...

    def choose(self, question: str, choices: Sequence[str], *, default: str) -> str: ...


def is_interactive(stdin: TextIO | None = None) -> bool:
    stream = stdin or sys.stdin
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


class ConsolePrompter:
    """Reads one answer per question from standard input.

    Only the first character of the answer is significant, mirroring a
    single-keypress prompt. When stdin is not a terminal every prompt returns
    its default without reading.
    """

    def __init__(
        self,
        *,
        reader: Callable[[str], str] = input,
        interactive: bool | None = None,
    ) -> None:
        self._reader = reader
        self._interactive = is_interactive() if interactive is None else interactive

    @property
    def interactive(self) -> bool:
        return self._interactive

    def _ask(self, prompt: str) -> str | None:
        if not self._interactive:
            return None
        try:
            answer = self._reader(prompt)
        except EOFError:
            return None
        return answer.strip()[:1]

    def confirm(self, question: str, *, default: bool = False) -> bool:
        suffix = "(Y/n)" if default else "(y/N)"
        key = self._ask(f"{question} {suffix} ")
        if not key:
            return default
        return key.lower() == "y"

    def choose(self, question: str, choices: Sequence[str], *, default: str) -> str:
        key = self._ask(f"{question} ")
        if key is None or key not in choices:
            return default
        return key
