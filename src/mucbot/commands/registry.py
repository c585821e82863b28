"""Ordered registry of pattern-based commands."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass

from ..types import CommandHandler, CommandParams


@dataclass(frozen=True, slots=True)
class CommandEntry:
    pattern: re.Pattern[str]
    handler: CommandHandler


@dataclass(frozen=True, slots=True)
class CommandMatch:
    entry: CommandEntry
    params: CommandParams


def extract_params(match: re.Match[str]) -> CommandParams:
    """Shape the captures of ``match`` by group count.

    Returns None for a pattern without groups, the single capture for a
    pattern with one group, and a tuple of captures in group order otherwise.
    """
    groups = match.groups()
    if not groups:
        return None
    if len(groups) == 1:
        return groups[0]
    return groups


class CommandRegistry:
    """Commands in registration order; the first matching entry wins.

    Registration replaces the entry tuple under a lock, so lookups work on a
    consistent snapshot even while a handler thread registers new commands.
    """

    def __init__(self) -> None:
        self._entries: tuple[CommandEntry, ...] = ()
        self._lock = threading.Lock()

    def register(
        self, pattern: str | re.Pattern[str], handler: CommandHandler
    ) -> CommandEntry:
        if not callable(handler):
            raise TypeError(f"command handler must be callable, got {handler!r}")
        compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
        entry = CommandEntry(pattern=compiled, handler=handler)
        with self._lock:
            self._entries = (*self._entries, entry)
        return entry

    @property
    def entries(self) -> tuple[CommandEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def find_first_match(self, text: str) -> CommandMatch | None:
        stripped = text.strip()
        for entry in self._entries:
            match = entry.pattern.search(stripped)
            if match is not None:
                return CommandMatch(entry=entry, params=extract_params(match))
        return None
