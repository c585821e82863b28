from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

GROUPCHAT: Literal["groupchat"] = "groupchat"

# Captures of a command pattern: no group -> None, one group -> that group,
# several groups -> all of them in order. Groups that did not participate
# in the match are None.
CommandParams: TypeAlias = str | tuple[str | None, ...] | None

HandlerResult: TypeAlias = object | None

CommandHandler: TypeAlias = Callable[
    [str, CommandParams], HandlerResult | Awaitable[HandlerResult]
]
GreetingHandler: TypeAlias = Callable[[str], HandlerResult | Awaitable[HandlerResult]]


@dataclass(frozen=True, slots=True)
class RoomMessage:
    """A message stanza received from the joined room."""

    kind: str
    sender: str | None
    recipient: str | None
    body: str | None
    delayed: bool = False
    raw: Any = field(default=None, compare=False, repr=False)

    @property
    def is_broadcast(self) -> bool:
        return self.kind == GROUPCHAT


@dataclass(frozen=True, slots=True)
class RoomJoin:
    """A member entered the room."""

    handle: str
    room: str | None = None
    raw: Any = field(default=None, compare=False, repr=False)
