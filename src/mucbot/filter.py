"""Decide which room messages are eligible for command parsing."""

from __future__ import annotations

from .types import GROUPCHAT, RoomMessage


def rejection_reason(message: RoomMessage, *, own_nick: str) -> str | None:
    """Return why ``message`` must not be processed, or None if it is actionable.

    A message is actionable when it is a room broadcast from an identified
    member other than the bot, carries a body, and is not a history replay.
    """
    if message.kind != GROUPCHAT:
        return "not_groupchat"
    if not message.sender:
        return "no_sender"
    if message.sender == own_nick:
        return "own_message"
    if not message.body:
        return "no_body"
    if message.delayed:
        return "delayed"
    return None


def is_actionable(message: RoomMessage, *, own_nick: str) -> bool:
    return rejection_reason(message, own_nick=own_nick) is None
