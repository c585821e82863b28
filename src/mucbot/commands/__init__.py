"""Command registration and dispatch.

This module provides the ordered command registry and the dispatcher that
runs the first matching command for a room message.
"""

from __future__ import annotations

from .dispatch import Dispatcher
from .registry import CommandEntry, CommandMatch, CommandRegistry, extract_params

__all__ = [
    "CommandEntry",
    "CommandMatch",
    "CommandRegistry",
    "Dispatcher",
    "extract_params",
]
