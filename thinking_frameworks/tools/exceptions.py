"""
Tool-related exceptions. Tools themselves never raise; the registry turns these
into error strings the strategies can reason about.
"""
from __future__ import annotations

from typing import Iterable


class ToolError(Exception):
    """Base exception for tool dispatch failures."""


class UnknownToolError(ToolError, KeyError):
    """A tool name outside the registered set was requested."""

    def __init__(self, name: str, available: Iterable[str]):
        self.name = name
        self.available = list(available)
        super().__init__(f'Unknown tool "{name}". Available tools: {", ".join(self.available)}')

    def __str__(self) -> str:
        return self.args[0]
