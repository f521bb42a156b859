"""Common shape of every registered tool."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class ToolBase(ABC):
    """A stateless tool mapping ``(input, credential) -> text``.

    ``execute`` never raises: failures come back as strings starting with
    ``"Error: "`` (or ``"Calculation error: "`` for the calculator).
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    async def execute(self, tool_input: str, credential: Optional[str] = None) -> str: ...

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"
