"""
Closed registry of the tools every strategy can call, keyed by ``ToolName``.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Mapping, Optional

import httpx

from thinking_frameworks.tools.base import ToolBase
from thinking_frameworks.tools.calculator import CalculatorTool
from thinking_frameworks.tools.clock import ClockTool
from thinking_frameworks.tools.exceptions import UnknownToolError
from thinking_frameworks.tools.knowledge import KnowledgeLookupTool
from thinking_frameworks.tools.web_search import DEFAULT_SEARCH_MODEL, WebSearchTool
from utils.logger import get_logger

logger = get_logger(__name__)


class ToolName(str, Enum):
    WIKIPEDIA = "wikipedia"
    SEARCH = "search"
    WEBSEARCH = "websearch"
    CALCULATE = "calculate"
    CURRENT_DATETIME = "current_datetime"
    DATETIME = "datetime"

    @classmethod
    def parse(cls, name: str) -> "ToolName":
        """Case-insensitive lookup; unknown names raise ``UnknownToolError``."""
        try:
            return cls(name.strip().lower())
        except ValueError as exc:
            raise UnknownToolError(name, [t.value for t in cls]) from exc


class ToolRegistry:
    """Dispatches tool calls by name. ``execute`` always returns text."""

    def __init__(self, tools: Mapping[ToolName, ToolBase]) -> None:
        self._tools: Dict[ToolName, ToolBase] = dict(tools)

    @classmethod
    def default(
        cls,
        *,
        search_model: str = DEFAULT_SEARCH_MODEL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ToolRegistry":
        knowledge = KnowledgeLookupTool(transport=transport)
        web_search = WebSearchTool(knowledge, model=search_model)
        clock = ClockTool()
        return cls({
            ToolName.WIKIPEDIA: knowledge,
            ToolName.SEARCH: web_search,
            ToolName.WEBSEARCH: web_search,
            ToolName.CALCULATE: CalculatorTool(),
            ToolName.CURRENT_DATETIME: clock,
            ToolName.DATETIME: clock,
        })

    @property
    def names(self) -> List[str]:
        return [name.value for name in self._tools]

    def get(self, name: str) -> ToolBase:
        try:
            return self._tools[ToolName.parse(name)]
        except (UnknownToolError, KeyError) as exc:
            raise UnknownToolError(name, self.names) from exc

    async def execute(self, name: str, tool_input: str, credential: Optional[str] = None) -> str:
        try:
            tool = self.get(name)
        except UnknownToolError as exc:
            logger.warning("unknown_tool", tool=name, available=exc.available)
            return f"Error: {exc}"

        logger.info("tool_execute", tool=name, input_preview=tool_input[:200])
        result = await tool.execute(tool_input, credential)
        logger.debug("tool_result", tool=name, result_preview=result[:200])
        return result

    def describe(self) -> str:
        """One line per distinct tool; aliases sharing a tool are listed once."""
        seen: set[int] = set()
        lines = []
        for name, tool in self._tools.items():
            if id(tool) in seen:
                continue
            seen.add(id(tool))
            lines.append(f"{name.value}: {tool.description}")
        return "\n".join(lines)
