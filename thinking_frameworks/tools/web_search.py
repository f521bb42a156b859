"""
Web search through a search-capable chat model, falling back to the knowledge
lookup whenever the provider is unavailable.
"""
from __future__ import annotations

from typing import Optional

import litellm

from thinking_frameworks.tools.base import ToolBase
from thinking_frameworks.tools.knowledge import KnowledgeLookupTool
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SEARCH_MODEL = "gpt-4o-mini-search-preview"


class WebSearchTool(ToolBase):
    name = "search"
    description = (
        "Search the web for current, real-world information. Returns comprehensive results "
        "from across the internet. Input: a search query string."
    )

    def __init__(self, knowledge: KnowledgeLookupTool, *, model: str = DEFAULT_SEARCH_MODEL) -> None:
        self.knowledge = knowledge
        self.model = model

    async def execute(self, tool_input: str, credential: Optional[str] = None) -> str:
        if not credential:
            logger.warning("web_search_without_credential", fallback="knowledge_lookup")
            return await self.knowledge.execute(tool_input)

        try:
            resp = await litellm.acompletion(
                model=self.model,
                messages=[{"role": "user", "content": tool_input}],
                api_key=credential,
            )
            content = resp.choices[0].message.content
        except Exception as exc:
            # Any provider failure degrades to the knowledge lookup.
            logger.warning("web_search_failed", model=self.model, error=str(exc), fallback="knowledge_lookup")
            return await self.knowledge.execute(tool_input)

        if not content:
            logger.warning("web_search_empty", model=self.model, fallback="knowledge_lookup")
            return await self.knowledge.execute(tool_input)
        return content
