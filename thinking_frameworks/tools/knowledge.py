"""
Knowledge lookup against the public Wikipedia search API (no credential needed).
"""
from __future__ import annotations

import html
import re
from typing import Any, Dict, List, Optional

import httpx

from thinking_frameworks.tools.base import ToolBase
from utils.logger import get_logger

logger = get_logger(__name__)

WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
MAX_RESULTS = 3
SUMMARY_LIMIT = 800
_TAG_RE = re.compile(r"<[^>]*>")


class KnowledgeLookupTool(ToolBase):
    name = "wikipedia"
    description = "Search Wikipedia for information with article summaries. Input: a search query string."

    def __init__(
        self,
        *,
        api_url: str = WIKIPEDIA_API_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    async def execute(self, tool_input: str, credential: Optional[str] = None) -> str:
        query = tool_input.strip()
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                results = await self._search(client, query)
                if not results:
                    return "No results found."

                snippets = "\n\n".join(_strip_markup(r.get("snippet", "")) for r in results)
                top_title = results[0].get("title", "")
                summary = await self._summary(client, top_title)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("knowledge_lookup_failed", query=query, error=str(exc))
            return f"Error: knowledge lookup failed: {exc}"

        if summary and len(summary) > 20:
            return f'Summary of "{top_title}":\n{summary[:SUMMARY_LIMIT]}\n\n---\nSearch snippets:\n{snippets}'
        return snippets

    async def _search(self, client: httpx.AsyncClient, query: str) -> List[Dict[str, Any]]:
        response = await client.get(
            self.api_url,
            params={"action": "query", "list": "search", "srsearch": query, "format": "json", "srlimit": MAX_RESULTS},
        )
        response.raise_for_status()
        data = response.json()
        return list((data.get("query") or {}).get("search") or [])[:MAX_RESULTS]

    async def _summary(self, client: httpx.AsyncClient, title: str) -> Optional[str]:
        """Intro extract of the top-ranked article; a failure here only loses the summary."""
        try:
            response = await client.get(
                self.api_url,
                params={
                    "action": "query",
                    "titles": title,
                    "prop": "extracts",
                    "exintro": 1,
                    "explaintext": 1,
                    "format": "json",
                },
            )
            response.raise_for_status()
            pages = (response.json().get("query") or {}).get("pages") or {}
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("knowledge_summary_failed", title=title, error=str(exc))
            return None

        page = next(iter(pages.values()), None) or {}
        extract = page.get("extract")
        return extract if isinstance(extract, str) else None


def _strip_markup(snippet: str) -> str:
    return html.unescape(_TAG_RE.sub("", snippet))
