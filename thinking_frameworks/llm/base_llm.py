"""Lightweight async LLM interface used by every strategy engine."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from thinking_frameworks.cancellation import CancellationToken
from thinking_frameworks.models import Message, Usage


class BaseLLM(ABC):
    """Minimal asynchronous chat-LLM interface.

    • Accepts a list[dict] *messages* like the OpenAI Chat format.
    • Returns an ``LLMResponse`` with the reply text, finish reason and usage.
    • Implementations SHOULD be stateless; credential + model are given per call
      so several runs can share one client.
    """

    @dataclass(frozen=True)
    class LLMResponse:
        text: str
        finish_reason: Optional[str] = None
        usage: Usage = field(default_factory=Usage)

        @property
        def truncated(self) -> bool:
            return self.finish_reason == "length"

    @abstractmethod
    async def completion(
        self,
        messages: List[Message],
        *,
        credential: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        cancellation: Optional[CancellationToken] = None,
    ) -> "BaseLLM.LLMResponse": ...
