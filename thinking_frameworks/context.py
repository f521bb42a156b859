"""Per-run bookkeeping around the shared LLM client."""
from __future__ import annotations

import time
from typing import List, Optional

from thinking_frameworks.cancellation import CancellationToken
from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.models import Message, RunOptions, Usage


class RunContext:
    """One strategy invocation's view of the LLM client.

    Every completed call appends its usage, so ``llm_calls`` is the number of
    responses the run actually received, including classifier, canonicalisation
    and tool-as-LLM calls.
    """

    def __init__(self, llm: BaseLLM, options: RunOptions) -> None:
        self.llm = llm
        self.options = options
        self.usages: List[Usage] = []
        self._started = time.perf_counter()

    @property
    def cancellation(self) -> CancellationToken:
        return self.options.cancellation

    @property
    def credential(self) -> Optional[str]:
        return self.options.credential

    @property
    def llm_calls(self) -> int:
        return len(self.usages)

    @property
    def usage(self) -> Usage:
        return Usage.total(self.usages)

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._started) * 1000)

    async def complete(self, messages: List[Message], *, temperature: float = 0.0, max_tokens: int = 1024) -> str:
        response = await self.llm.completion(
            messages,
            credential=self.options.credential,
            model=self.options.model,
            temperature=temperature,
            max_tokens=max_tokens,
            cancellation=self.options.cancellation,
        )
        self.usages.append(response.usage)
        return response.text

    async def prompt(self, content: str, **kwargs) -> str:
        return await self.complete([{"role": "user", "content": content}], **kwargs)
