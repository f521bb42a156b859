import asyncio
from typing import Callable, Dict, List, NamedTuple, Optional, Union

import pytest

from thinking_frameworks.cancellation import CancellationToken
from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.models import Message, RunOptions, Usage
from thinking_frameworks.tools.base import ToolBase
from thinking_frameworks.tools.calculator import CalculatorTool
from thinking_frameworks.tools.registry import ToolName, ToolRegistry

CALL_USAGE = Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15)

# Queue item that cancels the run's token while the call is "in flight".
CANCEL = object()


class Delayed(NamedTuple):
    """Queue item answered with ``text`` after ``seconds`` of simulated latency."""

    text: str
    seconds: float


Reply = Union[str, BaseException, Callable[[List[Message]], str], object]


class ScriptedLLM(BaseLLM):
    """Replies from a queue: text, ``Delayed`` text, an exception to raise, a callable, or ``CANCEL``."""

    def __init__(self, replies: Optional[List[Reply]] = None, *, default: str = "", usage: Usage = CALL_USAGE):
        self.replies = list(replies or [])
        self.default = default
        self.usage = usage
        self.calls: List[Dict] = []

    async def completion(  # type: ignore[override]
        self,
        messages: List[Message],
        *,
        credential: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        cancellation: Optional[CancellationToken] = None,
    ) -> BaseLLM.LLMResponse:
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        self.calls.append({
            "messages": [dict(m) for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
            "credential": credential,
            "model": model,
        })
        reply = self.replies.pop(0) if self.replies else self.default
        if reply is CANCEL:
            assert cancellation is not None
            cancellation.cancel()
            cancellation.raise_if_cancelled()
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, Delayed):
            await asyncio.sleep(reply.seconds)
            reply = reply.text
        elif callable(reply):
            reply = reply(messages)
        await asyncio.sleep(0)
        return BaseLLM.LLMResponse(text=reply, finish_reason="stop", usage=self.usage)

    def last_user_content(self, call_index: int = -1) -> str:
        return self.calls[call_index]["messages"][-1]["content"]


class StubTool(ToolBase):
    def __init__(self, name: str, result: Union[str, Callable[[str], str]] = "ok", description: str = "stub tool"):
        self.name = name
        self.description = description
        self.result = result
        self.inputs: List[str] = []

    async def execute(self, tool_input: str, credential: Optional[str] = None) -> str:
        self.inputs.append(tool_input)
        return self.result(tool_input) if callable(self.result) else self.result


def make_tools(**results: Union[str, Callable[[str], str]]) -> ToolRegistry:
    """Registry of stubs (plus the real calculator) keyed like the default registry."""
    wikipedia = StubTool("wikipedia", results.get("wikipedia", "wiki result"), "Search Wikipedia")
    search = StubTool("search", results.get("search", "search result"), "Search the web")
    clock = StubTool("current_datetime", results.get("current_datetime", "Monday"), "Current date and time")
    return ToolRegistry({
        ToolName.WIKIPEDIA: wikipedia,
        ToolName.SEARCH: search,
        ToolName.WEBSEARCH: search,
        ToolName.CALCULATE: CalculatorTool(),
        ToolName.CURRENT_DATETIME: clock,
        ToolName.DATETIME: clock,
    })


@pytest.fixture
def stub_tools() -> ToolRegistry:
    return make_tools()


@pytest.fixture
def options() -> RunOptions:
    return RunOptions(credential="sk-test", model="gpt-4o-mini")
