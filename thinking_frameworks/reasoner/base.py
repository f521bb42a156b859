from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from thinking_frameworks.cancellation import OperationCancelledError
from thinking_frameworks.context import RunContext
from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.models import OnStep, Phase, ProgressEvent, RunOptions, StrategyResult
from thinking_frameworks.tools.registry import ToolRegistry
from utils.logger import get_logger
from utils.observability import observe

logger = get_logger(__name__)

STOPPED_MESSAGE = "Stopped by user"

StateT = TypeVar("StateT")


class Emitter:
    """Forwards progress events, in call order, to an optional synchronous callback."""

    def __init__(self, on_step: Optional[OnStep] = None) -> None:
        self._on_step = on_step

    def __call__(self, phase: Phase, **data: Any) -> None:
        if self._on_step is not None:
            self._on_step(ProgressEvent(phase=phase, data=data))


class BaseReasoner(ABC, Generic[StateT]):
    """
    Abstract contract for a reasoning strategy.

    Subclasses keep all per-question data in a fresh state object so one
    instance can serve several concurrent runs. ``run`` owns the bookkeeping:
    a ``RunContext`` for usage and timing, conversion of cancellation into a
    partial ``stopped`` result, and the final result build.
    """

    framework: str = ""

    def __init__(self, *, llm: BaseLLM, tools: ToolRegistry) -> None:
        self.llm = llm
        self.tools = tools

    @observe(root=True)
    async def run(
        self,
        question: str,
        options: Optional[RunOptions] = None,
        on_step: Optional[OnStep] = None,
    ) -> StrategyResult:
        ctx = RunContext(self.llm, options or RunOptions())
        state = self._new_state()
        logger.info("strategy_started", framework=self.framework, model=ctx.options.model)

        try:
            await self._solve(question, ctx, state, Emitter(on_step))
        except OperationCancelledError:
            logger.info("strategy_stopped", framework=self.framework, llm_calls=ctx.llm_calls)
            return self._build_result(state, ctx, error=STOPPED_MESSAGE, stopped=True)

        result = self._build_result(state, ctx)
        logger.info(
            "strategy_finished",
            framework=self.framework,
            llm_calls=result.llm_calls,
            total_tokens=result.usage.total_tokens,
            time_ms=result.time_ms,
            error=result.error,
        )
        return result

    @abstractmethod
    def _new_state(self) -> StateT: ...

    @abstractmethod
    async def _solve(self, question: str, ctx: RunContext, state: StateT, emit: Emitter) -> None:
        """Drive the strategy, recording progress on ``state`` as it goes."""

    @abstractmethod
    def _build_result(
        self,
        state: StateT,
        ctx: RunContext,
        *,
        error: Optional[str] = None,
        stopped: bool = False,
    ) -> StrategyResult:
        """Freeze ``state`` into the strategy's result; ``error`` overrides the state's own."""
