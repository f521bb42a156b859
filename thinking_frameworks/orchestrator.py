"""Runs several strategies on one question concurrently and collects their results."""
from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.llm.litellm import LiteLLM
from thinking_frameworks.models import ProgressEvent, RunOptions, StrategyResult
from thinking_frameworks.reasoner import (
    STOPPED_MESSAGE,
    BaseReasoner,
    CoTReasoner,
    PlanExecuteReasoner,
    ReActReasoner,
    ReWOOReasoner,
)
from thinking_frameworks.tools.registry import ToolRegistry
from utils.config import Config
from utils.logger import get_logger

logger = get_logger(__name__)


class UnknownStrategyError(ValueError):
    def __init__(self, name: str):
        self.name = name
        available = ", ".join(s.value for s in StrategyName)
        super().__init__(f'Unknown strategy "{name}". Available strategies: {available}')


class StrategyName(str, Enum):
    COT = "cot"
    REACT = "react"
    REWOO = "rewoo"
    PLAN_EXECUTE = "plan-execute"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, name: str) -> "StrategyName":
        key = name.strip().lower()
        for strategy in cls:
            if key in (strategy.value, strategy.display_name.lower()):
                return strategy
        raise UnknownStrategyError(name)


_DISPLAY_NAMES = {
    StrategyName.COT: "CoT",
    StrategyName.REACT: "ReAct",
    StrategyName.REWOO: "ReWOO",
    StrategyName.PLAN_EXECUTE: "Plan-Execute",
}

OnProgress = Callable[[StrategyName, ProgressEvent], None]


def build_reasoners(
    config: Config,
    *,
    llm: BaseLLM,
    tools: ToolRegistry,
    names: Optional[Iterable[StrategyName]] = None,
) -> Dict[StrategyName, BaseReasoner]:
    """Instantiate the requested engines with their knobs taken from ``config``."""
    settings = config.strategies
    selected = list(names) if names is not None else [StrategyName.parse(n) for n in settings.enabled]

    factories = {
        StrategyName.COT: lambda: CoTReasoner(
            llm=llm,
            tools=tools,
            n_samples=settings.cot.n_samples,
            temperature=settings.cot.temperature,
            mode=settings.cot.mode,
        ),
        StrategyName.REACT: lambda: ReActReasoner(llm=llm, tools=tools, max_turns=settings.react.max_turns),
        StrategyName.REWOO: lambda: ReWOOReasoner(llm=llm, tools=tools),
        StrategyName.PLAN_EXECUTE: lambda: PlanExecuteReasoner(
            llm=llm,
            tools=tools,
            max_replans=settings.plan_execute.max_replans,
            max_step_turns=settings.plan_execute.max_step_turns,
        ),
    }
    return {name: factories[name]() for name in dict.fromkeys(selected)}


class Orchestrator:
    """
    Fans one question out to several engines sharing a cancellation token.

    A strategy that raises is reported as a failed ``StrategyResult``; its
    siblings keep running.
    """

    def __init__(self, reasoners: Mapping[StrategyName, BaseReasoner]) -> None:
        self.reasoners: Dict[StrategyName, BaseReasoner] = dict(reasoners)

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        llm: Optional[BaseLLM] = None,
        tools: Optional[ToolRegistry] = None,
        names: Optional[Iterable[StrategyName]] = None,
    ) -> "Orchestrator":
        llm = llm or LiteLLM(model=config.llm.model, base_delay=config.llm.retry_base_delay)
        tools = tools or ToolRegistry.default(search_model=config.llm.search_model)
        return cls(build_reasoners(config, llm=llm, tools=tools, names=names))

    @property
    def names(self) -> List[StrategyName]:
        return list(self.reasoners)

    async def run(
        self,
        question: str,
        options: RunOptions,
        on_progress: Optional[OnProgress] = None,
    ) -> Dict[StrategyName, StrategyResult]:
        logger.info("comparison_started", strategies=[n.value for n in self.reasoners], model=options.model)
        results = await asyncio.gather(
            *(self._run_one(name, reasoner, question, options, on_progress) for name, reasoner in self.reasoners.items())
        )
        return dict(zip(self.reasoners, results))

    @staticmethod
    async def _run_one(
        name: StrategyName,
        reasoner: BaseReasoner,
        question: str,
        options: RunOptions,
        on_progress: Optional[OnProgress],
    ) -> StrategyResult:
        started = time.perf_counter()
        on_step = (lambda event: on_progress(name, event)) if on_progress else None
        try:
            return await reasoner.run(question, options, on_step)
        except Exception as exc:
            stopped = options.cancellation.cancelled
            logger.error("strategy_failed", strategy=name.value, error=str(exc), stopped=stopped, exc_info=not stopped)
            return StrategyResult(
                framework=name.display_name,
                time_ms=int((time.perf_counter() - started) * 1000),
                error=STOPPED_MESSAGE if stopped else str(exc),
                stopped=stopped,
            )
