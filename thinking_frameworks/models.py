"""Data models shared by the LLM client, the tools and the strategy engines."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from thinking_frameworks.cancellation import CancellationToken

__all__ = [
    "Message",
    "Usage",
    "Phase",
    "ProgressEvent",
    "OnStep",
    "RunOptions",
    "StrategyResult",
    "CoTResult",
    "TrajectoryEntry",
    "ReActResult",
    "PlanStep",
    "ReWOOResult",
    "PlanExecuteResult",
]

Message = Dict[str, str]


@dataclass(frozen=True)
class Usage:
    """Token usage reported for one or more LLM calls."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )

    @classmethod
    def total(cls, usages: Iterable["Usage"]) -> "Usage":
        result = cls()
        for usage in usages:
            result = result + usage
        return result


class Phase(str, Enum):
    # CoT
    PATH = "path"
    # ReAct
    LLM = "llm"
    ACTION = "action"
    OBSERVATION = "observation"
    # ReWOO
    PLAN = "plan"
    EVIDENCE = "evidence"
    SOLVE = "solve"
    # Plan-Execute (shares PLAN)
    EXECUTE_START = "execute-start"
    EXECUTE_DONE = "execute-done"
    REPLAN = "replan"
    DONE = "done"


@dataclass(frozen=True)
class ProgressEvent:
    phase: Phase
    data: Dict[str, Any] = field(default_factory=dict)


OnStep = Callable[[ProgressEvent], None]


@dataclass(frozen=True)
class RunOptions:
    """Per-run inputs shared by every engine; strategy knobs live on the engine."""

    credential: Optional[str] = None
    model: str = "gpt-4o-mini"
    cancellation: CancellationToken = field(default_factory=CancellationToken)


# ----------------------------- Results ---------------------------------


@dataclass(frozen=True, kw_only=True)
class StrategyResult:
    framework: str
    answer: Optional[str] = None
    usage: Usage = field(default_factory=Usage)
    llm_calls: int = 0
    time_ms: int = 0
    error: Optional[str] = None
    stopped: bool = False


@dataclass(frozen=True, kw_only=True)
class CoTResult(StrategyResult):
    framework: str = "CoT"
    question_type: Optional[str] = None
    paths: List[str] = field(default_factory=list)
    answers: List[Optional[str]] = field(default_factory=list)
    vote_counts: Dict[str, int] = field(default_factory=dict)
    synthesized_answer: Optional[str] = None
    confidence: Optional[float] = None
    extraction_failures: int = 0


@dataclass(frozen=True)
class TrajectoryEntry:
    role: str  # "assistant" | "observation"
    content: str
    turn: int


@dataclass(frozen=True, kw_only=True)
class ReActResult(StrategyResult):
    framework: str = "ReAct"
    trajectory: List[TrajectoryEntry] = field(default_factory=list)
    turns: int = 0
    truncated: bool = False


@dataclass(frozen=True)
class PlanStep:
    description: str
    variable: str
    tool: str
    tool_input: str


@dataclass(frozen=True, kw_only=True)
class ReWOOResult(StrategyResult):
    framework: str = "ReWOO"
    plan_text: str = ""
    steps: List[PlanStep] = field(default_factory=list)
    evidence: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class PlanExecuteResult(StrategyResult):
    framework: str = "Plan-Execute"
    plan_text: str = ""
    past_steps: List[Tuple[str, str]] = field(default_factory=list)
    replans: int = 0
