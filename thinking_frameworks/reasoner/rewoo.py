"""ReWOO: plan every tool call up front, run them, then solve from the evidence.

Exactly three phases and no replanning. Each plan step stores its result in a
``#E<n>`` variable that later steps may reference in their tool input.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from thinking_frameworks.context import RunContext
from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.models import Phase, PlanStep, ReWOOResult
from thinking_frameworks.parsers import parse_plan
from thinking_frameworks.prompts import load_prompts
from thinking_frameworks.reasoner.base import BaseReasoner, Emitter
from thinking_frameworks.tools.registry import ToolRegistry
from utils.logger import get_logger

logger = get_logger(__name__)

LLM_TOOL = "llm"


@dataclass
class ReWOOState:
    plan_text: str = ""
    steps: List[PlanStep] = field(default_factory=list)
    evidence: Dict[str, str] = field(default_factory=dict)
    answer: Optional[str] = None


def substitute_evidence(tool_input: str, evidence: Dict[str, str]) -> str:
    """Replace every resolved variable name in ``tool_input`` with its value (plain text replace)."""
    for variable, value in evidence.items():
        tool_input = tool_input.replace(variable, str(value))
    return tool_input


def _warn_on_prefix_variables(steps: List[PlanStep]) -> None:
    variables = [step.variable for step in steps]
    for short in variables:
        for long in variables:
            if short != long and long.startswith(short):
                logger.warning("rewoo_variable_prefix_overlap", variable=short, overlaps=long)


class ReWOOReasoner(BaseReasoner[ReWOOState]):
    framework = "ReWOO"

    PLAN_MAX_TOKENS = 1024
    LLM_STEP_MAX_TOKENS = 512
    SOLVE_MAX_TOKENS = 512

    def __init__(self, *, llm: BaseLLM, tools: ToolRegistry) -> None:
        super().__init__(llm=llm, tools=tools)
        self.prompts = load_prompts("reasoners/rewoo", required_keys=["plan", "solve"])

    def _new_state(self) -> ReWOOState:
        return ReWOOState()

    async def _solve(self, question: str, ctx: RunContext, state: ReWOOState, emit: Emitter) -> None:
        # Plan
        state.plan_text = await ctx.prompt(
            self.prompts["plan"].format(task=question), temperature=0.0, max_tokens=self.PLAN_MAX_TOKENS
        )
        state.steps = parse_plan(state.plan_text)
        _warn_on_prefix_variables(state.steps)
        logger.info("rewoo_plan", steps=len(state.steps))
        emit(Phase.PLAN, plan_text=state.plan_text, steps=list(state.steps))

        # Work
        for step in state.steps:
            tool_input = substitute_evidence(step.tool_input, state.evidence)
            is_error = False
            if step.tool.lower() == LLM_TOOL:
                result = await ctx.prompt(tool_input, temperature=0.0, max_tokens=self.LLM_STEP_MAX_TOKENS)
            else:
                result = await self.tools.execute(step.tool, tool_input, ctx.credential)
                ctx.cancellation.raise_if_cancelled()
                is_error = result.startswith("Error:")

            state.evidence[step.variable] = f"[FAILED: {result}]" if is_error else result
            emit(Phase.EVIDENCE, variable=step.variable, input=tool_input, result=result, is_error=is_error)

        # Solve
        reply = await ctx.prompt(
            self.prompts["solve"].format(task=question, plan_with_evidence=self._plan_with_evidence(state)),
            temperature=0.0,
            max_tokens=self.SOLVE_MAX_TOKENS,
        )
        state.answer = reply.strip()
        emit(Phase.SOLVE, answer=state.answer)

    @staticmethod
    def _plan_with_evidence(state: ReWOOState) -> str:
        blocks = []
        for step in state.steps:
            tool_input = substitute_evidence(step.tool_input, state.evidence)
            blocks.append(
                f"Plan: {step.description}\n"
                f"{step.variable} = {step.tool}[{tool_input}]\n"
                f"Evidence: {state.evidence.get(step.variable) or 'N/A'}\n\n"
            )
        return "".join(blocks)

    def _build_result(self, state: ReWOOState, ctx: RunContext, *, error: Optional[str] = None, stopped: bool = False) -> ReWOOResult:
        return ReWOOResult(
            answer=state.answer,
            usage=ctx.usage,
            llm_calls=ctx.llm_calls,
            time_ms=ctx.elapsed_ms(),
            error=error,
            stopped=stopped,
            plan_text=state.plan_text,
            steps=list(state.steps),
            evidence=dict(state.evidence),
        )
