from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, NamedTuple, Optional, Tuple

from thinking_frameworks.context import RunContext
from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.models import Message, Phase, PlanExecuteResult
from thinking_frameworks.parsers import parse_action, parse_final_answer, parse_numbered_or_bulleted_steps
from thinking_frameworks.prompts import load_prompts
from thinking_frameworks.reasoner.base import BaseReasoner, Emitter
from thinking_frameworks.tools.registry import ToolRegistry
from utils.logger import get_logger

logger = get_logger(__name__)

NO_ANSWER_ERROR = "Plan-Execute did not produce a final answer within the allowed steps."
STEP_TURNS_EXCEEDED = "Step execution exceeded max turns."

_DONE_RE = re.compile(r"DONE:\s*(.*)", re.DOTALL)


class StepOutcome(NamedTuple):
    result: Optional[str]
    error: Optional[str] = None


@dataclass
class PlanExecuteState:
    plan_text: str = ""
    plan: Deque[str] = field(default_factory=deque)
    past_steps: List[Tuple[str, str]] = field(default_factory=list)
    replans: int = 0
    answer: Optional[str] = None


def _numbered(steps: List[str]) -> str:
    return "\n".join(f"{i}. {step}" for i, step in enumerate(steps, start=1))


def _is_step_error(result: Optional[str]) -> bool:
    return not result or result.startswith("[Error:")


class PlanExecuteReasoner(BaseReasoner[PlanExecuteState]):
    """Plan once, execute one step at a time, replan after every step.

    Each step runs in a short ReAct-style sub-loop sharing the ReAct action and
    answer grammar. The replanner either finishes with ``DONE: <answer>`` or
    returns a numbered list that replaces the remaining plan.
    """

    framework = "Plan-Execute"

    DEFAULT_MAX_REPLANS = 20
    DEFAULT_MAX_STEP_TURNS = 8
    MAX_TOKENS = 512

    def __init__(
        self,
        *,
        llm: BaseLLM,
        tools: ToolRegistry,
        max_replans: int = DEFAULT_MAX_REPLANS,
        max_step_turns: int = DEFAULT_MAX_STEP_TURNS,
    ) -> None:
        super().__init__(llm=llm, tools=tools)
        self.max_replans = max_replans
        self.max_step_turns = max_step_turns
        self.prompts = load_prompts(
            "reasoners/plan_execute",
            required_keys=["planner_system", "executor_system", "executor_task", "replanner_system", "replan"],
        )
        self.executor_system = self.prompts["executor_system"].format(tool_descriptions=tools.describe())

    def _new_state(self) -> PlanExecuteState:
        return PlanExecuteState()

    async def _solve(self, question: str, ctx: RunContext, state: PlanExecuteState, emit: Emitter) -> None:
        state.plan_text = await ctx.complete(
            [
                {"role": "system", "content": self.prompts["planner_system"]},
                {"role": "user", "content": question},
            ],
            temperature=0.0,
            max_tokens=self.MAX_TOKENS,
        )
        state.plan = deque(self._plan_or_raw(state.plan_text))
        emit(Phase.PLAN, plan_text=state.plan_text, steps=list(state.plan))

        while state.plan and state.replans <= self.max_replans:
            step = state.plan.popleft()
            emit(Phase.EXECUTE_START, step=step, step_index=len(state.past_steps))

            outcome = await self._execute_step(step, _numbered(list(state.plan)), ctx)
            step_output = f"[Error: {outcome.error}]" if outcome.error else outcome.result
            state.past_steps.append((step, step_output))
            emit(Phase.EXECUTE_DONE, step=step, result=step_output)

            reply = await self._replan(question, state, ctx)
            done = _DONE_RE.search(reply)
            if done:
                state.answer = done.group(1).strip()
                emit(Phase.DONE, answer=state.answer)
                break

            new_steps = parse_numbered_or_bulleted_steps(reply)
            if new_steps:
                state.plan = deque(new_steps)
                state.replans += 1
                logger.info("plan_updated", replans=state.replans, steps=len(new_steps))
                emit(Phase.REPLAN, new_plan=list(new_steps), replans=state.replans)
                continue

            last_result = state.past_steps[-1][1]
            state.answer = None if _is_step_error(last_result) else last_result
            logger.info("replan_unparseable", has_answer=state.answer is not None)
            emit(Phase.DONE, answer=state.answer)
            break

        if not state.answer:
            state.answer = next(
                (result for _, result in reversed(state.past_steps) if not _is_step_error(result)), None
            )

    @staticmethod
    def _plan_or_raw(text: str) -> List[str]:
        steps = parse_numbered_or_bulleted_steps(text)
        return steps or [text.strip()]

    async def _execute_step(self, step: str, remaining_plan: str, ctx: RunContext) -> StepOutcome:
        messages: List[Message] = [
            {"role": "system", "content": self.executor_system},
            {"role": "user", "content": self.prompts["executor_task"].format(plan=remaining_plan, step=step)},
        ]
        for _ in range(self.max_step_turns):
            reply = await ctx.complete(messages, temperature=0.0, max_tokens=self.MAX_TOKENS)

            answer = parse_final_answer(reply)
            if answer is not None:
                return StepOutcome(answer)

            action = parse_action(reply)
            if action is None:
                return StepOutcome(reply)

            observation = await self.tools.execute(action.action_name, action.action_input, ctx.credential)
            ctx.cancellation.raise_if_cancelled()
            messages.append({"role": "assistant", "content": reply})
            messages.append({"role": "user", "content": f"Observation: {observation}"})

        logger.warning("step_turns_exceeded", step=step, max_step_turns=self.max_step_turns)
        return StepOutcome(None, STEP_TURNS_EXCEEDED)

    async def _replan(self, question: str, state: PlanExecuteState, ctx: RunContext) -> str:
        past = "\n\n".join(f"Step: {step}\nResult: {result}" for step, result in state.past_steps)
        prompt = self.prompts["replan"].format(
            objective=question,
            plan=_numbered(self._plan_or_raw(state.plan_text)),
            past_steps=past,
        )
        return await ctx.complete(
            [
                {"role": "system", "content": self.prompts["replanner_system"]},
                {"role": "user", "content": prompt},
            ],
            temperature=0.0,
            max_tokens=self.MAX_TOKENS,
        )

    def _build_result(
        self,
        state: PlanExecuteState,
        ctx: RunContext,
        *,
        error: Optional[str] = None,
        stopped: bool = False,
    ) -> PlanExecuteResult:
        if error is None and not state.answer:
            error = NO_ANSWER_ERROR
        return PlanExecuteResult(
            answer=state.answer or None,
            usage=ctx.usage,
            llm_calls=ctx.llm_calls,
            time_ms=ctx.elapsed_ms(),
            error=error,
            stopped=stopped,
            plan_text=state.plan_text,
            past_steps=list(state.past_steps),
            replans=state.replans,
        )
