from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from thinking_frameworks.context import RunContext
from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.models import Message, Phase, ReActResult, TrajectoryEntry
from thinking_frameworks.parsers import extract_answer, parse_action, parse_final_answer, parse_thought
from thinking_frameworks.prompts import load_prompts
from thinking_frameworks.reasoner.base import BaseReasoner, Emitter
from thinking_frameworks.tools.registry import ToolRegistry
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReActState:
    trajectory: List[TrajectoryEntry] = field(default_factory=list)
    turns: int = 0
    answer: Optional[str] = None
    truncated: bool = False
    error: Optional[str] = None


class ReActReasoner(BaseReasoner[ReActState]):
    """Thought / Action / PAUSE / Observation loop until the model replies ``Answer:``.

    A reply with neither an answer nor a well-formed action gets a corrective
    nudge and the loop continues. On the last allowed turn a requested action is
    not executed, so the trajectory never outgrows ``2 * max_turns - 1`` entries.
    """

    framework = "ReAct"

    DEFAULT_MAX_TURNS = 50
    MAX_TOKENS = 1024

    def __init__(self, *, llm: BaseLLM, tools: ToolRegistry, max_turns: int = DEFAULT_MAX_TURNS) -> None:
        super().__init__(llm=llm, tools=tools)
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.max_turns = max_turns
        self.prompts = load_prompts("reasoners/react", required_keys=["system", "nudge"])
        self.system_prompt = self.prompts["system"].format(tool_descriptions=tools.describe())

    def _new_state(self) -> ReActState:
        return ReActState()

    async def _solve(self, question: str, ctx: RunContext, state: ReActState, emit: Emitter) -> None:
        messages: List[Message] = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": question},
        ]

        for turn in range(1, self.max_turns + 1):
            reply = await ctx.complete(messages, temperature=0.0, max_tokens=self.MAX_TOKENS)
            state.turns = turn
            state.trajectory.append(TrajectoryEntry(role="assistant", content=reply, turn=turn))
            emit(Phase.LLM, turn=turn, content=reply, thought=parse_thought(reply))

            answer = parse_final_answer(reply)
            if answer is not None:
                state.answer = answer
                logger.info("react_answer", turns=turn)
                return

            action = parse_action(reply)
            messages.append({"role": "assistant", "content": reply})
            if action is None:
                logger.debug("react_nudge", turn=turn)
                messages.append({"role": "user", "content": self.prompts["nudge"]})
                continue
            if turn == self.max_turns:
                break

            emit(Phase.ACTION, turn=turn, tool=action.action_name, input=action.action_input,
                 content=f"{action.action_name}: {action.action_input}")
            observation = await self.tools.execute(action.action_name, action.action_input, ctx.credential)
            ctx.cancellation.raise_if_cancelled()

            state.trajectory.append(TrajectoryEntry(role="observation", content=observation, turn=turn))
            emit(Phase.OBSERVATION, turn=turn, content=observation)
            messages.append({"role": "user", "content": f"Observation: {observation}"})

        state.truncated = True
        state.error = (
            f"Exceeded maximum turns ({self.max_turns}). The agent did not converge on a final answer."
        )
        last_reply = next((e.content for e in reversed(state.trajectory) if e.role == "assistant"), "")
        state.answer = extract_answer(last_reply)
        logger.warning("react_truncated", max_turns=self.max_turns)

    def _build_result(self, state: ReActState, ctx: RunContext, *, error: Optional[str] = None, stopped: bool = False) -> ReActResult:
        return ReActResult(
            answer=state.answer,
            usage=ctx.usage,
            llm_calls=ctx.llm_calls,
            time_ms=ctx.elapsed_ms(),
            error=error or state.error,
            stopped=stopped,
            trajectory=list(state.trajectory),
            turns=state.turns,
            truncated=state.truncated,
        )
