"""Chain-of-Thought with Self-Consistency.

Sample N reasoning paths concurrently, classify the question, then either
majority-vote the extracted answers (factual) or synthesise one answer from
all paths (open-ended).
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from thinking_frameworks.aggregator import AnswerAggregator
from thinking_frameworks.classifier import QuestionClassifier, QuestionType
from thinking_frameworks.context import RunContext
from thinking_frameworks.llm.base_llm import BaseLLM
from thinking_frameworks.models import CoTResult, Message, Phase
from thinking_frameworks.parsers import extract_answer
from thinking_frameworks.prompts import load_prompts
from thinking_frameworks.reasoner.base import BaseReasoner, Emitter
from thinking_frameworks.tools.registry import ToolRegistry
from utils.logger import get_logger

logger = get_logger(__name__)

EXTRACTION_FAILED = "[Extraction failed — see reasoning paths]"
MODES = ("few-shot", "zero-shot")


@dataclass
class CoTState:
    paths: Dict[int, str] = field(default_factory=dict)
    question_type: Optional[QuestionType] = None
    answers: List[Optional[str]] = field(default_factory=list)
    vote_counts: Dict[str, int] = field(default_factory=dict)
    synthesized_answer: Optional[str] = None
    final_answer: Optional[str] = None
    confidence: Optional[float] = None
    extraction_failures: int = 0


class CoTReasoner(BaseReasoner[CoTState]):
    framework = "CoT"

    DEFAULT_SAMPLES = 5
    DEFAULT_TEMPERATURE = 0.7
    SAMPLE_MAX_TOKENS = 512
    SYNTHESIS_MAX_TOKENS = 1500

    def __init__(
        self,
        *,
        llm: BaseLLM,
        tools: ToolRegistry,
        n_samples: int = DEFAULT_SAMPLES,
        temperature: float = DEFAULT_TEMPERATURE,
        mode: str = "few-shot",
        classifier: Optional[QuestionClassifier] = None,
        aggregator: Optional[AnswerAggregator] = None,
    ) -> None:
        super().__init__(llm=llm, tools=tools)
        if n_samples < 1:
            raise ValueError("n_samples must be at least 1")
        if mode not in MODES:
            raise ValueError(f"Unknown CoT mode {mode!r}; expected one of {', '.join(MODES)}")
        self.n_samples = n_samples
        self.temperature = temperature
        self.mode = mode
        self.classifier = classifier or QuestionClassifier()
        self.aggregator = aggregator or AnswerAggregator()
        self.prompts = load_prompts(
            "reasoners/cot", required_keys=["system", "few_shot_exemplars", "question", "synthesize"]
        )

    def build_messages(self, question: str) -> List[Message]:
        prompt = self.prompts["question"].format(question=question)
        if self.mode == "few-shot":
            prompt = f"{self.prompts['few_shot_exemplars']}\n\n{prompt}"
        return [
            {"role": "system", "content": self.prompts["system"]},
            {"role": "user", "content": prompt},
        ]

    def _new_state(self) -> CoTState:
        return CoTState()

    async def _solve(self, question: str, ctx: RunContext, state: CoTState, emit: Emitter) -> None:
        await self._sample_paths(self.build_messages(question), ctx, state, emit)
        paths = [state.paths[i] for i in range(self.n_samples)]

        state.question_type = await self.classifier.classify(question, ctx)

        if state.question_type is QuestionType.OPEN_ENDED:
            state.answers = [None] * len(paths)
            state.synthesized_answer = await self._synthesize(question, paths, ctx)
            state.final_answer = state.synthesized_answer
            return

        state.answers = [extract_answer(path) for path in paths]
        state.extraction_failures = sum(1 for answer in state.answers if answer is None)
        vote = await self.aggregator.majority_vote(state.answers, ctx)
        state.vote_counts = dict(vote.distribution)

        if state.extraction_failures == len(paths):
            logger.warning("cot_extraction_failed", samples=len(paths))
            state.final_answer = EXTRACTION_FAILED
            state.confidence = 0.0
        else:
            state.final_answer = vote.answer
            state.confidence = vote.count / self.n_samples

    async def _sample_paths(self, messages: List[Message], ctx: RunContext, state: CoTState, emit: Emitter) -> None:
        async def sample(index: int) -> tuple[int, str]:
            text = await ctx.complete(messages, temperature=self.temperature, max_tokens=self.SAMPLE_MAX_TOKENS)
            return index, text

        tasks = [asyncio.create_task(sample(i)) for i in range(self.n_samples)]
        try:
            for next_done in asyncio.as_completed(tasks):
                index, text = await next_done
                state.paths[index] = text
                emit(Phase.PATH, index=index, content=text)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            # Collect sibling outcomes so none is left unretrieved.
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _synthesize(self, question: str, paths: List[str], ctx: RunContext) -> str:
        summaries = "\n\n".join(f"--- Path {i} ---\n{path}" for i, path in enumerate(paths, start=1))
        prompt = self.prompts["synthesize"].format(question=question, paths=summaries)
        return await ctx.prompt(prompt, temperature=0.0, max_tokens=self.SYNTHESIS_MAX_TOKENS)

    def _build_result(self, state: CoTState, ctx: RunContext, *, error: Optional[str] = None, stopped: bool = False) -> CoTResult:
        return CoTResult(
            answer=state.final_answer,
            usage=ctx.usage,
            llm_calls=ctx.llm_calls,
            time_ms=ctx.elapsed_ms(),
            error=error,
            stopped=stopped,
            question_type=state.question_type.value if state.question_type else None,
            paths=[state.paths[i] for i in sorted(state.paths)],
            answers=list(state.answers),
            vote_counts=dict(state.vote_counts),
            synthesized_answer=state.synthesized_answer,
            confidence=state.confidence,
            extraction_failures=state.extraction_failures,
        )
