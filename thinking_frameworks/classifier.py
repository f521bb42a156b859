"""Two-tier question classifier: regex heuristics first, one small LLM call second.

CoT uses the classification to choose between a majority vote (factual) and a
synthesis of all sampled paths (open-ended).
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from thinking_frameworks.cancellation import OperationCancelledError
from thinking_frameworks.context import RunContext
from thinking_frameworks.prompts import load_prompts
from utils.logger import get_logger

logger = get_logger(__name__)


class QuestionType(str, Enum):
    FACTUAL = "factual"
    OPEN_ENDED = "open-ended"


_IMPERATIVE_RE = re.compile(
    r"^(plan|design|create|write|draft|compose|build|develop|outline|suggest|recommend|describe|explain|"
    r"compare|analyze|evaluate|propose|brainstorm|generate|list|organize|prepare|arrange|schedule|help|"
    r"give|tell|show|make|provide)\b"
)
_FACTUAL_REQUEST_RE = re.compile(
    r"^(give|tell|show|provide)\b.*\b(number|count|name|date|year|capital|population|answer|result|value|"
    r"price|cost of)\b"
)
_OPEN_KEYWORDS_RE = re.compile(
    r"\b(plan|itinerary|budget plan|trip plan|roadmap|strategy|strategies|guide|tutorial|advice|tips|ideas|"
    r"suggestions|recommendations|ways to|steps to|how to|pros and cons|advantages|disadvantages|"
    r"opportunities|checklist|schedule|agenda|recipe|workout|routine|curriculum|syllabus)\b"
)
_HOW_CAN_RE = re.compile(r"\bhow (?:can|do|should|would|could|to)\b")
_WHAT_ARE_BEST_RE = re.compile(
    r"\bwhat (?:are|would be) (?:the |some |)(?:best|top|good|great|popular|common|effective|important|"
    r"key|main|major)\b"
)
_BUDGET_RE = re.compile(r"(?:under|within|on a|for a|in a)\s+(?:\w+\s+)?budget\b")
_DIRECT_FACT_RE = re.compile(
    r"^(what is|what was|what's|who is|who was|who's|when did|when was|when is|where is|where was|where did)\b"
)
_QUANTITY_RE = re.compile(r"^how (many|much|old|tall|long|far|fast|heavy|deep|wide)\b")
_ARITHMETIC_RE = re.compile(r"\d+\s*[+\-*/^]\s*\d+")
_CALCULATE_RE = re.compile(r"^(calculate|compute|solve|find the value)\b")
_YES_NO_RE = re.compile(r"^(true or false|is it true|did|does|is|was|are|were)\b")

_OPEN_ENDED_CHECKS = (_OPEN_KEYWORDS_RE, _HOW_CAN_RE, _WHAT_ARE_BEST_RE, _BUDGET_RE)
_FACTUAL_CHECKS = (_DIRECT_FACT_RE, _QUANTITY_RE, _ARITHMETIC_RE, _CALCULATE_RE, _YES_NO_RE)


def classify_heuristic(question: str) -> Optional[QuestionType]:
    """Classify obvious cases with regexes; ``None`` means inconclusive."""
    q = question.lower().strip()

    if _IMPERATIVE_RE.search(q):
        if _FACTUAL_REQUEST_RE.search(q):
            return QuestionType.FACTUAL
        return QuestionType.OPEN_ENDED

    if any(check.search(q) for check in _OPEN_ENDED_CHECKS):
        return QuestionType.OPEN_ENDED
    if any(check.search(q) for check in _FACTUAL_CHECKS):
        return QuestionType.FACTUAL
    return None


class QuestionClassifier:
    """Heuristic tier, then one LLM call, then a factual default.

    The LLM call goes through the run's ``RunContext`` so its usage counts
    towards the run. Only cancellation propagates; every other failure falls
    back to ``QuestionType.FACTUAL``.
    """

    MAX_TOKENS = 10

    def __init__(self) -> None:
        self.prompts = load_prompts("classifier", required_keys=["classify"])

    async def classify(self, question: str, ctx: RunContext) -> QuestionType:
        heuristic = classify_heuristic(question)
        if heuristic is not None:
            logger.debug("question_classified", tier="heuristic", question_type=heuristic.value)
            return heuristic

        if not ctx.credential:
            logger.warning("classifier_default_factual", reason="no_credential")
            return QuestionType.FACTUAL

        prompt = self.prompts["classify"].format(question=question)
        try:
            reply = await ctx.prompt(prompt, temperature=0.0, max_tokens=self.MAX_TOKENS)
        except OperationCancelledError:
            raise
        except Exception as exc:
            logger.warning("classifier_default_factual", reason="llm_failed", error=str(exc))
            return QuestionType.FACTUAL

        question_type = QuestionType.OPEN_ENDED if "open" in reply.strip().lower() else QuestionType.FACTUAL
        logger.debug("question_classified", tier="llm", question_type=question_type.value, reply=reply)
        return question_type
