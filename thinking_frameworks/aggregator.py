"""Majority vote over the answers extracted from CoT reasoning paths.

Answers are normalised, grouped, merged when one is a whole-word substring of
another, and optionally canonicalised by one LLM call before the vote.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from thinking_frameworks.cancellation import OperationCancelledError
from thinking_frameworks.context import RunContext
from thinking_frameworks.prompts import load_prompts
from utils.logger import get_logger

logger = get_logger(__name__)

_ANSWER_IS_TAIL_RE = re.compile(r"\.?\s*the answer is\b.*$", re.IGNORECASE)
_LEADING_ARTICLE_RE = re.compile(r"^(the|a|an)\s+", re.IGNORECASE)
_EDGE_PUNCTUATION_RE = re.compile(r"^[\s.,;:!?\"'()]+|[\s.,;:!?\"'()]+$")
_WHITESPACE_RE = re.compile(r"\s+")
_CANONICAL_LINE_RE = re.compile(r"(\d+)\s*->\s*(.+)")


def normalize_answer(raw: str) -> str:
    s = str(raw).strip().lower()
    s = _ANSWER_IS_TAIL_RE.sub("", s)
    s = _LEADING_ARTICLE_RE.sub("", s)
    s = _EDGE_PUNCTUATION_RE.sub("", s)
    s = _WHITESPACE_RE.sub(" ", s)
    return s.strip()


def are_similar(a: str, b: str) -> bool:
    """Equal, or the shorter is a whole-word substring of the longer.

    Single-character answers only match exactly. Longer numbers still merge
    with numbers that contain them as a word ("12" with "12 apples").
    """
    if a == b:
        return True
    if len(a) < 2 or len(b) < 2:
        return False
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    return re.search(rf"(?:^|\b){re.escape(shorter)}(?:\b|$)", longer) is not None


@dataclass
class _VoteGroup:
    count: int = 0
    # lowercased original -> occurrences
    originals: Dict[str, int] = field(default_factory=dict)

    def add(self, original: str, times: int = 1) -> None:
        self.count += times
        self.originals[original] = self.originals.get(original, 0) + times

    def absorb(self, other: "_VoteGroup") -> None:
        for original, times in other.originals.items():
            self.add(original, times)

    def display_key(self) -> str:
        best, best_count = "", 0
        for original, times in self.originals.items():
            if times > best_count:
                best, best_count = original, times
        return best


@dataclass(frozen=True)
class VoteResult:
    answer: Optional[str]
    count: int
    distribution: Dict[str, int] = field(default_factory=dict)
    canonicalized: bool = False


class AnswerAggregator:
    """Votes on candidate answers; ``majority_vote`` never raises except on cancellation."""

    MAX_TOKENS = 300

    def __init__(self) -> None:
        self.prompts = load_prompts("aggregator", required_keys=["canonicalize"])

    async def majority_vote(self, answers: Iterable[Optional[str]], ctx: Optional[RunContext] = None) -> VoteResult:
        valid = [a for a in answers if a is not None]
        if not valid:
            return VoteResult(answer=None, count=0)

        # Display labels keep the first-seen casing of each lowercased original.
        labels: Dict[str, str] = {}
        entries: List[tuple[str, str]] = []
        for answer in valid:
            original = str(answer).strip().lower()
            labels.setdefault(original, str(answer).strip())
            entries.append((original, normalize_answer(answer)))

        by_normalized: Dict[str, _VoteGroup] = {}
        for original, normalized in entries:
            by_normalized.setdefault(normalized or original, _VoteGroup()).add(original)

        merged = self._merge_similar(by_normalized)

        if len(merged) > 1 and ctx is not None and ctx.credential:
            unique_originals = list(dict.fromkeys(original for original, _ in entries))
            try:
                mapping = await self._canonicalize(unique_originals, ctx)
            except OperationCancelledError:
                raise
            except Exception as exc:
                logger.warning("canonicalization_failed", error=str(exc), groups=len(merged))
            else:
                canonical: Dict[str, _VoteGroup] = {}
                for original, _ in entries:
                    canonical.setdefault(mapping.get(original, original), _VoteGroup()).add(original)
                return self._build_result(canonical, labels, canonicalized=True)

        return self._build_result(merged, labels)

    @staticmethod
    def _merge_similar(groups: Dict[str, _VoteGroup]) -> Dict[str, _VoteGroup]:
        # sorted() is stable, so equal counts keep first-seen order.
        ordered = sorted(groups, key=lambda key: groups[key].count, reverse=True)
        merged: Dict[str, _VoteGroup] = {}
        for key in ordered:
            target = next((canonical for canonical in merged if are_similar(key, canonical)), None)
            if target is None:
                merged[key] = _VoteGroup()
                target = key
            merged[target].absorb(groups[key])
        return merged

    async def _canonicalize(self, unique_originals: List[str], ctx: RunContext) -> Dict[str, str]:
        numbered = "\n".join(f'{i}. "{answer}"' for i, answer in enumerate(unique_originals, start=1))
        reply = await ctx.prompt(
            self.prompts["canonicalize"].format(answers=numbered),
            temperature=0.0,
            max_tokens=self.MAX_TOKENS,
        )

        mapping: Dict[str, str] = {}
        for line in reply.split("\n"):
            match = _CANONICAL_LINE_RE.search(line)
            if not match:
                continue
            index = int(match.group(1)) - 1
            if 0 <= index < len(unique_originals):
                mapping[unique_originals[index]] = match.group(2).strip().lower()
        logger.debug("answers_canonicalized", mapped=len(mapping), total=len(unique_originals))
        return mapping

    @staticmethod
    def _build_result(groups: Dict[str, _VoteGroup], labels: Dict[str, str], *, canonicalized: bool = False) -> VoteResult:
        best_label: Optional[str] = None
        best_count = 0
        distribution: Dict[str, int] = {}
        for group in groups.values():
            label = labels[group.display_key()]
            distribution[label] = group.count
            if group.count > best_count:
                best_label, best_count = label, group.count
        return VoteResult(answer=best_label, count=best_count, distribution=distribution, canonicalized=canonicalized)
