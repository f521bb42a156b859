"""Regex parsers for extracting structured data from free-form LLM output.

Each parser targets one strategy's reply format. All of them are pure: they
return ``None`` (or an empty list) when nothing matches and never raise.
"""
from __future__ import annotations

import re
from typing import List, NamedTuple, Optional

from thinking_frameworks.models import PlanStep

# extract_answer, in priority order
_ANSWER_IS_RE = re.compile(r"the answer is\s+(.+?)\.?\s*$", re.IGNORECASE | re.MULTILINE)
_HASH_RE = re.compile(r"####\s*(.+)")
_CONCLUSION_RE = re.compile(
    r"\b(?:therefore|thus|so|hence),?\s+(?:the answer is\s+)?(.+?)\.?\s*$", re.IGNORECASE | re.MULTILINE
)
_ANSWER_LABEL_RE = re.compile(r"(?:final\s+)?answer:\s*(.+?)\.?\s*$", re.IGNORECASE | re.MULTILINE)
_REPEATED_ANSWER_RE = re.compile(r"\.?\s*the answer is\s+.*$", re.IGNORECASE)
_TRAILING_PERIODS_RE = re.compile(r"\.+$")

# ReAct grammar
_ACTION_RE = re.compile(r"^Action:\s*(\w+):\s*(.*?)(?=\n[ \t]*PAUSE|\Z)", re.MULTILINE | re.DOTALL)
_FINAL_ANSWER_RE = re.compile(r"Answer:\s*(.*)", re.DOTALL)
_THOUGHT_RE = re.compile(r"Thought:\s*(.+)")

# ReWOO grammar
_STRICT_PLAN_RE = re.compile(r"Plan:\s*(.+?)\s*(#E\d+)\s*=\s*(\w+)\s*\[([^\]]*)\]")
_LOOSE_PLAN_RE = re.compile(r"(#E\d+)\s*=\s*(\w+)\s*\[([^\]]*)\]")
_DESCRIPTION_MARKER_RE = re.compile(r"^(?:Plan:|Step\s*\d+[.):]*)\s*", re.IGNORECASE)

# Plan-Execute grammar
_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s*(.+)")
_BULLET_RE = re.compile(r"^\s*[-*]\s+(.+)")


class ParsedAction(NamedTuple):
    action_name: str
    action_input: str


def extract_answer(text: Optional[str]) -> Optional[str]:
    """Pull the final answer out of a chain-of-thought reasoning path.

    Tries "the answer is X", then "#### X", then a trailing
    "therefore/thus/so/hence X", then "(final) answer: X". Repeated
    "the answer is ..." fragments and trailing periods are removed afterwards.
    """
    if not text:
        return None

    answer: Optional[str] = None

    match = _ANSWER_IS_RE.search(text)
    if match:
        answer = match.group(1).replace(",", "").strip()

    if not answer:
        match = _HASH_RE.search(text)
        if match:
            answer = match.group(1).strip()

    if not answer:
        match = _CONCLUSION_RE.search(text)
        if match:
            answer = match.group(1).strip()

    if not answer:
        match = _ANSWER_LABEL_RE.search(text)
        if match:
            answer = match.group(1).strip()

    if not answer:
        return None

    answer = _REPEATED_ANSWER_RE.sub("", answer).strip()
    answer = _TRAILING_PERIODS_RE.sub("", answer).strip()
    return answer or None


def parse_action(text: Optional[str]) -> Optional[ParsedAction]:
    """Parse ``Action: <tool>: <input>``; the input runs until a PAUSE line or the end."""
    if not text:
        return None
    match = _ACTION_RE.search(text)
    if not match:
        return None
    return ParsedAction(action_name=match.group(1).strip(), action_input=match.group(2).strip())


def parse_final_answer(text: Optional[str]) -> Optional[str]:
    """Everything after ``Answer:``; callers check this before ``parse_action``."""
    if not text:
        return None
    match = _FINAL_ANSWER_RE.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def parse_thought(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = _THOUGHT_RE.search(text)
    return match.group(1).strip() if match else None


def parse_plan(text: Optional[str]) -> List[PlanStep]:
    """Parse a ReWOO plan into ordered steps.

    Strict form: ``Plan: <description> #E<n> = <tool>[<input>]``. When nothing
    matches, bare ``#E<n> = <tool>[<input>]`` assignments are accepted and the
    description is taken from the text before them (or the word "Step").
    """
    if not text:
        return []

    steps = [
        PlanStep(description=m.group(1).strip(), variable=m.group(2), tool=m.group(3), tool_input=m.group(4))
        for m in _STRICT_PLAN_RE.finditer(text)
    ]
    if steps:
        return steps

    for m in _LOOSE_PLAN_RE.finditer(text):
        steps.append(PlanStep(
            description=_loose_description(text[:m.start()]),
            variable=m.group(1),
            tool=m.group(2),
            tool_input=m.group(3),
        ))
    return steps


def _loose_description(before: str) -> str:
    lines = before.split("\n")
    # Text on the same line as the assignment wins over earlier lines.
    candidate = lines[-1].strip()
    if not candidate:
        previous = next((line.strip() for line in reversed(lines[:-1]) if line.strip()), "")
        candidate = "" if _LOOSE_PLAN_RE.search(previous) else previous
    return _DESCRIPTION_MARKER_RE.sub("", candidate).strip() or "Step"


def parse_numbered_or_bulleted_steps(text: Optional[str]) -> List[str]:
    """Numbered lines ("1. x" / "1) x") first, then bullets ("- x" / "* x"); else []."""
    if not text:
        return []
    lines = text.split("\n")

    numbered = [m.group(1).strip() for m in map(_NUMBERED_RE.match, lines) if m]
    if numbered:
        return numbered

    return [m.group(1).strip() for m in map(_BULLET_RE.match, lines) if m]
