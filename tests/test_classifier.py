import asyncio

import pytest

from thinking_frameworks.cancellation import OperationCancelledError
from thinking_frameworks.classifier import QuestionClassifier, QuestionType, classify_heuristic
from thinking_frameworks.context import RunContext
from thinking_frameworks.models import RunOptions
from tests.conftest import CANCEL, ScriptedLLM


@pytest.mark.parametrize(
    "question",
    [
        "Plan a 3-day trip to Rome",
        "Explain quantum entanglement",
        "What are some good ways to save money?",
        "Any tips for learning piano?",
        "How can I improve my sleep?",
        "Weekend in Lisbon on a tight budget",
    ],
)
def test_heuristic_open_ended(question):
    assert classify_heuristic(question) is QuestionType.OPEN_ENDED


@pytest.mark.parametrize(
    "question",
    [
        "Tell me the population of Tokyo",
        "What is the capital of France?",
        "How many legs does a spider have?",
        "Is 17 a prime number?",
        "Calculate the area of a circle with radius 2",
        "  WHO WAS the first person on the moon  ",
        "Roger has 5 balls and buys 2 * 3 more",
    ],
)
def test_heuristic_factual(question):
    assert classify_heuristic(question) is QuestionType.FACTUAL


def test_heuristic_inconclusive():
    assert classify_heuristic("Capital of Australia") is None


def _ctx(llm, credential="sk-test"):
    return RunContext(llm, RunOptions(credential=credential))


def test_llm_tier_used_only_when_heuristic_inconclusive():
    llm = ScriptedLLM(["open-ended"])
    ctx = _ctx(llm)

    assert asyncio.run(QuestionClassifier().classify("Capital of Australia", ctx)) is QuestionType.OPEN_ENDED
    assert ctx.llm_calls == 1
    assert llm.calls[0]["temperature"] == 0.0
    assert llm.calls[0]["max_tokens"] == 10
    assert "Capital of Australia" in llm.last_user_content()

    ctx = _ctx(llm)
    assert asyncio.run(QuestionClassifier().classify("What is 2 + 2?", ctx)) is QuestionType.FACTUAL
    assert ctx.llm_calls == 0


def test_llm_reply_without_open_is_factual():
    ctx = _ctx(ScriptedLLM(["Factual"]))
    assert asyncio.run(QuestionClassifier().classify("Capital of Australia", ctx)) is QuestionType.FACTUAL


def test_no_credential_defaults_to_factual_without_calling():
    llm = ScriptedLLM(["open-ended"])
    ctx = _ctx(llm, credential=None)

    assert asyncio.run(QuestionClassifier().classify("Capital of Australia", ctx)) is QuestionType.FACTUAL
    assert llm.calls == []


def test_llm_failure_defaults_to_factual():
    ctx = _ctx(ScriptedLLM([RuntimeError("boom")]))
    assert asyncio.run(QuestionClassifier().classify("Capital of Australia", ctx)) is QuestionType.FACTUAL
    assert ctx.llm_calls == 0


def test_cancellation_propagates():
    ctx = _ctx(ScriptedLLM([CANCEL]))
    with pytest.raises(OperationCancelledError):
        asyncio.run(QuestionClassifier().classify("Capital of Australia", ctx))
