import io
import json

import pytest

from thinking_frameworks.models import CoTResult, Phase, ProgressEvent, ReActResult, StrategyResult, Usage
from utils.cli import comparison_rows, comparison_summary, export_results, format_progress, print_comparison, read_question


@pytest.fixture
def results():
    return {
        "cot": CoTResult(answer="42", usage=Usage(800, 200, 1000), llm_calls=5, time_ms=2400, confidence=0.8),
        "react": ReActResult(answer="42", usage=Usage(300, 100, 400), llm_calls=2, time_ms=1200),
        "rewoo": StrategyResult(framework="ReWOO", error="No completion returned from API", time_ms=100),
    }


class TestReadQuestion:
    def test_returns_stripped_line(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("  What is 2 + 2?  \n"))
        assert read_question() == "What is 2 + 2?"

    @pytest.mark.parametrize("line", ["bye\n", "QUIT\n", "exit\n", "q\n", ""])
    def test_exit_words_and_eof(self, monkeypatch, line):
        monkeypatch.setattr("sys.stdin", io.StringIO(line))
        with pytest.raises(KeyboardInterrupt):
            read_question()


def test_format_progress_lines():
    path = format_progress("CoT", ProgressEvent(Phase.PATH, {"index": 0, "content": "line one\nline two"}))
    assert path == "  [CoT] path: path 1: line one line two"

    evidence = format_progress("ReWOO", ProgressEvent(Phase.EVIDENCE, {"variable": "#E1", "result": "Paris"}))
    assert evidence == "  [ReWOO] evidence: #E1 = Paris"

    replan = format_progress("Plan-Execute", ProgressEvent(Phase.REPLAN, {"new_plan": ["a", "b"], "replans": 1}))
    assert replan == "  [Plan-Execute] replan: replan #1: 2 step(s) left"

    long_line = format_progress("ReAct", ProgressEvent(Phase.LLM, {"content": "x" * 500}))
    assert long_line.endswith("...")


def test_comparison_rows(results):
    rows = comparison_rows(results, "gpt-4o-mini")

    assert [row["Strategy"] for row in rows] == ["CoT", "ReAct", "ReWOO"]
    assert rows[0]["Tokens"] == "1000"
    assert rows[0]["Calls"] == "5"
    assert rows[0]["Time"] == "2.4s"
    assert rows[0]["Est. cost"].startswith("$")
    assert "No completion returned from API" in rows[2]["Answer"]


def test_comparison_summary(results):
    assert comparison_summary(results) == [
        "ReAct used the fewest tokens (400), while CoT used the most (1000).",
        "ReWOO was fastest at 0.1s.",
    ]


def test_comparison_summary_needs_two_measured_runs():
    only = {"react": ReActResult(answer="x", usage=Usage(1, 1, 2), time_ms=10)}
    assert comparison_summary(only) == []


def test_print_comparison_reports_errors(results, capsys):
    print_comparison(results, "gpt-4o-mini")
    out = capsys.readouterr().out

    assert "**CoT:** 42" in out
    assert "Error: No completion returned from API" in out
    assert "Strategy" in out and "Est. cost" in out


def test_export_results(results, tmp_path):
    path = export_results(tmp_path / "out" / "run.json", "What is 6 * 7?", "gpt-4o-mini", results)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["question"] == "What is 6 * 7?"
    assert payload["model"] == "gpt-4o-mini"
    assert set(payload["results"]) == {"cot", "react", "rewoo"}
    assert payload["results"]["cot"]["confidence"] == 0.8
    assert payload["results"]["cot"]["usage"]["total_tokens"] == 1000
    assert payload["results"]["rewoo"]["error"] == "No completion returned from API"
    assert payload["results"]["react"]["estimated_cost_usd"] > 0
