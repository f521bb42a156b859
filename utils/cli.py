"""CLI utility functions for user interaction."""
from __future__ import annotations

import dataclasses
import json
import sys
from pathlib import Path
from typing import Dict, List, Mapping

from thinking_frameworks.models import Phase, ProgressEvent, StrategyResult
from thinking_frameworks.pricing import estimate_cost

EXIT_WORDS = {"bye", "quit", "exit", "q"}
_PREVIEW_CHARS = 120


def read_question(prompt: str = "🤔 Ask a question: ") -> str:
    """Read a question from stdin; EOF or an exit word raises KeyboardInterrupt."""
    print(prompt, end="", flush=True)
    line = sys.stdin.readline()
    if not line:  # EOF
        raise KeyboardInterrupt

    question = line.strip()
    if question.lower() in EXIT_WORDS:
        raise KeyboardInterrupt
    return question


def _preview(text: object, limit: int = _PREVIEW_CHARS) -> str:
    flat = " ".join(str(text).split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def format_progress(strategy: str, event: ProgressEvent) -> str:
    data = event.data
    if event.phase is Phase.PATH:
        detail = f"path {data.get('index', 0) + 1}: {_preview(data.get('content', ''))}"
    elif event.phase is Phase.EVIDENCE:
        detail = f"{data.get('variable')} = {_preview(data.get('result', ''))}"
    elif event.phase in (Phase.EXECUTE_START, Phase.EXECUTE_DONE):
        detail = _preview(data.get("result") or data.get("step", ""))
    elif event.phase is Phase.PLAN:
        detail = f"{len(data.get('steps', []))} step(s)"
    elif event.phase is Phase.REPLAN:
        detail = f"replan #{data.get('replans')}: {len(data.get('new_plan', []))} step(s) left"
    else:
        detail = _preview(data.get("content") or data.get("answer") or "")
    return f"  [{strategy}] {event.phase.value}: {detail}"


def comparison_rows(results: Mapping[str, StrategyResult], model: str) -> List[Dict[str, str]]:
    rows = []
    for result in results.values():
        rows.append({
            "Strategy": result.framework,
            "Answer": _preview(result.answer or f"⚠ {result.error or 'no answer'}", 60),
            "Tokens": str(result.usage.total_tokens),
            "Calls": str(result.llm_calls),
            "Time": f"{result.time_ms / 1000:.1f}s",
            "Est. cost": f"${estimate_cost(result.usage, model):.4f}",
        })
    return rows


def comparison_summary(results: Mapping[str, StrategyResult]) -> List[str]:
    """Fewest/most tokens and fastest strategy among runs that produced usage."""
    lines: List[str] = []
    measured = [r for r in results.values() if r.usage.total_tokens > 0]
    if len(measured) > 1:
        by_tokens = sorted(measured, key=lambda r: r.usage.total_tokens)
        cheapest, costliest = by_tokens[0], by_tokens[-1]
        if cheapest.framework != costliest.framework:
            lines.append(
                f"{cheapest.framework} used the fewest tokens ({cheapest.usage.total_tokens}), "
                f"while {costliest.framework} used the most ({costliest.usage.total_tokens})."
            )
    timed = [r for r in results.values() if r.time_ms > 0]
    if len(timed) > 1:
        fastest = min(timed, key=lambda r: r.time_ms)
        lines.append(f"{fastest.framework} was fastest at {fastest.time_ms / 1000:.1f}s.")
    return lines


def print_comparison(results: Mapping[str, StrategyResult], model: str) -> None:
    """Print each strategy's answer plus a side-by-side comparison table."""
    for result in results.values():
        status = "⏹" if result.stopped else ("✅" if result.answer and not result.error else "❌")
        print(f"\n{status} **{result.framework}:** {result.answer or '—'}")
        if result.error:
            print(f"   Error: {result.error}")

    rows = comparison_rows(results, model)
    if not rows:
        return
    headers = list(rows[0])
    widths = {h: max(len(h), *(len(row[h]) for row in rows)) for h in headers}
    print()
    print(" | ".join(h.ljust(widths[h]) for h in headers))
    print("-+-".join("-" * widths[h] for h in headers))
    for row in rows:
        print(" | ".join(row[h].ljust(widths[h]) for h in headers))
    for line in comparison_summary(results):
        print(f"• {line}")


def export_results(path: str | Path, question: str, model: str, results: Mapping[str, StrategyResult]) -> Path:
    """Write one comparison run as JSON and return the path written."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "question": question,
        "model": model,
        "results": {
            name: {**dataclasses.asdict(result), "estimated_cost_usd": estimate_cost(result.usage, model)}
            for name, result in results.items()
        },
    }
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return target
