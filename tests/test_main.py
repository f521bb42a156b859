import asyncio

import pytest

import main
from thinking_frameworks.models import RunOptions
from thinking_frameworks.orchestrator import Orchestrator, StrategyName, UnknownStrategyError
from thinking_frameworks.reasoner import ReActReasoner
from tests.conftest import ScriptedLLM, make_tools


def test_parse_args_defaults():
    args = main.parse_args([])
    assert args.question is None
    assert args.frameworks is None
    assert args.samples is None
    assert args.config.endswith("config.toml")


def test_parse_frameworks():
    assert main.parse_frameworks(None) is None
    assert main.parse_frameworks("cot, ReAct,,plan-execute") == [
        StrategyName.COT,
        StrategyName.REACT,
        StrategyName.PLAN_EXECUTE,
    ]
    with pytest.raises(UnknownStrategyError):
        main.parse_frameworks("cot,tot")


def test_samples_list_prints_and_exits(capsys):
    main.main(["--samples-list"])
    out = capsys.readouterr().out
    assert out.startswith("1. ")
    assert len(out.strip().splitlines()) == len(main.SAMPLE_QUESTIONS)


def test_ask_returns_results_keyed_by_strategy_value(capsys):
    llm = ScriptedLLM(["Answer: 4"])
    orchestrator = Orchestrator({StrategyName.REACT: ReActReasoner(llm=llm, tools=make_tools())})

    results = asyncio.run(main.ask(orchestrator, "2 + 2?", "sk-test", "gpt-4o"))

    assert list(results) == ["react"]
    assert results["react"].answer == "4"
    assert llm.calls[0]["model"] == "gpt-4o"
    assert llm.calls[0]["credential"] == "sk-test"
    assert "[ReAct] llm:" in capsys.readouterr().out
    assert RunOptions().model == "gpt-4o-mini"
