import asyncio

from thinking_frameworks.context import RunContext
from thinking_frameworks.models import RunOptions, Usage
from tests.conftest import ScriptedLLM


def test_context_records_usage_per_response():
    llm = ScriptedLLM(["a", "b"], usage=Usage(prompt_tokens=3, completion_tokens=2, total_tokens=5))
    ctx = RunContext(llm, RunOptions(credential="sk-test", model="gpt-4o"))

    async def scenario():
        await ctx.complete([{"role": "user", "content": "x"}], temperature=0.3, max_tokens=50)
        return await ctx.prompt("y")

    assert asyncio.run(scenario()) == "b"
    assert ctx.llm_calls == 2
    assert ctx.usage == Usage(prompt_tokens=6, completion_tokens=4, total_tokens=10)
    assert llm.calls[0]["credential"] == "sk-test"
    assert llm.calls[0]["model"] == "gpt-4o"
    assert llm.calls[0]["temperature"] == 0.3
    assert llm.calls[1]["messages"] == [{"role": "user", "content": "y"}]
    assert ctx.elapsed_ms() >= 0


def test_usage_total_of_nothing_is_zero():
    assert Usage.total([]) == Usage()
