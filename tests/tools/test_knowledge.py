import asyncio

import httpx

from thinking_frameworks.tools.knowledge import KnowledgeLookupTool


def _transport(search_results, extract=None, fail_summary=False):
    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if params.get("list") == "search":
            return httpx.Response(200, json={"query": {"search": search_results}})
        if fail_summary:
            return httpx.Response(500)
        return httpx.Response(200, json={"query": {"pages": {"1": {"extract": extract}}}})

    return httpx.MockTransport(handler)


def test_lookup_prepends_summary_and_strips_markup():
    results = [
        {"title": "Paris", "snippet": '<span class="searchmatch">Paris</span> is the capital &amp; largest city'},
        {"title": "Paris (mythology)", "snippet": "A Trojan prince"},
    ]
    extract = "Paris is the capital and most populous city of France. " * 30
    tool = KnowledgeLookupTool(transport=_transport(results, extract))

    text = asyncio.run(tool.execute("capital of France"))

    assert text.startswith('Summary of "Paris":\n')
    assert "Paris is the capital & largest city" in text
    assert "<span" not in text
    summary_part = text.split("\n\n---\n")[0]
    assert len(summary_part) <= len('Summary of "Paris":\n') + 800


def test_lookup_without_summary_returns_snippets_only():
    results = [{"title": "X", "snippet": "first"}, {"title": "Y", "snippet": "second"}]
    tool = KnowledgeLookupTool(transport=_transport(results, extract="short"))

    assert asyncio.run(tool.execute("x")) == "first\n\nsecond"


def test_lookup_summary_failure_keeps_snippets():
    results = [{"title": "X", "snippet": "only snippet"}]
    tool = KnowledgeLookupTool(transport=_transport(results, fail_summary=True))

    assert asyncio.run(tool.execute("x")) == "only snippet"


def test_lookup_no_results():
    tool = KnowledgeLookupTool(transport=_transport([]))
    assert asyncio.run(tool.execute("zzzz")) == "No results found."


def test_lookup_network_failure_returns_error_string():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    tool = KnowledgeLookupTool(transport=httpx.MockTransport(handler))
    result = asyncio.run(tool.execute("x"))
    assert result.startswith("Error: ")
