from __future__ import annotations

import json

import httpx
import pytest

import docchain
from docchain import mcp_server
from docchain.aggregate import aggregate
from docchain.document import AggregatedDocument, CrawlFailure, PageRecord

START = "https://docs.example.com/guide/intro"


def _tool(tool):
    # Newer fastmcp releases wrap decorated functions in a tool object.
    return getattr(tool, "fn", tool)


def _doc() -> AggregatedDocument:
    pages = [PageRecord(url=START, title="Intro", content_markup="Hello there.")]
    return aggregate(pages, start_url=START, title="guide")


@pytest.mark.asyncio
async def test_crawl_docs_forwards_request(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict = {}

    async def fake_crawl_docs_async(request, **kwargs):
        captured["request"] = request
        return _doc()

    monkeypatch.setattr(docchain, "crawl_docs_async", fake_crawl_docs_async)

    out = await _tool(mcp_server.crawl_docs)(url=START, max_pages=80, title="Saved")

    assert out == _doc().content
    assert captured["request"].max_pages == 50
    assert captured["request"].existing_title == "Saved"


@pytest.mark.asyncio
async def test_crawl_docs_json_output(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_crawl_docs_async(request, **kwargs):
        return _doc()

    monkeypatch.setattr(docchain, "crawl_docs_async", fake_crawl_docs_async)

    payload = json.loads(await _tool(mcp_server.crawl_docs)(url=START, output_format="JSON"))
    assert payload["title"] == "guide"
    assert payload["index"][0]["start_word"] == 0
    assert "crawled_at" in payload


@pytest.mark.asyncio
async def test_crawl_docs_index_output(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_crawl_docs_async(request, **kwargs):
        return _doc()

    monkeypatch.setattr(docchain, "crawl_docs_async", fake_crawl_docs_async)

    out = await _tool(mcp_server.crawl_docs)(url=START, output_format="index")
    assert out.startswith("# guide")
    assert "1. Intro" in out


@pytest.mark.asyncio
async def test_crawl_docs_empty_result(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_crawl_docs_async(request, **kwargs):
        return AggregatedDocument(
            url=START, title="guide", failures=[CrawlFailure(url=START, reason="HTTP 404")]
        )

    monkeypatch.setattr(docchain, "crawl_docs_async", fake_crawl_docs_async)

    out = await _tool(mcp_server.crawl_docs)(url=START)
    assert out.startswith("**No pages retrieved")
    assert "HTTP 404" in out


@pytest.mark.asyncio
async def test_crawl_docs_invalid_request() -> None:
    payload = json.loads(await _tool(mcp_server.crawl_docs)(url="docs/intro"))
    assert "start_url" in payload["error"]


@pytest.mark.asyncio
async def test_find_successors_tool(monkeypatch: pytest.MonkeyPatch, fake_site) -> None:
    site = fake_site(
        {
            START: '<html><body><main>Intro</main><a rel="next" href="setup">Next</a></body></html>',
        }
    )
    monkeypatch.setattr(docchain, "build_client", lambda settings: site.client())

    payload = json.loads(await _tool(mcp_server.find_successors)(url=START))
    assert payload == {"url": START, "successors": ["https://docs.example.com/guide/setup"]}


@pytest.mark.asyncio
async def test_find_successors_tool_follows_redirect(monkeypatch: pytest.MonkeyPatch, fake_site) -> None:
    moved = "https://docs.example.com/guide/v2/"
    site = fake_site(
        {
            START: (301, "", {"location": moved}),
            moved: '<html><body><main>Intro</main><a rel="next" href="setup/">Next</a></body></html>',
        }
    )
    monkeypatch.setattr(docchain, "build_client", lambda settings: site.client())

    payload = json.loads(await _tool(mcp_server.find_successors)(url=START))
    assert payload == {
        "url": START,
        "successors": ["https://docs.example.com/guide/v2/setup/"],
        "final_url": moved,
    }


@pytest.mark.asyncio
async def test_find_successors_tool_reports_failure(monkeypatch: pytest.MonkeyPatch, fake_site) -> None:
    site = fake_site({}, errors={START: httpx.ConnectError("refused")})
    monkeypatch.setattr(docchain, "build_client", lambda settings: site.client())

    payload = json.loads(await _tool(mcp_server.find_successors)(url=START))
    assert payload == {"url": START, "error": "refused"}
