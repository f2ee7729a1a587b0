"""Tests for the web_search / web_fetch tools."""

from __future__ import annotations

import json

import httpx
import pytest

from thinkloop.errors import ToolHTTPError
from thinkloop.tools.web import WebFetchTool, WebSearchTool, clamp_max_results, web_tools


def recording_transport(status: int = 200, payload: dict | None = None):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if status >= 400:
            return httpx.Response(status, text="upstream said no")
        return httpx.Response(status, json=payload or {})

    return httpx.MockTransport(handler), seen


class TestClampMaxResults:
    @pytest.mark.parametrize(
        "value,expected",
        [(None, 5), (0, 1), (-3, 1), (1, 1), (7, 7), (10, 10), (50, 10), (3.9, 3), ("x", 5)],
    )
    def test_clamp(self, value, expected):
        assert clamp_max_results(value) == expected


class TestWebSearch:
    async def test_posts_query(self):
        transport, seen = recording_transport(payload={"results": [{"title": "t"}]})
        tool = WebSearchTool("https://ollama.test/", "key", transport=transport)

        result = await tool.execute(query="weather X", max_results=25)

        assert result == {"results": [{"title": "t"}]}
        req = seen[0]
        assert str(req.url) == "https://ollama.test/api/web_search"
        assert req.headers["authorization"] == "Bearer key"
        assert json.loads(req.content) == {"query": "weather X", "max_results": 10}

    async def test_default_max_results(self):
        transport, seen = recording_transport(payload={"results": []})
        await WebSearchTool("https://ollama.test", "k", transport=transport).execute(query="q")
        assert json.loads(seen[0].content)["max_results"] == 5

    async def test_error_status_raises(self):
        transport, _ = recording_transport(status=503)
        tool = WebSearchTool("https://ollama.test", "k", transport=transport)
        with pytest.raises(ToolHTTPError) as exc_info:
            await tool.execute(query="q")
        assert exc_info.value.status_code == 503
        assert "upstream said no" in str(exc_info.value)

    def test_schema(self):
        schema = WebSearchTool("u", "k").to_schema()
        assert schema["type"] == "function"
        fn = schema["function"]
        assert fn["name"] == "web_search"
        assert fn["parameters"]["required"] == ["query"]
        assert fn["parameters"]["properties"]["max_results"]["default"] == 5


class TestWebFetch:
    async def test_posts_url(self):
        transport, seen = recording_transport(payload={"title": "T", "content": "body"})
        tool = WebFetchTool("https://ollama.test", "k", transport=transport)

        result = await tool.execute(url="https://example.com")

        assert result["content"] == "body"
        assert str(seen[0].url) == "https://ollama.test/api/web_fetch"
        assert json.loads(seen[0].content) == {"url": "https://example.com"}

    async def test_error_status_raises(self):
        transport, _ = recording_transport(status=404)
        with pytest.raises(ToolHTTPError):
            await WebFetchTool("https://ollama.test", "k", transport=transport).execute(url="u")


def test_web_tools_factory():
    names = [t.name for t in web_tools("https://ollama.test", "k")]
    assert names == ["web_search", "web_fetch"]
