"""
Ollama Cloud web tools.

``web_search`` and ``web_fetch`` are thin wrappers over the
``/api/web_search`` and ``/api/web_fetch`` endpoints.  They hold no state
between calls; a non-2xx answer raises ``ToolHTTPError`` and the loop turns
it into an error payload for the model.

Dependencies: ``httpx``.
"""

from __future__ import annotations

import logging

import httpx

from thinkloop.errors import ToolHTTPError
from thinkloop.tools.base import Tool

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 5
MIN_RESULTS = 1
MAX_RESULTS = 10


class OllamaWebTool(Tool):
    """
    Shared plumbing for tools that POST to an Ollama Cloud endpoint.

    Parameters
    ----------
    base_url:
        Ollama Cloud base URL (e.g. ``"https://ollama.com"``).
    api_key:
        Bearer credential.
    timeout:
        HTTP request timeout in seconds.
    transport:
        Optional ``httpx`` transport, used by tests to stub the endpoint.
    """

    endpoint: str = ""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def _post(self, payload: dict) -> dict:
        url = f"{self._base_url}{self.endpoint}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            resp = await client.post(url, json=payload, headers=headers)

        if not resp.is_success:
            logger.error(
                "%s API error: status=%d body=%s",
                self.name,
                resp.status_code,
                resp.text[:500],
            )
            raise ToolHTTPError(self.name, resp.status_code, resp.text)

        return resp.json()


def clamp_max_results(value) -> int:
    """Clamp a model-supplied result count to 1..10 (default 5)."""
    if value is None:
        return DEFAULT_MAX_RESULTS
    try:
        n = int(value)
    except (TypeError, ValueError):
        return DEFAULT_MAX_RESULTS
    return min(max(n, MIN_RESULTS), MAX_RESULTS)


class WebSearchTool(OllamaWebTool):
    endpoint = "/api/web_search"

    @property
    def name(self) -> str:
        return "web_search"

    @property
    def description(self) -> str:
        return "Search the internet for current information and recent events"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query to find information about",
                },
                "max_results": {
                    "type": "number",
                    "description": "Maximum number of results to return (1-10, default 5)",
                    "default": DEFAULT_MAX_RESULTS,
                },
            },
            "required": ["query"],
        }

    async def execute(self, **kwargs) -> dict:
        query = kwargs.get("query", "")
        max_results = clamp_max_results(kwargs.get("max_results"))
        logger.info("web_search: query=%r max_results=%d", query, max_results)

        result = await self._post({"query": query, "max_results": max_results})
        logger.info("web_search: %d results", len(result.get("results") or []))
        return result


class WebFetchTool(OllamaWebTool):
    endpoint = "/api/web_fetch"

    @property
    def name(self) -> str:
        return "web_fetch"

    @property
    def description(self) -> str:
        return "Fetch and extract content from a specific URL"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "The URL to fetch content from",
                },
            },
            "required": ["url"],
        }

    async def execute(self, **kwargs) -> dict:
        url = kwargs.get("url", "")
        logger.info("web_fetch: url=%s", url)

        result = await self._post({"url": url})
        logger.info("web_fetch: %d chars", len(result.get("content") or ""))
        return result


def web_tools(
    base_url: str,
    api_key: str,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Tool]:
    """Both web tools bound to one endpoint and credential."""
    return [
        WebSearchTool(base_url, api_key, timeout=timeout, transport=transport),
        WebFetchTool(base_url, api_key, timeout=timeout, transport=transport),
    ]
