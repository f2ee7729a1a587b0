"""
End-to-end exchange against a stubbed Ollama Cloud.

The chat endpoint and the web-search endpoint share one
``httpx.MockTransport`` so the full path runs: request body, NDJSON
decoding, classification, tool assembly, tool HTTP call and resubmission.
"""

from __future__ import annotations

import json

import httpx
import pytest

from thinkloop.client import build_orchestrator, run_exchange
from thinkloop.config import ThinkloopConfig
from thinkloop.errors import TransportError
from thinkloop.llm.types import Message


def ndjson(*objs: dict) -> bytes:
    return b"".join(json.dumps(o).encode() + b"\n" for o in objs)


class FakeOllamaCloud:
    """Routes requests by path and records what was sent."""

    def __init__(self, chat_bodies: list[bytes]) -> None:
        self._chat_bodies = list(chat_bodies)
        self.chat_requests: list[dict] = []
        self.search_requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        if request.url.path == "/api/chat":
            self.chat_requests.append(payload)
            return httpx.Response(200, content=self._chat_bodies.pop(0))
        if request.url.path == "/api/web_search":
            self.search_requests.append(payload)
            return httpx.Response(
                200,
                json={
                    "results": [
                        {
                            "title": "Weather in X",
                            "url": "https://weather.example/x",
                            "content": "Sunny, 21C",
                        }
                    ]
                },
            )
        return httpx.Response(404, text="not found")


WEATHER_TURNS = [
    ndjson(
        {"message": {"role": "assistant", "content": "", "thinking": "I should look this up."}},
        {
            "message": {
                "role": "assistant",
                "content": "",
                "tool_calls": [
                    {"function": {"name": "web_search", "arguments": {"query": "weather X"}}}
                ],
            }
        },
        {"done": True, "done_reason": "stop", "prompt_eval_count": 50, "eval_count": 12},
    ),
    ndjson(
        {"message": {"role": "assistant", "content": "It is sunny "}},
        {"message": {"role": "assistant", "content": "and 21C in X."}},
        {"done": True, "done_reason": "stop", "prompt_eval_count": 90, "eval_count": 8},
    ),
]


async def test_weather_question_uses_web_search():
    cloud = FakeOllamaCloud(WEATHER_TURNS)
    updates: list[str] = []

    result = await run_exchange(
        [Message.system("You are helpful."), Message.user("What's the weather in X?")],
        base_url="https://ollama.test",
        api_key="secret",
        model="gpt-oss:120b",
        reasoning_level="medium",
        tools_enabled=True,
        on_update=updates.append,
        transport=httpx.MockTransport(cloud),
    )

    assert cloud.search_requests == [{"query": "weather X", "max_results": 5}]
    assert len(cloud.chat_requests) == 2

    first = cloud.chat_requests[0]
    assert first["think"] == "medium"
    assert sorted(t["function"]["name"] for t in first["tools"]) == ["web_fetch", "web_search"]

    followup = cloud.chat_requests[1]["messages"]
    assert followup[-2]["role"] == "assistant"
    assert followup[-2]["tool_calls"][0]["function"] == {
        "name": "web_search",
        "arguments": {"query": "weather X"},
    }
    assert followup[-1]["role"] == "tool"
    assert followup[-1]["tool_call_id"] == "web_search"
    assert followup[-1]["name"] == "web_search"
    assert "Sunny, 21C" in followup[-1]["content"]

    assert result.tool_rounds == 1
    assert result.text == "\n<think>I should look this up.</think>It is sunny and 21C in X."
    assert result.token_usage.prompt_tokens == 90
    assert updates[-1] == result.text


async def test_chat_error_surfaces():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="model overloaded")

    with pytest.raises(TransportError, match="model overloaded"):
        await run_exchange(
            [Message.user("hi")],
            base_url="https://ollama.test",
            api_key="k",
            model="m",
            transport=httpx.MockTransport(handler),
        )


async def test_search_failure_reported_to_model():
    chat_turns = [
        WEATHER_TURNS[0],
        ndjson({"message": {"content": "Search is unavailable."}}, {"done": True}),
    ]
    seen_chat: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/web_search":
            return httpx.Response(502, text="bad gateway")
        seen_chat.append(json.loads(request.content))
        return httpx.Response(200, content=chat_turns.pop(0))

    result = await run_exchange(
        [Message.user("weather?")],
        base_url="https://ollama.test",
        api_key="k",
        model="m",
        tools_enabled=True,
        transport=httpx.MockTransport(handler),
    )

    tool_msg = seen_chat[1]["messages"][-1]
    error = json.loads(tool_msg["content"])["error"]
    assert error.startswith("Tool execution failed: web_search failed (502)")
    assert result.text.endswith("Search is unavailable.")


async def test_build_orchestrator_from_config():
    cfg = ThinkloopConfig()
    cfg.llm.base_url = "https://ollama.test"
    cfg.llm.reasoning_level = "low"
    cfg.tools.enabled = True
    cfg.tools.disabled = ["web_fetch"]
    cfg.tools.max_iterations = 2

    orch = build_orchestrator(cfg, api_key="k")

    assert orch.reasoning_level == "low"
    assert orch.max_tool_rounds == 2
    assert [t.name for t in orch.registry.list()] == ["web_search"]
