"""
Ollama provider.

Streams responses from an Ollama (local or Ollama Cloud) instance via its
``/api/chat`` endpoint.  Supports reasoning effort (``think``) and tool
calling.

Dependencies: ``httpx``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

import httpx

from thinkloop.cancel import CancelToken, is_cancelled
from thinkloop.errors import ConfigError, TransportError
from thinkloop.llm.content import normalize_content
from thinkloop.llm.ndjson import NDJSONDecoder
from thinkloop.llm.providers.base import Provider
from thinkloop.llm.tool_call_assembler import ToolCallAssembler
from thinkloop.llm.types import (
    AssembledReply,
    Message,
    Role,
    Segment,
    StreamFrame,
    TokenUsage,
    ToolCallFragment,
)

logger = logging.getLogger(__name__)

_ROLE_MAP: dict[Role, str] = {
    Role.SYSTEM: "system",
    Role.USER: "user",
    Role.ASSISTANT: "assistant",
    Role.TOOL: "tool",
}

REASONING_LEVELS = ("low", "medium", "high")


class OllamaProvider(Provider):
    """
    Provider for an `Ollama <https://ollama.com>`_ chat endpoint.

    Parameters
    ----------
    base_url:
        Base URL of the Ollama HTTP API (e.g. ``"https://ollama.com"``).
    model:
        Model tag, e.g. ``"gpt-oss:120b"``.
    api_key:
        Bearer credential.  Omitted from the request when empty.
    reasoning_level:
        ``"low"``, ``"medium"`` or ``"high"``; sent as ``think``.  ``None``
        leaves the field out.
    timeout:
        HTTP request timeout in seconds.
    transport:
        Optional ``httpx`` transport, used by tests to stub the endpoint.
    """

    def __init__(
        self,
        base_url: str = "https://ollama.com",
        model: str = "gpt-oss:120b",
        api_key: str = "",
        reasoning_level: str | None = None,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if reasoning_level is not None and reasoning_level not in REASONING_LEVELS:
            raise ConfigError(
                f"Unknown reasoning level {reasoning_level!r}; "
                f"expected one of {REASONING_LEVELS}"
            )
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._reasoning_level = reasoning_level
        self._timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Provider interface
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "ollama"

    @property
    def model(self) -> str:
        return self._model

    @property
    def reasoning_level(self) -> str | None:
        return self._reasoning_level

    async def chat(
        self,
        messages: list[Message],
        tools: list[dict] | None = None,
        cancel: CancelToken | None = None,
    ) -> AsyncIterator[StreamFrame]:
        body = self.build_body(messages, tools)
        logger.info(
            "Ollama request: model=%s messages=%d roles=%s tools=%s think=%s",
            self._model,
            len(body["messages"]),
            [m["role"] for m in body["messages"]],
            [t.get("function", {}).get("name") for t in body.get("tools", [])],
            body.get("think"),
        )
        async for frame in self._stream_request(body, cancel):
            yield frame

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict] | None = None,
        cancel: CancelToken | None = None,
    ) -> AssembledReply:
        """
        Consume a full stream and return the raw reply without rendering.

        Answer text and reasoning are collected separately; tool fragments
        are assembled into finished calls.
        """
        assembler = ToolCallAssembler()
        content_parts: list[str] = []
        reasoning_parts: list[str] = []
        usage: TokenUsage | None = None

        async for frame in self.chat(messages, tools=tools, cancel=cancel):
            if isinstance(frame.content, list):
                for seg in frame.content:
                    target = reasoning_parts if seg.is_reasoning else content_parts
                    target.append(seg.text)
            elif frame.content:
                content_parts.append(frame.content)
            if frame.reasoning:
                reasoning_parts.append(frame.reasoning)
            if frame.reasoning_delta:
                reasoning_parts.append(frame.reasoning_delta)
            assembler.accumulate(frame)
            if frame.usage is not None:
                usage = frame.usage

        metadata: dict = {}
        tool_calls = assembler.finalize()
        if assembler.errors:
            metadata["assembler_errors"] = list(assembler.errors)

        return AssembledReply(
            content="".join(content_parts),
            reasoning="".join(reasoning_parts),
            tool_calls=tool_calls,
            usage=usage,
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def build_body(
        self,
        messages: list[Message],
        tools: list[dict] | None,
    ) -> dict:
        wire_messages: list[dict] = []
        for msg in messages:
            m: dict = {
                "role": _ROLE_MAP[msg.role],
                "content": normalize_content(msg.content),
            }

            if msg.role is Role.ASSISTANT and msg.tool_calls:
                m["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": tc.arguments,  # Ollama expects dict, not string
                        },
                    }
                    for tc in msg.tool_calls
                ]

            # Without these the endpoint cannot link results to calls.
            if msg.role is Role.TOOL:
                if msg.tool_call_id:
                    m["tool_call_id"] = msg.tool_call_id
                if msg.name:
                    m["name"] = msg.name

            wire_messages.append(m)

        body: dict = {
            "model": self._model,
            "messages": wire_messages,
            "stream": True,
        }

        if self._reasoning_level:
            body["think"] = self._reasoning_level

        if tools:
            body["tools"] = tools

        return body

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def _stream_request(
        self,
        body: dict,
        cancel: CancelToken | None,
    ) -> AsyncIterator[StreamFrame]:
        """
        Ollama streams newline-delimited JSON objects from ``/api/chat``.
        Each line is a complete JSON object.
        """
        url = f"{self._base_url}/api/chat"
        decoder = NDJSONDecoder()

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            async with client.stream(
                "POST", url, json=body, headers=self._headers()
            ) as response:
                if not response.is_success:
                    error_text = (await response.aread()).decode(
                        "utf-8", errors="replace"
                    )
                    logger.error(
                        "Ollama API error: status=%d body=%s",
                        response.status_code,
                        error_text[:500],
                    )
                    raise TransportError(response.status_code, error_text)

                async for raw_bytes in response.aiter_bytes():
                    for data in decoder.feed(raw_bytes):
                        frame = frame_from_wire(data)
                        yield frame
                        if frame.done:
                            _log_done(frame)
                            return
                        if is_cancelled(cancel):
                            logger.info("Ollama stream cancelled: %s", cancel.reason)
                            return

                # Process any remaining data in the buffer.
                for data in decoder.flush():
                    frame = frame_from_wire(data)
                    yield frame
                    if frame.done:
                        _log_done(frame)


def _log_done(frame: StreamFrame) -> None:
    usage = frame.usage or TokenUsage()
    logger.info(
        "Ollama stream complete: reason=%s prompt_tokens=%d completion_tokens=%d",
        frame.done_reason,
        usage.prompt_tokens,
        usage.completion_tokens,
    )


# ----------------------------------------------------------------------
# Wire -> frame
# ----------------------------------------------------------------------

def _segments(items: list[Any]) -> list[Segment]:
    segments: list[Segment] = []
    for item in items:
        if isinstance(item, str):
            segments.append(Segment("text", item))
        elif isinstance(item, dict):
            seg_type = _str(item.get("type")) or "text"
            if seg_type in ("thinking", "reasoning"):
                text = _str(item.get("thinking")) or _str(item.get("text"))
            else:
                text = _str(item.get("text"))
            segments.append(Segment(seg_type, text))
    return segments


def _arguments_text(arguments: Any) -> str:
    if arguments is None:
        return ""
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments)


# Servers disagree on shapes; anything unexpected reads as absent.
def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _fragments(raw: Any) -> list[ToolCallFragment]:
    # Ollama returns whole calls in message.tool_calls; streaming
    # OpenAI-style servers send partial name/argument strings.
    if not isinstance(raw, list):
        return []
    fragments: list[ToolCallFragment] = []
    for idx, tc in enumerate(raw):
        if not isinstance(tc, dict):
            logger.warning("Skipping malformed tool call entry: %r", tc)
            continue
        func = _dict(tc.get("function"))
        index = tc.get("index")
        fragments.append(
            ToolCallFragment(
                index=index if isinstance(index, int) and not isinstance(index, bool) else idx,
                id=_str(tc.get("id")) or None,
                name_delta=_str(func.get("name")),
                args_delta=_arguments_text(func.get("arguments")),
            )
        )
    return fragments


def frame_from_wire(data: dict) -> StreamFrame:
    """
    Convert a single decoded JSON object to a ``StreamFrame``.

    Fields of the wrong type are treated as missing, so an odd line yields
    an empty frame instead of ending the stream.
    """
    message = _dict(data.get("message"))
    delta = _dict(data.get("delta"))

    raw_content = message.get("content")
    if isinstance(raw_content, list):
        content: str | list[Segment] = _segments(raw_content)
    else:
        content = _str(raw_content)

    reasoning = (
        _str(message.get("thinking"))
        or _str(message.get("reasoning_content"))
        or _str(message.get("_thinking"))
    )
    reasoning_delta = _str(delta.get("reasoning")) or _str(message.get("reasoning"))

    details = message.get("reasoning_details")

    is_done = bool(data.get("done", False))
    usage = None
    if is_done or "eval_count" in data:
        usage = TokenUsage(
            prompt_tokens=_count(data.get("prompt_eval_count")),
            completion_tokens=_count(data.get("eval_count")),
        )

    return StreamFrame(
        content=content,
        reasoning=reasoning,
        reasoning_delta=reasoning_delta,
        reasoning_details=list(details) if isinstance(details, list) else [],
        tool_fragments=_fragments(message.get("tool_calls")),
        done=is_done,
        done_reason=_str(data.get("done_reason")) or None,
        usage=usage,
    )
