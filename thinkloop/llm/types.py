"""Core types for the LLM subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"

    @classmethod
    def coerce(cls, value: str | Role) -> Role:
        """Resolve a role name, accepting the ``human``/``ai`` aliases."""
        if isinstance(value, Role):
            return value
        aliases = {"human": cls.USER, "ai": cls.ASSISTANT}
        key = str(value).lower()
        if key in aliases:
            return aliases[key]
        return cls(key)


@dataclass(frozen=True)
class TextPart:
    """A plain text content part."""

    text: str


@dataclass(frozen=True)
class MediaPart:
    """
    An embedded media part (image, audio, ...).

    The wire format only accepts text, so media parts are dropped when the
    message is serialized.  ``caption`` is kept for display only.
    """

    url: str
    media_type: str = "image"
    caption: str = ""


# A content part as callers hand it over: typed parts, bare strings, or
# provider-style dicts such as ``{"type": "text", "text": "..."}``.
ContentPart = Union[TextPart, MediaPart, str, dict]
Content = Union[str, list[ContentPart]]


@dataclass(frozen=True)
class ToolCall:
    """A resolved tool call with parsed arguments."""

    id: str
    name: str
    arguments: dict


@dataclass(frozen=True)
class Message:
    """A single message in a conversation."""

    role: Role
    content: Content = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role.coerce(self.role))
        if self.tool_calls and not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @classmethod
    def system(cls, content: Content) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: Content) -> Message:
        return cls(Role.USER, content)

    @classmethod
    def assistant(
        cls, content: Content = "", tool_calls: list[ToolCall] | None = None
    ) -> Message:
        return cls(Role.ASSISTANT, content, tuple(tool_calls or ()))

    @classmethod
    def tool_result(cls, call: ToolCall, content: str) -> Message:
        """Build the tool-result message echoing *call*'s id and name."""
        return cls(Role.TOOL, content, tool_call_id=call.id, name=call.name)


@dataclass
class ToolCallFragment:
    """
    An incremental fragment of a streaming tool call.

    Providers emit these as tool-call data arrives.  The ToolCallAssembler
    concatenates fragments with the same ``index`` and produces finished
    ToolCall objects.
    """

    index: int
    id: str | None = None
    name_delta: str = ""
    args_delta: str = ""


@dataclass(frozen=True)
class Segment:
    """One entry of a structured content list (``text`` or ``thinking``)."""

    type: str
    text: str = ""

    @property
    def is_reasoning(self) -> bool:
        return self.type in ("thinking", "reasoning")


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> dict:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class StreamFrame:
    """
    A single decoded object from the chat stream.

    *content* is answer text, or a list of ``Segment`` when the upstream
    sends structured content.  *reasoning* is a dedicated reasoning field,
    *reasoning_delta* an incremental reasoning delta, and *reasoning_details*
    a cumulative reasoning array that only marks the frame as
    reasoning-bearing.  *done* is ``True`` on the terminal frame, which also
    carries *done_reason* and *usage*.
    """

    content: str | list[Segment] = ""
    reasoning: str = ""
    reasoning_delta: str = ""
    reasoning_details: list[Any] = field(default_factory=list)
    tool_fragments: list[ToolCallFragment] = field(default_factory=list)
    done: bool = False
    done_reason: str | None = None
    usage: TokenUsage | None = None

    @property
    def text(self) -> str:
        """Answer text when *content* is a plain string, else ``""``."""
        return self.content if isinstance(self.content, str) else ""


@dataclass
class StreamResult:
    """The finalized transcript of one stream, as returned by the classifier."""

    content: str
    was_truncated: bool = False
    token_usage: TokenUsage | None = None


@dataclass
class AssembledReply:
    """
    A complete reply after consuming a full stream without rendering.

    Produced by ``OllamaProvider.complete``.
    """

    content: str
    reasoning: str
    tool_calls: list[ToolCall]
    usage: TokenUsage | None = None
    metadata: dict = field(default_factory=dict)
