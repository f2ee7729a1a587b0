"""LLM subsystem -- wire codec, reasoning classification, tool-call assembly."""

from thinkloop.llm.types import (
    AssembledReply,
    MediaPart,
    Message,
    Role,
    Segment,
    StreamFrame,
    StreamResult,
    TextPart,
    TokenUsage,
    ToolCall,
    ToolCallFragment,
)
from thinkloop.llm.stream_classifier import StreamClassifier
from thinkloop.llm.tool_call_assembler import ToolCallAssembler
from thinkloop.llm.transcript import CompletenessAnalysis, Transcript

__all__ = [
    "AssembledReply",
    "CompletenessAnalysis",
    "MediaPart",
    "Message",
    "Role",
    "Segment",
    "StreamClassifier",
    "StreamFrame",
    "StreamResult",
    "TextPart",
    "TokenUsage",
    "ToolCall",
    "ToolCallAssembler",
    "ToolCallFragment",
    "Transcript",
]
