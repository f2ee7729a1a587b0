"""
Tool interface.

A tool is described to the model by name, description and a JSON schema for
its arguments, and executed with the parsed arguments of a ``ToolCall``.
Results are plain JSON-serializable dicts; they are sent back to the model
verbatim as the content of a tool message.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


def normalize_schema(schema: dict | None) -> dict:
    """Fill in the object-schema keys some models refuse to do without."""
    s = dict(schema or {})
    s.setdefault("type", "object")
    s.setdefault("properties", {})
    s.setdefault("required", [])
    return s


class Tool(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def parameters(self) -> dict: ...

    @abstractmethod
    async def execute(self, **kwargs) -> dict:
        """Run the tool.  Transport failures raise; the loop reports them."""

    def to_schema(self) -> dict:
        """The ``{"type": "function", ...}`` entry sent in the ``tools`` list."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": normalize_schema(self.parameters),
            },
        }
