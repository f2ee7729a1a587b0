"""Mock tool implementations for testing."""

from __future__ import annotations

from thinkloop.tools.base import Tool


class EchoTool(Tool):
    def __init__(self) -> None:
        self.calls: list[dict] = []

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echoes the input message back."

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "message": {"type": "string", "description": "Message to echo"},
            },
            "required": ["message"],
        }

    async def execute(self, **kwargs) -> dict:
        self.calls.append(kwargs)
        return {"echo": kwargs.get("message", "")}


class FailingTool(Tool):
    @property
    def name(self) -> str:
        return "explode"

    @property
    def description(self) -> str:
        return "Always raises."

    @property
    def parameters(self) -> dict:
        return {"type": "object", "properties": {}}

    async def execute(self, **kwargs) -> dict:
        raise RuntimeError("boom")


class RecordingTool(Tool):
    """Appends its name and arguments to a shared log, for ordering checks."""

    def __init__(self, name: str, log: list) -> None:
        self._name = name
        self._log = log

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return f"Records calls to {self._name}."

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {"n": {"type": "integer"}},
        }

    async def execute(self, **kwargs) -> dict:
        self._log.append((self._name, kwargs.get("n")))
        return {"ok": True, "n": kwargs.get("n")}
