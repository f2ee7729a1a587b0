"""Exception hierarchy shared across the package."""

from __future__ import annotations


class ThinkloopError(Exception):
    """Base class for every error raised by thinkloop."""


class TransportError(ThinkloopError):
    """
    The chat endpoint answered with a non-success HTTP status.

    Fatal for the current exchange; never retried.
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Ollama API error ({status_code}): {body}")


class ToolHTTPError(ThinkloopError):
    """A tool endpoint answered with a non-success HTTP status."""

    def __init__(self, tool_name: str, status_code: int, body: str) -> None:
        self.tool_name = tool_name
        self.status_code = status_code
        self.body = body
        super().__init__(f"{tool_name} failed ({status_code}): {body}")


class ConfigError(ThinkloopError):
    """Configuration could not be loaded or is inconsistent."""
