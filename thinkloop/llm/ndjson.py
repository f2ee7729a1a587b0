"""
Incremental newline-delimited JSON decoding.

The chat endpoint streams one JSON object per line.  Network reads do not
respect line boundaries, so bytes are buffered until a newline arrives and
each complete line is parsed on its own.  A line that fails to parse is
logged and skipped; it never costs the lines after it.
"""

from __future__ import annotations

import codecs
import json
import logging

logger = logging.getLogger(__name__)


class NDJSONDecoder:
    """Turns arbitrary byte chunks into decoded JSON objects, line by line."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.skipped = 0

    def feed(self, data: bytes) -> list[dict]:
        """
        Add *data* to the buffer and return every object completed by it.

        An incomplete trailing line stays buffered for the next call.
        """
        self._buffer += self._decoder.decode(data)
        objects: list[dict] = []
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            obj = self._parse(line)
            if obj is not None:
                objects.append(obj)
        return objects

    def flush(self) -> list[dict]:
        """Parse whatever remains once the body has ended."""
        self._buffer += self._decoder.decode(b"", final=True)
        remaining, self._buffer = self._buffer, ""
        obj = self._parse(remaining)
        return [obj] if obj is not None else []

    def _parse(self, line: str) -> dict | None:
        line = line.strip()
        if not line:
            return None
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            self.skipped += 1
            logger.warning("Skipping malformed stream line: %s", line[:200])
            return None
        if not isinstance(data, dict):
            self.skipped += 1
            logger.warning("Skipping non-object stream line: %s", line[:200])
            return None
        return data
