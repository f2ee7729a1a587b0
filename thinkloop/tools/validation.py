"""Checks model-supplied tool arguments against the tool's JSON schema."""

from __future__ import annotations

from jsonschema import validators
from jsonschema.exceptions import best_match

from thinkloop.tools.base import Tool, normalize_schema


class ToolValidator:
    @staticmethod
    def validate(tool: Tool, arguments: dict) -> tuple[bool, str | None]:
        """
        Return ``(True, None)`` for valid *arguments*, else ``(False, msg)``.

        The message names the offending argument when there is one, e.g.
        ``"max_results: 'five' is not of type 'number'"``.
        """
        schema = normalize_schema(tool.parameters)
        validator = validators.validator_for(schema)(schema)
        error = best_match(validator.iter_errors(arguments))
        if error is None:
            return True, None

        where = ".".join(str(p) for p in error.absolute_path)
        return False, f"{where}: {error.message}" if where else error.message
