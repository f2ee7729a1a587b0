"""Tests for ToolValidator."""

from thinkloop.tools.validation import ToolValidator
from thinkloop.tools.web import WebSearchTool
from tests.mock_tools import EchoTool, RecordingTool


class TestToolValidator:
    """Test suite for ToolValidator.validate()."""

    def test_valid_args_pass(self):
        ok, err = ToolValidator.validate(EchoTool(), {"message": "hello"})
        assert ok is True
        assert err is None

    def test_missing_required_arg_fails(self):
        ok, err = ToolValidator.validate(EchoTool(), {})
        assert ok is False
        assert "message" in err

    def test_type_mismatch_names_argument(self):
        ok, err = ToolValidator.validate(WebSearchTool("u", "k"), {"query": "q", "max_results": "five"})
        assert ok is False
        assert err.startswith("max_results:")

    def test_extra_keys_allowed(self):
        ok, err = ToolValidator.validate(EchoTool(), {"message": "hi", "extra": 1})
        assert ok is True
        assert err is None

    def test_schema_without_required(self):
        ok, err = ToolValidator.validate(RecordingTool("r", []), {})
        assert ok is True
        assert err is None
