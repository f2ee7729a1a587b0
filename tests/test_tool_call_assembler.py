"""Tests for thinkloop.llm.tool_call_assembler.ToolCallAssembler."""

from __future__ import annotations

import json

from thinkloop.llm.tool_call_assembler import ToolCallAssembler
from thinkloop.llm.types import StreamFrame, ToolCall, ToolCallFragment


def _feed_split(asm: ToolCallAssembler, index: int, name: str, args: str, sizes: list[int]) -> None:
    """Feed *name* and *args* chopped into pieces of the given *sizes*."""
    asm.feed(ToolCallFragment(index=index, id=f"call_{index}"))
    for text, kind in ((name, "name_delta"), (args, "args_delta")):
        pos = 0
        i = 0
        while pos < len(text):
            size = sizes[i % len(sizes)]
            asm.feed(ToolCallFragment(index=index, **{kind: text[pos : pos + size]}))
            pos += size
            i += 1


class TestSingleToolCall:
    """Assemble a single tool call from incremental fragments."""

    def test_basic_assembly(self):
        asm = ToolCallAssembler()
        asm.feed(ToolCallFragment(index=0, id="call_1", name_delta="web_"))
        asm.feed(ToolCallFragment(index=0, name_delta="search"))
        asm.feed(ToolCallFragment(index=0, args_delta='{"query": '))
        asm.feed(ToolCallFragment(index=0, args_delta='"weather Paris"}'))

        calls = asm.finalize()
        assert calls == [
            ToolCall(id="call_1", name="web_search", arguments={"query": "weather Paris"})
        ]

    def test_split_points_do_not_matter(self):
        args = json.dumps({"query": "weather X", "max_results": 3})
        results = []
        for sizes in ([1], [2, 5], [7], [len(args)]):
            asm = ToolCallAssembler()
            _feed_split(asm, 0, "web_search", args, sizes)
            results.append(asm.finalize())

        assert all(r == results[0] for r in results)
        assert results[0][0].arguments == {"query": "weather X", "max_results": 3}

    def test_whole_call_in_one_fragment(self):
        asm = ToolCallAssembler()
        asm.feed(
            ToolCallFragment(
                index=0, id="c", name_delta="web_fetch", args_delta='{"url": "https://a.b"}'
            )
        )
        assert asm.finalize()[0].arguments == {"url": "https://a.b"}

    def test_empty_arguments_become_empty_dict(self):
        asm = ToolCallAssembler()
        asm.feed(ToolCallFragment(index=0, id="c", name_delta="noop"))
        assert asm.finalize()[0].arguments == {}

    def test_id_set_once(self):
        asm = ToolCallAssembler()
        asm.feed(ToolCallFragment(index=0, id="first", name_delta="a"))
        asm.feed(ToolCallFragment(index=0, id="second", name_delta="b"))
        call = asm.finalize()[0]
        assert call.id == "first"
        assert call.name == "ab"

    def test_missing_id_falls_back_to_name(self):
        asm = ToolCallAssembler()
        asm.feed(ToolCallFragment(index=0, name_delta="web_search", args_delta="{}"))
        assert asm.finalize()[0].id == "web_search"


class TestMultipleToolCalls:
    def test_interleaved_indices(self):
        asm = ToolCallAssembler()
        asm.feed(ToolCallFragment(index=1, id="b", name_delta="web_fetch"))
        asm.feed(ToolCallFragment(index=0, id="a", name_delta="web_search"))
        asm.feed(ToolCallFragment(index=1, args_delta='{"url": "u"}'))
        asm.feed(ToolCallFragment(index=0, args_delta='{"query": "q"}'))

        calls = asm.finalize()
        assert [c.id for c in calls] == ["a", "b"]
        assert calls[1].arguments == {"url": "u"}

    def test_accumulate_frame(self):
        asm = ToolCallAssembler()
        asm.accumulate(
            StreamFrame(
                tool_fragments=[
                    ToolCallFragment(index=0, id="a", name_delta="x", args_delta="{}"),
                    ToolCallFragment(index=1, id="b", name_delta="y", args_delta="{}"),
                ]
            )
        )
        assert [c.name for c in asm.finalize()] == ["x", "y"]

    def test_frame_without_fragments_is_ignored(self):
        asm = ToolCallAssembler()
        asm.accumulate(StreamFrame(content="hello"))
        assert not asm.has_any()


class TestErrorsAndReset:
    def test_bad_json_drops_call_and_records_error(self):
        asm = ToolCallAssembler()
        asm.feed(ToolCallFragment(index=0, id="bad", name_delta="web_search", args_delta="{not json"))
        asm.feed(ToolCallFragment(index=1, id="ok", name_delta="web_fetch", args_delta='{"url": "u"}'))

        calls = asm.finalize()
        assert [c.id for c in calls] == ["ok"]
        assert len(asm.errors) == 1
        assert "idx=0" in asm.errors[0]

    def test_non_object_arguments_rejected(self):
        asm = ToolCallAssembler()
        asm.feed(ToolCallFragment(index=0, id="c", name_delta="t", args_delta="[1, 2]"))
        assert asm.finalize() == []
        assert "not_object" in asm.errors[0]

    def test_finalize_twice_records_error_once(self):
        asm = ToolCallAssembler()
        asm.feed(ToolCallFragment(index=0, name_delta="t", args_delta="{"))
        asm.finalize()
        asm.finalize()
        assert len(asm.errors) == 1

    def test_has_any_and_reset(self):
        asm = ToolCallAssembler()
        assert asm.has_any() is False
        asm.feed(ToolCallFragment(index=0, name_delta="t", args_delta="{"))
        asm.finalize()
        assert asm.has_any() is True

        asm.reset()
        assert asm.has_any() is False
        assert asm.errors == []
        assert asm.finalize() == []
