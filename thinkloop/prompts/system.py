"""System prompt sections for web-search and reasoning-mode exchanges."""

from __future__ import annotations

from dataclasses import replace

from thinkloop.llm.content import normalize_content
from thinkloop.llm.types import Message, Role
from thinkloop.tools.base import Tool


def build_system_prompt(
    base: str = "",
    tools: list[Tool] | None = None,
    reasoning_level: str | None = None,
) -> str:
    """
    Extend *base* with the tool and reasoning-mode guidance.

    Sections are only added when they apply: tool guidance when *tools* is
    non-empty, reasoning guidance when a level is configured.
    """
    sections: list[str] = [base] if base else []

    if tools:
        tool_lines = [f"- **{t.name}**: {t.description}" for t in tools]
        sections.append(
            WEB_SEARCH_SECTION + "\n\n### Available Tools\n\n" + "\n".join(tool_lines)
        )

    if reasoning_level:
        sections.append(REASONING_MODE_SECTION)

    return "\n\n".join(sections)


def augment_system_message(
    messages: list[Message],
    tools: list[Tool] | None = None,
    reasoning_level: str | None = None,
) -> list[Message]:
    """
    Return a copy of *messages* whose first system message carries the
    extra guidance.  Conversations without a system message are returned
    unchanged.
    """
    out = list(messages)
    for i, msg in enumerate(out):
        if msg.role is Role.SYSTEM:
            content = build_system_prompt(
                normalize_content(msg.content), tools, reasoning_level
            )
            out[i] = replace(msg, content=content)
            break
    return out


WEB_SEARCH_SECTION = """## Web Search

- You can search the web with `web_search` and read a page with `web_fetch`.
- Use them for current events, recent releases, prices and anything that may have changed since your training data.
- Prefer one focused query over several broad ones; fetch a page only when a search snippet is not enough.
- Cite the URLs you relied on in your answer.
- If a tool returns an error, say so briefly and answer with what you have."""

REASONING_MODE_SECTION = """## Reasoning Mode

- Think through the problem first, then ALWAYS write a final answer for the user.
- Your reasoning is not shown as the answer; a reply that ends after reasoning is incomplete.
- Keep the final answer self-contained: restate the conclusion rather than referring back to your reasoning."""

REPAIR_PROMPT = (
    "Please provide your final answer to my question. "
    "You've done the thinking, now I need the conclusion."
)
