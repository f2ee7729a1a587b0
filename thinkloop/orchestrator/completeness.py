"""
Reasoning-only response detection.

A model can spend its whole budget deliberating and stop before writing an
answer.  The thresholds tighten as the configured reasoning level drops:
low effort should produce little reasoning, so even a moderate amount with
no answer is suspicious.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from thinkloop.llm.transcript import CompletenessAnalysis

logger = logging.getLogger(__name__)

# Repair output at or below this many characters is discarded.
MIN_REPAIR_CHARS = 10


@dataclass(frozen=True)
class RepairThresholds:
    min_reasoning_chars: int
    max_answer_chars: int
    min_reasoning_ratio: float


THRESHOLDS: dict[str, RepairThresholds] = {
    "low": RepairThresholds(200, 50, 0.85),
    "medium": RepairThresholds(350, 75, 0.88),
    "high": RepairThresholds(500, 100, 0.90),
}


def thresholds_for(level: str | None) -> RepairThresholds:
    return THRESHOLDS.get(level or "high", THRESHOLDS["high"])


def needs_repair(analysis: CompletenessAnalysis, level: str | None) -> bool:
    """``True`` when *analysis* looks like reasoning with no usable answer."""
    t = thresholds_for(level)
    verdict = (
        analysis.reasoning_len > t.min_reasoning_chars
        and analysis.answer_len < t.max_answer_chars
        and analysis.reasoning_ratio > t.min_reasoning_ratio
    )

    logger.info(
        "Response analysis: total=%d reasoning=%d answer=%d ratio=%.1f%% level=%s",
        analysis.total_len,
        analysis.reasoning_len,
        analysis.answer_len,
        analysis.reasoning_ratio * 100,
        level,
    )
    if verdict:
        logger.warning(
            "Reasoning-only response detected (reasoning=%d answer=%d thresholds=%s)",
            analysis.reasoning_len,
            analysis.answer_len,
            t,
        )
    return verdict
