"""Heuristic scores attached to completed jobs (1.0 to 10.0)."""

from __future__ import annotations

import re

_PHASE_MARKERS = {
    1: [("CAGR",), (r"\d{4}",)],
    2: [("driver",), ("restraint", "challenge"), ("opportunit",)],
    3: [("region",), ("segment",)],
    4: [("compan",), (r"2024|2025",)],
}


def _clamp(score: float) -> float:
    return max(1.0, min(10.0, score))


def assess_quality(content: str) -> float:
    score = 5.0
    if len(content) < 100:
        score -= 2.0
    if not re.search(r"\$[\d,]+|USD", content):
        score -= 0.5
    if not re.search(r"\d%", content):
        score -= 0.5
    if len(content.split()) < 50:
        score -= 1.0
    return _clamp(score)


def assess_relevance(content: str, title: str) -> float:
    lowered = content.lower()
    score = 5.0
    # titles usually end in "Market"; the subject is what precedes it
    subject = re.sub(r"\bmarket\b", "", title.lower()).strip()
    if subject and subject in lowered:
        score += 2.0
    if "market" in lowered:
        score += 1.0
    if "growth" in lowered:
        score += 0.5
    return _clamp(score)


def assess_completeness(content: str, phase: int) -> float:
    score = 5.0
    for alternatives in _PHASE_MARKERS.get(phase, []):
        if any(re.search(pattern, content) for pattern in alternatives):
            score += 1.0
    return _clamp(score)
