"""Assembly of prior-phase output into the context of the next prompt."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .persistence.models import Job, JobStatus
from .usage import estimate_tokens

_KEY_MARKERS = ("USD", "billion", "CAGR", "%", "2024", "2025", "market share")


def build_context(completed_jobs: Iterable[Job]) -> str:
    """Join completed job output, phase ascending, each tagged with its phase.

    Jobs that are not COMPLETED or have no output are skipped, so cancelled
    attempts never leak into later prompts.
    """
    jobs = sorted(
        (j for j in completed_jobs if j.status == JobStatus.COMPLETED and j.output_text),
        key=lambda j: j.phase,
    )
    return "\n\n".join(f"Phase {job.phase}: {job.output_text}" for job in jobs)


def compress_context(context: str, max_tokens: Optional[int]) -> str:
    """Shrink ``context`` to roughly ``max_tokens`` estimated tokens.

    Context already within budget is returned untouched. Otherwise only lines
    carrying market figures are kept, then truncated sentence by sentence.
    """
    if not context or max_tokens is None or estimate_tokens(context) <= max_tokens:
        return context

    key_lines = " ".join(
        line for line in context.split("\n") if any(m in line for m in _KEY_MARKERS)
    )

    compressed: list[str] = []
    used = 0
    for sentence in re.split(r"(?<=\.)\s+", key_lines):
        sentence = sentence.strip()
        if not sentence:
            continue
        cost = estimate_tokens(sentence)
        if used + cost > max_tokens:
            break
        compressed.append(sentence)
        used += cost
    return " ".join(compressed)
