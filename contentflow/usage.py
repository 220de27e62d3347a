"""Token estimation, cost bookkeeping and the usage ledger."""

from __future__ import annotations

import logging
import math
from typing import Optional

from pydantic import BaseModel

from .config import PricingConfig
from .constants import CHARS_PER_TOKEN
from .persistence.models import UsageRecord
from .persistence.repository import WorkflowRepository

logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """Approximate token count: one token per four characters, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def calculate_cost(
    input_tokens: int, output_tokens: int, pricing: Optional[PricingConfig] = None
) -> float:
    """Linear USD cost of a completion call."""
    pricing = pricing or PricingConfig()
    return (input_tokens / 1_000_000) * pricing.input_cost_per_million + (
        output_tokens / 1_000_000
    ) * pricing.output_cost_per_million


class UsageSummary(BaseModel):
    calls: int = 0
    failures: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0


class UsageLedger:
    """Append-only audit trail of completion calls.

    Writes are best effort: a failing store is logged and never surfaces to
    the phase step that produced the entry.
    """

    def __init__(self, repository: WorkflowRepository) -> None:
        self._repository = repository

    async def record(
        self,
        service_type: str,
        model: str,
        job_id: Optional[str],
        input_tokens: int,
        output_tokens: int,
        cost: float,
        duration_ms: int,
        success: bool,
        error_message: Optional[str] = None,
    ) -> None:
        entry = UsageRecord(
            service_type=service_type,
            model=model,
            job_id=job_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            cost=cost,
            duration_ms=duration_ms,
            success=success,
            error_message=error_message,
        )
        try:
            await self._repository.record_usage(entry)
        except Exception as e:
            logger.warning(f"Failed to record usage for job_id={job_id}: {e}")

    async def entries(self, job_id: Optional[str] = None) -> list[UsageRecord]:
        return await self._repository.list_usage(job_id)

    async def summarize(self) -> UsageSummary:
        summary = UsageSummary()
        for entry in await self.entries():
            summary.calls += 1
            if not entry.success:
                summary.failures += 1
            summary.input_tokens += entry.input_tokens
            summary.output_tokens += entry.output_tokens
            summary.total_tokens += entry.total_tokens
            summary.cost += entry.cost
        return summary
