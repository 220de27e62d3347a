"""Repository abstraction for workflow state persistence."""

from __future__ import annotations

from typing import Any, Protocol

from .models import (
    Job,
    Report,
    ReportTranslation,
    UsageRecord,
    Workflow,
    WorkflowStatus,
)


class WorkflowRepository(Protocol):
    """Protocol for workflow state persistence backends."""

    async def create_workflow(self, workflow: Workflow) -> Workflow:
        """Persist a new workflow."""

    async def get_workflow(self, workflow_id: str) -> Workflow | None:
        """Retrieve the workflow by id."""

    async def list_workflows(
        self,
        parent_workflow_id: str | None = None,
        status: WorkflowStatus | None = None,
        children_only: bool = False,
    ) -> list[Workflow]:
        """Return workflows, newest first, optionally filtered."""

    async def update_workflow(self, workflow_id: str, **fields: Any) -> Workflow | None:
        """Apply ``fields`` to the workflow and return the updated copy."""

    async def delete_workflows(self, workflow_ids: list[str]) -> int:
        """Delete workflows and their jobs, returning the number removed."""

    async def create_job(self, job: Job) -> Job:
        """Persist a new job."""

    async def get_job(self, job_id: str) -> Job | None:
        """Retrieve a job by id."""

    async def update_job(self, job_id: str, **fields: Any) -> Job | None:
        """Apply ``fields`` to the job and return the updated copy."""

    async def list_jobs(self, workflow_id: str) -> list[Job]:
        """Jobs of a workflow ordered by phase, then creation."""

    async def list_completed_jobs(self, workflow_id: str) -> list[Job]:
        """COMPLETED jobs of a workflow ordered by phase."""

    async def cancel_jobs(self, workflow_id: str, phase: int) -> int:
        """Mark every job for (workflow, phase) CANCELLED."""

    async def recompute_totals(self, workflow_id: str) -> Workflow | None:
        """Reset cumulative token/cost totals to the sum over COMPLETED jobs."""

    async def record_usage(self, record: UsageRecord) -> None:
        """Append an entry to the usage ledger."""

    async def list_usage(self, job_id: str | None = None) -> list[UsageRecord]:
        """Return ledger entries, optionally for one job."""

    async def get_report(self, report_id: str) -> Report | None:
        """Retrieve a materialized report by id."""

    async def get_report_by_slug(self, slug: str) -> Report | None:
        """Retrieve a materialized report by slug."""

    async def upsert_report(self, report: Report) -> Report:
        """Update the report sharing ``report.slug`` or create it."""

    async def upsert_translation(self, translation: ReportTranslation) -> ReportTranslation:
        """Update the translation for (report, locale) or create it."""

    async def list_translations(self, report_id: str) -> list[ReportTranslation]:
        """Return all translations of a report."""
