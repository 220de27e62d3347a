"""In-memory implementation of the workflow repository."""

from __future__ import annotations

from typing import Any, Dict, List

from .models import (
    Job,
    JobStatus,
    Report,
    ReportTranslation,
    UsageRecord,
    Workflow,
    WorkflowStatus,
    utcnow,
)
from .repository import WorkflowRepository


class InMemoryWorkflowRepository(WorkflowRepository):
    """Store workflow state in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Records are copied on the way in and
    out so callers never share mutable state with the store.
    """

    def __init__(self) -> None:
        self._workflows: Dict[str, Workflow] = {}
        self._jobs: Dict[str, Job] = {}
        self._reports: Dict[str, Report] = {}
        self._translations: Dict[str, ReportTranslation] = {}
        self._usage: List[UsageRecord] = []

    # ------------------------------------------------------------------
    # Workflows
    async def create_workflow(self, workflow: Workflow) -> Workflow:
        self._workflows[workflow.id] = workflow.model_copy(deep=True)
        return workflow.model_copy(deep=True)

    async def get_workflow(self, workflow_id: str) -> Workflow | None:
        wf = self._workflows.get(workflow_id)
        return wf.model_copy(deep=True) if wf else None

    async def list_workflows(
        self,
        parent_workflow_id: str | None = None,
        status: WorkflowStatus | None = None,
        children_only: bool = False,
    ) -> list[Workflow]:
        workflows = list(self._workflows.values())
        if parent_workflow_id is not None:
            workflows = [w for w in workflows if w.parent_workflow_id == parent_workflow_id]
        if children_only:
            workflows = [w for w in workflows if w.parent_workflow_id is not None]
        if status is not None:
            workflows = [w for w in workflows if w.status == status]
        workflows.sort(key=lambda w: w.created_at, reverse=True)
        return [w.model_copy(deep=True) for w in workflows]

    async def update_workflow(self, workflow_id: str, **fields: Any) -> Workflow | None:
        wf = self._workflows.get(workflow_id)
        if not wf:
            return None
        updated = wf.model_copy(update={**fields, "updated_at": utcnow()})
        self._workflows[workflow_id] = updated
        return updated.model_copy(deep=True)

    async def delete_workflows(self, workflow_ids: list[str]) -> int:
        deleted = 0
        for workflow_id in workflow_ids:
            if self._workflows.pop(workflow_id, None) is not None:
                deleted += 1
        self._jobs = {
            job_id: job
            for job_id, job in self._jobs.items()
            if job.workflow_id not in workflow_ids
        }
        return deleted

    # ------------------------------------------------------------------
    # Jobs
    async def create_job(self, job: Job) -> Job:
        self._jobs[job.id] = job.model_copy(deep=True)
        return job.model_copy(deep=True)

    async def get_job(self, job_id: str) -> Job | None:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    async def update_job(self, job_id: str, **fields: Any) -> Job | None:
        job = self._jobs.get(job_id)
        if not job:
            return None
        updated = job.model_copy(update={**fields, "updated_at": utcnow()})
        self._jobs[job_id] = updated
        return updated.model_copy(deep=True)

    async def list_jobs(self, workflow_id: str) -> list[Job]:
        # dict preserves insertion order, so the sort keeps creation order per phase
        jobs = [j for j in self._jobs.values() if j.workflow_id == workflow_id]
        jobs.sort(key=lambda j: j.phase)
        return [j.model_copy(deep=True) for j in jobs]

    async def list_completed_jobs(self, workflow_id: str) -> list[Job]:
        return [
            j for j in await self.list_jobs(workflow_id) if j.status == JobStatus.COMPLETED
        ]

    async def cancel_jobs(self, workflow_id: str, phase: int) -> int:
        cancelled = 0
        for job in await self.list_jobs(workflow_id):
            if job.phase == phase:
                await self.update_job(job.id, status=JobStatus.CANCELLED)
                cancelled += 1
        return cancelled

    async def recompute_totals(self, workflow_id: str) -> Workflow | None:
        # no await below yields to the loop, so the read-modify-write is atomic
        completed = await self.list_completed_jobs(workflow_id)
        return await self.update_workflow(
            workflow_id,
            total_input_tokens=sum(j.input_tokens for j in completed),
            total_output_tokens=sum(j.output_tokens for j in completed),
            total_tokens=sum(j.total_tokens for j in completed),
            total_cost=sum(j.cost for j in completed),
        )

    # ------------------------------------------------------------------
    # Usage ledger
    async def record_usage(self, record: UsageRecord) -> None:
        self._usage.append(record.model_copy(deep=True))

    async def list_usage(self, job_id: str | None = None) -> list[UsageRecord]:
        return [
            r.model_copy(deep=True)
            for r in self._usage
            if job_id is None or r.job_id == job_id
        ]

    # ------------------------------------------------------------------
    # Reports and translations
    async def get_report(self, report_id: str) -> Report | None:
        report = self._reports.get(report_id)
        return report.model_copy(deep=True) if report else None

    async def get_report_by_slug(self, slug: str) -> Report | None:
        for report in self._reports.values():
            if report.slug == slug:
                return report.model_copy(deep=True)
        return None

    async def upsert_report(self, report: Report) -> Report:
        existing = await self.get_report_by_slug(report.slug)
        if existing:
            report = report.model_copy(
                update={
                    "id": existing.id,
                    "created_at": existing.created_at,
                    "updated_at": utcnow(),
                }
            )
        self._reports[report.id] = report.model_copy(deep=True)
        return report.model_copy(deep=True)

    async def upsert_translation(self, translation: ReportTranslation) -> ReportTranslation:
        for existing in self._translations.values():
            if (
                existing.report_id == translation.report_id
                and existing.locale == translation.locale
            ):
                translation = translation.model_copy(
                    update={
                        "id": existing.id,
                        "created_at": existing.created_at,
                        "updated_at": utcnow(),
                    }
                )
                break
        self._translations[translation.id] = translation.model_copy(deep=True)
        return translation.model_copy(deep=True)

    async def list_translations(self, report_id: str) -> list[ReportTranslation]:
        return [
            t.model_copy(deep=True)
            for t in self._translations.values()
            if t.report_id == report_id
        ]
