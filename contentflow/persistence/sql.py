"""SQL implementation of the workflow repository (SQLite or PostgreSQL)."""

from __future__ import annotations

from enum import Enum
from typing import Any

from sqlalchemy import delete, func, select, update

from ..db.models import JobRow, ReportRow, ReportTranslationRow, UsageRow, WorkflowRow
from ..db.workflow_db import WorkflowDB
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


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _row_data(model: Any) -> dict[str, Any]:
    return {key: _plain(value) for key, value in model.model_dump().items()}


class SQLWorkflowRepository(WorkflowRepository):
    """Persist workflow state using an async SQLAlchemy engine.

    ``database_url`` must name an async driver, e.g.
    ``sqlite+aiosqlite:///wf.db`` or ``postgresql+asyncpg://...``. Tables are
    created on first use.
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.db = WorkflowDB(database_url)

    # ------------------------------------------------------------------
    # Workflows
    async def create_workflow(self, workflow: Workflow) -> Workflow:
        async with self.db.session() as session:
            session.add(WorkflowRow(**_row_data(workflow)))
            await session.commit()
        return workflow

    async def get_workflow(self, workflow_id: str) -> Workflow | None:
        async with self.db.session() as session:
            row = await session.get(WorkflowRow, workflow_id)
            return Workflow.model_validate(row.model_dump()) if row else None

    async def list_workflows(
        self,
        parent_workflow_id: str | None = None,
        status: WorkflowStatus | None = None,
        children_only: bool = False,
    ) -> list[Workflow]:
        stmt = select(WorkflowRow)
        if parent_workflow_id is not None:
            stmt = stmt.where(WorkflowRow.parent_workflow_id == parent_workflow_id)
        if children_only:
            stmt = stmt.where(WorkflowRow.parent_workflow_id.is_not(None))
        if status is not None:
            stmt = stmt.where(WorkflowRow.status == _plain(status))
        stmt = stmt.order_by(WorkflowRow.created_at.desc())
        async with self.db.session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [Workflow.model_validate(r.model_dump()) for r in rows]

    async def update_workflow(self, workflow_id: str, **fields: Any) -> Workflow | None:
        async with self.db.session() as session:
            row = await session.get(WorkflowRow, workflow_id)
            if row is None:
                return None
            for key, value in fields.items():
                setattr(row, key, _plain(value))
            row.updated_at = utcnow()
            await session.commit()
            return Workflow.model_validate(row.model_dump())

    async def delete_workflows(self, workflow_ids: list[str]) -> int:
        async with self.db.session() as session:
            await session.execute(delete(JobRow).where(JobRow.workflow_id.in_(workflow_ids)))
            result = await session.execute(
                delete(WorkflowRow).where(WorkflowRow.id.in_(workflow_ids))
            )
            await session.commit()
            return result.rowcount or 0

    # ------------------------------------------------------------------
    # Jobs
    async def create_job(self, job: Job) -> Job:
        async with self.db.session() as session:
            session.add(JobRow(**_row_data(job)))
            await session.commit()
        return job

    async def get_job(self, job_id: str) -> Job | None:
        async with self.db.session() as session:
            row = await session.get(JobRow, job_id)
            return Job.model_validate(row.model_dump()) if row else None

    async def update_job(self, job_id: str, **fields: Any) -> Job | None:
        async with self.db.session() as session:
            row = await session.get(JobRow, job_id)
            if row is None:
                return None
            for key, value in fields.items():
                setattr(row, key, _plain(value))
            row.updated_at = utcnow()
            await session.commit()
            return Job.model_validate(row.model_dump())

    async def _select_jobs(self, workflow_id: str, status: JobStatus | None) -> list[Job]:
        stmt = select(JobRow).where(JobRow.workflow_id == workflow_id)
        if status is not None:
            stmt = stmt.where(JobRow.status == status.value)
        stmt = stmt.order_by(JobRow.phase, JobRow.created_at)
        async with self.db.session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [Job.model_validate(r.model_dump()) for r in rows]

    async def list_jobs(self, workflow_id: str) -> list[Job]:
        return await self._select_jobs(workflow_id, None)

    async def list_completed_jobs(self, workflow_id: str) -> list[Job]:
        return await self._select_jobs(workflow_id, JobStatus.COMPLETED)

    async def cancel_jobs(self, workflow_id: str, phase: int) -> int:
        async with self.db.session() as session:
            result = await session.execute(
                update(JobRow)
                .where(JobRow.workflow_id == workflow_id, JobRow.phase == phase)
                .values(status=JobStatus.CANCELLED.value, updated_at=utcnow())
            )
            await session.commit()
            return result.rowcount or 0

    async def recompute_totals(self, workflow_id: str) -> Workflow | None:
        def completed_sum(column: Any) -> Any:
            return (
                select(func.coalesce(func.sum(column), 0))
                .where(
                    JobRow.workflow_id == workflow_id,
                    JobRow.status == JobStatus.COMPLETED.value,
                )
                .scalar_subquery()
            )

        # single UPDATE so concurrent writers never see a half-applied total
        async with self.db.session() as session:
            await session.execute(
                update(WorkflowRow)
                .where(WorkflowRow.id == workflow_id)
                .values(
                    total_input_tokens=completed_sum(JobRow.input_tokens),
                    total_output_tokens=completed_sum(JobRow.output_tokens),
                    total_tokens=completed_sum(JobRow.total_tokens),
                    total_cost=completed_sum(JobRow.cost),
                    updated_at=utcnow(),
                )
            )
            await session.commit()
        return await self.get_workflow(workflow_id)

    # ------------------------------------------------------------------
    # Usage ledger
    async def record_usage(self, record: UsageRecord) -> None:
        async with self.db.session() as session:
            session.add(UsageRow(**_row_data(record)))
            await session.commit()

    async def list_usage(self, job_id: str | None = None) -> list[UsageRecord]:
        stmt = select(UsageRow)
        if job_id is not None:
            stmt = stmt.where(UsageRow.job_id == job_id)
        stmt = stmt.order_by(UsageRow.created_at)
        async with self.db.session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [UsageRecord.model_validate(r.model_dump()) for r in rows]

    # ------------------------------------------------------------------
    # Reports and translations
    async def get_report(self, report_id: str) -> Report | None:
        async with self.db.session() as session:
            row = await session.get(ReportRow, report_id)
            return Report.model_validate(row.model_dump()) if row else None

    async def get_report_by_slug(self, slug: str) -> Report | None:
        async with self.db.session() as session:
            row = (
                await session.execute(select(ReportRow).where(ReportRow.slug == slug))
            ).scalar_one_or_none()
            return Report.model_validate(row.model_dump()) if row else None

    async def upsert_report(self, report: Report) -> Report:
        data = _row_data(report)
        async with self.db.session() as session:
            row = (
                await session.execute(
                    select(ReportRow).where(ReportRow.slug == report.slug)
                )
            ).scalar_one_or_none()
            if row is None:
                row = ReportRow(**data)
                session.add(row)
            else:
                for key, value in data.items():
                    if key not in ("id", "created_at"):
                        setattr(row, key, value)
                row.updated_at = utcnow()
            await session.commit()
            return Report.model_validate(row.model_dump())

    async def upsert_translation(self, translation: ReportTranslation) -> ReportTranslation:
        data = _row_data(translation)
        async with self.db.session() as session:
            row = (
                await session.execute(
                    select(ReportTranslationRow).where(
                        ReportTranslationRow.report_id == translation.report_id,
                        ReportTranslationRow.locale == translation.locale,
                    )
                )
            ).scalar_one_or_none()
            if row is None:
                row = ReportTranslationRow(**data)
                session.add(row)
            else:
                for key, value in data.items():
                    if key not in ("id", "created_at"):
                        setattr(row, key, value)
                row.updated_at = utcnow()
            await session.commit()
            return ReportTranslation.model_validate(row.model_dump())

    async def list_translations(self, report_id: str) -> list[ReportTranslation]:
        stmt = select(ReportTranslationRow).where(
            ReportTranslationRow.report_id == report_id
        )
        async with self.db.session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [ReportTranslation.model_validate(r.model_dump()) for r in rows]
