"""Value objects exchanged between the orchestrator and its callers."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .persistence.models import (
    Job,
    JobStatus,
    Report,
    ReportTranslation,
    Workflow,
    WorkflowStatus,
)


class PhaseDefinition(BaseModel):
    """One step of the report-writing sequence."""

    model_config = ConfigDict(frozen=True)

    phase: int
    title: str
    section: str
    prompt_template: str
    max_tokens: int
    temperature: float


class Completion(BaseModel):
    """Text returned by a completion gateway.

    Token counts are ``None`` when the provider did not report usage.
    """

    text: str
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    model: Optional[str] = None


class JobView(BaseModel):
    """Read-only projection of a job for polling clients."""

    id: str
    phase: int
    status: JobStatus
    output_text: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0
    processing_time_ms: int = 0
    error_message: Optional[str] = None
    quality_score: Optional[float] = None
    created_at: datetime

    @classmethod
    def from_job(cls, job: Job) -> "JobView":
        return cls(
            id=job.id,
            phase=job.phase,
            status=job.status,
            output_text=job.output_text,
            input_tokens=job.input_tokens,
            output_tokens=job.output_tokens,
            total_tokens=job.total_tokens,
            cost=float(job.cost),
            processing_time_ms=job.processing_time_ms,
            error_message=job.error_message,
            quality_score=job.quality_score,
            created_at=job.created_at,
        )


class WorkflowView(BaseModel):
    """Read-only projection of a workflow, its jobs and (one level of) children."""

    id: str
    report_title: str
    target_language: str
    current_phase: int
    status: WorkflowStatus
    total_input_tokens: int
    total_output_tokens: int
    total_tokens: int
    total_cost: float
    parent_workflow_id: Optional[str] = None
    report_id: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    jobs: List[JobView] = Field(default_factory=list)
    children: List["WorkflowView"] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        workflow: Workflow,
        jobs: List[Job],
        children: Optional[List["WorkflowView"]] = None,
    ) -> "WorkflowView":
        return cls(
            id=workflow.id,
            report_title=workflow.report_title,
            target_language=workflow.target_language,
            current_phase=workflow.current_phase,
            status=workflow.status,
            total_input_tokens=workflow.total_input_tokens,
            total_output_tokens=workflow.total_output_tokens,
            total_tokens=workflow.total_tokens,
            total_cost=float(workflow.total_cost),
            parent_workflow_id=workflow.parent_workflow_id,
            report_id=workflow.report_id,
            approved_by=workflow.approved_by,
            approved_at=workflow.approved_at,
            created_at=workflow.created_at,
            jobs=[JobView.from_job(job) for job in jobs],
            children=children or [],
        )

    @property
    def failed_job(self) -> Optional[JobView]:
        """Latest job of the current phase if it failed.

        A stalled workflow keeps its GENERATING status, so pollers have to
        look at the job to tell it apart from one that is still running.
        """
        current = [j for j in self.jobs if j.phase == self.current_phase]
        if current and current[-1].status == JobStatus.FAILED:
            return current[-1]
        return None


class ApprovalResult(BaseModel):
    """Outcome of approving a workflow."""

    workflow: Workflow
    report: Optional[Report] = None
    translation: Optional[ReportTranslation] = None
    children: List[Workflow] = Field(default_factory=list)
