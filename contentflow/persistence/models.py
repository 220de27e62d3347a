"""Data models for persisted workflow state."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class WorkflowStatus(str, Enum):
    GENERATING = "GENERATING"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    FAILED = "FAILED"


class JobStatus(str, Enum):
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class ReportStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class TranslationStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class Workflow(BaseModel):
    """One report-generation effort."""

    id: str = Field(default_factory=new_id)
    report_title: str
    target_language: str = "en"
    current_phase: int = 1
    status: WorkflowStatus = WorkflowStatus.GENERATING
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    parent_workflow_id: Optional[str] = None
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    report_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_child(self) -> bool:
        return self.parent_workflow_id is not None


class Job(BaseModel):
    """One attempt at executing one phase of a workflow."""

    id: str = Field(default_factory=new_id)
    workflow_id: str
    phase: int
    status: JobStatus = JobStatus.PROCESSING
    input_prompt: str
    output_text: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0
    processing_time_ms: int = 0
    error_message: Optional[str] = None
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    quality_score: Optional[float] = None
    relevance_score: Optional[float] = None
    completeness_score: Optional[float] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Report(BaseModel):
    """Report materialized from an approved root workflow."""

    id: str = Field(default_factory=new_id)
    title: str
    slug: str
    description: str = ""
    summary: str = ""
    meta_title: str = ""
    meta_description: str = ""
    sections: Dict[str, str] = Field(default_factory=dict)
    category_ids: List[str] = Field(default_factory=list)
    status: ReportStatus = ReportStatus.DRAFT
    ai_generated: bool = True
    human_approved: bool = False
    source_workflow_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ReportTranslation(BaseModel):
    """Locale-specific version of a report, produced by a child workflow."""

    id: str = Field(default_factory=new_id)
    report_id: str
    locale: str
    title: str
    slug: str
    description: str = ""
    summary: str = ""
    sections: Dict[str, str] = Field(default_factory=dict)
    status: TranslationStatus = TranslationStatus.DRAFT
    human_reviewed: bool = False
    source_workflow_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UsageRecord(BaseModel):
    """Audit entry for a single completion call."""

    id: str = Field(default_factory=new_id)
    service_type: str
    model: str
    job_id: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0
    duration_ms: int = 0
    success: bool = True
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
