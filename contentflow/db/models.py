from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, Numeric
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp() -> Any:
    return Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


def _money() -> Any:
    # stored with fixed precision, read back as float
    return Field(
        default=0.0,
        sa_column=Column(Numeric(14, 6, asdecimal=False), nullable=False, default=0),
    )


class WorkflowRow(SQLModel, table=True):
    """A content generation workflow."""

    __tablename__ = "content_workflows"

    id: str = Field(primary_key=True)
    report_title: str
    target_language: str = Field(default="en")
    current_phase: int = Field(default=1)
    status: str = Field(default="GENERATING", index=True)
    total_input_tokens: int = Field(default=0)
    total_output_tokens: int = Field(default=0)
    total_tokens: int = Field(default=0)
    total_cost: float = _money()
    parent_workflow_id: Optional[str] = Field(default=None, index=True)
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    report_id: Optional[str] = None
    created_at: datetime = _timestamp()
    updated_at: datetime = _timestamp()


class JobRow(SQLModel, table=True):
    """One execution attempt of a workflow phase."""

    __tablename__ = "content_jobs"

    id: str = Field(primary_key=True)
    workflow_id: str = Field(foreign_key="content_workflows.id", index=True)
    phase: int
    status: str = Field(default="PROCESSING")
    input_prompt: str
    output_text: Optional[str] = None
    input_tokens: int = Field(default=0)
    output_tokens: int = Field(default=0)
    total_tokens: int = Field(default=0)
    cost: float = _money()
    processing_time_ms: int = Field(default=0)
    error_message: Optional[str] = None
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    quality_score: Optional[float] = None
    relevance_score: Optional[float] = None
    completeness_score: Optional[float] = None
    created_at: datetime = _timestamp()
    updated_at: datetime = _timestamp()


class UsageRow(SQLModel, table=True):
    """Usage ledger entry for a completion call."""

    __tablename__ = "api_usage_log"

    id: str = Field(primary_key=True)
    service_type: str
    model: str
    job_id: Optional[str] = Field(default=None, index=True)
    input_tokens: int = Field(default=0)
    output_tokens: int = Field(default=0)
    total_tokens: int = Field(default=0)
    cost: float = _money()
    duration_ms: int = Field(default=0)
    success: bool = Field(default=True)
    error_message: Optional[str] = None
    created_at: datetime = _timestamp()


class ReportRow(SQLModel, table=True):
    """Materialized report."""

    __tablename__ = "reports"

    id: str = Field(primary_key=True)
    title: str
    slug: str = Field(unique=True, index=True)
    description: str = ""
    summary: str = ""
    meta_title: str = ""
    meta_description: str = ""
    sections: dict = Field(default_factory=dict, sa_column=Column(JSON))
    category_ids: list = Field(default_factory=list, sa_column=Column(JSON))
    status: str = Field(default="DRAFT")
    ai_generated: bool = Field(default=True)
    human_approved: bool = Field(default=False)
    source_workflow_id: Optional[str] = None
    created_at: datetime = _timestamp()
    updated_at: datetime = _timestamp()


class ReportTranslationRow(SQLModel, table=True):
    """Locale-specific translation of a report."""

    __tablename__ = "report_translations"

    id: str = Field(primary_key=True)
    report_id: str = Field(foreign_key="reports.id", index=True)
    locale: str
    title: str
    slug: str
    description: str = ""
    summary: str = ""
    sections: dict = Field(default_factory=dict, sa_column=Column(JSON))
    status: str = Field(default="DRAFT")
    human_reviewed: bool = Field(default=False)
    source_workflow_id: Optional[str] = None
    created_at: datetime = _timestamp()
    updated_at: datetime = _timestamp()
