"""Persistence layer for content generation workflows."""

from __future__ import annotations

from typing import Optional

from ..config import ContentflowConfig, database_url_from_env, load_config
from .inmemory import InMemoryWorkflowRepository
from .models import (
    Job,
    JobStatus,
    Report,
    ReportStatus,
    ReportTranslation,
    TranslationStatus,
    UsageRecord,
    Workflow,
    WorkflowStatus,
)
from .repository import WorkflowRepository
from .sql import SQLWorkflowRepository

_repository_instance: WorkflowRepository | None = None

_SQL_DRIVERS = ("sqlite+aiosqlite://", "postgresql+asyncpg://")


def _async_url(database_url: str) -> str:
    """Map plain database URLs onto the async drivers the SQL backend uses."""

    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    for prefix in ("postgres://", "postgresql://"):
        if database_url.startswith(prefix):
            return database_url.replace(prefix, "postgresql+asyncpg://", 1)
    return database_url


def get_repository(
    database_url: Optional[str] = None, config: Optional[ContentflowConfig] = None
) -> WorkflowRepository:
    """Return the process-wide workflow repository.

    A call without arguments reuses the repository built last. Otherwise the
    database URL is taken from the argument, the environment or ``config``
    (loaded from disk when omitted), in that order. ``sqlite`` and
    ``postgres`` URLs get the SQL repository on their async driver; no URL at
    all gets an in-memory repository.

    Raises:
        ValueError: The URL names a database contentflow cannot talk to.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    if database_url is None:
        database_url = database_url_from_env() or (config or load_config()).database_url

    if not database_url:
        repository: WorkflowRepository = InMemoryWorkflowRepository()
    else:
        url = _async_url(database_url)
        if not url.startswith(_SQL_DRIVERS):
            raise ValueError(f"Unsupported database backend: {database_url}")
        repository = SQLWorkflowRepository(url)

    _repository_instance = repository
    return repository


__all__ = [
    "Job",
    "JobStatus",
    "Report",
    "ReportStatus",
    "ReportTranslation",
    "TranslationStatus",
    "UsageRecord",
    "Workflow",
    "WorkflowStatus",
    "WorkflowRepository",
    "InMemoryWorkflowRepository",
    "SQLWorkflowRepository",
    "get_repository",
]
