from .models import JobRow, ReportRow, ReportTranslationRow, UsageRow, WorkflowRow
from .workflow_db import WorkflowDB

__all__ = [
    "WorkflowRow",
    "JobRow",
    "UsageRow",
    "ReportRow",
    "ReportTranslationRow",
    "WorkflowDB",
]
