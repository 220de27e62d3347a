"""Turn the completed jobs of an approved workflow into report records."""

from __future__ import annotations

import re
from typing import Dict, List

from .persistence.models import (
    Job,
    Report,
    ReportStatus,
    ReportTranslation,
    TranslationStatus,
    Workflow,
)
from .phases import PHASE_CATALOG

META_DESCRIPTION_LENGTH = 160


def slugify(title: str) -> str:
    """Lowercase, strip non-alphanumerics, hyphenate spaces, collapse repeats.

    >>> slugify("Quantum  Encryption Market (2025)!")
    'quantum-encryption-market-2025'
    """
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[\s-]+", "-", slug)
    return slug.strip("-")


def sections_from_jobs(completed_jobs: List[Job]) -> Dict[str, str]:
    """Map each phase's section name to its latest completed output."""
    names = {definition.phase: definition.section for definition in PHASE_CATALOG}
    sections: Dict[str, str] = {}
    for job in sorted(completed_jobs, key=lambda j: j.phase):
        if job.phase in names and job.output_text:
            sections[names[job.phase]] = job.output_text
    return sections


def _summary(sections: Dict[str, str]) -> str:
    return sections.get(PHASE_CATALOG[0].section, "")


def _meta_description(summary: str) -> str:
    text = " ".join(summary.split())
    if len(text) <= META_DESCRIPTION_LENGTH:
        return text
    return text[: META_DESCRIPTION_LENGTH - 3].rstrip() + "..."


def build_report(
    workflow: Workflow, completed_jobs: List[Job], category_ids: List[str]
) -> Report:
    sections = sections_from_jobs(completed_jobs)
    summary = _summary(sections)
    return Report(
        title=workflow.report_title,
        slug=slugify(workflow.report_title),
        description=summary,
        summary=summary,
        meta_title=workflow.report_title,
        meta_description=_meta_description(summary),
        sections=sections,
        category_ids=list(category_ids),
        status=ReportStatus.DRAFT,
        ai_generated=True,
        human_approved=True,
        source_workflow_id=workflow.id,
    )


def build_translation(
    workflow: Workflow, report_id: str, completed_jobs: List[Job]
) -> ReportTranslation:
    sections = sections_from_jobs(completed_jobs)
    summary = _summary(sections)
    return ReportTranslation(
        report_id=report_id,
        locale=workflow.target_language,
        title=workflow.report_title,
        slug=slugify(workflow.report_title),
        description=summary,
        summary=summary,
        sections=sections,
        status=TranslationStatus.PUBLISHED,
        human_reviewed=True,
        source_workflow_id=workflow.id,
    )
