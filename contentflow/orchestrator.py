"""Workflow orchestrator: drives a report through its generation phases."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, Coroutine, Dict, List, Optional, Set

from .config import ContentflowConfig, load_config
from .constants import CONTENT_GENERATION_SERVICE
from .context import build_context, compress_context
from .contracts import ApprovalResult, Completion, PhaseDefinition, WorkflowView
from .dispatch import TranslationDispatcher
from .errors import (
    ContentflowError,
    GatewayTimeoutError,
    NotFoundError,
    WorkflowValidationError,
)
from .gateway import CompletionGateway, get_gateway
from .materialize import build_report, build_translation, slugify
from .persistence import get_repository
from .persistence.models import Job, JobStatus, Workflow, WorkflowStatus, utcnow
from .persistence.repository import WorkflowRepository
from .phases import PHASE_COUNT, definition_for, render_prompt
from .scoring import assess_completeness, assess_quality, assess_relevance
from .usage import UsageLedger, calculate_cost, estimate_tokens

logger = logging.getLogger(__name__)


class WorkflowOrchestrator:
    """State machine for AI content generation workflows.

    Each workflow runs its phases strictly in order: a phase starts only once
    its predecessor's job is COMPLETED and the workflow totals have been
    recomputed. A per-workflow lock keeps at most one phase of a workflow in
    flight, including against concurrent regeneration requests.

    Gateway failures are recorded on the job and stall the workflow at its
    current phase; nothing retries automatically. Operator actions
    (``approve``, ``regenerate_phase``) raise to their caller.
    """

    def __init__(
        self,
        repository: WorkflowRepository,
        gateway: CompletionGateway,
        config: Optional[ContentflowConfig] = None,
        ledger: Optional[UsageLedger] = None,
        dispatcher: Optional[TranslationDispatcher] = None,
    ) -> None:
        self.config = config or ContentflowConfig()
        self._repository = repository
        self._gateway = gateway
        self._ledger = ledger or UsageLedger(repository)
        locales = self.config.locales
        self._dispatcher = dispatcher or TranslationDispatcher(
            repository,
            locales=locales.supported_locales,
            delay=locales.fanout_delay,
            default_language=locales.default_language,
        )
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Counter = Counter()
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, config: Optional[ContentflowConfig] = None) -> "WorkflowOrchestrator":
        """Build an orchestrator using the configured repository and gateway."""
        config = config or load_config()
        return cls(get_repository(config=config), get_gateway(config=config), config)

    @property
    def repository(self) -> WorkflowRepository:
        return self._repository

    @property
    def ledger(self) -> UsageLedger:
        return self._ledger

    # ------------------------------------------------------------------
    # Background task bookkeeping
    def _schedule(self, coro: Coroutine, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed: {exc!r}")

    async def wait_idle(self) -> None:
        """Wait until every pipeline started in the background has stopped."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @asynccontextmanager
    async def _workflow_lock(self, workflow_id: str) -> AsyncIterator[None]:
        """Hold the workflow's lock; the entry is dropped once nobody holds or awaits it."""
        lock = self._locks.setdefault(workflow_id, asyncio.Lock())
        self._lock_users[workflow_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[workflow_id] -= 1
            if not self._lock_users[workflow_id]:
                del self._lock_users[workflow_id]
                del self._locks[workflow_id]

    # ------------------------------------------------------------------
    # Creation and phase execution
    async def create(
        self,
        report_title: str,
        created_by: Optional[str] = None,
        target_language: Optional[str] = None,
    ) -> Workflow:
        """Persist a new workflow and start phase 1 in the background."""
        title = (report_title or "").strip()
        if not title:
            raise WorkflowValidationError("Report title is required")

        workflow = Workflow(
            report_title=title,
            target_language=target_language or self.config.locales.default_language,
            created_by=created_by,
        )
        await self._repository.create_workflow(workflow)
        logger.info(f"Created workflow_id={workflow.id} for '{title}'")

        self._schedule(self.advance(workflow.id), name=f"advance-{workflow.id}")
        return workflow

    async def advance(self, workflow_id: str) -> None:
        """Run the workflow from its current phase until it finishes or stalls.

        A no-op for unknown workflows and for workflows already in review or
        approved.
        """
        async with self._workflow_lock(workflow_id):
            await self._run_phases(workflow_id)

    async def _run_phases(self, workflow_id: str) -> None:
        while True:
            workflow = await self._repository.get_workflow(workflow_id)
            if workflow is None:
                logger.warning(f"advance: workflow_id={workflow_id} not found, nothing to do")
                return
            if workflow.status != WorkflowStatus.GENERATING:
                logger.debug(f"advance: workflow_id={workflow_id} is {workflow.status.value}")
                return
            if workflow.current_phase > PHASE_COUNT:
                return
            if not await self._execute_phase(workflow):
                return

    async def _execute_phase(self, workflow: Workflow) -> bool:
        """Execute the workflow's current phase.

        Returns ``True`` when the workflow moved on to another phase that
        should run next, ``False`` when it finished or stalled.
        """
        phase = workflow.current_phase
        definition = definition_for(phase)

        completed = await self._repository.list_completed_jobs(workflow.id)
        context = build_context(j for j in completed if j.phase < phase)
        context = compress_context(context, self.config.context_token_budget)
        prompt = render_prompt(
            definition,
            workflow.report_title,
            context,
            language=workflow.target_language,
            default_language=self.config.locales.default_language,
        )

        await self._supersede_jobs(workflow.id, phase)
        job = Job(
            workflow_id=workflow.id,
            phase=phase,
            input_prompt=prompt,
            model=self._gateway.model_name,
            max_tokens=definition.max_tokens,
            temperature=definition.temperature,
        )
        await self._repository.create_job(job)
        logger.info(
            f"Started phase {phase} ({definition.title}) for workflow_id={workflow.id}, job_id={job.id}"
        )

        started = time.monotonic()
        try:
            completion = await self._complete(prompt, definition)
        except asyncio.CancelledError:
            # a job must not outlive its task in PROCESSING
            await self._fail_job(job, "Cancelled before completion", started)
            raise
        except Exception as e:
            await self._fail_job(job, str(e) or type(e).__name__, started)
            return False

        await self._complete_job(workflow, job, completion, started)

        if phase < PHASE_COUNT:
            await self._repository.update_workflow(workflow.id, current_phase=phase + 1)
            return True

        await self._repository.update_workflow(
            workflow.id, status=WorkflowStatus.PENDING_REVIEW, current_phase=PHASE_COUNT
        )
        logger.info(f"Workflow_id={workflow.id} finished all phases, pending review")
        return False

    async def _supersede_jobs(self, workflow_id: str, phase: int) -> None:
        # a re-run phase replaces whatever output it produced before
        stale = [
            job
            for job in await self._repository.list_jobs(workflow_id)
            if job.phase == phase
            and job.status in (JobStatus.PROCESSING, JobStatus.COMPLETED)
        ]
        for job in stale:
            logger.info(f"Superseding job_id={job.id} for phase {phase} of workflow_id={workflow_id}")
            await self._repository.update_job(job.id, status=JobStatus.CANCELLED)
        if stale:
            await self._repository.recompute_totals(workflow_id)

    async def _complete(self, prompt: str, definition: PhaseDefinition) -> Completion:
        timeout = self.config.gateway.timeout or None
        try:
            return await asyncio.wait_for(
                self._gateway.complete(prompt, definition.max_tokens, definition.temperature),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise GatewayTimeoutError(timeout)

    async def _complete_job(
        self, workflow: Workflow, job: Job, completion: Completion, started: float
    ) -> None:
        duration_ms = int((time.monotonic() - started) * 1000)
        text = completion.text
        input_tokens = (
            completion.input_tokens
            if completion.input_tokens is not None
            else estimate_tokens(job.input_prompt)
        )
        output_tokens = (
            completion.output_tokens
            if completion.output_tokens is not None
            else estimate_tokens(text)
        )
        cost = calculate_cost(input_tokens, output_tokens, self.config.pricing)

        await self._repository.update_job(
            job.id,
            status=JobStatus.COMPLETED,
            output_text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            cost=cost,
            processing_time_ms=duration_ms,
            model=completion.model or job.model,
            quality_score=assess_quality(text),
            relevance_score=assess_relevance(text, workflow.report_title),
            completeness_score=assess_completeness(text, job.phase),
        )
        await self._ledger.record(
            CONTENT_GENERATION_SERVICE,
            completion.model or job.model or "unknown",
            job.id,
            input_tokens,
            output_tokens,
            cost,
            duration_ms,
            success=True,
        )
        await self._repository.recompute_totals(workflow.id)
        logger.info(
            f"Completed phase {job.phase} for workflow_id={workflow.id}: "
            f"{input_tokens + output_tokens} tokens, ${cost:.6f}"
        )

    async def _fail_job(self, job: Job, message: str, started: float) -> None:
        duration_ms = int((time.monotonic() - started) * 1000)
        logger.error(
            f"Phase {job.phase} failed for workflow_id={job.workflow_id}, job_id={job.id}: {message}"
        )
        await self._repository.update_job(
            job.id,
            status=JobStatus.FAILED,
            error_message=message,
            processing_time_ms=duration_ms,
        )
        await self._ledger.record(
            CONTENT_GENERATION_SERVICE,
            job.model or "unknown",
            job.id,
            estimate_tokens(job.input_prompt),
            0,
            0.0,
            duration_ms,
            success=False,
            error_message=message,
        )

    # ------------------------------------------------------------------
    # Operator actions
    async def regenerate_phase(self, workflow_id: str, phase: int) -> None:
        """Discard ``phase``'s output and re-run the pipeline from there.

        Later phases keep their jobs until their turn comes again; when they
        re-run they see the new output of ``phase``.
        """
        if not 1 <= phase <= PHASE_COUNT:
            raise WorkflowValidationError(
                f"Phase must be between 1 and {PHASE_COUNT}, got {phase}"
            )

        async with self._workflow_lock(workflow_id):
            workflow = await self._repository.get_workflow(workflow_id)
            if workflow is None:
                raise NotFoundError("Workflow", workflow_id)
            if workflow.status == WorkflowStatus.APPROVED:
                raise WorkflowValidationError(
                    f"Workflow {workflow_id} is already approved and cannot be regenerated"
                )

            cancelled = await self._repository.cancel_jobs(workflow_id, phase)
            await self._repository.recompute_totals(workflow_id)
            await self._repository.update_workflow(
                workflow_id, current_phase=phase, status=WorkflowStatus.GENERATING
            )
            logger.info(
                f"Regenerating phase {phase} for workflow_id={workflow_id} "
                f"({cancelled} job(s) cancelled)"
            )
            await self._run_phases(workflow_id)

    async def approve(
        self,
        workflow_id: str,
        approver_id: str,
        category_ids: Optional[List[str]] = None,
    ) -> ApprovalResult:
        """Approve a reviewed workflow and materialize its content.

        Root workflows become a DRAFT report (upserted by slug) and, when
        written in the default language, fan out into one child workflow per
        supported locale. Child workflows become a published translation of
        their parent's report.
        """
        async with self._workflow_lock(workflow_id):
            workflow = await self._repository.get_workflow(workflow_id)
            if workflow is None:
                raise NotFoundError("Workflow", workflow_id)
            if workflow.status != WorkflowStatus.PENDING_REVIEW:
                raise WorkflowValidationError(
                    f"Workflow {workflow_id} is {workflow.status.value}, "
                    "only workflows pending review can be approved"
                )

            if workflow.is_child:
                report_id = await self._parent_report_id(workflow)
            elif not category_ids:
                raise WorkflowValidationError(
                    "At least one category id is required to approve a report"
                )

            completed = await self._repository.list_completed_jobs(workflow_id)

            if workflow.is_child:
                translation = await self._repository.upsert_translation(
                    build_translation(workflow, report_id, completed)
                )
                workflow = await self._mark_approved(workflow_id, approver_id)
                logger.info(
                    f"Approved translation workflow_id={workflow_id} "
                    f"({workflow.target_language}) for report_id={report_id}"
                )
                return ApprovalResult(workflow=workflow, translation=translation)

            report = await self._repository.upsert_report(
                build_report(workflow, completed, category_ids)
            )
            workflow = await self._mark_approved(workflow_id, approver_id, report_id=report.id)
            logger.info(
                f"Approved workflow_id={workflow_id} as report_id={report.id} ({report.slug})"
            )

        children: List[Workflow] = []
        if workflow.target_language == self.config.locales.default_language:
            children = await self._dispatcher.spawn_children(workflow, created_by=approver_id)
            if children:
                self._schedule(
                    self._dispatcher.start(children, self.advance),
                    name=f"fanout-{workflow_id}",
                )
        return ApprovalResult(workflow=workflow, report=report, children=children)

    async def _parent_report_id(self, workflow: Workflow) -> str:
        parent = await self._repository.get_workflow(workflow.parent_workflow_id)
        if parent is None:
            raise NotFoundError("Parent workflow", workflow.parent_workflow_id)
        if parent.report_id:
            return parent.report_id
        report = await self._repository.get_report_by_slug(slugify(parent.report_title))
        if report is None:
            raise NotFoundError("Report for parent workflow", parent.id)
        return report.id

    async def _mark_approved(
        self, workflow_id: str, approver_id: str, **fields
    ) -> Workflow:
        return await self._repository.update_workflow(
            workflow_id,
            status=WorkflowStatus.APPROVED,
            approved_by=approver_id,
            approved_at=utcnow(),
            **fields,
        )

    async def approve_children(self, parent_workflow_id: str, approver_id: str) -> int:
        """Approve every child of a parent that is pending review."""
        children = await self._repository.list_workflows(
            parent_workflow_id=parent_workflow_id, status=WorkflowStatus.PENDING_REVIEW
        )
        return await self._approve_many(children, approver_id)

    async def approve_pending_translations(self, approver_id: str) -> int:
        """Approve every child workflow, of any parent, that is pending review."""
        children = await self._repository.list_workflows(
            status=WorkflowStatus.PENDING_REVIEW, children_only=True
        )
        return await self._approve_many(children, approver_id)

    async def _approve_many(self, workflows: List[Workflow], approver_id: str) -> int:
        approved = 0
        for workflow in workflows:
            try:
                await self.approve(workflow.id, approver_id)
                approved += 1
            except ContentflowError as e:
                logger.error(f"Could not approve workflow_id={workflow.id}: {e}")
        return approved

    async def update_job_output(self, job_id: str, output_text: str) -> Job:
        """Replace a job's text with an operator edit; token metrics are kept."""
        job = await self._repository.get_job(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        if job.status == JobStatus.CANCELLED:
            raise WorkflowValidationError(f"Job {job_id} was cancelled and cannot be edited")
        return await self._repository.update_job(
            job_id, output_text=output_text, quality_score=assess_quality(output_text)
        )

    # ------------------------------------------------------------------
    # Queries and administration
    async def get_status(self, workflow_id: str) -> WorkflowView:
        """Workflow with its jobs and, one level deep, its child workflows."""
        workflow = await self._repository.get_workflow(workflow_id)
        if workflow is None:
            raise NotFoundError("Workflow", workflow_id)
        children = await self._repository.list_workflows(parent_workflow_id=workflow_id)
        child_views = [
            WorkflowView.build(child, await self._repository.list_jobs(child.id))
            for child in sorted(children, key=lambda c: c.created_at)
        ]
        return WorkflowView.build(
            workflow, await self._repository.list_jobs(workflow_id), child_views
        )

    async def list_workflows(self) -> List[WorkflowView]:
        """All workflows, newest first, with their jobs."""
        return [
            WorkflowView.build(workflow, await self._repository.list_jobs(workflow.id))
            for workflow in await self._repository.list_workflows()
        ]

    async def delete_workflows(self, workflow_ids: List[str]) -> int:
        if not workflow_ids:
            raise WorkflowValidationError("Workflow ids are required")
        deleted = await self._repository.delete_workflows(workflow_ids)
        logger.info(f"Deleted {deleted} workflow(s)")
        return deleted
