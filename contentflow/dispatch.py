"""Fan-out of approved root workflows into per-locale child workflows."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from .constants import DEFAULT_FANOUT_DELAY, DEFAULT_LANGUAGE, DEFAULT_SUPPORTED_LOCALES
from .persistence.models import Workflow
from .persistence.repository import WorkflowRepository

logger = logging.getLogger(__name__)


class TranslationDispatcher:
    """Spawn one child workflow per supported locale and start them staggered.

    Children reference their parent only by id. The delay between launches
    keeps a burst of approvals from hammering the completion gateway; it
    carries no ordering guarantee between children.
    """

    def __init__(
        self,
        repository: WorkflowRepository,
        locales: Optional[List[str]] = None,
        delay: float = DEFAULT_FANOUT_DELAY,
        default_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self._repository = repository
        self.locales = list(DEFAULT_SUPPORTED_LOCALES if locales is None else locales)
        self.delay = delay
        self.default_language = default_language

    async def spawn_children(
        self, parent: Workflow, created_by: Optional[str] = None
    ) -> List[Workflow]:
        """Persist a GENERATING phase-1 child for every non-default locale."""
        children: List[Workflow] = []
        for locale in self.locales:
            if locale == self.default_language:
                continue
            child = Workflow(
                report_title=parent.report_title,
                target_language=locale,
                parent_workflow_id=parent.id,
                created_by=created_by,
            )
            await self._repository.create_workflow(child)
            children.append(child)
        logger.info(
            f"Spawned {len(children)} child workflows for workflow_id={parent.id}: "
            f"{[c.target_language for c in children]}"
        )
        return children

    async def start(
        self,
        children: List[Workflow],
        advance: Callable[[str], Awaitable[None]],
    ) -> None:
        """Launch ``advance`` for each child, pausing ``delay`` seconds between launches."""
        tasks = []
        for index, child in enumerate(children):
            if index and self.delay:
                await asyncio.sleep(self.delay)
            logger.debug(f"Starting child workflow_id={child.id} ({child.target_language})")
            tasks.append(asyncio.create_task(advance(child.id)))

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for child, result in zip(children, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Child workflow_id={child.id} ({child.target_language}) "
                    f"stopped with an error: {result!r}"
                )
