import asyncio

import pytest

from contentflow.dispatch import TranslationDispatcher
from contentflow.persistence import InMemoryWorkflowRepository, Workflow, WorkflowStatus


@pytest.mark.asyncio
async def test_spawn_children_skips_default_language():
    repo = InMemoryWorkflowRepository()
    parent = await repo.create_workflow(Workflow(report_title="Drone Market"))
    dispatcher = TranslationDispatcher(repo, locales=["en", "de", "ja"], delay=0)

    children = await dispatcher.spawn_children(parent, created_by="editor")

    assert [c.target_language for c in children] == ["de", "ja"]
    for child in children:
        stored = await repo.get_workflow(child.id)
        assert stored.parent_workflow_id == parent.id
        assert stored.report_title == "Drone Market"
        assert stored.status == WorkflowStatus.GENERATING
        assert stored.current_phase == 1
        assert stored.created_by == "editor"


@pytest.mark.asyncio
async def test_start_staggers_launches_and_contains_failures(caplog):
    repo = InMemoryWorkflowRepository()
    parent = await repo.create_workflow(Workflow(report_title="Drone Market"))
    dispatcher = TranslationDispatcher(repo, locales=["de", "fr", "it"], delay=0.01)
    children = await dispatcher.spawn_children(parent)

    started = []

    async def advance(workflow_id):
        started.append((workflow_id, asyncio.get_running_loop().time()))
        if len(started) == 2:
            raise RuntimeError("child blew up")

    await dispatcher.start(children, advance)

    assert [workflow_id for workflow_id, _ in started] == [c.id for c in children]
    assert started[-1][1] - started[0][1] >= 0.015
    assert "child blew up" in caplog.text


@pytest.mark.asyncio
async def test_start_with_no_children_is_noop():
    dispatcher = TranslationDispatcher(InMemoryWorkflowRepository(), locales=[], delay=0)

    async def advance(workflow_id):
        raise AssertionError("should not run")

    await dispatcher.start([], advance)
