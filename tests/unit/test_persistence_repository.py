import pytest
import pytest_asyncio

import contentflow.persistence as persistence
from contentflow.config import ContentflowConfig
from contentflow.persistence import (
    InMemoryWorkflowRepository,
    Job,
    JobStatus,
    Report,
    ReportTranslation,
    SQLWorkflowRepository,
    UsageRecord,
    Workflow,
    WorkflowStatus,
    get_repository,
)


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def repository(request, tmp_path):
    if request.param == "memory":
        yield InMemoryWorkflowRepository()
        return
    repo = SQLWorkflowRepository(f"sqlite+aiosqlite:///{tmp_path / 'wf.db'}")
    yield repo
    await repo.db.dispose()


async def _completed_job(repo, workflow_id, phase, tokens_in, tokens_out, cost):
    job = await repo.create_job(Job(workflow_id=workflow_id, phase=phase, input_prompt="p"))
    return await repo.update_job(
        job.id,
        status=JobStatus.COMPLETED,
        output_text=f"out {phase}",
        input_tokens=tokens_in,
        output_tokens=tokens_out,
        total_tokens=tokens_in + tokens_out,
        cost=cost,
    )


@pytest.mark.asyncio
async def test_workflow_crud(repository):
    wf = await repository.create_workflow(Workflow(report_title="Drone Market"))

    loaded = await repository.get_workflow(wf.id)
    assert loaded is not None
    assert loaded.report_title == "Drone Market"
    assert loaded.status == WorkflowStatus.GENERATING
    assert loaded.current_phase == 1

    updated = await repository.update_workflow(
        wf.id, status=WorkflowStatus.PENDING_REVIEW, current_phase=4
    )
    assert updated.status == WorkflowStatus.PENDING_REVIEW
    assert updated.current_phase == 4

    assert await repository.get_workflow("missing") is None
    assert await repository.update_workflow("missing", current_phase=2) is None


@pytest.mark.asyncio
async def test_list_workflows_filters(repository):
    root = await repository.create_workflow(Workflow(report_title="Drone Market"))
    child = await repository.create_workflow(
        Workflow(report_title="Drone Market", target_language="de", parent_workflow_id=root.id)
    )
    await repository.update_workflow(child.id, status=WorkflowStatus.PENDING_REVIEW)

    assert {w.id for w in await repository.list_workflows()} == {root.id, child.id}
    assert [w.id for w in await repository.list_workflows(parent_workflow_id=root.id)] == [child.id]
    assert [w.id for w in await repository.list_workflows(children_only=True)] == [child.id]
    pending = await repository.list_workflows(status=WorkflowStatus.PENDING_REVIEW)
    assert [w.id for w in pending] == [child.id]


@pytest.mark.asyncio
async def test_jobs_cancel_and_recompute_totals(repository):
    wf = await repository.create_workflow(Workflow(report_title="Drone Market"))
    await _completed_job(repository, wf.id, 1, 100, 50, 0.5)
    await _completed_job(repository, wf.id, 2, 10, 5, 0.25)
    failed = await repository.create_job(Job(workflow_id=wf.id, phase=3, input_prompt="p"))
    await repository.update_job(failed.id, status=JobStatus.FAILED, error_message="timeout")

    jobs = await repository.list_jobs(wf.id)
    assert [j.phase for j in jobs] == [1, 2, 3]
    assert [j.phase for j in await repository.list_completed_jobs(wf.id)] == [1, 2]

    totals = await repository.recompute_totals(wf.id)
    assert totals.total_input_tokens == 110
    assert totals.total_output_tokens == 55
    assert totals.total_tokens == 165
    assert totals.total_cost == pytest.approx(0.75)

    assert await repository.cancel_jobs(wf.id, 2) == 1
    totals = await repository.recompute_totals(wf.id)
    assert totals.total_tokens == 150
    assert totals.total_cost == pytest.approx(0.5)

    statuses = {j.phase: j.status for j in await repository.list_jobs(wf.id)}
    assert statuses == {1: JobStatus.COMPLETED, 2: JobStatus.CANCELLED, 3: JobStatus.FAILED}


@pytest.mark.asyncio
async def test_delete_workflows_removes_jobs(repository):
    wf = await repository.create_workflow(Workflow(report_title="Drone Market"))
    job = await _completed_job(repository, wf.id, 1, 1, 1, 0.0)

    assert await repository.delete_workflows([wf.id, "missing"]) == 1
    assert await repository.get_workflow(wf.id) is None
    assert await repository.get_job(job.id) is None


@pytest.mark.asyncio
async def test_usage_records(repository):
    await repository.record_usage(
        UsageRecord(service_type="content_generation", model="m", job_id="j1", total_tokens=3)
    )
    await repository.record_usage(
        UsageRecord(service_type="content_generation", model="m", job_id="j2", success=False)
    )
    assert len(await repository.list_usage()) == 2
    [entry] = await repository.list_usage("j2")
    assert entry.success is False


@pytest.mark.asyncio
async def test_report_upsert_by_slug(repository):
    first = await repository.upsert_report(
        Report(title="Drone Market", slug="drone-market", category_ids=["a"])
    )
    second = await repository.upsert_report(
        Report(title="Drone Market", slug="drone-market", category_ids=["b"], sections={"x": "y"})
    )
    assert second.id == first.id
    loaded = await repository.get_report_by_slug("drone-market")
    assert loaded.category_ids == ["b"]
    assert loaded.sections == {"x": "y"}
    assert (await repository.get_report(first.id)).slug == "drone-market"
    assert await repository.get_report_by_slug("other") is None


@pytest.mark.asyncio
async def test_translation_upsert_by_report_and_locale(repository):
    report = await repository.upsert_report(Report(title="Drone Market", slug="drone-market"))
    de = await repository.upsert_translation(
        ReportTranslation(report_id=report.id, locale="de", title="t", slug="drone-market")
    )
    again = await repository.upsert_translation(
        ReportTranslation(report_id=report.id, locale="de", title="t2", slug="drone-market")
    )
    await repository.upsert_translation(
        ReportTranslation(report_id=report.id, locale="fr", title="t", slug="drone-market")
    )

    assert again.id == de.id
    translations = await repository.list_translations(report.id)
    assert sorted(t.locale for t in translations) == ["de", "fr"]
    assert {t.locale: t.title for t in translations}["de"] == "t2"


def test_get_repository_defaults_to_memory(monkeypatch, tmp_path):
    monkeypatch.setattr(persistence, "_repository_instance", None)
    monkeypatch.delenv("CONTENTFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("CONTENTFLOW_CONFIG", str(tmp_path / "absent.yaml"))

    repo = get_repository()
    assert isinstance(repo, InMemoryWorkflowRepository)
    assert get_repository() is repo


def test_get_repository_maps_sqlite_url(monkeypatch, tmp_path):
    monkeypatch.setattr(persistence, "_repository_instance", None)
    monkeypatch.setenv("CONTENTFLOW_CONFIG", str(tmp_path / "absent.yaml"))

    repo = get_repository(f"sqlite:///{tmp_path / 'wf.db'}")
    assert isinstance(repo, SQLWorkflowRepository)
    assert repo.database_url.startswith("sqlite+aiosqlite:///")


def test_get_repository_rejects_unknown_backend(monkeypatch, tmp_path):
    monkeypatch.setattr(persistence, "_repository_instance", None)
    monkeypatch.setenv("CONTENTFLOW_CONFIG", str(tmp_path / "absent.yaml"))

    with pytest.raises(ValueError):
        get_repository("mysql://localhost/db")


def test_get_repository_prefers_environment_over_config(monkeypatch, tmp_path):
    monkeypatch.setattr(persistence, "_repository_instance", None)
    monkeypatch.setenv("CONTENTFLOW_DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")

    repo = get_repository(config=ContentflowConfig(database_url=None))
    assert isinstance(repo, SQLWorkflowRepository)
    assert repo.database_url.endswith("env.db")
    assert get_repository() is repo
