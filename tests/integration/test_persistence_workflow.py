"""The full pipeline on the SQL repository backed by a temporary SQLite file."""

import pytest

from contentflow.contracts import Completion
from contentflow.orchestrator import WorkflowOrchestrator
from contentflow.persistence import JobStatus, SQLWorkflowRepository, WorkflowStatus


@pytest.mark.asyncio
async def test_sql_pipeline_review_regenerate_and_approve(tmp_path, gateway, config):
    repo = SQLWorkflowRepository(f"sqlite+aiosqlite:///{tmp_path / 'content.db'}")
    config.locales.supported_locales = ["de", "fr"]
    orchestrator = WorkflowOrchestrator(repo, gateway, config)
    gateway.responses = [
        Completion(text="Phase one: USD 2 billion in 2025.", input_tokens=100, output_tokens=50),
        RuntimeError("rate limited"),
    ]

    try:
        wf = await orchestrator.create("Quantum Encryption Market", "user1")
        await orchestrator.wait_idle()

        view = await orchestrator.get_status(wf.id)
        assert view.status == WorkflowStatus.GENERATING
        assert view.current_phase == 2
        assert view.total_tokens == 150
        assert view.failed_job.error_message == "rate limited"

        await orchestrator.regenerate_phase(wf.id, 2)
        view = await orchestrator.get_status(wf.id)
        assert view.status == WorkflowStatus.PENDING_REVIEW
        assert view.total_tokens == 150 + 3 * 15
        completed = await repo.list_completed_jobs(wf.id)
        assert [j.phase for j in completed] == [1, 2, 3, 4]
        assert view.total_cost == pytest.approx(sum(j.cost for j in completed))
        assert [j.status for j in view.jobs if j.phase == 2] == [
            JobStatus.CANCELLED,
            JobStatus.COMPLETED,
        ]

        result = await orchestrator.approve(wf.id, "editor", ["catA"])
        await orchestrator.wait_idle()
        assert result.report.sections["market_analysis"].startswith("Phase one")

        stored = await repo.get_workflow(wf.id)
        assert stored.status == WorkflowStatus.APPROVED
        assert stored.report_id == result.report.id

        assert await orchestrator.approve_children(wf.id, "editor") == 2
        translations = await repo.list_translations(result.report.id)
        assert sorted(t.locale for t in translations) == ["de", "fr"]

        summary = await orchestrator.ledger.summarize()
        assert summary.failures == 1
        assert summary.calls == 2 + 3 + 2 * 4
    finally:
        await repo.db.dispose()
