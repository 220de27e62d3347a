"""Command line interface for operating content generation workflows."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import typer

from contentflow import ContentflowError, NotFoundError, WorkflowOrchestrator
from contentflow.contracts import WorkflowView

app = typer.Typer(help="CLI for Contentflow report generation")

workflow_app = typer.Typer(help="Commands for managing workflows")
usage_app = typer.Typer(help="Commands for inspecting API usage")

app.add_typer(workflow_app, name="workflow")
app.add_typer(usage_app, name="usage")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for contentflow"),
) -> None:
    """Contentflow CLI entry point."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _orchestrator() -> WorkflowOrchestrator:
    return WorkflowOrchestrator.from_config()


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _echo_view(view: WorkflowView, indent: str = "") -> None:
    typer.echo(
        f"{indent}Workflow {view.id}: {view.status.value} "
        f"(phase {view.current_phase}, {view.target_language})"
    )
    typer.echo(f"{indent}Title: {view.report_title}")
    typer.echo(
        f"{indent}Tokens: {view.total_tokens} "
        f"(in {view.total_input_tokens} / out {view.total_output_tokens}), "
        f"cost ${view.total_cost:.6f}"
    )
    for job in view.jobs:
        line = f"{indent}- phase {job.phase}: {job.status.value} [{job.total_tokens} tokens]"
        if job.error_message:
            line += f" error: {job.error_message}"
        typer.echo(line)


@workflow_app.command("create")
def workflow_create(
    title: str,
    created_by: Optional[str] = typer.Option(None, help="User id recorded as creator"),
    language: Optional[str] = typer.Option(None, help="Target language code"),
    wait: bool = typer.Option(True, help="Wait for the pipeline to finish or stall"),
) -> None:
    """
    Create a workflow for a report title and start generating phase 1.

    Example:
        contentflow workflow create "Quantum Encryption Market"
        # Output: Created workflow 1b9d...: GENERATING
    """

    async def run() -> WorkflowView:
        orchestrator = _orchestrator()
        workflow = await orchestrator.create(title, created_by, target_language=language)
        if wait:
            await orchestrator.wait_idle()
        return await orchestrator.get_status(workflow.id)

    try:
        view = asyncio.run(run())
    except ContentflowError as e:
        _fail(str(e))
    typer.echo(f"Created workflow {view.id}: {view.status.value}")
    if view.failed_job:
        typer.echo(f"Phase {view.failed_job.phase} failed: {view.failed_job.error_message}")


@workflow_app.command("list")
def workflow_list() -> None:
    """List all workflows with their status and current phase."""
    views = asyncio.run(_orchestrator().list_workflows())
    if not views:
        typer.echo("No workflows found")
        return
    for view in views:
        typer.echo(
            f"{view.id}\t{view.status.value}\tphase {view.current_phase}\t"
            f"{view.target_language}\t{view.report_title}"
        )


@workflow_app.command("show")
def workflow_show(workflow_id: str) -> None:
    """
    Show a workflow, its jobs and its child workflows.

    Exits with code 1 when the workflow does not exist.
    """
    try:
        view = asyncio.run(_orchestrator().get_status(workflow_id))
    except NotFoundError:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)
    _echo_view(view)
    for child in view.children:
        _echo_view(child, indent="  ")


@workflow_app.command("regenerate")
def workflow_regenerate(workflow_id: str, phase: int) -> None:
    """Cancel a phase's output and re-run the pipeline from that phase."""
    orchestrator = _orchestrator()

    async def run() -> WorkflowView:
        await orchestrator.regenerate_phase(workflow_id, phase)
        return await orchestrator.get_status(workflow_id)

    try:
        view = asyncio.run(run())
    except ContentflowError as e:
        _fail(str(e))
    _echo_view(view)


@workflow_app.command("approve")
def workflow_approve(
    workflow_id: str,
    approver: str = typer.Option("cli", help="User id recorded as approver"),
    category: Optional[List[str]] = typer.Option(
        None, "--category", "-c", help="Category id; repeat for several"
    ),
) -> None:
    """
    Approve a workflow pending review.

    Root workflows need at least one --category and spawn translation workflows.
    """
    orchestrator = _orchestrator()

    async def run():
        result = await orchestrator.approve(workflow_id, approver, category or None)
        await orchestrator.wait_idle()
        return result

    try:
        result = asyncio.run(run())
    except ContentflowError as e:
        _fail(str(e))
    typer.echo(f"Workflow {result.workflow.id}: {result.workflow.status.value}")
    if result.report:
        typer.echo(f"Report {result.report.id} ({result.report.slug})")
    if result.translation:
        typer.echo(f"Translation {result.translation.locale} for report {result.translation.report_id}")
    for child in result.children:
        typer.echo(f"- child {child.id} ({child.target_language})")


@workflow_app.command("approve-children")
def workflow_approve_children(
    workflow_id: str,
    approver: str = typer.Option("cli", help="User id recorded as approver"),
) -> None:
    """Approve every child workflow of a parent that is pending review."""
    count = asyncio.run(_orchestrator().approve_children(workflow_id, approver))
    typer.echo(f"Approved {count} child workflow(s)")


@workflow_app.command("delete")
def workflow_delete(workflow_ids: List[str]) -> None:
    """Delete workflows and their jobs."""
    try:
        count = asyncio.run(_orchestrator().delete_workflows(workflow_ids))
    except ContentflowError as e:
        _fail(str(e))
    typer.echo(f"Deleted {count} workflow(s)")


@usage_app.command("summary")
def usage_summary() -> None:
    """Totals over every recorded completion call."""
    summary = asyncio.run(_orchestrator().ledger.summarize())
    typer.echo(f"Calls: {summary.calls} ({summary.failures} failed)")
    typer.echo(
        f"Tokens: {summary.total_tokens} "
        f"(in {summary.input_tokens} / out {summary.output_tokens})"
    )
    typer.echo(f"Cost: ${summary.cost:.6f}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
