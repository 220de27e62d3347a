from contentflow.context import build_context, compress_context
from contentflow.persistence.models import Job, JobStatus
from contentflow.usage import estimate_tokens


def _job(phase, text, status=JobStatus.COMPLETED):
    return Job(workflow_id="wf", phase=phase, input_prompt="p", status=status, output_text=text)


def test_build_context_orders_by_phase_and_tags_each_part():
    jobs = [_job(2, "second"), _job(1, "first")]
    assert build_context(jobs) == "Phase 1: first\n\nPhase 2: second"


def test_build_context_skips_jobs_that_did_not_complete():
    jobs = [
        _job(1, "kept"),
        _job(2, "old attempt", status=JobStatus.CANCELLED),
        _job(2, None, status=JobStatus.FAILED),
        _job(3, ""),
    ]
    assert build_context(jobs) == "Phase 1: kept"


def test_build_context_empty():
    assert build_context([]) == ""


def test_compress_context_leaves_small_context_alone():
    context = "Phase 1: a short note."
    assert compress_context(context, None) == context
    assert compress_context(context, 1000) == context


def test_compress_context_keeps_market_figures_within_budget():
    filler = "Nothing of note happened here at all. " * 40
    context = (
        f"Phase 1: {filler}\n"
        "The market reached USD 4.2 billion in 2024. It grows at 12% CAGR.\n"
        f"Phase 2: {filler}"
    )
    compressed = compress_context(context, 30)
    assert "USD 4.2 billion" in compressed
    assert "Nothing of note" not in compressed
    assert estimate_tokens(compressed) <= 30
