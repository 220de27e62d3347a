from contentflow.scoring import assess_completeness, assess_quality, assess_relevance


def test_scores_stay_within_bounds():
    for text in ("", "x", "USD 5% " * 500):
        assert 1.0 <= assess_quality(text) <= 10.0
        assert 1.0 <= assess_relevance(text, "Drone Market") <= 10.0
        assert 1.0 <= assess_completeness(text, 1) <= 10.0


def test_quality_rewards_figures_and_length():
    thin = assess_quality("short")
    rich = assess_quality("The market was USD 4 billion and grew 12% last year. " * 10)
    assert rich > thin


def test_relevance_rewards_subject_mentions():
    title = "Quantum Encryption Market"
    assert assess_relevance("quantum encryption market growth", title) > assess_relevance(
        "unrelated words", title
    )


def test_completeness_checks_phase_markers():
    assert assess_completeness("Grows at 10% CAGR through 2034", 1) == 7.0
    assert assess_completeness("nothing", 1) == 5.0
    assert assess_completeness("nothing", 99) == 5.0
