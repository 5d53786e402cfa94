import pytest

from tech_referee.obs.tracing import CostModel, Timer, TraceStore, estimate_token_count


def _record(store: TraceStore, outcome: str, latency_ms: float):
    return store.create_record(
        technology1="React",
        technology2="Vue",
        outcome=outcome,
        failure_stage=None if outcome == "SUCCESS" else "scenario",
        input_tokens=1000,
        output_tokens=2000,
        latency_ms=latency_ms,
    )


def test_records_are_retrievable_and_costed() -> None:
    store = TraceStore(cost_model=CostModel(input_per_1k=0.5, output_per_1k=1.0))

    record = _record(store, "SUCCESS", 12.0)

    assert store.get(record.trace_id) is record
    assert record.estimated_cost_usd == pytest.approx(2.5)
    assert record.succeeded
    with pytest.raises(KeyError):
        store.get("missing")


def test_summary_counts_successes_and_failures() -> None:
    store = TraceStore()
    assert store.summary()["total_requests"] == 0

    for latency in (10.0, 20.0, 30.0):
        _record(store, "SUCCESS", latency)
    _record(store, "SCENARIO_MISSING", 40.0)

    summary = store.summary()
    assert summary["total_requests"] == 4
    assert summary["successful_requests"] == 3
    assert summary["failed_requests"] == 1
    assert summary["avg_latency_ms"] == pytest.approx(25.0)
    assert summary["total_input_tokens"] == 4000
    assert len(store.list_recent(limit=2)) == 2
    assert len(store) == 4


def test_timer_and_token_estimate() -> None:
    with Timer() as timer:
        pass

    assert timer.elapsed_ms >= 0.0
    assert estimate_token_count("React vs. Vue!") == 5
