"""Request tracing and cost accounting for referee comparisons."""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", flags=re.UNICODE)

SUCCESS_OUTCOME = "SUCCESS"


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    technology1: str
    technology2: str
    outcome: str
    failure_stage: str | None
    input_tokens: int
    output_tokens: int
    estimated_cost_usd: float
    latency_ms: float

    @property
    def succeeded(self) -> bool:
        return self.outcome == SUCCESS_OUTCOME


@dataclass(slots=True)
class CostModel:
    """Token pricing model (USD per 1K tokens), defaulting to gpt-4o-mini rates."""

    input_per_1k: float = 0.00015
    output_per_1k: float = 0.0006

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return (input_tokens / 1000.0) * self.input_per_1k + (
            output_tokens / 1000.0
        ) * self.output_per_1k


class TraceStore:
    """In-memory trace storage for API-level observability."""

    def __init__(self, *, cost_model: CostModel | None = None) -> None:
        self._records: dict[str, TraceRecord] = {}
        self._cost_model = cost_model or CostModel()

    def create_record(
        self,
        *,
        technology1: str,
        technology2: str,
        outcome: str,
        failure_stage: str | None = None,
        input_tokens: int,
        output_tokens: int,
        latency_ms: float,
    ) -> TraceRecord:
        trace_id = str(uuid.uuid4())
        record = TraceRecord(
            trace_id=trace_id,
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            technology1=technology1,
            technology2=technology2,
            outcome=outcome,
            failure_stage=failure_stage,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            estimated_cost_usd=self._cost_model.estimate_cost(input_tokens, output_tokens),
            latency_ms=latency_ms,
        )
        self._records[trace_id] = record
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        if limit <= 0:
            return []
        return list(self._records.values())[-limit:]

    def __len__(self) -> int:
        return len(self._records)

    def summary(self) -> dict[str, float | int]:
        """Aggregate core observability metrics for dashboard display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "successful_requests": 0,
                "failed_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "total_input_tokens": 0,
                "total_output_tokens": 0,
                "total_estimated_cost_usd": 0.0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        successes = sum(1 for record in records if record.succeeded)

        return {
            "total_requests": total,
            "successful_requests": successes,
            "failed_requests": total - successes,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "total_input_tokens": sum(record.input_tokens for record in records),
            "total_output_tokens": sum(record.output_tokens for record in records),
            "total_estimated_cost_usd": sum(record.estimated_cost_usd for record in records),
        }


class Timer:
    """Context timer around a model call and parse."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def estimate_token_count(text: str) -> int:
    return len(_TOKEN_PATTERN.findall(text))
