"""Request pipeline: validate, prompt, invoke the model, parse, trace."""

from __future__ import annotations

from dataclasses import dataclass

from tech_referee.config import InputConfig, ParserConfig
from tech_referee.llm.client import ModelClient, ModelInvocationError
from tech_referee.obs.logging import get_logger
from tech_referee.obs.tracing import (
    SUCCESS_OUTCOME,
    Timer,
    TraceRecord,
    TraceStore,
    estimate_token_count,
)
from tech_referee.parsing.assembler import parse_reply
from tech_referee.prompts import PromptPackage, create_prompt_package
from tech_referee.types import ComparisonRequest, ComparisonResult, ParseFailure

logger = get_logger(__name__)


@dataclass(slots=True)
class RefereeOutcome:
    """What one comparison produced; exactly one of `result`/`failure` is set."""

    trace_id: str
    latency_ms: float
    result: ComparisonResult | None = None
    failure: ParseFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


class RefereeService:
    """Runs a full comparison against a `ModelClient` and records a trace for it."""

    def __init__(
        self,
        model: ModelClient,
        *,
        trace_store: TraceStore | None = None,
        parser_config: ParserConfig | None = None,
        input_config: InputConfig | None = None,
    ) -> None:
        self.model = model
        self.trace_store = trace_store or TraceStore()
        self.parser_config = parser_config or ParserConfig()
        self.input_config = input_config or InputConfig()

    def compare(self, tech1: str, tech2: str) -> RefereeOutcome:
        """Compare two technologies.

        Raises:
            RequestValidationError: the names cannot be refereed.
            ModelInvocationError: the model call failed; the failure is traced.
        """

        request = ComparisonRequest.create(tech1, tech2)
        package = create_prompt_package(
            request.technology1, request.technology2, self.input_config
        )
        log = logger.bind(
            technology1=package.technology1, technology2=package.technology2
        )
        input_tokens = estimate_token_count(package.system_prompt) + estimate_token_count(
            package.user_prompt
        )
        log.info("referee_request_started")

        timer = Timer()
        try:
            with timer:
                reply = self.model.invoke(package.system_prompt, package.user_prompt)
                parsed = parse_reply(
                    reply,
                    package.technology1,
                    package.technology2,
                    config=self.parser_config,
                )
        except ModelInvocationError as exc:
            self._record(package, exc.code, None, input_tokens, 0, timer.elapsed_ms)
            log.warning(
                "referee_model_failed",
                kind=exc.kind.name,
                retryable=exc.retryable,
                latency_ms=timer.elapsed_ms,
            )
            raise
        except Exception:
            self._record(package, "INTERNAL_ERROR", None, input_tokens, 0, timer.elapsed_ms)
            log.exception("referee_request_crashed", latency_ms=timer.elapsed_ms)
            raise

        output_tokens = estimate_token_count(reply)
        if isinstance(parsed, ParseFailure):
            record = self._record(
                package,
                parsed.code,
                parsed.stage.value,
                input_tokens,
                output_tokens,
                timer.elapsed_ms,
            )
            log.info(
                "referee_parse_failed",
                kind=parsed.kind.value,
                stage=parsed.stage.value,
                reason=parsed.reason,
                trace_id=record.trace_id,
            )
            return RefereeOutcome(
                trace_id=record.trace_id, latency_ms=timer.elapsed_ms, failure=parsed
            )

        record = self._record(
            package, SUCCESS_OUTCOME, None, input_tokens, output_tokens, timer.elapsed_ms
        )
        log.info(
            "referee_request_completed",
            trace_id=record.trace_id,
            latency_ms=timer.elapsed_ms,
        )
        return RefereeOutcome(
            trace_id=record.trace_id, latency_ms=timer.elapsed_ms, result=parsed
        )

    def _record(
        self,
        package: PromptPackage,
        outcome: str,
        failure_stage: str | None,
        input_tokens: int,
        output_tokens: int,
        latency_ms: float,
    ) -> TraceRecord:
        return self.trace_store.create_record(
            technology1=package.technology1,
            technology2=package.technology2,
            outcome=outcome,
            failure_stage=failure_stage,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=latency_ms,
        )
