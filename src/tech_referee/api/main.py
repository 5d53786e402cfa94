"""FastAPI entrypoint for referee, trace and metrics endpoints."""

from __future__ import annotations

import os
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from tech_referee.admission import AdmissionPolicy, AllowAllAdmission
from tech_referee.config import LoggingConfig, ModelConfig
from tech_referee.llm.client import (
    ModelInvocationError,
    OpenAIRefereeModel,
    create_chat_model,
)
from tech_referee.llm.offline import OfflineRefereeModel
from tech_referee.obs.logging import configure_logging, get_logger
from tech_referee.obs.tracing import TraceStore
from tech_referee.service import RefereeService
from tech_referee.types import RequestValidationError

logger = get_logger(__name__)


class RefereeRequest(BaseModel):
    # Empty names are reported as VALIDATION_ERROR by the service, not as 422.
    tech1: str = Field(default="", max_length=500)
    tech2: str = Field(default="", max_length=500)


def _error(
    status_code: int,
    code: str,
    message: str,
    *,
    details: Any = None,
    retryable: bool = False,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": message,
            "details": details,
            "retryable": retryable,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def _client_id(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _default_service() -> RefereeService:
    llm = create_chat_model(ModelConfig())
    model = OpenAIRefereeModel(llm) if llm is not None else OfflineRefereeModel()
    return RefereeService(model, trace_store=TraceStore())


def create_app(
    *,
    service: RefereeService | None = None,
    admission: AdmissionPolicy | None = None,
) -> FastAPI:
    service = service or _default_service()
    admission = admission or AllowAllAdmission()
    trace_store = service.trace_store

    app = FastAPI(title="Tech Referee", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, Any]:
        offline = isinstance(service.model, OfflineRefereeModel)
        return {
            "status": "ok",
            "llm_configured": not offline,
            "model_mode": "offline" if offline else "openai",
            "trace_count": len(trace_store),
        }

    @app.post("/referee")
    def referee(body: RefereeRequest, request: Request) -> dict[str, Any]:
        client_id = _client_id(request)
        if not admission.admit_request(client_id):
            logger.info("referee_request_rejected", client_id=client_id)
            raise _error(
                429,
                "RATE_LIMIT_EXCEEDED",
                "Too many requests. Please wait before trying again.",
                retryable=True,
            )

        try:
            outcome = service.compare(body.tech1, body.tech2)
        except RequestValidationError as exc:
            raise _error(400, exc.code, str(exc), details=exc.errors) from exc
        except ModelInvocationError as exc:
            raise _error(
                exc.status_code,
                exc.code,
                str(exc),
                details=exc.details,
                retryable=exc.retryable,
            ) from exc
        except Exception as exc:
            raise _error(
                500,
                "INTERNAL_ERROR",
                "An unexpected error occurred. Please try again.",
                details=str(exc),
                retryable=True,
            ) from exc

        if outcome.failure is not None:
            raise _error(
                500,
                "PARSING_ERROR",
                "Failed to parse AI response. Please try again.",
                details={"trace_id": outcome.trace_id, **outcome.failure.to_payload()},
                retryable=True,
            )

        return {
            "success": True,
            "data": outcome.result.to_payload(),
            "trace_id": outcome.trace_id,
            "latency_ms": outcome.latency_ms,
        }

    @app.get("/traces")
    def traces(limit: int = 20) -> dict[str, Any]:
        records = [asdict(record) for record in trace_store.list_recent(limit=limit)]
        return {"items": records}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return trace_store.summary()

    return app


configure_logging(
    LoggingConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="json" if os.getenv("LOG_FORMAT", "console").lower() == "json" else "console",
    )
)
app = create_app()
