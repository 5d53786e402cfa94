"""Chat-model invocation for referee prompts, with typed failures."""

from __future__ import annotations

import os
from enum import Enum
from typing import Any, Protocol

import openai
from langchain_core.prompts import ChatPromptTemplate

from tech_referee.config import ModelConfig
from tech_referee.obs.logging import get_logger

logger = get_logger(__name__)

_REFEREE_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "{system_prompt}"),
        ("human", "{user_prompt}"),
    ]
)


class ModelClient(Protocol):
    """Anything that turns a system + user prompt pair into reply text."""

    def invoke(self, system_prompt: str, user_prompt: str) -> str: ...


class ModelErrorKind(str, Enum):
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    RATE_LIMITED = "RATE_LIMIT_EXCEEDED"
    AUTHENTICATION = "CONFIGURATION_ERROR"
    TIMEOUT = "TIMEOUT_ERROR"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    CONNECTION = "CONNECTION_ERROR"
    MODEL_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    UNKNOWN = "API_ERROR"


_STATUS_CODES: dict[ModelErrorKind, int] = {
    ModelErrorKind.QUOTA_EXCEEDED: 429,
    ModelErrorKind.RATE_LIMITED: 429,
    ModelErrorKind.TIMEOUT: 408,
    ModelErrorKind.REQUEST_TOO_LARGE: 400,
}

_NOT_RETRYABLE = frozenset(
    {
        ModelErrorKind.QUOTA_EXCEEDED,
        ModelErrorKind.AUTHENTICATION,
        ModelErrorKind.REQUEST_TOO_LARGE,
    }
)

_MESSAGES: dict[ModelErrorKind, str] = {
    ModelErrorKind.QUOTA_EXCEEDED: "Service temporarily unavailable due to quota limits. Please try again later.",
    ModelErrorKind.RATE_LIMITED: "Too many requests. Please wait a moment and try again.",
    ModelErrorKind.AUTHENTICATION: "Service configuration error. Please try again later.",
    ModelErrorKind.TIMEOUT: "The analysis request timed out. Please try again.",
    ModelErrorKind.EMPTY_RESPONSE: "No response received from the analysis service.",
    ModelErrorKind.CONNECTION: "Unable to connect to analysis service. Please try again.",
    ModelErrorKind.MODEL_UNAVAILABLE: "Analysis service temporarily unavailable. Please try again later.",
    ModelErrorKind.REQUEST_TOO_LARGE: "Request too large. Please try with shorter technology names.",
    ModelErrorKind.UNKNOWN: "Unexpected error from the analysis service.",
}


class ModelInvocationError(RuntimeError):
    """A model call failed; `kind` tells the boundary how to report it."""

    def __init__(
        self,
        kind: ModelErrorKind,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or _MESSAGES[kind])
        self.kind = kind
        self.details = details or {}

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return _STATUS_CODES.get(self.kind, 500)

    @property
    def retryable(self) -> bool:
        return self.kind not in _NOT_RETRYABLE


def classify_openai_error(exc: openai.APIError) -> ModelInvocationError:
    """Map an OpenAI SDK exception onto a `ModelInvocationError`."""

    code = getattr(exc, "code", None)
    if isinstance(exc, openai.APITimeoutError):
        kind = ModelErrorKind.TIMEOUT
    elif isinstance(exc, openai.APIConnectionError):
        kind = ModelErrorKind.CONNECTION
    elif isinstance(exc, openai.RateLimitError):
        kind = (
            ModelErrorKind.QUOTA_EXCEEDED
            if code == "insufficient_quota"
            else ModelErrorKind.RATE_LIMITED
        )
    elif isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        kind = ModelErrorKind.AUTHENTICATION
    elif isinstance(exc, openai.NotFoundError):
        kind = ModelErrorKind.MODEL_UNAVAILABLE
    elif isinstance(exc, openai.BadRequestError) and code == "context_length_exceeded":
        kind = ModelErrorKind.REQUEST_TOO_LARGE
    else:
        kind = ModelErrorKind.UNKNOWN

    return ModelInvocationError(
        kind,
        details={
            "status": getattr(exc, "status_code", None),
            "type": getattr(exc, "type", None),
            "code": code,
            "original_message": str(exc),
        },
    )


class OpenAIRefereeModel:
    """Calls a LangChain chat model (normally `ChatOpenAI`) with referee prompts."""

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    def invoke(self, system_prompt: str, user_prompt: str) -> str:
        messages = _REFEREE_PROMPT.format_messages(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
        )
        try:
            response = self.llm.invoke(messages)
        except openai.APIError as exc:
            error = classify_openai_error(exc)
            logger.warning("model_call_failed", kind=error.kind.name, status=error.details.get("status"))
            raise error from exc

        content = _message_text(response)
        if not content.strip():
            logger.warning("model_empty_response")
            raise ModelInvocationError(ModelErrorKind.EMPTY_RESPONSE)
        logger.debug("model_reply_received", length=len(content))
        return content


def _message_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return "".join(parts)
    return "" if content is None else str(content)


def create_chat_model(config: ModelConfig | None = None) -> Any:
    """Build `ChatOpenAI` from the environment, or `None` when no key is set."""

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        return None

    from langchain_openai import ChatOpenAI

    config = config or ModelConfig()
    return ChatOpenAI(
        model=os.getenv("OPENAI_MODEL", config.model),
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout_seconds,
        max_retries=config.max_retries,
    )
