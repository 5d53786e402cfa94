import httpx
import openai
import pytest
from langchain_core.messages import AIMessage

from tech_referee.llm.client import (
    ModelErrorKind,
    ModelInvocationError,
    OpenAIRefereeModel,
    create_chat_model,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class _FakeLLM:
    def __init__(self, reply: object = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[list] = []

    def invoke(self, messages: list) -> AIMessage:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


def _status_error(cls: type, status: int, code: str | None = None) -> Exception:
    return cls(
        "upstream failure",
        response=httpx.Response(status, request=_REQUEST),
        body={"code": code} if code else None,
    )


def test_invoke_sends_system_and_human_messages() -> None:
    llm = _FakeLLM(reply="### 1. The Matchup\nReact vs Vue")
    model = OpenAIRefereeModel(llm)

    reply = model.invoke("be impartial", "Compare React vs Vue")

    assert reply == "### 1. The Matchup\nReact vs Vue"
    messages = llm.calls[0]
    assert [message.type for message in messages] == ["system", "human"]
    assert messages[0].content == "be impartial"
    assert messages[1].content == "Compare React vs Vue"


def test_list_content_is_joined() -> None:
    llm = _FakeLLM(reply=[{"type": "text", "text": "part one, "}, {"type": "text", "text": "part two"}])

    assert OpenAIRefereeModel(llm).invoke("s", "u") == "part one, part two"


def test_blank_reply_is_an_empty_response_error() -> None:
    with pytest.raises(ModelInvocationError) as excinfo:
        OpenAIRefereeModel(_FakeLLM(reply="   ")).invoke("s", "u")

    assert excinfo.value.kind is ModelErrorKind.EMPTY_RESPONSE
    assert excinfo.value.retryable


@pytest.mark.parametrize(
    "error, kind, status, retryable",
    [
        (_status_error(openai.RateLimitError, 429, "insufficient_quota"), ModelErrorKind.QUOTA_EXCEEDED, 429, False),
        (_status_error(openai.RateLimitError, 429), ModelErrorKind.RATE_LIMITED, 429, True),
        (_status_error(openai.AuthenticationError, 401, "invalid_api_key"), ModelErrorKind.AUTHENTICATION, 500, False),
        (_status_error(openai.NotFoundError, 404, "model_not_found"), ModelErrorKind.MODEL_UNAVAILABLE, 500, True),
        (
            _status_error(openai.BadRequestError, 400, "context_length_exceeded"),
            ModelErrorKind.REQUEST_TOO_LARGE,
            400,
            False,
        ),
        (_status_error(openai.InternalServerError, 500), ModelErrorKind.UNKNOWN, 500, True),
        (openai.APITimeoutError(request=_REQUEST), ModelErrorKind.TIMEOUT, 408, True),
        (openai.APIConnectionError(request=_REQUEST), ModelErrorKind.CONNECTION, 500, True),
    ],
)
def test_openai_errors_map_to_kinds(
    error: Exception, kind: ModelErrorKind, status: int, retryable: bool
) -> None:
    with pytest.raises(ModelInvocationError) as excinfo:
        OpenAIRefereeModel(_FakeLLM(error=error)).invoke("s", "u")

    raised = excinfo.value
    assert raised.kind is kind
    assert raised.status_code == status
    assert raised.retryable is retryable
    assert raised.code == kind.value
    assert raised.__cause__ is error


def test_quota_details_carry_upstream_code() -> None:
    error = _status_error(openai.RateLimitError, 429, "insufficient_quota")

    with pytest.raises(ModelInvocationError) as excinfo:
        OpenAIRefereeModel(_FakeLLM(error=error)).invoke("s", "u")

    assert excinfo.value.details["status"] == 429
    assert excinfo.value.details["code"] == "insufficient_quota"


def test_create_chat_model_without_key_returns_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert create_chat_model() is None
