import pytest
from langchain_core.runnables import RunnableLambda

from comicbook_lib.core.exceptions import (
    LLMConnectionError,
    LLMQuotaError,
    LLMRequestError,
    LLMResponseError,
    handle_llm_error,
)
from comicbook_lib.core.models import Critique
from comicbook_lib.generation.port import (
    GenerationPort,
    LLMGenerationPort,
    validate_structured_output,
)


class FakeStructuredModel:
    """Stands in for a chat model; replays ``responses`` one call at a time."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0
        self.schemas = []

    def with_structured_output(self, schema):
        self.schemas.append(schema)

        def respond(prompt):
            self.calls += 1
            response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
            if isinstance(response, Exception):
                raise response
            return response

        return RunnableLambda(respond)


def _port(model, max_retries=2):
    return LLMGenerationPort(model, max_retries=max_retries, backoff=False)


def test_returns_schema_instance():
    model = FakeStructuredModel(Critique(approved=True, feedback=""))
    result = _port(model).generate("Review this", Critique, name="review")
    assert result == Critique(approved=True)
    assert model.schemas == [Critique]


def test_dict_output_is_validated_into_schema():
    model = FakeStructuredModel({"approved": False, "feedback": "Too long"})
    result = _port(model).generate("Review this", Critique, name="review")
    assert isinstance(result, Critique)
    assert result.feedback == "Too long"


def test_malformed_output_is_retried():
    model = FakeStructuredModel(None, {"feedback": "no verdict"}, {"approved": True})
    result = _port(model).generate("Review this", Critique, name="review")
    assert result.approved
    assert model.calls == 3


def test_malformed_output_fails_after_retries():
    model = FakeStructuredModel({"feedback": "no verdict"})
    with pytest.raises(LLMResponseError):
        _port(model, max_retries=1).generate("Review this", Critique, name="review")
    assert model.calls == 2


def test_timeout_maps_to_connection_error():
    model = FakeStructuredModel(Exception("Request timed out"))
    with pytest.raises(LLMConnectionError) as excinfo:
        _port(model).generate("Review this", Critique, name="review")
    assert model.calls == 3
    assert excinfo.value.details["context"] == "review"


def test_rate_limit_maps_to_quota_error():
    model = FakeStructuredModel(Exception("Rate limit reached for requests"))
    with pytest.raises(LLMQuotaError):
        _port(model, max_retries=0).generate("Review this", Critique, name="review")
    assert model.calls == 1


def test_transient_failure_recovers():
    model = FakeStructuredModel(ConnectionError("reset by peer"), {"approved": True})
    assert _port(model).generate("Review this", Critique, name="review").approved


def test_validate_rejects_missing_output():
    with pytest.raises(LLMResponseError):
        validate_structured_output(Critique, None)


def test_base_port_is_abstract():
    with pytest.raises(NotImplementedError):
        GenerationPort().generate("prompt", Critique, name="review")


@pytest.mark.parametrize(
    "error, expected",
    [
        (Exception("You exceeded your current quota"), LLMQuotaError),
        (TimeoutError("slow"), LLMConnectionError),
        (Exception("Connection refused"), LLMConnectionError),
        (ValueError("unexpected token"), LLMResponseError),
    ],
)
def test_handle_llm_error_classifies(error, expected):
    mapped = handle_llm_error(error, context="scene_1")
    assert isinstance(mapped, expected)
    assert mapped.details["original_error"] == type(error).__name__


def test_handle_llm_error_keeps_llm_errors():
    error = LLMQuotaError("quota")
    assert handle_llm_error(error) is error


class ProviderError(Exception):
    """Provider SDK error carrying an HTTP status code."""

    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


@pytest.mark.parametrize(
    "error",
    [
        ProviderError("Error code: 401 - Incorrect API key provided", 401),
        ProviderError("Error code: 404 - The model `gpt-9` does not exist", 404),
        Exception("Authentication failed for this account"),
    ],
)
def test_rejected_request_is_not_retried(error):
    model = FakeStructuredModel(error, {"approved": True})
    with pytest.raises(LLMRequestError):
        _port(model, max_retries=3).generate("Review this", Critique, name="review")
    assert model.calls == 1


def test_server_error_is_retried():
    model = FakeStructuredModel(ProviderError("Service unavailable, connection dropped", 503), {"approved": True})
    assert _port(model).generate("Review this", Critique, name="review").approved
    assert model.calls == 2


def test_too_many_requests_status_is_quota():
    mapped = handle_llm_error(ProviderError("Too many requests", 429))
    assert isinstance(mapped, LLMQuotaError)
    assert mapped.details["status_code"] == 429
