"""Tests for the LLM client base class and the OpenAI and Gemini clients."""

import asyncio
from types import SimpleNamespace

import pytest

from clinical_document_evaluation.clients import (
    BaseLLMClient,
    GeminiClient,
    LLMClientProtocol,
    OpenAIClient,
)
from clinical_document_evaluation.core.exceptions import (
    ConfigurationError,
    LLMContentFilteredError,
    LLMError,
    LLMRateLimitError,
)


class StubClient(BaseLLMClient):
    def __init__(self, behaviour, api_key="key", rate_limit_delay=0.0):
        self._behaviour = behaviour
        super().__init__(api_key=api_key, model_name="stub-model", rate_limit_delay=rate_limit_delay)

    async def _call_api(self, prompt, system_instruction, model, json_output):
        if isinstance(self._behaviour, BaseException):
            raise self._behaviour
        return f"{model}:{prompt}"

    @property
    def provider_name(self):
        return "stub"


def test_missing_api_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        StubClient("ok", api_key=None)


def test_generate_uses_default_model_and_counts_calls():
    client = StubClient("ok")

    text = asyncio.run(client.generate("hello"))

    assert text == "stub-model:hello"
    assert client.total_calls == 1
    assert client.success_rate == 100.0
    assert isinstance(client, LLMClientProtocol)


def test_unexpected_errors_become_llm_errors():
    client = StubClient(RuntimeError("connection reset"))

    with pytest.raises(LLMError) as excinfo:
        asyncio.run(client.generate("hello"))

    assert excinfo.value.provider == "stub"
    assert client.failed_calls == 1
    assert client.success_rate == 0.0


def test_configuration_errors_pass_through():
    client = StubClient(ConfigurationError("key revoked"))

    with pytest.raises(ConfigurationError):
        asyncio.run(client.generate("hello"))


def test_calls_are_spaced_by_rate_limit_delay(monkeypatch):
    client = StubClient("ok", rate_limit_delay=5.0)
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("clinical_document_evaluation.clients.llm_client.asyncio.sleep", fake_sleep)

    async def scenario():
        await client.generate("a")
        await client.generate("b")

    asyncio.run(scenario())

    assert len(sleeps) == 1
    assert 0 < sleeps[0] <= 5.0


# =============================================================================
# OpenAI client
# =============================================================================


class FakeCompletions:
    def __init__(self, response):
        self.response = response
        self.requests = []

    async def create(self, **request):
        self.requests.append(request)
        if isinstance(self.response, BaseException):
            raise self.response
        return self.response


def _openai_client(response):
    client = OpenAIClient(api_key="sk-test", rate_limit_delay=0.0)
    completions = FakeCompletions(response)
    client._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return client, completions


def _completion(content, finish_reason="stop"):
    choice = SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)
    return SimpleNamespace(choices=[choice])


def test_openai_requires_key():
    with pytest.raises(ConfigurationError):
        OpenAIClient(api_key="")


def test_openai_builds_chat_request():
    client, completions = _openai_client(_completion('{"differentials": []}'))

    text = asyncio.run(
        client.generate("prompt", system_instruction="system", model="gpt-4o", json_output=True)
    )

    request = completions.requests[0]
    assert text == '{"differentials": []}'
    assert request["model"] == "gpt-4o"
    assert request["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "prompt"},
    ]
    assert request["response_format"] == {"type": "json_object"}
    assert request["temperature"] == 0.7


def test_openai_plain_request_has_no_response_format():
    client, completions = _openai_client(_completion("SUBJECTIVE: ..."))

    asyncio.run(client.generate("prompt"))

    assert "response_format" not in completions.requests[0]
    assert completions.requests[0]["model"] == "gpt-4"


def test_openai_empty_response_is_llm_error():
    client, _ = _openai_client(_completion(None))

    with pytest.raises(LLMError):
        asyncio.run(client.generate("prompt"))


def test_openai_content_filter_finish_reason():
    client, _ = _openai_client(_completion("", finish_reason="content_filter"))

    with pytest.raises(LLMContentFilteredError):
        asyncio.run(client.generate("prompt"))


# =============================================================================
# Gemini client
# =============================================================================


class FakeGenai:
    """Stands in for the google.generativeai module."""

    def __init__(self, response):
        self.response = response
        self.models = []

    def GenerativeModel(self, **kwargs):
        self.models.append(kwargs)
        return FakeGenerativeModel(self.response)


class FakeGenerativeModel:
    def __init__(self, response):
        self._response = response

    async def generate_content_async(self, prompt):
        if isinstance(self._response, BaseException):
            raise self._response
        return self._response


def _gemini_client(monkeypatch, response):
    monkeypatch.setattr(GeminiClient, "_initialize_client", lambda self: None)
    client = GeminiClient(api_key="g-test", rate_limit_delay=0.0)
    genai = FakeGenai(response)
    client._genai = genai
    return client, genai


def _gemini_response(*texts, block_reason=None):
    parts = [SimpleNamespace(text=text) for text in texts]
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts))
    return SimpleNamespace(
        prompt_feedback=SimpleNamespace(block_reason=block_reason),
        candidates=[candidate] if parts else [],
    )


def test_gemini_requires_key():
    with pytest.raises(ConfigurationError):
        GeminiClient(api_key=None)


def test_gemini_joins_parts_and_requests_json(monkeypatch):
    client, genai = _gemini_client(monkeypatch, _gemini_response('{"differentials": ', "[]}"))

    text = asyncio.run(
        client.generate("prompt", system_instruction="system", model="gemini-1.5-pro", json_output=True)
    )

    assert text == '{"differentials": []}'
    model_kwargs = genai.models[0]
    assert model_kwargs["model_name"] == "gemini-1.5-pro"
    assert model_kwargs["system_instruction"] == "system"
    assert model_kwargs["generation_config"]["response_mime_type"] == "application/json"


@pytest.mark.parametrize(
    "error,expected",
    [
        (RuntimeError("API key not valid. Please pass a valid API key."), ConfigurationError),
        (RuntimeError("429 Resource has been exhausted (e.g. check quota)."), LLMRateLimitError),
        (RuntimeError("Response was blocked by safety filters"), LLMContentFilteredError),
        (RuntimeError("503 Service Unavailable"), LLMError),
    ],
)
def test_gemini_error_mapping(monkeypatch, error, expected):
    client, _ = _gemini_client(monkeypatch, error)

    with pytest.raises(expected) as excinfo:
        asyncio.run(client.generate("prompt"))

    assert type(excinfo.value) is expected


def test_gemini_blocked_prompt_is_content_filtered(monkeypatch):
    client, _ = _gemini_client(monkeypatch, _gemini_response("ignored", block_reason="SAFETY"))

    with pytest.raises(LLMContentFilteredError):
        asyncio.run(client.generate("prompt"))


def test_gemini_empty_response_is_llm_error(monkeypatch):
    client, _ = _gemini_client(monkeypatch, _gemini_response())

    with pytest.raises(LLMError) as excinfo:
        asyncio.run(client.generate("prompt"))

    assert type(excinfo.value) is LLMError
