"""Tests for OpenAIClient with the SDK client replaced by a mock."""

from unittest.mock import MagicMock

import httpx
import openai
import pytest

from treatment_plan_generation.clients import OpenAIClient
from treatment_plan_generation.core.enums import GenerationTask, TransportErrorKind
from treatment_plan_generation.core.exceptions import (
    ContentFilteredError,
    RateLimitError,
    TransportError,
    TransportTimeoutError,
)
from treatment_plan_generation.core.models import (
    Examination,
    GenerationRequest,
    MediaReference,
)
from treatment_plan_generation.generation import PlanRequestBuilder

API_URL = "https://api.openai.com/v1/chat/completions"


def _completion(content, finish_reason="stop"):
    choice = MagicMock()
    choice.finish_reason = finish_reason
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _status_response(status_code, headers=None):
    return httpx.Response(
        status_code, headers=headers or {}, request=httpx.Request("POST", API_URL)
    )


@pytest.fixture
def client():
    instance = OpenAIClient(api_key="sk-test", timeout=5.0)
    instance._client = MagicMock()
    return instance


@pytest.fixture
def plan_request(jane_doe_assessment):
    return PlanRequestBuilder().build(jane_doe_assessment)


@pytest.fixture
def diagnosis_request():
    media = (
        MediaReference("https://cdn.example/front.jpg"),
        MediaReference("https://cdn.example/walk.mp4"),
    )
    return PlanRequestBuilder().build_diagnosis(
        Examination(description="Rounded shoulders", media=media)
    )


class TestBuildMessages:
    def test_text_request(self, plan_request):
        messages = OpenAIClient.build_messages(plan_request)

        assert messages[0] == {"role": "system", "content": plan_request.system_prompt}
        assert messages[1] == {"role": "user", "content": plan_request.user_prompt}

    def test_multimodal_request_has_one_part_per_media(self, diagnosis_request):
        content = OpenAIClient.build_messages(diagnosis_request)[1]["content"]

        assert content[0] == {"type": "text", "text": diagnosis_request.user_prompt}
        assert [part["image_url"]["url"] for part in content[1:]] == [
            "https://cdn.example/front.jpg",
            "https://cdn.example/walk.mp4",
        ]
        assert all(part["type"] == "image_url" for part in content[1:])


class TestGenerate:
    def test_returns_content(self, client, plan_request, valid_plan_json):
        client._client.chat.completions.create.return_value = _completion(valid_plan_json)

        assert client.generate(plan_request) == valid_plan_json

        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["max_tokens"] == 3000
        assert client.total_calls == 1

    def test_diagnosis_uses_vision_model(self, client, diagnosis_request, valid_diagnosis_json):
        client._client.chat.completions.create.return_value = _completion(valid_diagnosis_json)

        client.generate(diagnosis_request)

        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert client.model_name_for(GenerationTask.DIAGNOSIS) == "gpt-4o"
        assert client.model_name_for(GenerationTask.TREATMENT_PLAN) == "gpt-4o-mini"

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_content(self, client, plan_request, content):
        client._client.chat.completions.create.return_value = _completion(content)

        with pytest.raises(TransportError) as exc_info:
            client.generate(plan_request)
        assert exc_info.value.kind == TransportErrorKind.EMPTY_RESPONSE

    def test_no_choices(self, client, plan_request):
        response = MagicMock()
        response.choices = []
        client._client.chat.completions.create.return_value = response

        with pytest.raises(TransportError) as exc_info:
            client.generate(plan_request)
        assert exc_info.value.kind == TransportErrorKind.EMPTY_RESPONSE

    def test_content_filter(self, client, plan_request):
        client._client.chat.completions.create.return_value = _completion(
            None, finish_reason="content_filter"
        )

        with pytest.raises(ContentFilteredError):
            client.generate(plan_request)
        assert client.failed_calls == 1


class TestErrorTranslation:
    def test_rate_limit(self, client, plan_request):
        client._client.chat.completions.create.side_effect = openai.RateLimitError(
            "slow down", response=_status_response(429, {"retry-after": "2"}), body=None
        )

        with pytest.raises(RateLimitError) as exc_info:
            client.generate(plan_request)
        assert exc_info.value.retry_after == 2.0
        assert exc_info.value.kind == TransportErrorKind.RATE_LIMITED

    def test_timeout(self, client, plan_request):
        client._client.chat.completions.create.side_effect = openai.APITimeoutError(
            request=httpx.Request("POST", API_URL)
        )

        with pytest.raises(TransportTimeoutError) as exc_info:
            client.generate(plan_request)
        assert exc_info.value.timeout_seconds == 5.0

    def test_connection_error(self, client, plan_request):
        client._client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=httpx.Request("POST", API_URL)
        )

        with pytest.raises(TransportError) as exc_info:
            client.generate(plan_request)
        assert exc_info.value.kind == TransportErrorKind.NETWORK

    def test_http_status(self, client, plan_request):
        client._client.chat.completions.create.side_effect = openai.APIStatusError(
            "bad gateway", response=_status_response(502), body=None
        )

        with pytest.raises(TransportError) as exc_info:
            client.generate(plan_request)
        assert exc_info.value.kind == TransportErrorKind.HTTP_STATUS
        assert exc_info.value.status_code == 502

    def test_unknown_error_is_wrapped(self, client, plan_request):
        client._client.chat.completions.create.side_effect = ValueError("bad payload")

        with pytest.raises(TransportError) as exc_info:
            client.generate(plan_request)
        assert isinstance(exc_info.value.original_error, ValueError)
        assert client.success_rate == 0.0


def test_request_defaults_are_sent(client):
    request = GenerationRequest(
        task=GenerationTask.TREATMENT_PLAN, system_prompt="s", user_prompt="u", temperature=0.7
    )
    client._client.chat.completions.create.return_value = _completion('{"ok": true}')

    client.generate(request)

    assert client._client.chat.completions.create.call_args.kwargs["temperature"] == 0.7
