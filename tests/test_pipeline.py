"""Tests for TreatmentPlanPipeline using fake clients; no real LLM calls."""

import json
import time
from unittest.mock import MagicMock

import pytest

from treatment_plan_generation.core.enums import (
    ArtifactKind,
    ArtifactSource,
    GenerationTask,
    TransportErrorKind,
    UrgencyLevel,
)
from treatment_plan_generation.core.exceptions import (
    AccessDeniedError,
    ConfigurationError,
    ContentFilteredError,
    RateLimitError,
    StorageError,
    TransportError,
    ValidationError,
)
from treatment_plan_generation.core.config import PipelineConfiguration
from treatment_plan_generation.core.models import Examination, MediaReference
from treatment_plan_generation.pipeline import TreatmentPlanPipeline
from treatment_plan_generation.repository import ArtifactStore


@pytest.fixture
def make_pipeline(config, fallback_provider):
    def _make(client):
        return TreatmentPlanPipeline(
            config, llm_client=client, fallback_provider=fallback_provider
        )

    return _make


# ---------------------------------------------------------------------------
# generate_plan
# ---------------------------------------------------------------------------


class TestGeneratePlan:
    def test_valid_response_is_generated(
        self, make_pipeline, fake_client, jane_doe_assessment, valid_plan_json
    ):
        client = fake_client(response=valid_plan_json)
        result = make_pipeline(client).generate_plan(jane_doe_assessment)

        assert result.source == ArtifactSource.GENERATED
        assert result.warning is None
        assert result.model_name == "fake-model"
        assert [p.name for p in result.artifact.phases] == [
            "Phase 1: Pain Relief",
            "Phase 2: Strength",
        ]
        assert result.artifact.phases[0].exercises[0].reps == "8-12"

    def test_request_carries_assessment(
        self, make_pipeline, fake_client, jane_doe_assessment, valid_plan_json
    ):
        client = fake_client(response=valid_plan_json)
        make_pipeline(client).generate_plan(jane_doe_assessment)

        (request,) = client.requests
        assert request.task == GenerationTask.TREATMENT_PLAN
        assert jane_doe_assessment.to_document() in request.user_prompt

    def test_network_failure_falls_back(
        self, make_pipeline, fake_client, jane_doe_assessment, network_error, fallback_provider
    ):
        result = make_pipeline(fake_client(error=network_error)).generate_plan(
            jane_doe_assessment
        )

        assert result.source == ArtifactSource.FALLBACK
        assert result.is_fallback
        assert result.warning.startswith("network: ")
        assert result.model_name == "fallback"
        assert result.artifact == fallback_provider.fallback(jane_doe_assessment.symptom_summary)

    def test_fallback_matches_symptom_category(
        self, make_pipeline, fake_client, jane_doe_assessment, network_error
    ):
        result = make_pipeline(fake_client(error=network_error)).generate_plan(
            jane_doe_assessment
        )
        assert result.artifact.phases[0].name == "Phase 1: Pain Relief & Spinal Mobility"

    def test_rate_limit_falls_back_without_retry(
        self, make_pipeline, fake_client, jane_doe_assessment
    ):
        client = fake_client(error=RateLimitError(provider="fake"))
        result = make_pipeline(client).generate_plan(jane_doe_assessment)

        assert result.is_fallback
        assert result.warning.startswith("rate_limited: ")
        assert len(client.requests) == 1

    def test_content_filter_falls_back(self, make_pipeline, fake_client, jane_doe_assessment):
        client = fake_client(error=ContentFilteredError(provider="fake", reason="SAFETY"))
        result = make_pipeline(client).generate_plan(jane_doe_assessment)
        assert result.warning.startswith("content_filtered: ")

    def test_http_status_falls_back(self, make_pipeline, fake_client, jane_doe_assessment):
        error = TransportError(
            "upstream 503", provider="fake", kind=TransportErrorKind.HTTP_STATUS, status_code=503
        )
        result = make_pipeline(fake_client(error=error)).generate_plan(jane_doe_assessment)
        assert result.warning.startswith("http_status: ")

    def test_malformed_response_falls_back(self, make_pipeline, fake_client, jane_doe_assessment):
        result = make_pipeline(fake_client(response="Sorry, I cannot help.")).generate_plan(
            jane_doe_assessment
        )
        assert result.is_fallback
        assert result.warning.startswith("malformed: ")

    def test_empty_phases_falls_back_with_path(
        self, make_pipeline, fake_client, jane_doe_assessment
    ):
        raw = '{"overview": "x", "phases": [], "precautions": [], "progressionNotes": "y"}'
        result = make_pipeline(fake_client(response=raw)).generate_plan(jane_doe_assessment)

        assert result.is_fallback
        assert result.warning.startswith("invalid_value: ")
        assert "phases" in result.warning

    def test_unexpected_exception_never_escapes(
        self, make_pipeline, fake_client, jane_doe_assessment
    ):
        client = fake_client(error=RuntimeError("boom"))
        result = make_pipeline(client).generate_plan(jane_doe_assessment)

        assert result.is_fallback
        assert result.warning == "unexpected: boom"

    def test_hung_service_times_out(self, make_pipeline, fake_client, jane_doe_assessment):
        client = fake_client(block=True)

        started = time.monotonic()
        result = make_pipeline(client).generate_plan(jane_doe_assessment, timeout=0.2)
        elapsed = time.monotonic() - started

        assert result.is_fallback
        assert result.warning.startswith("timeout: ")
        assert elapsed < 2.0
        assert len(client.requests) == 1

    def test_configured_timeout_is_used(self, fake_client, fallback_provider, jane_doe_assessment):
        config = PipelineConfiguration(openai_api_key="sk-test", request_timeout=0.2)
        pipeline = TreatmentPlanPipeline(
            config, llm_client=fake_client(block=True), fallback_provider=fallback_provider
        )
        result = pipeline.generate_plan(jane_doe_assessment)
        assert result.warning.startswith("timeout: ")


# ---------------------------------------------------------------------------
# analyze_examination
# ---------------------------------------------------------------------------


class TestAnalyzeExamination:
    def test_valid_diagnosis(self, make_pipeline, fake_client, valid_diagnosis_json):
        client = fake_client(response=valid_diagnosis_json)
        examination = Examination(
            description="Rounded shoulders",
            media=(
                MediaReference("https://cdn.example/front.jpg"),
                MediaReference("https://cdn.example/side.jpg"),
            ),
        )

        result = make_pipeline(client).analyze_examination(examination)

        assert result.source == ArtifactSource.GENERATED
        assert result.kind == ArtifactKind.DIAGNOSIS
        assert result.artifact.urgency_level == UrgencyLevel.LOW
        assert result.model_name == "fake-vision"
        assert len(client.requests[0].media) == 2

    def test_unknown_urgency_falls_back(self, make_pipeline, fake_client, valid_diagnosis_dict):
        valid_diagnosis_dict["urgencyLevel"] = "critical"
        client = fake_client(response=json.dumps(valid_diagnosis_dict))

        result = make_pipeline(client).analyze_examination(Examination(description="Limping"))

        assert result.is_fallback
        assert result.warning.startswith("invalid_value: ")
        assert result.artifact.urgency_level == UrgencyLevel.MEDIUM

    def test_transport_failure_falls_back(self, make_pipeline, fake_client, network_error):
        result = make_pipeline(fake_client(error=network_error)).analyze_examination(
            Examination(description="Limping")
        )
        assert result.is_fallback
        assert result.kind == ArtifactKind.DIAGNOSIS


# ---------------------------------------------------------------------------
# Client-record workflows
# ---------------------------------------------------------------------------


class TestClientWorkflows:
    def test_generate_plan_for_client_saves_artifact(
        self, make_pipeline, fake_client, jane_doe_fields, valid_plan_json, trainer_identity
    ):
        store = ArtifactStore()
        pipeline = make_pipeline(fake_client(response=valid_plan_json))

        artifact_id, result = pipeline.generate_plan_for_client(
            trainer_identity, "client-1", jane_doe_fields, store
        )

        (saved,) = store.list_for_client(trainer_identity, "client-1")
        assert saved.artifact_id == artifact_id
        assert saved.source == ArtifactSource.GENERATED
        assert saved.payload == result.artifact
        assert saved.summary == "lower back pain radiating to left leg"
        assert saved.created_by == "trainer-1"

    def test_fallback_result_is_saved_with_flag(
        self, make_pipeline, fake_client, jane_doe_fields, network_error, client_identity
    ):
        store = ArtifactStore()
        pipeline = make_pipeline(fake_client(error=network_error))

        pipeline.generate_plan_for_client(client_identity, "client-1", jane_doe_fields, store)

        (saved,) = store.list_for_client(client_identity, "client-1")
        assert saved.is_fallback
        assert saved.warning.startswith("network: ")

    def test_incomplete_intake_never_calls_service(
        self, make_pipeline, fake_client, valid_plan_json, trainer_identity
    ):
        client = fake_client(response=valid_plan_json)
        store = ArtifactStore()

        with pytest.raises(ValidationError):
            make_pipeline(client).generate_plan_for_client(
                trainer_identity, "client-1", {"name": "Jane Doe"}, store
            )
        assert client.requests == []
        assert store.list_all(trainer_identity) == []

    def test_client_cannot_generate_for_another_client(
        self, make_pipeline, fake_client, jane_doe_fields, valid_plan_json, client_identity
    ):
        client = fake_client(response=valid_plan_json)
        with pytest.raises(AccessDeniedError):
            make_pipeline(client).generate_plan_for_client(
                client_identity, "client-2", jane_doe_fields, ArtifactStore()
            )
        assert client.requests == []

    def test_storage_failure_surfaces(
        self, make_pipeline, fake_client, jane_doe_fields, valid_plan_json, trainer_identity
    ):
        backend = MagicMock()
        backend.fetch.return_value = []
        backend.insert.side_effect = OSError("disk full")

        with pytest.raises(StorageError):
            make_pipeline(fake_client(response=valid_plan_json)).generate_plan_for_client(
                trainer_identity, "client-1", jane_doe_fields, ArtifactStore(backend)
            )

    def test_analyze_examination_for_client(
        self, make_pipeline, fake_client, valid_diagnosis_json, client_identity
    ):
        store = ArtifactStore()
        pipeline = make_pipeline(fake_client(response=valid_diagnosis_json))

        artifact_id, result = pipeline.analyze_examination_for_client(
            client_identity,
            "client-1",
            "",
            [MediaReference("https://cdn.example/front.jpg")],
            store,
        )

        (saved,) = store.list_for_client(client_identity, "client-1")
        assert saved.artifact_id == artifact_id
        assert saved.kind == ArtifactKind.DIAGNOSIS
        assert saved.summary == "No description provided"


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_missing_api_key_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            TreatmentPlanPipeline(PipelineConfiguration(llm_provider="openai"))

    def test_from_environment_without_keys_fails(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name in ("OPENAI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY", "LLM_PROVIDER"):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(ConfigurationError):
            TreatmentPlanPipeline.from_environment()
