"""Pytest configuration and fixtures."""

import copy
import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from treatment_plan_generation.core.config import PipelineConfiguration
from treatment_plan_generation.core.enums import GenerationTask, Role
from treatment_plan_generation.core.exceptions import TransportError
from treatment_plan_generation.core.models import CallerIdentity
from treatment_plan_generation.fallback import FallbackProvider
from treatment_plan_generation.intake import AssessmentAggregator


# ---------------------------------------------------------------------------
# Fake generative service client
# ---------------------------------------------------------------------------


class FakeLLMClient:
    """
    Stand-in for OpenAIClient / GeminiClient.

    Returns ``response`` or raises ``error``; with ``block`` set, the call
    waits on an event that is never set (until ``release()``), which
    simulates a hung service.
    """

    def __init__(self, response=None, error=None, block=False):
        self.response = response
        self.error = error
        self.requests = []
        self._released = threading.Event()
        self._block = block

    def generate(self, request):
        self.requests.append(request)
        if self._block:
            self._released.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.response

    def release(self):
        self._released.set()

    def model_name_for(self, task):
        return "fake-vision" if task == GenerationTask.DIAGNOSIS else "fake-model"

    @property
    def model_name(self):
        return "fake-model"

    @property
    def provider_name(self):
        return "fake"


@pytest.fixture
def fake_client():
    """Factory for FakeLLMClient instances."""
    clients = []

    def _make(response=None, error=None, block=False):
        client = FakeLLMClient(response=response, error=error, block=block)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.release()


@pytest.fixture
def network_error():
    return TransportError("connection refused", provider="fake")


# ---------------------------------------------------------------------------
# Intake data
# ---------------------------------------------------------------------------


@pytest.fixture
def jane_doe_fields():
    """Flat intake payload as sent by the web form."""
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "age": 42,
        "primaryComplaint": "lower back pain radiating to left leg",
        "painLevel": 6,
        "painLocation": "lower back, left leg",
        "workDemands": "Desk job, 8 hours sitting",
        "movementConcerns": ["sitting", "bending forward"],
        "goals": "Sit through a workday without leg pain",
    }


@pytest.fixture
def jane_doe_sections():
    """The same answers grouped by form section."""
    return {
        "Personal Information": {"name": "Jane Doe", "email": "jane@example.com", "age": "42"},
        "Symptoms": {
            "primary_complaint": "lower back pain radiating to left leg",
            "pain_level": "6",
            "pain_location": "lower back, left leg",
        },
        "Daily Life": {"work_demands": "Desk job, 8 hours sitting"},
        "Functional Assessment": {"movement_concerns": "sitting, bending forward"},
        "Goals": {"goals": "Sit through a workday without leg pain"},
    }


@pytest.fixture
def aggregator():
    return AssessmentAggregator()


@pytest.fixture
def jane_doe_assessment(aggregator, jane_doe_fields):
    return aggregator.aggregate(jane_doe_fields)


# ---------------------------------------------------------------------------
# Service responses
# ---------------------------------------------------------------------------

VALID_PLAN = {
    "overview": "Lumbar radicular pain aggravated by prolonged sitting.",
    "phases": [
        {
            "name": "Phase 1: Pain Relief",
            "duration": "Weeks 1-2",
            "goals": ["Centralise leg symptoms"],
            "exercises": [
                {
                    "name": "Prone Press-Up",
                    "description": "Press the upper body up with hips on the floor.",
                    "sets": "2",
                    "reps": "8-12",
                    "frequency": "3x daily",
                    "progression": "Add a 5 second hold",
                }
            ],
        },
        {
            "name": "Phase 2: Strength",
            "duration": "Weeks 3-6",
            "goals": ["Sit 45 minutes without leg pain"],
            "exercises": [
                {
                    "name": "Bird Dog",
                    "description": "Extend opposite arm and leg with a neutral spine.",
                    "sets": "3",
                    "reps": "30-60 seconds",
                    "frequency": "Daily",
                    "progression": "Add ankle weights",
                }
            ],
        },
    ],
    "precautions": ["Stop if leg numbness increases"],
    "progressionNotes": "Advance when symptoms centralise.",
}

VALID_DIAGNOSIS = {
    "assessment": "Forward head posture with rounded shoulders.",
    "findings": ["Forward head posture", "Thoracic kyphosis"],
    "recommendations": ["Chin tucks", "Screen at eye level"],
    "urgencyLevel": "low",
    "nextSteps": "Reassess posture in four weeks.",
}


@pytest.fixture
def valid_plan_dict():
    return copy.deepcopy(VALID_PLAN)


@pytest.fixture
def valid_plan_json(valid_plan_dict):
    return json.dumps(valid_plan_dict)


@pytest.fixture
def valid_diagnosis_dict():
    return copy.deepcopy(VALID_DIAGNOSIS)


@pytest.fixture
def valid_diagnosis_json(valid_diagnosis_dict):
    return json.dumps(valid_diagnosis_dict)


# ---------------------------------------------------------------------------
# Configuration, identities, clock
# ---------------------------------------------------------------------------


@pytest.fixture
def config():
    return PipelineConfiguration(openai_api_key="sk-test", request_timeout=5.0)


@pytest.fixture
def fallback_provider():
    return FallbackProvider()


@pytest.fixture
def client_identity():
    return CallerIdentity(user_id="client-1", role=Role.CLIENT)


@pytest.fixture
def trainer_identity():
    return CallerIdentity(user_id="trainer-1", role=Role.TRAINER)


@pytest.fixture
def admin_identity():
    return CallerIdentity(user_id="admin-1", role=Role.ADMIN)


class StepClock:
    """Deterministic clock; ``freeze`` keeps returning the same instant."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
        self.step = step
        self.frozen = False

    def __call__(self):
        current = self.now
        if not self.frozen:
            self.now = self.now + self.step
        return current


@pytest.fixture
def step_clock():
    return StepClock()
