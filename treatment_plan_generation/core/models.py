"""
Domain Models for Treatment Plan Generation

This module defines the core data structures used throughout the pipeline.

Model Hierarchy:
    Assessment        → Canonical intake document (transient, never persisted)
    Examination       → Description + media references for a diagnosis
    GenerationRequest → Instructions + user payload sent to the service
    Exercise / Phase / TreatmentPlan → Plan output contract (pydantic)
    DiagnosisResult   → Diagnosis output contract (pydantic)
    GenerationResult  → Artifact + provenance flag
    CallerIdentity    → Already-authenticated caller handed in by the app
    Artifact          → Persisted plan or diagnosis tied to a client

The output contract models are pydantic models so that a raw response is
validated at the boundary exactly once; everything downstream works with
typed, frozen instances.

Author: Shubham Singh
Date: October 2026
"""

import mimetypes
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from treatment_plan_generation.core.constants import SUMMARY_LENGTH
from treatment_plan_generation.core.enums import (
    ArtifactKind,
    ArtifactSource,
    GenerationTask,
    Role,
    UrgencyLevel,
)


# =============================================================================
# STAGE 1: ASSESSMENT MODEL
# =============================================================================
# Built by AssessmentAggregator from intake-form state, serialized to one
# document and discarded.

FieldValue = Union[str, Tuple[str, ...]]


@dataclass(frozen=True)
class AssessmentField:
    """
    A single intake answer in canonical position.

    Attributes:
        name: Canonical snake_case field name (e.g. "primary_complaint")
        label: Display label used in the serialized document
        value: Stripped string, or tuple of strings for list fields
    """

    name: str
    label: str
    value: FieldValue = ""

    @property
    def is_empty(self) -> bool:
        """True when the client left this field blank."""
        return len(self.value) == 0

    def render(self) -> str:
        """Render as one ``Label: value`` document line."""
        if isinstance(self.value, tuple):
            text = ", ".join(self.value)
        else:
            text = self.value
        return f"{self.label}: {text}".rstrip()


@dataclass(frozen=True)
class AssessmentSection:
    """One titled section of the intake form."""

    key: str
    title: str
    fields: Tuple[AssessmentField, ...] = ()

    def render(self) -> str:
        lines = [f"## {self.title}"]
        lines.extend(f.render() for f in self.fields)
        return "\n".join(lines)


@dataclass(frozen=True)
class Assessment:
    """
    Canonical aggregated document describing one client's intake responses.

    What it does:
        Holds every intake field in the fixed canonical section order and
        serializes to a byte-stable text document, the user payload of a
        treatment plan request.

    Attributes:
        sections: Ordered sections; order comes from INTAKE_LAYOUT

    Example:
        >>> assessment = AssessmentAggregator().aggregate({
        ...     "name": "Jane Doe",
        ...     "primaryComplaint": "lower back pain radiating to left leg",
        ... })
        >>> assessment.client_name
        'Jane Doe'
    """

    sections: Tuple[AssessmentSection, ...]

    def get(self, name: str) -> FieldValue:
        """
        Look up a field value by canonical name.

        Raises:
            KeyError: If the name is not part of the canonical layout
        """
        for section in self.sections:
            for item in section.fields:
                if item.name == name:
                    return item.value
        raise KeyError(name)

    @property
    def client_name(self) -> str:
        return self.get("name")

    @property
    def primary_complaint(self) -> str:
        return self.get("primary_complaint")

    @property
    def symptom_summary(self) -> str:
        """Complaint plus pain location, used to pick a fallback category."""
        parts = [self.primary_complaint, self.get("pain_location")]
        return " ".join(p for p in parts if p)

    @property
    def summary(self) -> str:
        """Short description stored alongside the generated artifact."""
        complaint = self.primary_complaint
        if len(complaint) <= SUMMARY_LENGTH:
            return complaint
        return complaint[:SUMMARY_LENGTH] + "..."

    @property
    def answered_count(self) -> int:
        """Number of non-empty fields (for logging without PHI)."""
        return sum(1 for s in self.sections for f in s.fields if not f.is_empty)

    def to_document(self) -> str:
        """Serialize to the canonical text document."""
        return "\n\n".join(section.render() for section in self.sections)


# =============================================================================
# STAGE 2: EXAMINATION MODEL
# =============================================================================


@dataclass(frozen=True)
class MediaReference:
    """
    Stable reference to an uploaded image or video.

    Attributes:
        url: Retrievable URL (or storage id) returned by the upload collaborator
        content_type: MIME type if known, guessed from the URL otherwise
    """

    url: str
    content_type: Optional[str] = None

    @property
    def mime_type(self) -> str:
        if self.content_type:
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.url)
        return guessed or "application/octet-stream"

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")


@dataclass(frozen=True)
class Examination:
    """Input of the media-based diagnosis pipeline."""

    description: str
    media: Tuple[MediaReference, ...] = ()

    @property
    def media_count(self) -> int:
        return len(self.media)


# =============================================================================
# STAGE 3: GENERATION REQUEST
# =============================================================================


@dataclass(frozen=True)
class GenerationRequest:
    """
    A request satisfying the generation contract.

    Attributes:
        task: Which output contract the response must follow
        system_prompt: Constant instruction block declaring the JSON shape
        user_prompt: Serialized assessment or examination plus task framing
        media: Media references, each sent as a distinct content part
        temperature: Sampling temperature
        max_tokens: Completion token ceiling
    """

    task: GenerationTask
    system_prompt: str
    user_prompt: str
    media: Tuple[MediaReference, ...] = ()
    temperature: float = 0.3
    max_tokens: int = 3000

    @property
    def is_multimodal(self) -> bool:
        return len(self.media) > 0


# =============================================================================
# STAGE 4: OUTPUT CONTRACT MODELS
# =============================================================================
# Free-text fields are StrictStr: a number where text is expected is a
# contract violation, not something to coerce. Sequences are tuples so the
# validated artifact is immutable. Fields are read by wire name only, so
# "progression_notes" does not stand in for "progressionNotes".


class _ContractModel(BaseModel):
    """Shared pydantic settings for output contract models."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire (camelCase) dictionary form."""
        return self.model_dump(mode="json", by_alias=True)


class Exercise(_ContractModel):
    """
    One prescribed exercise.

    Every dosage field is free text: the domain uses ranges such as
    "8-12" or "30-60 seconds".
    """

    name: StrictStr
    description: StrictStr
    sets: StrictStr
    reps: StrictStr
    frequency: StrictStr
    progression: StrictStr


class Phase(_ContractModel):
    """A treatment phase; must be completed before the next one starts."""

    name: StrictStr
    duration: StrictStr
    goals: Tuple[StrictStr, ...] = Field(..., min_length=1)
    exercises: Tuple[Exercise, ...] = Field(..., min_length=1)


class TreatmentPlan(_ContractModel):
    """
    Multi-phase treatment plan.

    Invariants:
        - at least one phase
        - every phase has at least one goal and one exercise
        - phase order is clinically meaningful and never re-sorted
    """

    overview: StrictStr
    phases: Tuple[Phase, ...] = Field(..., min_length=1)
    precautions: Tuple[StrictStr, ...]
    progression_notes: StrictStr = Field(..., alias="progressionNotes")

    @property
    def exercise_count(self) -> int:
        return sum(len(phase.exercises) for phase in self.phases)


class DiagnosisResult(_ContractModel):
    """Media-based movement assessment."""

    assessment: StrictStr
    findings: Tuple[StrictStr, ...]
    recommendations: Tuple[StrictStr, ...]
    urgency_level: UrgencyLevel = Field(..., alias="urgencyLevel")
    next_steps: StrictStr = Field(..., alias="nextSteps")


ArtifactT = TypeVar("ArtifactT", TreatmentPlan, DiagnosisResult)


# =============================================================================
# STAGE 5: GENERATION RESULT
# =============================================================================


@dataclass(frozen=True)
class GenerationResult(Generic[ArtifactT]):
    """
    Outcome of one pipeline call: an artifact plus its provenance.

    Attributes:
        artifact: TreatmentPlan or DiagnosisResult
        source: GENERATED or FALLBACK
        warning: "<kind>: <message>" of the failure that triggered fallback
        model_name: Model that produced the artifact ("fallback" if canned)
    """

    artifact: ArtifactT
    source: ArtifactSource
    warning: Optional[str] = None
    model_name: str = "unknown"

    @property
    def is_fallback(self) -> bool:
        return self.source == ArtifactSource.FALLBACK

    @property
    def kind(self) -> ArtifactKind:
        if isinstance(self.artifact, DiagnosisResult):
            return ArtifactKind.DIAGNOSIS
        return ArtifactKind.TREATMENT_PLAN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artifact": self.artifact.to_dict(),
            "source": self.source.value,
            "warning": self.warning,
            "model_name": self.model_name,
        }


# =============================================================================
# STAGE 6: IDENTITY AND PERSISTED ARTIFACT
# =============================================================================


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller supplied by the identity/session collaborator."""

    user_id: str
    role: Role = Role.CLIENT

    @classmethod
    def from_session(cls, user_id: str, role: str) -> "CallerIdentity":
        """Build from raw session values, accepting legacy role strings."""
        return cls(user_id=user_id, role=Role.from_string(role))

    def can_access(self, client_id: str) -> bool:
        return self.role.is_staff or self.user_id == client_id


@dataclass(frozen=True)
class Artifact:
    """
    A persisted TreatmentPlan or DiagnosisResult owned by one client.

    Attributes:
        artifact_id: Unique identifier
        client_id: Owning client
        kind: TREATMENT_PLAN or DIAGNOSIS
        source: Provenance flag copied from the GenerationResult
        payload: The validated artifact
        created_at: Creation timestamp (UTC)
        sequence: Store insertion counter, breaks created_at ties
        warning: Fallback warning, if any
        summary: Short description of the input (e.g. complaint excerpt)
        created_by: user_id of the caller who saved it
    """

    artifact_id: str
    client_id: str
    kind: ArtifactKind
    source: ArtifactSource
    payload: Union[TreatmentPlan, DiagnosisResult]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sequence: int = 0
    warning: Optional[str] = None
    summary: str = ""
    created_by: str = ""

    @property
    def is_fallback(self) -> bool:
        return self.source == ArtifactSource.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the persistence collaborator."""
        return {
            "artifact_id": self.artifact_id,
            "client_id": self.client_id,
            "kind": self.kind.value,
            "source": self.source.value,
            "payload": self.payload.to_dict(),
            "created_at": self.created_at.isoformat(),
            "sequence": self.sequence,
            "warning": self.warning,
            "summary": self.summary,
            "created_by": self.created_by,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Artifact":
        """Create from a persisted dictionary."""
        kind = ArtifactKind(data["kind"])
        payload_model = DiagnosisResult if kind == ArtifactKind.DIAGNOSIS else TreatmentPlan
        return cls(
            artifact_id=data["artifact_id"],
            client_id=data["client_id"],
            kind=kind,
            source=ArtifactSource(data["source"]),
            payload=payload_model.model_validate(data["payload"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            sequence=int(data.get("sequence", 0)),
            warning=data.get("warning"),
            summary=data.get("summary", ""),
            created_by=data.get("created_by", ""),
        )
