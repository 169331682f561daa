"""
Enumerations for Treatment Plan Generation

This module defines all enumeration types used throughout the treatment plan
generation pipeline.

Enumeration Categories:
    ArtifactSource      → Provenance of a result (generated vs fallback)
    ArtifactKind        → Treatment plan or diagnosis
    GenerationTask      → Which contract a request targets
    UrgencyLevel        → Diagnosis urgency tokens
    Role                → Caller roles (client, trainer, admin)
    TransportErrorKind  → Coarse classes of service failure
    SchemaErrorKind     → Classes of output contract violation

Author: Shubham Singh
Date: October 2026
"""

from enum import Enum


# =============================================================================
# STAGE 1: PROVENANCE
# =============================================================================
# Consumers must be able to tell AI-authored content from canned content.


class ArtifactSource(str, Enum):
    """
    Provenance flag carried by every GenerationResult and Artifact.

    A fallback artifact must never be presented as personalised, so display
    code renders this value next to the plan.
    """

    GENERATED = "generated"
    """Produced by the generative service and accepted by the validator."""

    FALLBACK = "fallback"
    """Canned artifact substituted after a transport or contract failure."""


class ArtifactKind(str, Enum):
    """Type of artifact persisted for a client."""

    TREATMENT_PLAN = "treatment_plan"
    DIAGNOSIS = "diagnosis"


class GenerationTask(str, Enum):
    """Output contract a GenerationRequest is built for."""

    TREATMENT_PLAN = "treatment_plan"
    DIAGNOSIS = "diagnosis"


# =============================================================================
# STAGE 2: DIAGNOSIS URGENCY
# =============================================================================


class UrgencyLevel(str, Enum):
    """
    Urgency of a media-based diagnosis.

    Any token outside these three is a contract violation.

    Levels:
        HIGH:   Signs requiring immediate attention (severe deformity,
                acute injury, neurological signs)
        MEDIUM: Needs prompt professional evaluation within days
        LOW:    Suitable for monitoring or routine consultation
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def get_all_levels(cls) -> list:
        """Return all urgency tokens as a list."""
        return [level.value for level in cls]


# =============================================================================
# STAGE 3: CALLER ROLES
# =============================================================================
# Earlier revisions stored roles as 'client' | 'therapist'; the current
# schema is 'client' | 'trainer' | 'admin'. 'therapist' maps to TRAINER.


class Role(str, Enum):
    """
    Closed set of caller roles handed in by the identity collaborator.

    What it does:
        Gates artifact store operations. Clients act on their own records,
        trainers and admins on any client's records.
    """

    CLIENT = "client"
    TRAINER = "trainer"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        """True for roles that may read every client's artifacts."""
        return self in (Role.TRAINER, Role.ADMIN)

    @classmethod
    def from_string(cls, value: str) -> "Role":
        """
        Convert a stored role string to Role, accepting legacy values.

        Args:
            value: Role string from the identity collaborator

        Returns:
            Matching Role member

        Raises:
            ValueError: If the string is not a known or legacy role
        """
        normalized = (value or "").strip().lower()
        if normalized in _LEGACY_ROLES:
            return _LEGACY_ROLES[normalized]
        for role in cls:
            if role.value == normalized:
                return role
        raise ValueError(f"Unknown role: '{value}'. Valid roles: {[r.value for r in cls]}")


_LEGACY_ROLES = {"therapist": Role.TRAINER}


# =============================================================================
# STAGE 4: FAILURE CLASSIFICATION
# =============================================================================


class TransportErrorKind(str, Enum):
    """Coarse class of a generative service failure."""

    NETWORK = "network"
    HTTP_STATUS = "http_status"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    CONTENT_FILTERED = "content_filtered"
    EMPTY_RESPONSE = "empty_response"


class SchemaErrorKind(str, Enum):
    """Class of output contract violation."""

    MALFORMED = "malformed"
    """Response is not a parseable JSON object."""

    MISSING_FIELD = "missing_field"
    """A required field is absent or has the wrong type."""

    INVALID_VALUE = "invalid_value"
    """A required sequence is empty or an enumerated value is unknown."""
