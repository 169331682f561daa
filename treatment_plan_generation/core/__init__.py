"""
Core Layer - Domain Models, Enums, and Configuration

This layer contains the side-effect-free components that form the foundation
of the treatment plan generation system.

Submodules:
    models.py     → Data structures (Assessment, TreatmentPlan, Artifact)
    enums.py      → Enumerations (ArtifactSource, UrgencyLevel, Role)
    config.py     → Configuration dataclass
    constants.py  → Intake layout, media limits, fallback keywords
    exceptions.py → Domain-specific exceptions

Dependency Rule:
    This layer depends on NOTHING else in the package.
    All other layers may depend on this layer.

Author: Shubham Singh
Date: October 2026
"""

from treatment_plan_generation.core.models import (
    Assessment,
    Examination,
    MediaReference,
    GenerationRequest,
    Exercise,
    Phase,
    TreatmentPlan,
    DiagnosisResult,
    GenerationResult,
    CallerIdentity,
    Artifact,
)
from treatment_plan_generation.core.enums import (
    ArtifactSource,
    ArtifactKind,
    GenerationTask,
    UrgencyLevel,
    Role,
)
from treatment_plan_generation.core.config import PipelineConfiguration
from treatment_plan_generation.core.exceptions import (
    PlanGenerationError,
    ConfigurationError,
    ValidationError,
    TransportError,
    SchemaError,
    StorageError,
    AccessDeniedError,
)

__all__ = [
    # Models
    "Assessment",
    "Examination",
    "MediaReference",
    "GenerationRequest",
    "Exercise",
    "Phase",
    "TreatmentPlan",
    "DiagnosisResult",
    "GenerationResult",
    "CallerIdentity",
    "Artifact",
    # Enums
    "ArtifactSource",
    "ArtifactKind",
    "GenerationTask",
    "UrgencyLevel",
    "Role",
    # Configuration
    "PipelineConfiguration",
    # Exceptions
    "PlanGenerationError",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "SchemaError",
    "StorageError",
    "AccessDeniedError",
]
