"""
Treatment Plan Generation Module

Turns a client's intake assessment into a structured, multi-phase physical
therapy treatment plan (and media examinations into a movement diagnosis)
using a generative service, with a guaranteed fallback when the service
fails.

Architecture Overview:
    treatment_plan_generation/
    ├── core/           → Domain models, enums, configuration (Layer 0 - Pure)
    ├── intake/         → Assessment aggregation, examination input (Layer 1)
    ├── generation/     → Request construction (Layer 2)
    ├── validation/     → Output contract validation (Layer 3)
    ├── fallback/       → Canned artifacts (Layer 4)
    ├── clients/        → LLM client abstractions (Layer 5 - Infrastructure)
    ├── repository/     → Artifact persistence (Layer 5 - Infrastructure)
    └── pipeline.py     → Main orchestrator (Layer 6 - Public API)

Quick Start:
    from treatment_plan_generation import AssessmentAggregator, TreatmentPlanPipeline

    pipeline = TreatmentPlanPipeline.from_environment()
    assessment = AssessmentAggregator().aggregate(intake_fields)
    result = pipeline.generate_plan(assessment)

Author: Shubham Singh
Date: October 2026
"""

__version__ = "1.0.0"
__author__ = "Shubham Singh"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================

# Main Entry Point
from treatment_plan_generation.pipeline import TreatmentPlanPipeline

# Components
from treatment_plan_generation.intake import AssessmentAggregator, build_examination
from treatment_plan_generation.generation import PlanRequestBuilder
from treatment_plan_generation.validation import SchemaValidator
from treatment_plan_generation.fallback import FallbackProvider
from treatment_plan_generation.repository import ArtifactStore

# Core Models
from treatment_plan_generation.core.models import (
    Assessment,
    Examination,
    MediaReference,
    TreatmentPlan,
    DiagnosisResult,
    GenerationResult,
    CallerIdentity,
    Artifact,
)

# Enums
from treatment_plan_generation.core.enums import (
    ArtifactSource,
    UrgencyLevel,
    Role,
)

# Configuration
from treatment_plan_generation.core.config import PipelineConfiguration

__all__ = [
    # Main Entry Point (use this!)
    "TreatmentPlanPipeline",
    # Components
    "AssessmentAggregator",
    "build_examination",
    "PlanRequestBuilder",
    "SchemaValidator",
    "FallbackProvider",
    "ArtifactStore",
    # Core Models
    "Assessment",
    "Examination",
    "MediaReference",
    "TreatmentPlan",
    "DiagnosisResult",
    "GenerationResult",
    "CallerIdentity",
    "Artifact",
    # Enums
    "ArtifactSource",
    "UrgencyLevel",
    "Role",
    # Configuration
    "PipelineConfiguration",
]
