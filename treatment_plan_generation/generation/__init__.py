"""
Generation Layer - Request Construction

This layer turns assessments and examinations into requests for the
generative service.

Submodules:
    prompt_builder.py → Prompt templates and PlanRequestBuilder

Dependency Rule:
    This layer depends on: core
    This layer is used by: pipeline (orchestrator)

Author: Shubham Singh
Date: October 2026
"""

from treatment_plan_generation.generation.prompt_builder import PlanRequestBuilder

__all__ = [
    "PlanRequestBuilder",
]
