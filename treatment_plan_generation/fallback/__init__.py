"""
Fallback Layer - Canned Artifacts

Submodules:
    fallback_provider.py → Asset loading, category selection

Dependency Rule:
    This layer depends on: core, validation
    This layer is used by: pipeline (orchestrator)

Author: Shubham Singh
Date: October 2026
"""

from treatment_plan_generation.fallback.fallback_provider import (
    FallbackProvider,
    categorize,
)

__all__ = [
    "FallbackProvider",
    "categorize",
]
