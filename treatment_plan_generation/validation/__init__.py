"""
Validation Layer - Output Contract Validation

This layer checks generative service responses against the structured
treatment plan and diagnosis contracts.

Submodules:
    schema_validator.py → JSON parsing and contract validation

Dependency Rule:
    This layer depends on: core
    This layer is used by: pipeline (orchestrator), fallback (asset check)

Author: Shubham Singh
Date: October 2026
"""

from treatment_plan_generation.validation.schema_validator import (
    SchemaValidator,
    parse_json_object,
    strip_code_fences,
)

__all__ = [
    "SchemaValidator",
    "parse_json_object",
    "strip_code_fences",
]
