"""
Schema Validator - Output Contract Enforcement

This module checks raw responses from the generative service against the
treatment plan and diagnosis contracts before anything downstream sees them.

Validation Stages:
    STAGE 1: Parse → strip code fences, parse JSON, top level must be an object
    STAGE 2: Shape → required fields present with the right types
    STAGE 3: Sequences → phases, goals, exercises non-empty, urgency known
    STAGE 4: Return the typed artifact with content untouched

Only structure is checked. Medical plausibility is not this module's job.

Pipeline Position:
    LLM Client → [SchemaValidator] → GenerationResult
                  ^^^^^^^^^^^^^^^
                  You are here

Author: Shubham Singh
Date: October 2026
"""

import json
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Sequence, Type, Union

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from treatment_plan_generation.core.enums import SchemaErrorKind
from treatment_plan_generation.core.exceptions import SchemaError
from treatment_plan_generation.core.models import (
    ArtifactT,
    DiagnosisResult,
    TreatmentPlan,
)


# =============================================================================
# STAGE 1: PARSING
# =============================================================================

_CODE_FENCE = re.compile(r"^\s*```[A-Za-z]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)

ROOT_PATH = "$"

# pydantic error types that mean "present and well-typed, but not allowed"
_INVALID_VALUE_TYPES = {"too_short", "enum", "literal_error"}


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    match = _CODE_FENCE.match(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_json_object(raw: str) -> Dict[str, Any]:
    """
    Parse a response into a JSON object.

    Falls back to the outermost ``{...}`` span when the model wrapped the
    JSON in prose.

    Raises:
        SchemaError: MALFORMED at "$" if no JSON object can be parsed
    """
    text = strip_code_fences(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise SchemaError(
                SchemaErrorKind.MALFORMED, ROOT_PATH, "Response is not valid JSON"
            )
        try:
            data = json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            raise SchemaError(
                SchemaErrorKind.MALFORMED, ROOT_PATH, f"Response is not valid JSON: {e.msg}"
            ) from e

    if not isinstance(data, dict):
        raise SchemaError(
            SchemaErrorKind.MALFORMED,
            ROOT_PATH,
            f"Response root must be a JSON object, got {type(data).__name__}",
        )
    return data


def format_path(loc: Sequence[Union[str, int]]) -> str:
    """
    Render a pydantic error location in wire notation.

    Example:
        >>> format_path(("phases", 0, "exercises", 1, "reps"))
        'phases[0].exercises[1].reps'
    """
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path or ROOT_PATH


# =============================================================================
# STAGE 2: VALIDATOR
# =============================================================================


class SchemaValidator:
    """
    Validates raw service output against the TreatmentPlan and
    DiagnosisResult contracts.

    What it does:
        Parses the raw text, runs the pydantic contract models, and converts
        the first (shallowest) violation into a SchemaError carrying the
        violation kind and the offending field path.

    When to use:
        - On every response from the generative service
        - On the fallback data asset at load time

    Example:
        >>> validator = SchemaValidator()
        >>> plan = validator.validate_plan(raw_text)
        >>> len(plan.phases) >= 1
        True
    """

    def validate_plan(self, raw: Union[str, Mapping]) -> TreatmentPlan:
        """
        Validate a treatment plan response.

        Args:
            raw: Raw response text (or an already-parsed object)

        Returns:
            TreatmentPlan with content exactly as received

        Raises:
            SchemaError: On any contract violation
        """
        return self._validate(raw, TreatmentPlan)

    def validate_diagnosis(self, raw: Union[str, Mapping]) -> DiagnosisResult:
        """
        Validate a media-based diagnosis response.

        Raises:
            SchemaError: On any contract violation, including an urgency
                outside low/medium/high
        """
        return self._validate(raw, DiagnosisResult)

    def _validate(self, raw: Union[str, Mapping], model: Type[ArtifactT]) -> ArtifactT:
        # =====================================================================
        # STAGE 2.1: PARSE
        # =====================================================================
        if isinstance(raw, Mapping):
            data = dict(raw)
        elif isinstance(raw, str):
            data = parse_json_object(raw)
        else:
            raise SchemaError(
                SchemaErrorKind.MALFORMED,
                ROOT_PATH,
                f"Response must be text, got {type(raw).__name__}",
            )

        # =====================================================================
        # STAGE 2.2: SHAPE AND SEQUENCES
        # =====================================================================
        try:
            artifact = model.model_validate(data)
        except PydanticValidationError as e:
            raise self._to_schema_error(e, model.__name__) from e

        logger.debug(f"{model.__name__} passed contract validation")
        return artifact

    @staticmethod
    def _to_schema_error(error: PydanticValidationError, model_name: str) -> SchemaError:
        """Convert pydantic errors to one SchemaError for the shallowest path."""
        details = error.errors()
        shallowest = min(details, key=lambda d: len(d["loc"]))
        kind = (
            SchemaErrorKind.INVALID_VALUE
            if shallowest["type"] in _INVALID_VALUE_TYPES
            else SchemaErrorKind.MISSING_FIELD
        )
        path = format_path(shallowest["loc"])
        summary: List[str] = [f"{format_path(d['loc'])}: {d['msg']}" for d in details]
        return SchemaError(
            kind,
            path,
            f"{model_name} contract violated at {path}: {shallowest['msg']}",
            errors=summary,
        )
