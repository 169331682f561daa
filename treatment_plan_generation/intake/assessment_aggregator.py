"""
Assessment Aggregator - Intake Form to Canonical Assessment

This module merges the answers of a multi-section intake form into a single
Assessment in a fixed canonical order.

Accepted input shapes:
    Sectioned → {"Personal Information": {"name": ...}, "Symptoms": {...}}
    Flat      → {"name": ..., "primaryComplaint": ...}
    Mixed     → any combination of the two

Section and field keys are normalised (camelCase, spaces and hyphens become
snake_case), so UI payloads and Python callers produce the same document.

Pipeline Position:
    Intake Form → [AssessmentAggregator] → PlanRequestBuilder → Client
                   ^^^^^^^^^^^^^^^^^^^^
                   You are here

Author: Shubham Singh
Date: October 2026
"""

import re
from collections.abc import Mapping
from typing import Any, Dict, List, Tuple

from loguru import logger

from treatment_plan_generation.core.constants import INTAKE_LAYOUT, REQUIRED_FIELDS
from treatment_plan_generation.core.exceptions import ValidationError
from treatment_plan_generation.core.models import (
    Assessment,
    AssessmentField,
    AssessmentSection,
    FieldValue,
)


# =============================================================================
# STAGE 1: KEY NORMALISATION
# =============================================================================

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[\s\-]+")

# Names used by older intake forms
FIELD_ALIASES: Dict[str, str] = {
    "full_name": "name",
    "client_name": "name",
    "chief_complaint": "primary_complaint",
    "complaint": "primary_complaint",
    "pain_scale": "pain_level",
    "medications": "current_medications",
    "medical_history": "past_history",
    "compensation_patterns": "observed_patterns",
}

_SECTION_KEYS = {section_key for section_key, _, _ in INTAKE_LAYOUT}
_LIST_FIELDS = {
    name for _, _, fields in INTAKE_LAYOUT for name, _, is_list in fields if is_list
}
_KNOWN_FIELDS = {name for _, _, fields in INTAKE_LAYOUT for name, _, _ in fields}


def normalize_key(key: str) -> str:
    """
    Convert an intake key to canonical snake_case.

    Example:
        >>> normalize_key("primaryComplaint")
        'primary_complaint'
        >>> normalize_key("Personal Information")
        'personal_information'
    """
    key = _CAMEL_BOUNDARY.sub("_", str(key).strip())
    key = _SEPARATORS.sub("_", key)
    return key.lower()


def _coerce_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        parts = (_coerce_scalar(v) for v in value)
        return ", ".join(p for p in parts if p)
    return str(value).strip()


def _coerce_list(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        items = [value]
    return tuple(text for text in (_coerce_scalar(item) for item in items) if text)


# =============================================================================
# STAGE 2: AGGREGATOR
# =============================================================================


class AssessmentAggregator:
    """
    Merges intake-form sections into one canonical Assessment.

    What it does:
        Places every answer at its canonical position, stringifies and
        strips values, and refuses to produce an assessment without the
        client name and primary complaint.

    When to use:
        - Before building a treatment plan request
        - When validating a draft before submission (catch ValidationError)

    Guarantees:
        - Output order always follows INTAKE_LAYOUT, never input order
        - Equal inputs produce byte-identical documents
        - Missing optional fields render as empty values

    Example:
        >>> aggregator = AssessmentAggregator()
        >>> assessment = aggregator.aggregate({
        ...     "Personal Information": {"name": "Jane Doe"},
        ...     "Symptoms": {"primaryComplaint": "lower back pain"},
        ... })
        >>> assessment.to_document().splitlines()[0]
        '## Personal Information'
    """

    def aggregate(self, sections: Mapping) -> Assessment:
        """
        Aggregate intake answers into an Assessment.

        STAGE 2.1: Flatten sectioned and flat input into canonical fields
        STAGE 2.2: Check required fields
        STAGE 2.3: Build sections in canonical order

        Args:
            sections: Intake state, sectioned, flat, or mixed

        Returns:
            Assessment in canonical order

        Raises:
            ValidationError: If name or primary complaint is empty
        """
        # =====================================================================
        # STAGE 2.1: FLATTEN INPUT
        # =====================================================================
        values = self._collect(sections)

        # =====================================================================
        # STAGE 2.2: REQUIRED FIELDS
        # =====================================================================
        missing = [name for name in REQUIRED_FIELDS if not values.get(name)]
        if missing:
            raise ValidationError(
                f"Assessment is missing required fields: {', '.join(missing)}",
                fields=missing,
            )

        # =====================================================================
        # STAGE 2.3: CANONICAL ORDER
        # =====================================================================
        built: List[AssessmentSection] = []
        for section_key, title, fields in INTAKE_LAYOUT:
            entries = tuple(
                AssessmentField(
                    name=name,
                    label=label,
                    value=values.get(name, () if is_list else ""),
                )
                for name, label, is_list in fields
            )
            built.append(AssessmentSection(key=section_key, title=title, fields=entries))

        assessment = Assessment(sections=tuple(built))
        logger.debug(
            f"Aggregated assessment | "
            f"Fields answered: {assessment.answered_count}/{len(_KNOWN_FIELDS)}"
        )
        return assessment

    def _collect(self, sections: Mapping) -> Dict[str, FieldValue]:
        """
        Flatten input into {canonical_field: coerced value}.

        When several keys land on the same field, the winner does not depend
        on input order: a non-empty value beats an empty one, a sectioned
        key beats a flat one, the canonical name beats an alias, and the
        lowest raw key path settles anything left.
        """
        candidates: Dict[str, List[Tuple[Tuple, FieldValue]]] = {}
        for raw_key, raw_value in sections.items():
            key = normalize_key(raw_key)
            if key in _SECTION_KEYS and isinstance(raw_value, Mapping):
                for field_key, field_value in raw_value.items():
                    self._place(
                        candidates,
                        normalize_key(field_key),
                        field_value,
                        path=(str(raw_key), str(field_key)),
                        sectioned=True,
                    )
            else:
                self._place(candidates, key, raw_value, path=(str(raw_key),), sectioned=False)

        values: Dict[str, FieldValue] = {}
        for name, ranked in candidates.items():
            if len(ranked) > 1:
                logger.debug(f"Intake field '{name}' given {len(ranked)} times")
            values[name] = min(ranked, key=lambda item: item[0])[1]
        return values

    def _place(
        self,
        candidates: Dict[str, List[Tuple[Tuple, FieldValue]]],
        key: str,
        raw_value: Any,
        path: Tuple[str, ...],
        sectioned: bool,
    ) -> None:
        name = FIELD_ALIASES.get(key, key)
        if name not in _KNOWN_FIELDS or isinstance(raw_value, Mapping):
            logger.warning(f"Ignoring unknown intake field '{key}'")
            return

        if name in _LIST_FIELDS:
            value: FieldValue = _coerce_list(raw_value)
        else:
            value = _coerce_scalar(raw_value)

        rank = (len(value) == 0, not sectioned, key != name, path)
        candidates.setdefault(name, []).append((rank, value))
