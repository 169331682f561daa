"""
Fallback Provider - Canned Artifacts When Generation Fails

This module supplies a schema-valid treatment plan (or diagnosis) whenever the
generative service is unavailable or returns unusable output, so the caller
always has something to show.

Fallback content lives in a data asset (data/fallback_artifacts.json), not in
code. The asset is loaded once per process, validated through the same
contract as service output, and cached.

Category Selection:
    lower_back    → back, lumbar, sciatica, ...
    neck_shoulder → neck, shoulder, cervical, ...
    lower_limb    → knee, ankle, stairs, ...
    general       → anything else (default)

Author: Shubham Singh
Date: October 2026
"""

import json
import re
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from loguru import logger

from treatment_plan_generation.core.constants import (
    DEFAULT_FALLBACK_CATEGORY,
    FALLBACK_CATEGORIES,
)
from treatment_plan_generation.core.exceptions import ConfigurationError, SchemaError
from treatment_plan_generation.core.models import DiagnosisResult, TreatmentPlan
from treatment_plan_generation.validation.schema_validator import SchemaValidator


DEFAULT_ASSET_PATH = Path(__file__).parent.parent / "data" / "fallback_artifacts.json"


def categorize(summary: str) -> str:
    """
    Pick the fallback category for an assessment summary.

    Categories are checked in FALLBACK_CATEGORIES order; the first with a
    keyword at a word start wins.

    Example:
        >>> categorize("lower back pain radiating to left leg")
        'lower_back'
        >>> categorize("")
        'general'
    """
    text = (summary or "").lower()
    for category, keywords in FALLBACK_CATEGORIES.items():
        for keyword in keywords:
            if re.search(rf"\b{re.escape(keyword)}", text):
                return category
    return DEFAULT_FALLBACK_CATEGORY


class FallbackProvider:
    """
    Supplies canned, contract-valid artifacts.

    What it does:
        Returns the fallback plan for the summary's symptom category, or the
        fallback diagnosis. Never calls the generative service and never
        fails once constructed.

    When to use:
        - By TreatmentPlanPipeline after a TransportError or SchemaError

    Example:
        >>> provider = FallbackProvider()
        >>> plan = provider.fallback("knee pain going down stairs")
        >>> plan.phases[0].name
        'Phase 1: Settle Symptoms & Restore Range'
    """

    # Class-level cache: asset path → validated artifacts
    _asset_cache: Dict[str, Tuple[Dict[str, TreatmentPlan], DiagnosisResult]] = {}
    _cache_lock = threading.Lock()

    def __init__(
        self, asset_path: Optional[str] = None, validator: Optional[SchemaValidator] = None
    ):
        """
        Load (or reuse) the fallback asset.

        Args:
            asset_path: Override for the bundled data asset
            validator: Validator used to check the asset

        Raises:
            ConfigurationError: If the asset is missing, unreadable, or any
                artifact in it violates the output contract
        """
        self._asset_path = Path(asset_path) if asset_path else DEFAULT_ASSET_PATH
        self._validator = validator or SchemaValidator()
        self._plans, self._diagnosis = self._load()

        logger.debug(
            f"FallbackProvider initialized | "
            f"Categories: {', '.join(sorted(self._plans))}"
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def fallback(self, assessment_summary: str) -> TreatmentPlan:
        """
        Return the canned plan for the summary's symptom category.

        Deterministic: the same summary always yields the same plan.
        """
        category = categorize(assessment_summary)
        plan = self._plans.get(category) or self._plans[DEFAULT_FALLBACK_CATEGORY]
        logger.debug(f"Serving fallback plan | Category: {category}")
        return plan

    def fallback_diagnosis(self, description: str = "") -> DiagnosisResult:
        """Return the canned diagnosis (no visual conclusions drawn)."""
        return self._diagnosis

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self._plans)

    # =========================================================================
    # ASSET LOADING
    # =========================================================================

    def _load(self) -> Tuple[Dict[str, TreatmentPlan], DiagnosisResult]:
        cache_key = str(self._asset_path.absolute())

        with self._cache_lock:
            if cache_key in self._asset_cache:
                return self._asset_cache[cache_key]

            logger.info(f"Loading fallback artifacts from: {self._asset_path}")
            try:
                with open(self._asset_path, "r", encoding="utf-8") as f:
                    raw = json.load(f)
            except FileNotFoundError as e:
                raise ConfigurationError(
                    "Fallback asset not found", context={"path": str(self._asset_path)}
                ) from e
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Fallback asset is not valid JSON: {e.msg}",
                    context={"path": str(self._asset_path)},
                ) from e

            loaded = self._validate_asset(raw)
            self._asset_cache[cache_key] = loaded
            return loaded

    def _validate_asset(
        self, raw: dict
    ) -> Tuple[Dict[str, TreatmentPlan], DiagnosisResult]:
        plans_raw = raw.get("plans") if isinstance(raw, dict) else None
        if not isinstance(plans_raw, dict) or DEFAULT_FALLBACK_CATEGORY not in plans_raw:
            raise ConfigurationError(
                f"Fallback asset has no '{DEFAULT_FALLBACK_CATEGORY}' plan",
                context={"path": str(self._asset_path)},
            )

        try:
            plans = {
                category: self._validator.validate_plan(plan)
                for category, plan in plans_raw.items()
            }
            diagnosis = self._validator.validate_diagnosis(raw.get("diagnosis") or {})
        except SchemaError as e:
            raise ConfigurationError(
                f"Fallback asset violates output contract: {e.message}",
                context={"path": str(self._asset_path), "field": e.path},
            ) from e

        return plans, diagnosis

    @classmethod
    def clear_cache(cls) -> None:
        """Forget loaded assets (tests and hot reload)."""
        with cls._cache_lock:
            cls._asset_cache.clear()
