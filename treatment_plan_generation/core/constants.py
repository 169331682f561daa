"""
Constants for Treatment Plan Generation

This module defines constant values used throughout the pipeline.

Constant Categories:
    INTAKE_LAYOUT          → Canonical section/field order of an assessment
    REQUIRED_FIELDS        → Fields that must be non-empty before generation
    MEDIA limits           → Accepted upload types and size
    FALLBACK_CATEGORIES    → Keyword map for choosing a canned plan

Author: Shubham Singh
Date: October 2026
"""

from typing import Dict, List, Tuple


# =============================================================================
# STAGE 1: CANONICAL INTAKE LAYOUT
# =============================================================================
# Order here IS the order of the serialized assessment document. Field names
# are unique across sections so flat intake payloads can be placed.
# Each field: (field_name, display_label, is_list)

INTAKE_LAYOUT: Tuple[Tuple[str, str, Tuple[Tuple[str, str, bool], ...]], ...] = (
    (
        "personal_information",
        "Personal Information",
        (
            ("name", "Name", False),
            ("email", "Email", False),
            ("phone", "Phone", False),
            ("age", "Age", False),
            ("occupation", "Occupation", False),
        ),
    ),
    (
        "symptoms",
        "Symptoms",
        (
            ("primary_complaint", "Primary Complaint", False),
            ("pain_level", "Pain Level (0-10)", False),
            ("pain_location", "Pain Location", False),
            ("symptom_onset", "Onset and Duration", False),
            ("aggravating_factors", "Aggravating Factors", False),
            ("relieving_factors", "Relieving Factors", False),
        ),
    ),
    (
        "medical_history",
        "Medical History",
        (
            ("past_history", "Past Injuries, Surgeries, or Conditions", False),
            ("current_medications", "Current Medications & Supplements", False),
            ("previous_therapy", "Previous Therapy or Treatment", False),
        ),
    ),
    (
        "daily_life",
        "Daily Life",
        (
            ("work_demands", "Work Demands", False),
            ("sitting_tolerance", "Sitting Tolerance", False),
            ("sleep_quality", "Sleep Quality", False),
            ("stress_level", "Stress Level", False),
        ),
    ),
    (
        "physical_activity",
        "Physical Activity",
        (
            ("activity_level", "Current Activity Level", False),
            ("exercise_routine", "Exercise Routine", False),
            ("sports", "Sports and Recreation", False),
        ),
    ),
    (
        "functional_assessment",
        "Functional Assessment",
        (
            ("movement_concerns", "Difficult or Painful Movements", True),
            ("range_of_motion", "Range of Motion", False),
            ("balance", "Balance and Stability", False),
        ),
    ),
    (
        "goals",
        "Goals",
        (
            ("goals", "Treatment Goals", False),
            ("timeline", "Expected Timeline", False),
        ),
    ),
    (
        "compensation_patterns",
        "Compensation Patterns",
        (
            ("observed_patterns", "Observed Patterns", True),
            ("compensation_notes", "Notes", False),
        ),
    ),
)

REQUIRED_FIELDS: Tuple[str, ...] = ("name", "primary_complaint")

# Number of characters of the primary complaint kept as the artifact summary
SUMMARY_LENGTH = 100


# =============================================================================
# STAGE 2: EXAMINATION MEDIA
# =============================================================================

ALLOWED_MEDIA_PREFIXES: Tuple[str, ...] = ("image/", "video/")

MAX_MEDIA_BYTES = 100 * 1024 * 1024  # 100 MB per file

DEFAULT_EXAMINATION_DESCRIPTION = "No description provided"


# =============================================================================
# STAGE 3: FALLBACK CATEGORY KEYWORDS
# =============================================================================
# Checked in order; first category with a keyword hit wins.

FALLBACK_CATEGORIES: Dict[str, List[str]] = {
    "lower_back": [
        "back",
        "lumbar",
        "sciatica",
        "spine",
        "radiating",
        "hip flexor",
        "disc",
    ],
    "neck_shoulder": [
        "neck",
        "cervical",
        "shoulder",
        "rotator",
        "trapez",
        "headache",
    ],
    "lower_limb": [
        "knee",
        "ankle",
        "foot",
        "hamstring",
        "calf",
        "achilles",
        "stairs",
        "patella",
    ],
}

DEFAULT_FALLBACK_CATEGORY = "general"
