"""
Intake Layer - Assessment Aggregation and Examination Input

Submodules:
    assessment_aggregator.py → Intake form sections to canonical Assessment
    examination.py           → Media checks, upload, Examination building

Author: Shubham Singh
Date: October 2026
"""

from treatment_plan_generation.intake.assessment_aggregator import (
    AssessmentAggregator,
    normalize_key,
)
from treatment_plan_generation.intake.examination import (
    MediaUpload,
    MediaUploader,
    build_examination,
    check_media_file,
    upload_media,
)

__all__ = [
    "AssessmentAggregator",
    "normalize_key",
    "MediaUpload",
    "MediaUploader",
    "build_examination",
    "check_media_file",
    "upload_media",
]
