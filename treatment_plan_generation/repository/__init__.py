"""
Repository Layer - Artifact Persistence

Submodules:
    artifact_store.py → ArtifactStore facade and backends

Dependency Rule:
    This layer depends on: core
    This layer is used by: pipeline (orchestrator), application code

Author: Shubham Singh
Date: October 2026
"""

from treatment_plan_generation.repository.artifact_store import (
    ArtifactBackend,
    ArtifactStore,
    InMemoryArtifactBackend,
    JsonFileArtifactBackend,
)

__all__ = [
    "ArtifactBackend",
    "ArtifactStore",
    "InMemoryArtifactBackend",
    "JsonFileArtifactBackend",
]
