"""
Artifact Store - Per-Client Persistence Facade

This module persists generated treatment plans and diagnoses against a
client record and lists them back, newest first.

Architecture:
    ArtifactBackend (Protocol)
    ├── InMemoryArtifactBackend   → Process-local list (tests, demos)
    └── JsonFileArtifactBackend   → Single JSON file on disk

    ArtifactStore (Facade)
    └── Role gating, id/sequence assignment, ordering, error translation

Access Rules:
    client  → save and list own records only
    trainer → save and list any client's records, list all
    admin   → same as trainer

Author: Shubham Singh
Date: October 2026
"""

import json
import os
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from loguru import logger

from treatment_plan_generation.core.config import PipelineConfiguration
from treatment_plan_generation.core.exceptions import (
    AccessDeniedError,
    StorageError,
    ValidationError,
)
from treatment_plan_generation.core.models import Artifact, CallerIdentity, GenerationResult


# =============================================================================
# STAGE 1: BACKEND PROTOCOL
# =============================================================================


@runtime_checkable
class ArtifactBackend(Protocol):
    """
    Persistence collaborator.

    Records are plain dictionaries produced by Artifact.to_dict(). The
    backend neither orders nor filters beyond client_id.
    """

    def insert(self, record: Dict[str, Any]) -> None:
        ...

    def fetch(self, client_id: Optional[str] = None) -> List[Dict[str, Any]]:
        ...


# =============================================================================
# STAGE 2: BACKEND IMPLEMENTATIONS
# =============================================================================


class InMemoryArtifactBackend:
    """Lock-protected in-process backend."""

    def __init__(self):
        self._records: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def insert(self, record: Dict[str, Any]) -> None:
        with self._lock:
            self._records.append(dict(record))

    def fetch(self, client_id: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                dict(r) for r in self._records if client_id is None or r["client_id"] == client_id
            ]


class JsonFileArtifactBackend:
    """
    Backend storing every record in one JSON array file.

    Writes go to a temporary file that replaces the original, so a crash
    mid-write never leaves a truncated store.

    Example:
        >>> backend = JsonFileArtifactBackend("output/artifacts.json")
        >>> store = ArtifactStore(backend)
    """

    def __init__(self, file_path: str):
        self._path = Path(file_path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def insert(self, record: Dict[str, Any]) -> None:
        with self._lock:
            records = self._read()
            records.append(record)
            self._write(records)

    def fetch(self, client_id: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            records = self._read()
        return [r for r in records if client_id is None or r.get("client_id") == client_id]

    def _read(self) -> List[Dict[str, Any]]:
        if not self._path.exists():
            return []
        with open(self._path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{self._path} does not contain a JSON array")
        return data

    def _write(self, records: List[Dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


# =============================================================================
# STAGE 3: STORE FACADE
# =============================================================================


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ArtifactStore:
    """
    Persists GenerationResults per client and lists them newest first.

    What it does:
        Assigns each saved artifact a unique id, a creation timestamp and an
        insertion sequence, gates every operation on the caller's role, and
        translates backend failures to StorageError.

    Ordering:
        created_at descending; equal timestamps put the later insertion
        first.

    Thread Safety:
        Sequence assignment and insert happen under one lock, so concurrent
        saves for the same client each append their own record.

    Example:
        >>> store = ArtifactStore()
        >>> artifact_id = store.save(trainer, "client-1", result, summary="low back pain")
        >>> store.list_for_client(trainer, "client-1")[0].artifact_id == artifact_id
        True
    """

    def __init__(
        self,
        backend: Optional[ArtifactBackend] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._backend = backend if backend is not None else InMemoryArtifactBackend()
        self._clock = clock
        self._lock = threading.Lock()
        self._sequence: Optional[int] = None

        logger.debug(f"ArtifactStore initialized | Backend: {type(self._backend).__name__}")

    @classmethod
    def from_config(cls, config: PipelineConfiguration) -> "ArtifactStore":
        """JSON-file store when ARTIFACT_STORE_PATH is set, in-memory otherwise."""
        if config.artifact_store_path:
            return cls(JsonFileArtifactBackend(config.artifact_store_path))
        return cls(InMemoryArtifactBackend())

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def save(
        self,
        identity: CallerIdentity,
        client_id: str,
        result: GenerationResult,
        summary: str = "",
    ) -> str:
        """
        Persist a generation result for a client.

        Args:
            identity: Authenticated caller
            client_id: Owning client record
            result: Plan or diagnosis with its provenance flag
            summary: Short description of the input

        Returns:
            New artifact id

        Raises:
            ValidationError: If client_id is empty
            AccessDeniedError: If a client saves to another client's record
            StorageError: If the backend fails
        """
        if not client_id:
            raise ValidationError("client_id is required to save an artifact", ["client_id"])
        self._authorize(identity, client_id, "save artifacts for another client")

        with self._lock:
            sequence = self._next_sequence()
            artifact = Artifact(
                artifact_id=uuid.uuid4().hex,
                client_id=client_id,
                kind=result.kind,
                source=result.source,
                payload=result.artifact,
                created_at=self._clock(),
                sequence=sequence,
                warning=result.warning,
                summary=summary,
                created_by=identity.user_id,
            )
            try:
                self._backend.insert(artifact.to_dict())
            except Exception as e:
                logger.error(f"Artifact save failed for client {client_id}: {e}")
                raise StorageError("save", str(e), original_error=e) from e

        logger.info(
            f"Saved {artifact.kind.value} {artifact.artifact_id} | "
            f"Client: {client_id} | Source: {artifact.source.value}"
        )
        return artifact.artifact_id

    def list_for_client(self, identity: CallerIdentity, client_id: str) -> List[Artifact]:
        """
        List one client's artifacts, newest first.

        Raises:
            AccessDeniedError: If a client lists another client's records
            StorageError: If the backend fails or returns unreadable records
        """
        self._authorize(identity, client_id, "list another client's artifacts")
        return self._fetch(client_id)

    def list_all(self, identity: CallerIdentity) -> List[Artifact]:
        """
        List every artifact across clients, newest first (staff only).

        Raises:
            AccessDeniedError: If the caller is a client
            StorageError: If the backend fails
        """
        if not identity.role.is_staff:
            raise AccessDeniedError(identity.user_id, identity.role.value, "list all artifacts")
        return self._fetch(None)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @staticmethod
    def _authorize(identity: CallerIdentity, client_id: str, operation: str) -> None:
        if not identity.can_access(client_id):
            logger.warning(
                f"Access denied | User: {identity.user_id} | "
                f"Role: {identity.role.value} | Client: {client_id}"
            )
            raise AccessDeniedError(identity.user_id, identity.role.value, operation)

    def _next_sequence(self) -> int:
        """Next insertion number; seeded from the backend on first use."""
        if self._sequence is None:
            try:
                existing = self._backend.fetch(None)
            except Exception as e:
                raise StorageError("save", str(e), original_error=e) from e
            self._sequence = max((int(r.get("sequence", 0)) for r in existing), default=0)
        self._sequence += 1
        return self._sequence

    def _fetch(self, client_id: Optional[str]) -> List[Artifact]:
        try:
            records = self._backend.fetch(client_id)
            artifacts = [Artifact.from_dict(record) for record in records]
        except Exception as e:
            logger.error(f"Artifact list failed: {e}")
            raise StorageError("list", str(e), original_error=e) from e

        artifacts.sort(key=lambda a: (a.created_at, a.sequence), reverse=True)
        return artifacts
