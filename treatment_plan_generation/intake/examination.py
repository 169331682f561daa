"""
Examination Intake - Media Checks and Diagnosis Input

This module prepares the input of the media-based diagnosis pipeline:
    1. Checks uploaded files (image or video, at most 100 MB, non-empty)
    2. Hands accepted files to the media-upload collaborator
    3. Builds the Examination from a description and media references

The request builder only ever sees MediaReference values; raw bytes stop here.

Author: Shubham Singh
Date: October 2026
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from loguru import logger

from treatment_plan_generation.core.constants import (
    ALLOWED_MEDIA_PREFIXES,
    DEFAULT_EXAMINATION_DESCRIPTION,
    MAX_MEDIA_BYTES,
)
from treatment_plan_generation.core.exceptions import StorageError, ValidationError
from treatment_plan_generation.core.models import Examination, MediaReference


# =============================================================================
# STAGE 1: UPLOAD TYPES
# =============================================================================


@dataclass(frozen=True)
class MediaUpload:
    """A file received from the examination form, not yet stored."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@runtime_checkable
class MediaUploader(Protocol):
    """
    Media-upload collaborator (object storage).

    Stores one file for a client and returns a stable, retrievable
    reference the generative service can fetch.
    """

    def upload(
        self, client_id: str, filename: str, data: bytes, content_type: str
    ) -> MediaReference:
        ...


# =============================================================================
# STAGE 2: CHECKS
# =============================================================================


def check_media_file(filename: str, content_type: Optional[str], size_bytes: int) -> None:
    """
    Check one uploaded file against the examination media rules.

    Raises:
        ValidationError: Wrong type, empty, or larger than MAX_MEDIA_BYTES
    """
    content_type = content_type or "application/octet-stream"
    if not content_type.startswith(ALLOWED_MEDIA_PREFIXES):
        raise ValidationError(
            f"Unsupported file type for '{filename}': {content_type}. "
            f"Please upload only images or videos.",
            fields=["media"],
        )
    if size_bytes <= 0:
        raise ValidationError(f"Empty file uploaded: '{filename}'", fields=["media"])
    if size_bytes > MAX_MEDIA_BYTES:
        limit_mb = MAX_MEDIA_BYTES // (1024 * 1024)
        raise ValidationError(
            f"File '{filename}' exceeds the {limit_mb}MB limit", fields=["media"]
        )


def build_examination(
    description: Optional[str], media: Sequence[MediaReference] = ()
) -> Examination:
    """
    Build an Examination from the form description and stored media.

    Args:
        description: Free-text description of the condition (may be empty)
        media: References returned by the media-upload collaborator

    Returns:
        Examination; an empty description becomes "No description provided"

    Raises:
        ValidationError: If there is neither a description nor any media
    """
    text = (description or "").strip()
    if not text and not media:
        raise ValidationError(
            "Please upload at least one file or provide a description",
            fields=["description", "media"],
        )
    return Examination(description=text or DEFAULT_EXAMINATION_DESCRIPTION, media=tuple(media))


# =============================================================================
# STAGE 3: UPLOAD
# =============================================================================


def upload_media(
    uploader: MediaUploader, client_id: str, files: Sequence[MediaUpload]
) -> tuple:
    """
    Check every file, then store each one through the uploader.

    All files are checked before the first upload, so a rejected file never
    leaves a partial set behind.

    Returns:
        Tuple of MediaReference in the order the files were given

    Raises:
        ValidationError: If any file fails the checks
        StorageError: If the uploader fails
    """
    for item in files:
        check_media_file(item.filename, item.content_type, item.size_bytes)

    references: List[MediaReference] = []
    for item in files:
        try:
            reference = uploader.upload(client_id, item.filename, item.data, item.content_type)
        except StorageError:
            raise
        except Exception as e:
            logger.error(f"Media upload failed for '{item.filename}': {e}")
            raise StorageError("upload", str(e), original_error=e) from e
        references.append(reference)

    logger.info(f"Uploaded {len(references)} media file(s) for examination")
    return tuple(references)
