"""
Domain Exceptions for Treatment Plan Generation

This module defines all custom exceptions used throughout the assessment to
treatment plan pipeline. The taxonomy decides recovery policy:
    - ValidationError, StorageError and AccessDeniedError reach the caller
    - TransportError and SchemaError are recovered by the pipeline, which
      substitutes a fallback artifact

Exception Hierarchy:
    PlanGenerationError (base)
    ├── ConfigurationError      → Invalid configuration
    ├── ValidationError         → Incomplete or invalid intake input
    ├── TransportError          → Generative service unreachable or failing
    │   ├── RateLimitError
    │   ├── TransportTimeoutError
    │   └── ContentFilteredError
    ├── SchemaError             → Response violates the output contract
    ├── StorageError            → Artifact persistence failure
    └── AccessDeniedError       → Caller role may not perform the operation

Usage:
    from treatment_plan_generation.core.exceptions import SchemaError

    try:
        plan = validator.validate_plan(raw_text)
    except SchemaError as e:
        logger.warning(f"Contract violation at {e.path}: {e.kind.value}")

Author: Shubham Singh
Date: October 2026
"""

from typing import List, Optional

from treatment_plan_generation.core.enums import SchemaErrorKind, TransportErrorKind


# =============================================================================
# STAGE 1: BASE EXCEPTION
# =============================================================================
# All domain exceptions inherit from this base class.


class PlanGenerationError(Exception):
    """
    Base exception for all treatment plan generation errors.

    What it does:
        Provides a common base class for all domain-specific exceptions,
        enabling catch-all handling while preserving specific error types.

    Attributes:
        message: Human-readable error description
        context: Dictionary of additional context for debugging
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        """
        Initialize with message and optional context.

        Args:
            message: Human-readable error description
            context: Additional debugging context (field, path, provider)
        """
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format message with context for display."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{context_str}]"
        return self.message


# =============================================================================
# STAGE 2: CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(PlanGenerationError):
    """
    Error in pipeline configuration.

    When raised:
        - Missing API key for the selected provider
        - Unsupported provider name
        - Out-of-range numeric settings
        - Fallback data asset missing or not schema-valid

    Example:
        >>> raise ConfigurationError(
        ...     "API key not configured",
        ...     context={"setting": "OPENAI_API_KEY", "source": "environment"}
        ... )
    """

    pass


# =============================================================================
# STAGE 3: INPUT VALIDATION ERRORS
# =============================================================================


class ValidationError(PlanGenerationError):
    """
    Intake input is incomplete or invalid.

    What it does:
        Signals a caller-fixable problem with the assessment or examination
        input. Generation is never attempted when this is raised.

    When raised:
        - Client name or primary complaint is empty
        - Examination has neither description nor media
        - Uploaded media file has the wrong type or is too large

    Attributes:
        fields: Names of the offending input fields
    """

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        self.fields = list(fields or [])
        super().__init__(message, context={"fields": self.fields} if self.fields else None)


# =============================================================================
# STAGE 4: TRANSPORT ERRORS
# =============================================================================
# Errors raised while talking to the external generative service.


class TransportError(PlanGenerationError):
    """
    The generative service could not produce a response.

    What it does:
        Wraps errors from the underlying provider SDK (OpenAI, Gemini) with
        a coarse kind the pipeline reports in its fallback warning.

    When raised:
        - Network failure or DNS error
        - Non-success HTTP status
        - Empty completion
        - Bounded wait exceeded

    Attributes:
        kind: TransportErrorKind classifying the failure
        provider: The LLM provider (openai, gemini)
        original_error: The wrapped original exception
    """

    def __init__(
        self,
        message: str,
        provider: str,
        kind: TransportErrorKind = TransportErrorKind.NETWORK,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.provider = provider
        self.original_error = original_error
        self.status_code = status_code
        context = {"provider": provider, "kind": kind.value}
        if status_code is not None:
            context["status_code"] = status_code
        if original_error is not None:
            context["original_error"] = str(original_error)
        super().__init__(message, context=context)


class RateLimitError(TransportError):
    """
    Provider quota or rate limit exceeded.

    The pipeline does not wait and retry; it falls back immediately.

    Attributes:
        retry_after: Seconds the provider asked us to wait (if known)
    """

    def __init__(
        self,
        provider: str,
        retry_after: Optional[float] = None,
        original_error: Optional[Exception] = None,
    ):
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for {provider}",
            provider=provider,
            kind=TransportErrorKind.RATE_LIMITED,
            original_error=original_error,
            status_code=429,
        )
        if retry_after is not None:
            self.context["retry_after"] = retry_after


class TransportTimeoutError(TransportError):
    """
    The bounded wait for the generative service elapsed.

    Attributes:
        timeout_seconds: The timeout that was exceeded
    """

    def __init__(self, provider: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"No response from {provider} within {timeout_seconds}s",
            provider=provider,
            kind=TransportErrorKind.TIMEOUT,
        )
        self.context["timeout_seconds"] = timeout_seconds


class ContentFilteredError(TransportError):
    """The provider refused to answer because of its safety settings."""

    def __init__(self, provider: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(
            f"Content filtered by {provider} safety settings: {reason or 'unknown reason'}",
            provider=provider,
            kind=TransportErrorKind.CONTENT_FILTERED,
        )


# =============================================================================
# STAGE 5: OUTPUT CONTRACT ERRORS
# =============================================================================


class SchemaError(PlanGenerationError):
    """
    A response was received but violates the structured-output contract.

    What it does:
        Carries the violation kind and the offending field path in wire
        names (e.g. ``phases[0].exercises``) so prompt drift can be traced
        from the logs.

    Attributes:
        kind: SchemaErrorKind (malformed, missing_field, invalid_value)
        path: Offending field path, ``$`` for the document root
    """

    def __init__(
        self,
        kind: SchemaErrorKind,
        path: str,
        message: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ):
        self.kind = kind
        self.path = path
        self.errors = list(errors or [])
        context = {"kind": kind.value, "path": path}
        if len(self.errors) > 1:
            context["error_count"] = len(self.errors)
        super().__init__(message or f"Response violates output contract at {path}", context)


# =============================================================================
# STAGE 6: STORAGE ERRORS
# =============================================================================


class StorageError(PlanGenerationError):
    """
    Error persisting or reading artifacts (or uploading media).

    Always surfaced to the caller: a generated artifact that silently fails
    to save is lost.

    Attributes:
        operation: The store operation that failed (save, list, upload)
    """

    def __init__(
        self, operation: str, reason: str, original_error: Optional[Exception] = None
    ):
        self.operation = operation
        self.reason = reason
        self.original_error = original_error
        super().__init__(
            f"Artifact {operation} failed: {reason}",
            context={"operation": operation},
        )


class AccessDeniedError(PlanGenerationError):
    """
    Caller identity may not perform the requested store operation.

    Attributes:
        user_id: Caller identifier
        role: Caller role value
    """

    def __init__(self, user_id: str, role: str, operation: str):
        self.user_id = user_id
        self.role = role
        super().__init__(
            f"Role '{role}' may not {operation}",
            context={"user_id": user_id, "operation": operation},
        )
