"""
LLM Client Protocol and Base Implementation

This module defines the interface for generative service clients and a base
class with the behaviour every provider shares (error normalisation,
logging, call metrics).

Protocol Pattern:
    - LLMClientProtocol defines the interface
    - BaseLLMClient provides common implementation
    - Concrete clients (OpenAIClient, GeminiClient) extend base

Each call is a single attempt. Retrying is deliberately left out: the
pipeline answers a failed call with a fallback artifact instead.

Author: Shubham Singh
Date: October 2026
"""

import threading
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from loguru import logger

from treatment_plan_generation.core.config import ConfigDefaults
from treatment_plan_generation.core.enums import GenerationTask, TransportErrorKind
from treatment_plan_generation.core.exceptions import TransportError
from treatment_plan_generation.core.models import GenerationRequest


# =============================================================================
# STAGE 1: LLM CLIENT PROTOCOL
# =============================================================================


@runtime_checkable
class LLMClientProtocol(Protocol):
    """
    Protocol defining the interface for generative service clients.

    Required Methods:
        generate(request) → Raw response text for a GenerationRequest
        model_name_for(task) → Model that serves a given task

    Properties:
        model_name → Default model
        provider_name → Name of the provider (openai, gemini)
    """

    def generate(self, request: GenerationRequest) -> str:
        """
        Send one request and return the raw response text.

        Raises:
            TransportError: If the service cannot produce a response
        """
        ...

    def model_name_for(self, task: GenerationTask) -> str:
        ...

    @property
    def model_name(self) -> str:
        ...

    @property
    def provider_name(self) -> str:
        ...


# =============================================================================
# STAGE 2: BASE LLM CLIENT (ABSTRACT)
# =============================================================================


class BaseLLMClient(ABC):
    """
    Abstract base class for generative service clients.

    What it does:
        Wraps the provider call with logging and metrics, and guarantees
        that every failure leaves this method as a TransportError.

    What subclasses must implement:
        - _call_api(request): Actual API call
        - provider_name: Property returning provider name

    What base class provides:
        - Error normalisation to TransportError
        - Call metrics (thread safe)
        - Per-task model selection hook
    """

    def __init__(
        self,
        api_key: str,
        model_name: str,
        timeout: float = ConfigDefaults.DEFAULT_REQUEST_TIMEOUT,
    ):
        """
        Initialize base LLM client.

        Args:
            api_key: API key for the provider
            model_name: Default model
            timeout: Transport-level timeout in seconds
        """
        self._api_key = api_key
        self._model_name = model_name
        self._timeout = timeout

        self._metrics_lock = threading.Lock()
        self._total_calls = 0
        self._failed_calls = 0

    # =========================================================================
    # STAGE 3: PUBLIC API
    # =========================================================================

    def generate(self, request: GenerationRequest) -> str:
        """
        Send a request to the provider.

        Args:
            request: Instructions, user payload and media references

        Returns:
            Raw response text (not yet validated)

        Raises:
            TransportError: Any provider failure, including empty output
        """
        model = self.model_name_for(request.task)
        logger.debug(
            f"Calling {self.provider_name} | Model: {model} | "
            f"Task: {request.task.value} | Media parts: {len(request.media)}"
        )

        try:
            text = self._call_api(request)
        except TransportError as e:
            self._record(success=False)
            logger.warning(f"{self.provider_name} call failed ({e.kind.value}): {e.message}")
            raise
        except Exception as e:
            self._record(success=False)
            logger.error(f"Unexpected error in {self.provider_name} call: {e}")
            raise TransportError(
                f"{self.provider_name} call failed: {e}",
                provider=self.provider_name,
                kind=TransportErrorKind.NETWORK,
                original_error=e,
            ) from e

        self._record(success=True)
        return text

    def model_name_for(self, task: GenerationTask) -> str:
        """Model that serves the given task (default model unless overridden)."""
        return self._model_name

    # =========================================================================
    # STAGE 4: ABSTRACT METHODS
    # =========================================================================

    @abstractmethod
    def _call_api(self, request: GenerationRequest) -> str:
        """
        Make the actual API call. Must be implemented by subclasses.

        Raises:
            TransportError: If API call fails
        """
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'openai', 'gemini')."""
        ...

    # =========================================================================
    # STAGE 5: COMMON IMPLEMENTATION
    # =========================================================================

    @property
    def model_name(self) -> str:
        return self._model_name

    def _empty_response(self) -> TransportError:
        return TransportError(
            f"{self.provider_name} returned empty response",
            provider=self.provider_name,
            kind=TransportErrorKind.EMPTY_RESPONSE,
        )

    def _record(self, success: bool) -> None:
        with self._metrics_lock:
            if success:
                self._total_calls += 1
            else:
                self._failed_calls += 1

    # =========================================================================
    # STAGE 6: METRICS
    # =========================================================================

    @property
    def total_calls(self) -> int:
        """Total number of successful API calls."""
        return self._total_calls

    @property
    def failed_calls(self) -> int:
        """Number of failed API calls."""
        return self._failed_calls

    @property
    def success_rate(self) -> float:
        """Percentage of successful calls."""
        total = self._total_calls + self._failed_calls
        if total == 0:
            return 100.0
        return (self._total_calls / total) * 100
