"""
OpenAI Client - OpenAI API Implementation

This module provides the concrete client for OpenAI chat completions.
Treatment plans go to a small text model, media-based diagnosis to a
vision-capable model; media references become ``image_url`` content parts.

Author: Shubham Singh
Date: October 2026
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from treatment_plan_generation.clients.llm_client import BaseLLMClient
from treatment_plan_generation.core.config import ConfigDefaults
from treatment_plan_generation.core.enums import GenerationTask, TransportErrorKind
from treatment_plan_generation.core.exceptions import (
    ConfigurationError,
    ContentFilteredError,
    RateLimitError,
    TransportError,
    TransportTimeoutError,
)
from treatment_plan_generation.core.models import GenerationRequest


# =============================================================================
# STAGE 1: OPENAI CLIENT IMPLEMENTATION
# =============================================================================


class OpenAIClient(BaseLLMClient):
    """
    OpenAI API client for structured plan and diagnosis generation.

    What it does:
        Sends GenerationRequests to the chat completions endpoint in JSON
        mode and translates OpenAI SDK errors to TransportError kinds.

    Supported Models:
        - gpt-4o-mini (treatment plans, default)
        - gpt-4o (vision, media-based diagnosis)

    Example:
        >>> client = OpenAIClient(api_key="...")
        >>> raw = client.generate(builder.build(assessment))
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = ConfigDefaults.DEFAULT_OPENAI_MODEL,
        vision_model_name: str = ConfigDefaults.DEFAULT_OPENAI_VISION_MODEL,
        timeout: float = ConfigDefaults.DEFAULT_REQUEST_TIMEOUT,
    ):
        """
        Initialize OpenAI client.

        STAGE 1.1: Initialize base class
        STAGE 1.2: Configure OpenAI SDK (SDK retries disabled)

        Args:
            api_key: OpenAI API key
            model_name: Model for treatment plans
            vision_model_name: Model for media-based diagnosis
            timeout: Transport-level timeout in seconds
        """
        # =====================================================================
        # STAGE 1.1: INITIALIZE BASE CLASS
        # =====================================================================
        super().__init__(api_key=api_key, model_name=model_name, timeout=timeout)
        self._vision_model_name = vision_model_name

        # =====================================================================
        # STAGE 1.2: CONFIGURE OPENAI SDK
        # =====================================================================
        self._client = None
        self._initialize_client()

        logger.info(
            f"OpenAIClient initialized | Model: {model_name} | Vision: {vision_model_name}"
        )

    def _initialize_client(self) -> None:
        """
        Initialize the OpenAI client.

        Lazy import to avoid requiring openai at module load.
        """
        try:
            from openai import OpenAI

            self._client = OpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)

        except ImportError as e:
            raise ConfigurationError(
                "openai package not installed. Install with: pip install openai",
                context={"provider": "openai"},
            ) from e

    def model_name_for(self, task: GenerationTask) -> str:
        if task == GenerationTask.DIAGNOSIS:
            return self._vision_model_name
        return self._model_name

    # =========================================================================
    # STAGE 2: MESSAGE CONSTRUCTION
    # =========================================================================

    @staticmethod
    def build_messages(request: GenerationRequest) -> List[Dict[str, Any]]:
        """
        Build chat messages for a request.

        Text-only requests send the user prompt as a string. Multimodal
        requests send a text part followed by one ``image_url`` part per
        media reference, in order.
        """
        if request.media:
            user_content: Any = [{"type": "text", "text": request.user_prompt}]
            user_content.extend(
                {"type": "image_url", "image_url": {"url": media.url, "detail": "high"}}
                for media in request.media
            )
        else:
            user_content = request.user_prompt

        return [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": user_content},
        ]

    # =========================================================================
    # STAGE 3: API CALL IMPLEMENTATION
    # =========================================================================

    def _call_api(self, request: GenerationRequest) -> str:
        """
        Make the actual OpenAI API call.

        Raises:
            RateLimitError: HTTP 429
            TransportTimeoutError: SDK timeout
            ContentFilteredError: Completion stopped by the content filter
            TransportError: Connection failure, other status, empty output
        """
        import openai

        try:
            response = self._client.chat.completions.create(
                model=self.model_name_for(request.task),
                messages=self.build_messages(request),
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.RateLimitError as e:
            raise RateLimitError(
                provider="openai", retry_after=_retry_after(e), original_error=e
            ) from e
        except openai.APITimeoutError as e:
            raise TransportTimeoutError(provider="openai", timeout_seconds=self._timeout) from e
        except openai.APIConnectionError as e:
            raise TransportError(
                f"Could not reach OpenAI: {e}",
                provider="openai",
                kind=TransportErrorKind.NETWORK,
                original_error=e,
            ) from e
        except openai.APIStatusError as e:
            raise TransportError(
                f"OpenAI request failed with status {e.status_code}",
                provider="openai",
                kind=TransportErrorKind.HTTP_STATUS,
                original_error=e,
                status_code=e.status_code,
            ) from e

        if not response.choices:
            raise self._empty_response()

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise ContentFilteredError(provider="openai", reason="content_filter")

        content = choice.message.content if choice.message else None
        if not content or not content.strip():
            raise self._empty_response()
        return content

    # =========================================================================
    # STAGE 4: PROPERTIES
    # =========================================================================

    @property
    def provider_name(self) -> str:
        """Return provider name."""
        return "openai"


def _retry_after(error: Any) -> Optional[float]:
    """Read the Retry-After header of a 429 response, if present."""
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None) or {}
    value = headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None
