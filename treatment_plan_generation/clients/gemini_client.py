"""
Gemini Client - Google Gemini API Implementation

This module provides the concrete client for Google's Gemini API. Gemini
models are multimodal, so one model serves both treatment plans and
media-based diagnosis; media references are sent as ``file_data`` parts.

Media Limitation:
    Gemini only resolves ``file_data`` URIs it can read itself: Files API
    URIs and ``gs://`` objects. A plain storage URL from the upload
    collaborator is rejected by the service, so the diagnosis falls back.
    Deployments using Gemini for diagnosis need an uploader that returns
    one of those URIs; the OpenAI client accepts any public image URL.

Author: Shubham Singh
Date: October 2026
"""

from typing import Any, List

from loguru import logger

from treatment_plan_generation.clients.llm_client import BaseLLMClient
from treatment_plan_generation.core.config import ConfigDefaults
from treatment_plan_generation.core.enums import TransportErrorKind
from treatment_plan_generation.core.exceptions import (
    ConfigurationError,
    ContentFilteredError,
    RateLimitError,
    TransportError,
    TransportTimeoutError,
)
from treatment_plan_generation.core.models import GenerationRequest


# Permissive thresholds: pain, injury and anatomy descriptions trip the
# default filters.
SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]

RATE_LIMIT_MARKERS = ("429", "quota", "rate limit", "resource exhausted")

FILE_URI_PREFIXES = ("gs://", "https://generativelanguage.googleapis.com/")


def is_gemini_file_uri(uri: str) -> bool:
    """True for URIs Gemini can fetch as ``file_data`` (Files API or GCS)."""
    return uri.startswith(FILE_URI_PREFIXES)


# =============================================================================
# STAGE 1: GEMINI CLIENT IMPLEMENTATION
# =============================================================================


class GeminiClient(BaseLLMClient):
    """
    Google Gemini API client for structured plan and diagnosis generation.

    What it does:
        Sends GenerationRequests through google-generativeai with JSON
        output enabled and translates SDK errors to TransportError kinds.

    Supported Models:
        - gemini-1.5-flash (fast, cost-effective)
        - gemini-1.5-pro (higher quality)

    Example:
        >>> client = GeminiClient(api_key="...", model_name="gemini-1.5-flash")
        >>> raw = client.generate(builder.build(assessment))
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = ConfigDefaults.DEFAULT_GEMINI_MODEL,
        timeout: float = ConfigDefaults.DEFAULT_REQUEST_TIMEOUT,
    ):
        """
        Initialize Gemini client.

        STAGE 1.1: Initialize base class
        STAGE 1.2: Configure Gemini SDK

        Args:
            api_key: Google API key (Gemini)
            model_name: Model to use (default: gemini-1.5-flash)
            timeout: Transport-level timeout in seconds
        """
        super().__init__(api_key=api_key, model_name=model_name, timeout=timeout)

        self._genai = None
        self._initialize_client()

        logger.info(f"GeminiClient initialized | Model: {model_name}")

    def _initialize_client(self) -> None:
        """
        Configure the Gemini SDK.

        Lazy import to avoid requiring google-generativeai at module load.
        """
        try:
            import google.generativeai as genai

        except ImportError as e:
            raise ConfigurationError(
                "google-generativeai package not installed. "
                "Install with: pip install google-generativeai",
                context={"provider": "gemini"},
            ) from e

        genai.configure(api_key=self._api_key)
        self._genai = genai

    # =========================================================================
    # STAGE 2: CONTENT CONSTRUCTION
    # =========================================================================

    @staticmethod
    def build_contents(request: GenerationRequest) -> List[Any]:
        """
        User prompt followed by one ``file_data`` part per media reference.

        URIs Gemini cannot fetch are still sent, in order, and logged; the
        service error then resolves to the fallback diagnosis.
        """
        unreachable = [m.url for m in request.media if not is_gemini_file_uri(m.url)]
        if unreachable:
            logger.warning(
                f"Gemini cannot fetch {len(unreachable)} media URI(s) | "
                f"Expected Files API or gs:// URIs"
            )

        contents: List[Any] = [request.user_prompt]
        contents.extend(
            {"file_data": {"mime_type": media.mime_type, "file_uri": media.url}}
            for media in request.media
        )
        return contents

    # =========================================================================
    # STAGE 3: API CALL IMPLEMENTATION
    # =========================================================================

    def _call_api(self, request: GenerationRequest) -> str:
        """
        Make the actual Gemini API call.

        The system prompt travels as the model's system instruction, so a
        model object is created per request.

        Raises:
            RateLimitError: Quota or rate limit exceeded
            TransportTimeoutError: Deadline exceeded
            ContentFilteredError: Prompt or response blocked by safety settings
            TransportError: Any other failure, or empty output
        """
        try:
            model = self._genai.GenerativeModel(
                model_name=self._model_name,
                safety_settings=SAFETY_SETTINGS,
                system_instruction=request.system_prompt,
            )
            response = model.generate_content(
                self.build_contents(request),
                generation_config={
                    "temperature": request.temperature,
                    "max_output_tokens": request.max_tokens,
                    "response_mime_type": "application/json",
                },
                request_options={"timeout": self._timeout},
            )
        except Exception as e:
            raise self._translate_error(e) from e

        # Check for blocked content
        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and feedback.block_reason:
            raise ContentFilteredError(provider="gemini", reason=str(feedback.block_reason))

        if response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                text = "".join(getattr(part, "text", "") for part in candidate.content.parts)
                if text.strip():
                    return text

        raise self._empty_response()

    def _translate_error(self, error: Exception) -> TransportError:
        """Map a google-generativeai exception to a TransportError."""
        error_str = str(error).lower()

        if any(token in error_str for token in RATE_LIMIT_MARKERS):
            return RateLimitError(provider="gemini", original_error=error)

        if "deadline" in error_str or "timed out" in error_str or "timeout" in error_str:
            return TransportTimeoutError(provider="gemini", timeout_seconds=self._timeout)

        if "blocked" in error_str or "safety" in error_str:
            return ContentFilteredError(provider="gemini", reason=str(error))

        return TransportError(
            f"Gemini API error: {error}",
            provider="gemini",
            kind=TransportErrorKind.NETWORK,
            original_error=error,
        )

    # =========================================================================
    # STAGE 4: PROPERTIES
    # =========================================================================

    @property
    def provider_name(self) -> str:
        """Return provider name."""
        return "gemini"
