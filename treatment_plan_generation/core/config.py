"""
Configuration for Treatment Plan Generation Pipeline

This module defines the configuration dataclass used to initialize and
configure the treatment plan generation pipeline. Configuration is:
    1. Loaded from environment variables (with .env support)
    2. Validated at startup to fail fast on misconfiguration
    3. Shared read-only by every request handled by a pipeline

Configuration Hierarchy:
    PipelineConfiguration (main config)
    ├── LLM Settings (provider, API keys, model names)
    ├── Generation Settings (temperature, token ceilings, timeout)
    └── Storage Settings (artifact store path)

Usage:
    from treatment_plan_generation.core.config import PipelineConfiguration

    # Load from environment
    config = PipelineConfiguration.from_environment()

    # Or configure programmatically
    config = PipelineConfiguration(openai_api_key="your-key", request_timeout=30.0)

Author: Shubham Singh
Date: October 2026
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from treatment_plan_generation.core.exceptions import ConfigurationError


# =============================================================================
# STAGE 1: DEFAULT VALUES
# =============================================================================


class ConfigDefaults:
    """Default configuration values."""

    # -------------------------------------------------------------------------
    # 1.1 LLM Provider Defaults
    # -------------------------------------------------------------------------
    DEFAULT_PROVIDER = "openai"
    DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
    DEFAULT_OPENAI_VISION_MODEL = "gpt-4o"
    DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"

    # -------------------------------------------------------------------------
    # 1.2 Generation Defaults
    # -------------------------------------------------------------------------
    DEFAULT_TEMPERATURE = 0.3
    DEFAULT_PLAN_MAX_TOKENS = 3000
    DEFAULT_DIAGNOSIS_MAX_TOKENS = 2000
    DEFAULT_REQUEST_TIMEOUT = 60.0  # seconds, bounded wait per generation

    SUPPORTED_PROVIDERS = ("openai", "gemini")


# =============================================================================
# STAGE 2: CONFIGURATION DATACLASS
# =============================================================================


@dataclass(frozen=True)
class PipelineConfiguration:
    """
    Configuration for the treatment plan generation pipeline.

    What it does:
        Encapsulates the provider, model and generation parameters needed
        to build requests and talk to the generative service.

    When to use:
        - At pipeline initialization
        - When creating test fixtures with custom config

    Example:
        >>> config = PipelineConfiguration.from_environment()
        >>> print(config.openai_model)
        'gpt-4o-mini'
    """

    # -------------------------------------------------------------------------
    # 2.1 LLM Provider Configuration
    # -------------------------------------------------------------------------
    llm_provider: str = ConfigDefaults.DEFAULT_PROVIDER
    """Which LLM provider to use: 'openai' or 'gemini'."""

    openai_api_key: Optional[str] = None
    """OpenAI API key. Required if using OpenAI provider."""

    openai_model: str = ConfigDefaults.DEFAULT_OPENAI_MODEL
    """Model used for treatment plans."""

    openai_vision_model: str = ConfigDefaults.DEFAULT_OPENAI_VISION_MODEL
    """Vision-capable model used for media-based diagnosis."""

    gemini_api_key: Optional[str] = None
    """Google Gemini API key. Required if using Gemini provider."""

    gemini_model: str = ConfigDefaults.DEFAULT_GEMINI_MODEL
    """Gemini model name (multimodal, used for both tasks)."""

    # -------------------------------------------------------------------------
    # 2.2 Generation Configuration
    # -------------------------------------------------------------------------
    temperature: float = ConfigDefaults.DEFAULT_TEMPERATURE
    plan_max_tokens: int = ConfigDefaults.DEFAULT_PLAN_MAX_TOKENS
    diagnosis_max_tokens: int = ConfigDefaults.DEFAULT_DIAGNOSIS_MAX_TOKENS

    request_timeout: float = ConfigDefaults.DEFAULT_REQUEST_TIMEOUT
    """Bounded wait for one generation call, in seconds."""

    # -------------------------------------------------------------------------
    # 2.3 Storage Configuration
    # -------------------------------------------------------------------------
    artifact_store_path: Optional[str] = None
    """JSON file for persisted artifacts. In-memory store when unset."""

    # -------------------------------------------------------------------------
    # 2.4 Validation Methods
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Checks:
            1. Provider is supported
            2. API key for the selected provider is configured
            3. Numeric parameters are in valid ranges

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.llm_provider not in ConfigDefaults.SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported LLM provider: {self.llm_provider}",
                context={
                    "setting": "LLM_PROVIDER",
                    "supported": ", ".join(ConfigDefaults.SUPPORTED_PROVIDERS),
                },
            )

        if self.llm_provider == "openai" and not self.openai_api_key:
            raise ConfigurationError(
                "OpenAI API key required when using OpenAI provider",
                context={"setting": "OPENAI_API_KEY", "provider": "openai"},
            )

        if self.llm_provider == "gemini" and not self.gemini_api_key:
            raise ConfigurationError(
                "Gemini API key required when using Gemini provider",
                context={"setting": "GEMINI_API_KEY", "provider": "gemini"},
            )

        if not (0.0 <= self.temperature <= 2.0):
            raise ConfigurationError(
                f"Temperature must be 0-2, got {self.temperature}",
                context={"setting": "PLAN_TEMPERATURE"},
            )

        if self.plan_max_tokens <= 0 or self.diagnosis_max_tokens <= 0:
            raise ConfigurationError(
                "Token ceilings must be positive",
                context={
                    "plan_max_tokens": self.plan_max_tokens,
                    "diagnosis_max_tokens": self.diagnosis_max_tokens,
                },
            )

        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"Request timeout must be positive, got {self.request_timeout}",
                context={"setting": "REQUEST_TIMEOUT"},
            )

    # -------------------------------------------------------------------------
    # 2.5 Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_environment(
        cls, env_file: Optional[str] = None, validate_on_load: bool = True
    ) -> "PipelineConfiguration":
        """
        Load configuration from environment variables.

        STAGE 1: Load .env file (if specified or found)
        STAGE 2: Read environment variables
        STAGE 3: Convert to typed configuration
        STAGE 4: Validate configuration (optional)

        Args:
            env_file: Path to .env file (optional, auto-detected if not provided)
            validate_on_load: Whether to validate after loading

        Returns:
            Configured PipelineConfiguration instance

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        # STAGE 1: Load .env file
        if env_file:
            load_dotenv(env_file)
        else:
            possible_locations = [
                Path.cwd() / ".env",
                Path.cwd() / "treatment_plan_generation" / ".env",
            ]
            for location in possible_locations:
                if location.exists():
                    load_dotenv(location)
                    break

        # STAGE 2: Read environment variables
        openai_key = os.getenv("OPENAI_API_KEY")
        gemini_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")

        llm_provider = os.getenv("LLM_PROVIDER", ConfigDefaults.DEFAULT_PROVIDER).lower()
        if llm_provider == "openai" and not openai_key and gemini_key:
            llm_provider = "gemini"

        # STAGE 3: Create configuration
        try:
            config = cls(
                llm_provider=llm_provider,
                openai_api_key=openai_key,
                openai_model=os.getenv("OPENAI_MODEL", ConfigDefaults.DEFAULT_OPENAI_MODEL),
                openai_vision_model=os.getenv(
                    "OPENAI_VISION_MODEL", ConfigDefaults.DEFAULT_OPENAI_VISION_MODEL
                ),
                gemini_api_key=gemini_key,
                gemini_model=os.getenv("GEMINI_MODEL", ConfigDefaults.DEFAULT_GEMINI_MODEL),
                temperature=float(
                    os.getenv("PLAN_TEMPERATURE", ConfigDefaults.DEFAULT_TEMPERATURE)
                ),
                plan_max_tokens=int(
                    os.getenv("PLAN_MAX_TOKENS", ConfigDefaults.DEFAULT_PLAN_MAX_TOKENS)
                ),
                diagnosis_max_tokens=int(
                    os.getenv(
                        "DIAGNOSIS_MAX_TOKENS", ConfigDefaults.DEFAULT_DIAGNOSIS_MAX_TOKENS
                    )
                ),
                request_timeout=float(
                    os.getenv("REQUEST_TIMEOUT", ConfigDefaults.DEFAULT_REQUEST_TIMEOUT)
                ),
                artifact_store_path=os.getenv("ARTIFACT_STORE_PATH") or None,
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid numeric setting: {e}", context={"source": "environment"}
            ) from e

        # STAGE 4: Validate
        if validate_on_load:
            config.validate()

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary (for logging/debugging)."""
        return {
            "llm_provider": self.llm_provider,
            "openai_model": self.openai_model,
            "openai_vision_model": self.openai_vision_model,
            "gemini_model": self.gemini_model,
            "openai_api_key": "***" if self.openai_api_key else None,
            "gemini_api_key": "***" if self.gemini_api_key else None,
            "temperature": self.temperature,
            "plan_max_tokens": self.plan_max_tokens,
            "diagnosis_max_tokens": self.diagnosis_max_tokens,
            "request_timeout": self.request_timeout,
            "artifact_store_path": self.artifact_store_path,
        }
