"""
Treatment Plan Generation Pipeline - Main Orchestrator

This is the PUBLIC API entry point for the assessment-to-treatment-plan
system. It coordinates request building, the generative service call,
contract validation and fallback into one call that always returns a usable
artifact.

Architecture Diagram:
    ┌─────────────────────────────────────────────────────────────────────┐
    │                       TreatmentPlanPipeline                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   ┌───────────┐    ┌───────────┐    ┌───────────┐                   │
    │   │  Request  │ →  │    LLM    │ →  │  Schema   │ → generated       │
    │   │  Builder  │    │  Client   │    │ Validator │                   │
    │   └───────────┘    └───────────┘    └───────────┘                   │
    │                          │ TransportError  │ SchemaError            │
    │                          └───────┬─────────┘                        │
    │                           ┌──────▼──────┐                           │
    │                           │  Fallback   │ → fallback                │
    │                           └─────────────┘                           │
    └─────────────────────────────────────────────────────────────────────┘

Failure Policy:
    - One attempt per call, bounded by a timeout
    - Transport failures, timeouts and contract violations resolve to the
      fallback artifact with source=fallback and a warning
    - Nothing is raised past generate_plan / analyze_examination

Usage:
    from treatment_plan_generation import TreatmentPlanPipeline

    pipeline = TreatmentPlanPipeline.from_environment()
    result = pipeline.generate_plan(assessment)
    if result.is_fallback:
        print(f"Showing general plan: {result.warning}")

Author: Shubham Singh
Date: October 2026
"""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from loguru import logger

from treatment_plan_generation.clients import GeminiClient, LLMClientProtocol, OpenAIClient
from treatment_plan_generation.core.config import PipelineConfiguration
from treatment_plan_generation.core.constants import SUMMARY_LENGTH
from treatment_plan_generation.core.enums import ArtifactSource
from treatment_plan_generation.core.exceptions import (
    AccessDeniedError,
    ConfigurationError,
    SchemaError,
    TransportError,
    TransportTimeoutError,
)
from treatment_plan_generation.core.models import (
    Assessment,
    CallerIdentity,
    DiagnosisResult,
    Examination,
    GenerationRequest,
    GenerationResult,
    MediaReference,
    TreatmentPlan,
)
from treatment_plan_generation.fallback import FallbackProvider
from treatment_plan_generation.generation import PlanRequestBuilder
from treatment_plan_generation.intake import AssessmentAggregator, build_examination
from treatment_plan_generation.repository import ArtifactStore
from treatment_plan_generation.validation import SchemaValidator


FALLBACK_MODEL_NAME = "fallback"


# =============================================================================
# STAGE 1: PIPELINE CLASS
# =============================================================================


class TreatmentPlanPipeline:
    """
    Main orchestrator for treatment plan and diagnosis generation.

    What it does:
        Builds a request, calls the generative service with a bounded wait,
        validates the response, and substitutes a fallback artifact on any
        transport or contract failure. The result always carries a
        provenance flag.

    How it works:
        STAGE 1: Initialize components from configuration
        STAGE 2: On generate_plan() / analyze_examination():
            2.1 Build the GenerationRequest
            2.2 Call the LLM client (single attempt, bounded wait)
            2.3 Validate against the output contract
            2.4 On failure, serve the fallback artifact

    Thread Safety:
        Holds only configuration and stateless collaborators; concurrent
        calls share nothing mutable.

    Example:
        >>> pipeline = TreatmentPlanPipeline(config, llm_client=client)
        >>> result = pipeline.generate_plan(assessment)
        >>> result.source
        <ArtifactSource.GENERATED: 'generated'>
    """

    def __init__(
        self,
        config: Optional[PipelineConfiguration] = None,
        llm_client: Optional[LLMClientProtocol] = None,
        builder: Optional[PlanRequestBuilder] = None,
        validator: Optional[SchemaValidator] = None,
        fallback_provider: Optional[FallbackProvider] = None,
        aggregator: Optional[AssessmentAggregator] = None,
    ):
        """
        Initialize pipeline with configuration and optional component overrides.

        Args:
            config: Pipeline configuration (defaults if not given)
            llm_client: Client override (for testing); built from config otherwise
            builder: Request builder override
            validator: Schema validator override
            fallback_provider: Fallback provider override
            aggregator: Assessment aggregator override

        Raises:
            ConfigurationError: If no client is given and config is invalid
        """
        # =====================================================================
        # STAGE 1.1: STORE CONFIGURATION
        # =====================================================================
        self._config = config or PipelineConfiguration()

        # =====================================================================
        # STAGE 1.2: INITIALIZE LLM CLIENT
        # =====================================================================
        if llm_client is not None:
            self._llm_client = llm_client
        else:
            self._llm_client = self._create_llm_client(self._config)

        # =====================================================================
        # STAGE 1.3: INITIALIZE COMPONENTS
        # =====================================================================
        self._builder = builder or PlanRequestBuilder(
            temperature=self._config.temperature,
            plan_max_tokens=self._config.plan_max_tokens,
            diagnosis_max_tokens=self._config.diagnosis_max_tokens,
        )
        self._validator = validator or SchemaValidator()
        self._fallback = fallback_provider or FallbackProvider(validator=self._validator)
        self._aggregator = aggregator or AssessmentAggregator()

        logger.info(
            f"TreatmentPlanPipeline initialized | "
            f"Provider: {self._llm_client.provider_name} | "
            f"Model: {self._llm_client.model_name} | "
            f"Timeout: {self._config.request_timeout}s"
        )

    # =========================================================================
    # STAGE 2: MAIN GENERATION API
    # =========================================================================

    def generate_plan(
        self, assessment: Assessment, timeout: Optional[float] = None
    ) -> GenerationResult[TreatmentPlan]:
        """
        Generate a treatment plan for an assessment.

        Never raises: every failure resolves to a fallback plan chosen by the
        assessment's symptom category.

        Args:
            assessment: Aggregated client assessment
            timeout: Bounded wait in seconds (config request_timeout if None)

        Returns:
            GenerationResult with source GENERATED or FALLBACK
        """
        logger.info(
            f"Generating treatment plan | "
            f"Fields answered: {assessment.answered_count} | "
            f"Document length: {len(assessment.to_document())} chars"
        )
        return self._run(
            build=lambda: self._builder.build(assessment),
            validate=self._validator.validate_plan,
            fallback=lambda: self._fallback.fallback(assessment.symptom_summary),
            timeout=timeout,
        )

    def analyze_examination(
        self, examination: Examination, timeout: Optional[float] = None
    ) -> GenerationResult[DiagnosisResult]:
        """
        Produce a media-based diagnosis for an examination.

        Never raises: every failure resolves to the fallback diagnosis.

        Args:
            examination: Description and media references
            timeout: Bounded wait in seconds (config request_timeout if None)

        Returns:
            GenerationResult with source GENERATED or FALLBACK
        """
        logger.info(f"Analyzing examination | Media files: {examination.media_count}")
        return self._run(
            build=lambda: self._builder.build_diagnosis(examination),
            validate=self._validator.validate_diagnosis,
            fallback=lambda: self._fallback.fallback_diagnosis(examination.description),
            timeout=timeout,
        )

    # =========================================================================
    # STAGE 3: CLIENT-RECORD WORKFLOWS
    # =========================================================================

    def generate_plan_for_client(
        self,
        identity: CallerIdentity,
        client_id: str,
        intake_fields: Mapping[str, Any],
        store: ArtifactStore,
        timeout: Optional[float] = None,
    ) -> Tuple[str, GenerationResult[TreatmentPlan]]:
        """
        Aggregate intake answers, generate a plan and save it for the client.

        Returns:
            (artifact_id, result)

        Raises:
            ValidationError: If name or primary complaint is missing
            AccessDeniedError: If the caller may not act on this client
            StorageError: If the artifact cannot be saved
        """
        self._check_access(identity, client_id)
        assessment = self._aggregator.aggregate(intake_fields)
        result = self.generate_plan(assessment, timeout=timeout)
        artifact_id = store.save(identity, client_id, result, summary=assessment.summary)
        return artifact_id, result

    def analyze_examination_for_client(
        self,
        identity: CallerIdentity,
        client_id: str,
        description: Optional[str],
        media: Sequence[MediaReference],
        store: ArtifactStore,
        timeout: Optional[float] = None,
    ) -> Tuple[str, GenerationResult[DiagnosisResult]]:
        """
        Build an examination, analyze it and save the diagnosis.

        Returns:
            (artifact_id, result)

        Raises:
            ValidationError: If there is neither a description nor media
            AccessDeniedError: If the caller may not act on this client
            StorageError: If the artifact cannot be saved
        """
        self._check_access(identity, client_id)
        examination = build_examination(description, media)
        result = self.analyze_examination(examination, timeout=timeout)
        summary = examination.description[:SUMMARY_LENGTH]
        artifact_id = store.save(identity, client_id, result, summary=summary)
        return artifact_id, result

    # =========================================================================
    # STAGE 4: FACTORY METHODS
    # =========================================================================

    @classmethod
    def from_environment(cls, env_file: Optional[str] = None) -> "TreatmentPlanPipeline":
        """
        Create pipeline from environment configuration.

        Raises:
            ConfigurationError: If required settings missing
        """
        config = PipelineConfiguration.from_environment(env_file=env_file, validate_on_load=True)
        return cls(config)

    # =========================================================================
    # STAGE 5: PRIVATE HELPERS
    # =========================================================================

    def _run(
        self,
        build: Callable[[], GenerationRequest],
        validate: Callable[[str], Any],
        fallback: Callable[[], Any],
        timeout: Optional[float],
    ) -> GenerationResult:
        """Build, call, validate; resolve every failure to the fallback."""
        wait = self._config.request_timeout if timeout is None else timeout

        try:
            request = build()
            model_name = self._llm_client.model_name_for(request.task)
            raw = self._call_with_timeout(request, wait)
            artifact = validate(raw)

        except TransportError as e:
            warning = f"{e.kind.value}: {e.message}"
            logger.warning(f"Serving fallback after transport failure | {warning}")

        except SchemaError as e:
            warning = f"{e.kind.value}: {e.message}"
            logger.warning(
                f"Serving fallback after contract violation | "
                f"Kind: {e.kind.value} | Path: {e.path}"
            )

        except Exception as e:
            warning = f"unexpected: {e}"
            logger.exception(f"Serving fallback after unexpected error: {e}")

        else:
            logger.info(f"Generated {request.task.value} | Model: {model_name}")
            return GenerationResult(
                artifact=artifact, source=ArtifactSource.GENERATED, model_name=model_name
            )

        return GenerationResult(
            artifact=fallback(),
            source=ArtifactSource.FALLBACK,
            warning=warning,
            model_name=FALLBACK_MODEL_NAME,
        )

    def _call_with_timeout(self, request: GenerationRequest, timeout: float) -> str:
        """
        Call the client on a worker thread and wait at most ``timeout``.

        A call that overruns is abandoned on its worker thread, not retried.
        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="generation")
        try:
            future = executor.submit(self._llm_client.generate, request)
            try:
                return future.result(timeout=timeout)
            except FuturesTimeoutError as e:
                raise TransportTimeoutError(
                    provider=self._llm_client.provider_name, timeout_seconds=timeout
                ) from e
        finally:
            executor.shutdown(wait=False)

    @staticmethod
    def _check_access(identity: CallerIdentity, client_id: str) -> None:
        if not identity.can_access(client_id):
            raise AccessDeniedError(
                identity.user_id, identity.role.value, "generate for another client"
            )

    @staticmethod
    def _create_llm_client(config: PipelineConfiguration) -> LLMClientProtocol:
        """Create LLM client from configuration."""
        config.validate()

        if config.llm_provider == "openai":
            return OpenAIClient(
                api_key=config.openai_api_key,
                model_name=config.openai_model,
                vision_model_name=config.openai_vision_model,
                timeout=config.request_timeout,
            )
        if config.llm_provider == "gemini":
            return GeminiClient(
                api_key=config.gemini_api_key,
                model_name=config.gemini_model,
                timeout=config.request_timeout,
            )
        raise ConfigurationError(
            f"Unsupported LLM provider: {config.llm_provider}",
            context={"supported": "openai, gemini"},
        )

    # =========================================================================
    # STAGE 6: PROPERTIES
    # =========================================================================

    @property
    def config(self) -> PipelineConfiguration:
        return self._config

    @property
    def llm_client(self) -> LLMClientProtocol:
        return self._llm_client
