"""
Clinical Document Evaluation Pipeline - Main Orchestrator

This is the PUBLIC API entry point for the whole system. It coordinates the
validation, generation and evaluation layers behind one facade.

Architecture Diagram:
    ┌─────────────────────────────────────────────────────────────────────┐
    │                     ClinicalDocumentPipeline                        │
    │                       (This Orchestrator)                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   ┌───────────┐    ┌───────────┐    ┌───────────┐    ┌───────────┐  │
    │   │ LLM Client│ →  │ Generation│ →  │ Validation│    │ Evaluation│  │
    │   └───────────┘    └───────────┘    └───────────┘    └───────────┘  │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Usage:
    from clinical_document_evaluation import ClinicalDocumentPipeline

    pipeline = ClinicalDocumentPipeline.from_environment()

    document = await pipeline.generate_soap_document(
        GenerationOptions(disease="Hypertension", patient_age=45, patient_gender="Male")
    )
    result = pipeline.validate_document(
        document.full_document, ValidationOptions(disease="Hypertension")
    )

Author: Shubham Singh
Date: December 2025
"""

import asyncio
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from clinical_document_evaluation.clients import GeminiClient, LLMClientProtocol, OpenAIClient
from clinical_document_evaluation.core.config import PipelineConfiguration
from clinical_document_evaluation.core.enums import InsightVariable
from clinical_document_evaluation.core.exceptions import ConfigurationError
from clinical_document_evaluation.core.models import (
    DemographicBreakdown,
    EvaluationResult,
    GenerationOptions,
    PatientRecord,
    SOAPDocument,
    ValidationOptions,
    ValidationResult,
)
from clinical_document_evaluation.evaluation import DifferentialEvaluator, demographic_breakdown
from clinical_document_evaluation.generation import DocumentGenerator
from clinical_document_evaluation.validation import DocumentValidator, RuleCatalog


# =============================================================================
# STAGE 1: PIPELINE CLASS
# =============================================================================


class ClinicalDocumentPipeline:
    """
    Main orchestrator for SOAP document generation, validation and evaluation.

    What it does:
        Wires an LLM client, a validator, a document generator and a
        differential evaluator from one configuration, and exposes the
        public operations of each.

    Why it exists:
        1. Simple API: one object to configure and call
        2. Encapsulation: hides client and component wiring
        3. Testability: every component can be overridden

    Example:
        >>> pipeline = ClinicalDocumentPipeline.from_environment()
        >>> documents = await pipeline.generate_multiple_documents("Asthma", count=3)
        >>> print(pipeline.validation_rate)
    """

    def __init__(
        self,
        config: PipelineConfiguration,
        llm_client: Optional[LLMClientProtocol] = None,
        validator: Optional[DocumentValidator] = None,
        generator: Optional[DocumentGenerator] = None,
        evaluator: Optional[DifferentialEvaluator] = None,
    ):
        """
        Initialize pipeline with configuration and optional component overrides.

        Args:
            config: Pipeline configuration
            llm_client: Optional client override (for testing)
            validator: Optional validator override
            generator: Optional generator override
            evaluator: Optional evaluator override
        """
        self._config = config

        # ===== STAGE 1.1: VALIDATOR =====
        self._validator = validator or DocumentValidator(
            RuleCatalog(valid_score_threshold=config.valid_score_threshold)
        )

        # ===== STAGE 1.2: LLM CLIENT (only when a component needs one) =====
        if llm_client is None and (generator is None or evaluator is None):
            llm_client = self._create_llm_client(config)
        self._llm_client = llm_client

        # ===== STAGE 1.3: GENERATOR =====
        self._generator = generator or DocumentGenerator(
            llm_client=llm_client,
            validator=self._validator,
            retry_delay=config.retry_delay,
            request_timeout=config.request_timeout,
            batch_delay=config.batch_delay,
        )

        # ===== STAGE 1.4: EVALUATOR =====
        self._evaluator = evaluator or DifferentialEvaluator(
            llm_client=llm_client,
            model=config.evaluation_model if config.llm_provider == "openai" else config.gemini_model,
            request_timeout=config.request_timeout,
        )

        # ===== STAGE 1.5: TRACKING STATE =====
        self._documents_generated = 0
        self._documents_valid = 0

        logger.info(
            f"ClinicalDocumentPipeline initialized | "
            f"Provider: {config.llm_provider} | Model: {config.generation_model}"
        )

    # =========================================================================
    # STAGE 2: VALIDATION API
    # =========================================================================

    def validate_document(self, document: str, options: ValidationOptions) -> ValidationResult:
        """Score one document. Never raises."""
        return self._validator.validate_document(document, options)

    def validate_multiple_documents(
        self, items: Sequence[Tuple[str, ValidationOptions]]
    ) -> List[ValidationResult]:
        """Score (document, options) pairs; one result per pair, in order."""
        return self._validator.validate_multiple_documents(items)

    # =========================================================================
    # STAGE 3: GENERATION API
    # =========================================================================

    async def generate_soap_document(
        self,
        options: GenerationOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SOAPDocument:
        """
        Generate one SOAP document.

        Unset model and max_retries fall back to the configured values; the
        configured validation switch applies on top of the options.

        Raises:
            GenerationFailedError: If every attempt failed
            GenerationCancelledError: If cancel_event was set
        """
        options = replace(
            options,
            model=options.model or self._config.generation_model,
            validate_document=options.validate_document and self._config.enable_validation,
            max_retries=(
                options.max_retries
                if options.max_retries is not None
                else self._config.max_retries
            ),
        )

        document = await self._generator.generate_soap_document(options, cancel_event=cancel_event)
        self._track(document)
        return document

    async def generate_multiple_documents(
        self,
        disease: str,
        count: int = 3,
        model: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
        use_demographic_distribution: bool = False,
    ) -> List[SOAPDocument]:
        """
        Generate `count` documents for one disease, sequentially.

        With use_demographic_distribution, patients are sampled from the
        condition's demographic distribution instead of uniformly.
        """
        documents = await self._generator.generate_multiple_documents(
            disease,
            count=count,
            model=model or self._config.generation_model,
            cancel_event=cancel_event,
            max_retries=self._config.max_retries,
            use_demographic_distribution=use_demographic_distribution,
        )
        for document in documents:
            self._track(document)
        return documents

    # =========================================================================
    # STAGE 4: EVALUATION API
    # =========================================================================

    async def evaluate_patients(self, patients: Sequence[PatientRecord]) -> List[EvaluationResult]:
        """Evaluate a model's differential diagnosis for each patient."""
        return await self._evaluator.evaluate_patients(patients)

    @staticmethod
    def demographic_breakdown(
        results: Sequence[EvaluationResult],
        patients: Sequence[PatientRecord],
        variable: Union[InsightVariable, str] = InsightVariable.GENDER,
    ) -> List[DemographicBreakdown]:
        """Pass/fail counts per demographic group."""
        return demographic_breakdown(results, patients, variable)

    # =========================================================================
    # STAGE 5: HELPER METHODS
    # =========================================================================

    def _track(self, document: SOAPDocument) -> None:
        self._documents_generated += 1
        if document.is_valid:
            self._documents_valid += 1

    def _create_llm_client(self, config: PipelineConfiguration) -> LLMClientProtocol:
        """Create the LLM client for the configured provider."""
        if config.llm_provider == "openai":
            return OpenAIClient(
                api_key=config.openai_api_key,
                model_name=config.openai_model,
                rate_limit_delay=config.rate_limit_delay,
            )
        if config.llm_provider == "gemini":
            return GeminiClient(
                api_key=config.gemini_api_key,
                model_name=config.gemini_model,
                rate_limit_delay=config.rate_limit_delay,
            )
        raise ConfigurationError(
            f"Unsupported LLM provider: {config.llm_provider}",
            context={"provider": config.llm_provider},
        )

    # =========================================================================
    # STAGE 6: FACTORY METHODS
    # =========================================================================

    @classmethod
    def from_environment(cls, env_file: Optional[str] = None) -> "ClinicalDocumentPipeline":
        """
        Create pipeline from environment variables.

        Args:
            env_file: Optional path to a .env file

        Returns:
            Configured ClinicalDocumentPipeline
        """
        config = PipelineConfiguration.from_environment(env_file=env_file)
        return cls(config=config)

    # =========================================================================
    # STAGE 7: STATISTICS
    # =========================================================================

    @property
    def config(self) -> PipelineConfiguration:
        return self._config

    @property
    def documents_generated(self) -> int:
        """Total documents returned by this pipeline."""
        return self._documents_generated

    @property
    def documents_valid(self) -> int:
        """Documents that passed validation."""
        return self._documents_valid

    @property
    def validation_rate(self) -> float:
        """Percentage of returned documents that passed validation."""
        if self._documents_generated == 0:
            return 0.0
        return (self._documents_valid / self._documents_generated) * 100
