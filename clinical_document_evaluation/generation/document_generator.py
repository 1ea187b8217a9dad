"""
Document Generator - SOAP Document Generation with Validation Feedback

This module generates SOAP documents that imply a condition without naming
it. Each candidate is scored by the DocumentValidator; invalid candidates
trigger a retry with stricter prompt guidance.

Pipeline Flow:
    ┌─────────────────────────────────────────────────────────────┐
    │              DOCUMENT GENERATION PIPELINE                   │
    ├─────────────────────────────────────────────────────────────┤
    │                                                             │
    │  Stage 1: Build prompt (retry guidance on attempts > 0)     │
    │                           ↓                                 │
    │  Stage 2: Call LLM (timeout, cancel signal)                 │
    │                           ↓                                 │
    │  Stage 3: Parse SOAP sections                               │
    │                           ↓                                 │
    │  Stage 4: Validate and keep the best candidate              │
    │                           ↓                                 │
    │  Output: Valid, best-effort, unvalidated or failed outcome  │
    │                                                             │
    └─────────────────────────────────────────────────────────────┘

Retry Semantics:
    - At most max_retries + 1 attempts
    - An LLM failure costs an attempt and waits retry_delay seconds
    - An invalid document costs an attempt without waiting
    - Configuration errors are never retried

Author: Shubham Singh
Date: December 2025
"""

import asyncio
import random
from typing import List, Optional

from loguru import logger

from clinical_document_evaluation.clients.llm_client import LLMClientProtocol
from clinical_document_evaluation.core.constants import (
    BATCH_PATIENT_RACES,
    DEFAULT_GENERATION_MODEL,
    PATIENT_AGE_RANGE,
    PATIENT_GENDERS,
)
from clinical_document_evaluation.core.exceptions import (
    ConfigurationError,
    GenerationCancelledError,
    GenerationFailedError,
    LLMError,
    LLMTimeoutError,
    NoDocumentGeneratedError,
)
from clinical_document_evaluation.core.models import (
    BestEffortOutcome,
    FailedOutcome,
    GenerationOptions,
    GenerationOutcome,
    SOAPDocument,
    UnvalidatedOutcome,
    ValidationResult,
    ValidOutcome,
)
from clinical_document_evaluation.generation.demographics import (
    DemographicDistribution,
    DemographicDistributionProvider,
    PatientDemographics,
    sample_demographics,
)
from clinical_document_evaluation.generation.prompt_builder import PromptBuilder
from clinical_document_evaluation.generation.soap_parser import parse_soap_document
from clinical_document_evaluation.validation.document_validator import DocumentValidator


class DocumentGenerator:
    """
    Generates subtle SOAP documents with a validation-driven retry loop.

    What it does:
        1. Prompts the LLM for a SOAP note for one patient
        2. Parses and validates every response
        3. Retries with stricter guidance until a document passes
        4. Falls back to the best-scoring candidate when none passes

    Why it exists:
        A single LLM call frequently names the condition outright. Scoring
        each candidate and retrying keeps the leak rate low, and the
        best-of fallback still returns something usable when the model
        cannot comply.

    Example:
        >>> generator = DocumentGenerator(llm_client, DocumentValidator())
        >>> outcome = await generator.generate(GenerationOptions(disease="Asthma"))
        >>> if outcome.accepted:
        ...     print(outcome.document.score)
    """

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        validator: Optional[DocumentValidator] = None,
        retry_delay: float = 1.0,
        request_timeout: float = 60.0,
        batch_delay: float = 1.0,
        rng: Optional[random.Random] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        distribution_provider: Optional[DemographicDistributionProvider] = None,
    ):
        """
        Initialize the generator.

        Args:
            llm_client: Any client implementing LLMClientProtocol
            validator: Scores candidates; a default validator is created if None
            retry_delay: Seconds to wait after a failed LLM call
            request_timeout: Per-call timeout in seconds
            batch_delay: Seconds to wait after each document in a batch
            rng: Source of random demographics (seed it for reproducible runs)
            prompt_builder: Prompt construction strategy
            distribution_provider: Source of per-condition demographics for
                batches (defaults to one backed by llm_client)
        """
        self._llm_client = llm_client
        self._validator = validator or DocumentValidator()
        self._retry_delay = retry_delay
        self._request_timeout = request_timeout
        self._batch_delay = batch_delay
        self._rng = rng or random.Random()
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._distribution_provider = distribution_provider or DemographicDistributionProvider(
            llm_client, request_timeout=request_timeout
        )

        # Stats
        self._documents_generated = 0
        self._documents_valid = 0
        self._best_effort_count = 0
        self._failed_count = 0

        logger.info(
            f"DocumentGenerator initialized | Timeout: {request_timeout}s | "
            f"Retry delay: {retry_delay}s"
        )

    # =========================================================================
    # STAGE 1: RETRY LOOP
    # =========================================================================

    async def generate(
        self,
        options: GenerationOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GenerationOutcome:
        """
        Run the retry / best-of loop for one document.

        Args:
            options: Disease, model, demographics and retry budget
            cancel_event: Setting it aborts the in-flight call and skips
                remaining retries

        Returns:
            ValidOutcome, BestEffortOutcome, UnvalidatedOutcome or FailedOutcome

        Raises:
            GenerationCancelledError: If cancel_event was set
            ConfigurationError: If the LLM client is misconfigured
        """
        resolved = options.with_defaults(self._rng)
        total_attempts = max(resolved.max_retries, 0) + 1

        best_document: Optional[SOAPDocument] = None
        best_result: Optional[ValidationResult] = None
        last_error: Optional[Exception] = None
        attempt = 0

        logger.debug(
            f"Generating SOAP document | Disease: {resolved.disease} | "
            f"Patient: {resolved.patient_age}y {resolved.patient_gender} | "
            f"Max attempts: {total_attempts}"
        )

        while attempt < total_attempts:
            self._raise_if_cancelled(cancel_event, attempt)

            prompt = self._prompt_builder.build_generation_prompt(
                disease=resolved.disease,
                age=resolved.patient_age,
                gender=resolved.patient_gender,
                race=resolved.patient_race,
                attempt=attempt,
            )

            try:
                content = await self._call_llm(prompt, resolved.model, cancel_event, attempt)
            except (ConfigurationError, GenerationCancelledError):
                raise
            except LLMError as e:
                last_error = e
                attempt += 1
                logger.warning(
                    f"Generation attempt {attempt}/{total_attempts} failed: {e.message}"
                )
                if attempt < total_attempts:
                    await self._sleep(self._retry_delay, cancel_event, attempt)
                continue

            document = parse_soap_document(content)

            # ===== STAGE 2: UNVALIDATED PATH =====
            if not resolved.validate_document:
                self._documents_generated += 1
                logger.info(f"Generated unvalidated SOAP document | Disease: {resolved.disease}")
                return UnvalidatedOutcome(soap_document=document)

            # ===== STAGE 3: VALIDATE AND KEEP THE BEST =====
            result = self._validator.validate(
                document.full_document,
                resolved.to_validation_options(strict_mode=attempt > 0),
            )
            document.attach_validation(result)

            if result.is_valid:
                self._documents_generated += 1
                self._documents_valid += 1
                logger.info(
                    f"Generated valid SOAP document | Disease: {resolved.disease} | "
                    f"Score: {result.score} | Attempt: {attempt + 1}"
                )
                return ValidOutcome(soap_document=document, attempts=attempt + 1)

            logger.debug(
                f"Attempt {attempt + 1} invalid | Score: {result.score} | "
                f"Errors: {result.error_count}"
            )

            if best_result is None or result.score > best_result.score:
                best_document, best_result = document, result

            attempt += 1

        # ===== STAGE 4: EXHAUSTED =====
        if best_document is not None:
            self._documents_generated += 1
            self._best_effort_count += 1
            logger.warning(
                f"No valid document after {total_attempts} attempts, returning best candidate | "
                f"Disease: {resolved.disease} | Score: {best_result.score}"
            )
            return BestEffortOutcome(
                soap_document=best_document, result=best_result, attempts=total_attempts
            )

        self._failed_count += 1
        logger.error(
            f"Failed to generate SOAP document | Disease: {resolved.disease} | "
            f"Last error: {last_error}"
        )
        return FailedOutcome(
            error=NoDocumentGeneratedError(
                attempts=total_attempts, last_error=last_error, disease=resolved.disease
            )
        )

    async def generate_soap_document(
        self,
        options: GenerationOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SOAPDocument:
        """
        Generate one document and unwrap the outcome.

        A best-effort document is returned like a valid one; check
        document.is_valid to tell them apart.

        Raises:
            GenerationFailedError: If every attempt failed at the LLM level
            GenerationCancelledError: If cancel_event was set
        """
        outcome = await self.generate(options, cancel_event=cancel_event)

        if isinstance(outcome, FailedOutcome):
            if isinstance(outcome.error, GenerationFailedError):
                raise outcome.error
            raise GenerationFailedError(
                "SOAP document generation failed", attempts=0, last_error=outcome.error
            )

        return outcome.document

    # =========================================================================
    # STAGE 5: BATCH GENERATION
    # =========================================================================

    async def generate_multiple_documents(
        self,
        disease: str,
        count: int = 3,
        model: str = DEFAULT_GENERATION_MODEL,
        cancel_event: Optional[asyncio.Event] = None,
        max_retries: Optional[int] = None,
        use_demographic_distribution: bool = False,
    ) -> List[SOAPDocument]:
        """
        Generate several documents for one disease, one after another.

        Each document gets a random patient. By default age, gender and race
        are drawn uniformly; with use_demographic_distribution the condition's
        demographic distribution is fetched once and every patient is sampled
        from it. Documents are generated sequentially with batch_delay seconds
        after each success to respect provider rate limits. A failed document
        is logged and skipped.

        Args:
            disease: Condition every document should imply
            count: Number of documents to attempt
            model: Generation model
            cancel_event: Setting it stops the batch
            max_retries: Retries per document (default 2)
            use_demographic_distribution: Sample patients per condition

        Raises:
            GenerationCancelledError: Stops the batch when cancel_event is set
            ConfigurationError: If the LLM client is misconfigured
        """
        documents: List[SOAPDocument] = []

        distribution: Optional[DemographicDistribution] = None
        if use_demographic_distribution:
            self._raise_if_cancelled(cancel_event, 0)
            distribution = await self._distribution_provider.get_distribution(disease)

        for index in range(count):
            patient = self._sample_patient(distribution)
            options = GenerationOptions(
                disease=disease,
                model=model,
                patient_age=patient.age,
                patient_gender=patient.gender,
                patient_race=patient.race,
                max_retries=max_retries,
            )

            try:
                document = await self.generate_soap_document(options, cancel_event=cancel_event)
            except (ConfigurationError, GenerationCancelledError):
                raise
            except GenerationFailedError as e:
                logger.error(f"Failed to generate document {index + 1}/{count} for {disease}: {e}")
                continue

            documents.append(document)
            await self._sleep(self._batch_delay, cancel_event, attempt=0)

        logger.info(f"Batch complete | Disease: {disease} | Generated: {len(documents)}/{count}")
        return documents

    def _sample_patient(self, distribution: Optional[DemographicDistribution]) -> PatientDemographics:
        """Demographics for one batch patient, from the distribution when given."""
        if distribution is not None:
            return sample_demographics(distribution, self._rng)
        return PatientDemographics(
            age=self._rng.randrange(*PATIENT_AGE_RANGE),
            gender=self._rng.choice(PATIENT_GENDERS),
            race=self._rng.choice(BATCH_PATIENT_RACES),
        )

    # =========================================================================
    # STAGE 6: LLM CALL WITH TIMEOUT AND CANCELLATION
    # =========================================================================

    async def _call_llm(
        self,
        prompt: str,
        model: str,
        cancel_event: Optional[asyncio.Event],
        attempt: int,
    ) -> str:
        """
        Call the LLM once, bounded by request_timeout and the cancel signal.

        Raises:
            LLMError: On timeout, empty response or any client failure
            GenerationCancelledError: If cancel_event fires first
        """
        call = asyncio.ensure_future(
            asyncio.wait_for(
                self._llm_client.generate(
                    prompt,
                    system_instruction=self._prompt_builder.system_instruction,
                    model=model,
                ),
                timeout=self._request_timeout,
            )
        )

        waiter = asyncio.ensure_future(cancel_event.wait()) if cancel_event else None
        try:
            if waiter is not None:
                await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
                if not call.done():
                    logger.info(f"Generation cancelled during attempt {attempt + 1}")
                    raise GenerationCancelledError(attempts=attempt + 1)
            content = await call
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError(
                provider=self._provider_name, timeout_seconds=self._request_timeout
            ) from e
        except (LLMError, ConfigurationError, GenerationCancelledError):
            raise
        except Exception as e:
            raise LLMError(str(e), provider=self._provider_name, original_error=e) from e
        finally:
            for task in (call, waiter):
                if task is not None and not task.done():
                    task.cancel()

        if not content or not content.strip():
            raise LLMError("No content generated", provider=self._provider_name)

        return content

    async def _sleep(
        self, delay: float, cancel_event: Optional[asyncio.Event], attempt: int
    ) -> None:
        """Sleep for delay seconds, waking early if cancel_event is set."""
        if delay <= 0:
            self._raise_if_cancelled(cancel_event, attempt)
            return

        if cancel_event is None:
            await asyncio.sleep(delay)
            return

        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise GenerationCancelledError(attempts=attempt)

    @staticmethod
    def _raise_if_cancelled(cancel_event: Optional[asyncio.Event], attempt: int) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelledError(attempts=attempt)

    @property
    def _provider_name(self) -> str:
        return getattr(self._llm_client, "provider_name", "unknown")

    # =========================================================================
    # STAGE 7: STATISTICS
    # =========================================================================

    @property
    def documents_generated(self) -> int:
        """Documents returned to callers (valid, best-effort or unvalidated)."""
        return self._documents_generated

    @property
    def documents_valid(self) -> int:
        """Documents that passed validation."""
        return self._documents_valid

    @property
    def best_effort_count(self) -> int:
        """Documents returned through the best-of fallback."""
        return self._best_effort_count

    @property
    def failed_count(self) -> int:
        """Generations that produced no document at all."""
        return self._failed_count

    @property
    def validation_rate(self) -> float:
        """Percentage of returned documents that passed validation."""
        if self._documents_generated == 0:
            return 0.0
        return (self._documents_valid / self._documents_generated) * 100
