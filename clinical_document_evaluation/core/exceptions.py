"""
Domain Exceptions for Clinical Document Evaluation

This module defines all custom exceptions used by the document generation
and differential evaluation layers. The validator never raises: a malformed
document is simply a low-scoring document.

Exception Hierarchy:
    ClinicalDocumentError (base)
    ├── ConfigurationError          → Missing credentials / invalid settings
    ├── GenerationError             → SOAP document generation failures
    │   ├── LLMError                → Collaborator invocation failure (retryable)
    │   │   ├── LLMRateLimitError
    │   │   ├── LLMTimeoutError
    │   │   └── LLMContentFilteredError
    │   ├── GenerationFailedError   → Every attempt failed
    │   │   └── NoDocumentGeneratedError
    │   └── GenerationCancelledError
    └── EvaluationError             → Differential evaluation failures

Usage:
    from clinical_document_evaluation.core.exceptions import GenerationFailedError

    try:
        document = await generator.generate_soap_document(options)
    except GenerationFailedError as e:
        logger.error(f"Generation failed: {e.last_error}")

Author: Shubham Singh
Date: December 2025
"""

from typing import Optional


# =============================================================================
# STAGE 1: BASE EXCEPTION
# =============================================================================


class ClinicalDocumentError(Exception):
    """
    Base exception for all clinical document errors.

    Attributes:
        message: Human-readable error description
        context: Dictionary of additional context for debugging
    """

    def __init__(self, message: str, context: Optional[dict] = None):
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


class ConfigurationError(ClinicalDocumentError):
    """
    Error in pipeline configuration.

    When raised:
        - Missing required API keys
        - Unsupported LLM provider
        - Numeric settings out of range

    Configuration errors are fatal: the generator never retries them.

    Example:
        >>> raise ConfigurationError(
        ...     "OpenAI API key not configured",
        ...     context={"setting": "OPENAI_API_KEY"}
        ... )
    """

    pass


# =============================================================================
# STAGE 3: GENERATION ERRORS
# =============================================================================


class GenerationError(ClinicalDocumentError):
    """Base exception for SOAP document generation errors."""

    pass


class LLMError(GenerationError):
    """
    Error from an LLM API call.

    What it does:
        Wraps errors from the underlying provider (OpenAI, Gemini) with
        the provider name and the original exception.

    When raised:
        - HTTP / network failure
        - Empty or unparseable response
        - Any provider SDK exception

    Attributes:
        provider: The LLM provider (openai, gemini)
        original_error: The wrapped original exception
    """

    def __init__(self, message: str, provider: str, original_error: Optional[Exception] = None):
        self.provider = provider
        self.original_error = original_error
        super().__init__(
            message,
            context={
                "provider": provider,
                "original_error": str(original_error) if original_error else None,
            },
        )


class LLMRateLimitError(LLMError):
    """
    LLM API rate limit exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying (if known)
    """

    def __init__(
        self,
        provider: str,
        retry_after: Optional[float] = None,
        original_error: Optional[Exception] = None,
    ):
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for {provider}", provider=provider, original_error=original_error
        )
        self.context["retry_after"] = retry_after


class LLMTimeoutError(LLMError):
    """
    LLM call exceeded the per-request timeout.

    Attributes:
        timeout_seconds: The timeout that was exceeded
    """

    def __init__(self, provider: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"LLM call timed out after {timeout_seconds}s", provider=provider)
        self.context["timeout_seconds"] = timeout_seconds


class LLMContentFilteredError(LLMError):
    """LLM response was filtered by the provider's safety settings."""

    def __init__(self, provider: str, reason: Optional[str] = None):
        super().__init__(
            f"Content filtered by {provider} safety settings: {reason or 'unknown reason'}",
            provider=provider,
        )
        self.reason = reason


class GenerationFailedError(GenerationError):
    """
    All generation attempts failed at the collaborator level.

    What it does:
        Surfaces retry exhaustion to the caller together with the last
        underlying error, so the root cause is not lost.

    Attributes:
        attempts: Number of attempts made
        last_error: The final collaborator error
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        self.attempts = attempts
        self.last_error = last_error
        merged = {"attempts": attempts, "last_error": str(last_error) if last_error else None}
        merged.update(context or {})
        super().__init__(message, context=merged)


class NoDocumentGeneratedError(GenerationFailedError):
    """
    Zero successful collaborator responses across all attempts.

    Distinct terminal case of GenerationFailedError: the retry loop never
    produced a single candidate document to fall back to.
    """

    def __init__(self, attempts: int, last_error: Optional[Exception] = None, disease: str = ""):
        super().__init__(
            f"Failed to generate SOAP document after {attempts} attempts",
            attempts=attempts,
            last_error=last_error,
            context={"disease": disease},
        )


class GenerationCancelledError(GenerationError):
    """
    Generation was cancelled through the caller's cancel signal.

    Distinct from GenerationFailedError: nothing failed, the caller asked
    to stop. Remaining retries are skipped.

    Attributes:
        attempts: Number of attempts started before cancellation
    """

    def __init__(self, attempts: int = 0):
        self.attempts = attempts
        super().__init__("SOAP document generation cancelled", context={"attempts": attempts})


# =============================================================================
# STAGE 4: EVALUATION ERRORS
# =============================================================================


class EvaluationError(ClinicalDocumentError):
    """
    Error while evaluating a model's differential diagnosis.

    Attributes:
        patient_id: Patient whose evaluation failed
    """

    def __init__(self, message: str, patient_id: Optional[str] = None):
        self.patient_id = patient_id
        super().__init__(message, context={"patient_id": patient_id})
