"""
LLM Client Protocol and Base Implementation

This module defines the interface for LLM clients and provides a base
class with common functionality (call spacing, error translation, metrics).

Protocol Pattern:
    - LLMClientProtocol defines the interface
    - BaseLLMClient provides common implementation
    - Concrete clients (OpenAIClient, GeminiClient) extend base

Retries are NOT performed here. The document generator owns the retry loop
because it retries on validation feedback as well as on call failures.

Author: Shubham Singh
Date: December 2025
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional, Protocol, runtime_checkable

from loguru import logger

from clinical_document_evaluation.core.exceptions import ConfigurationError, LLMError


# =============================================================================
# STAGE 1: LLM CLIENT PROTOCOL
# =============================================================================


@runtime_checkable
class LLMClientProtocol(Protocol):
    """
    Protocol defining the interface for LLM clients.

    Required Methods:
        generate(prompt, system_instruction, model, json_output) → text

    Properties:
        model_name → Default model of the client
        provider_name → Name of the provider (openai, gemini)
    """

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        model: Optional[str] = None,
        json_output: bool = False,
    ) -> str:
        """
        Generate text from a prompt.

        Args:
            prompt: User content
            system_instruction: Optional system message
            model: Model override for this call
            json_output: Ask the provider for a JSON object response

        Returns:
            Generated text

        Raises:
            LLMError: If generation fails
            ConfigurationError: If the client is not usable at all
        """
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
    Abstract base class for LLM clients with common functionality.

    What subclasses must implement:
        - _call_api(prompt, system_instruction, model, json_output)
        - provider_name property

    What base class provides:
        - Minimum spacing between calls
        - Translation of unexpected exceptions into LLMError
        - Call metrics
    """

    def __init__(self, api_key: Optional[str], model_name: str, rate_limit_delay: float = 0.5):
        """
        Initialize base LLM client.

        Args:
            api_key: API key for the provider
            model_name: Default model
            rate_limit_delay: Minimum seconds between API calls

        Raises:
            ConfigurationError: If the API key is missing
        """
        if not api_key:
            raise ConfigurationError(
                f"{self.provider_name} API key not configured",
                context={"provider": self.provider_name},
            )

        self._api_key = api_key
        self._model_name = model_name
        self._rate_limit_delay = rate_limit_delay

        self._last_call_time: Optional[float] = None
        self._total_calls = 0
        self._failed_calls = 0

    # =========================================================================
    # STAGE 3: PUBLIC API
    # =========================================================================

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        model: Optional[str] = None,
        json_output: bool = False,
    ) -> str:
        """
        Generate text from prompt with call spacing and error translation.

        Raises:
            LLMError: If the call fails (one attempt only)
        """
        await self._apply_rate_limit()

        try:
            result = await self._call_api(
                prompt,
                system_instruction=system_instruction,
                model=model or self._model_name,
                json_output=json_output,
            )
        except LLMError:
            self._failed_calls += 1
            raise
        except ConfigurationError:
            raise
        except Exception as e:
            self._failed_calls += 1
            logger.error(f"Unexpected error in {self.provider_name} call: {e}")
            raise LLMError(str(e), provider=self.provider_name, original_error=e) from e

        self._total_calls += 1
        return result

    # =========================================================================
    # STAGE 4: ABSTRACT METHODS
    # =========================================================================

    @abstractmethod
    async def _call_api(
        self,
        prompt: str,
        system_instruction: Optional[str],
        model: str,
        json_output: bool,
    ) -> str:
        """Make the actual API call."""
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

    async def _apply_rate_limit(self) -> None:
        """Space calls at least rate_limit_delay seconds apart."""
        if self._last_call_time is not None:
            elapsed = time.monotonic() - self._last_call_time
            if elapsed < self._rate_limit_delay:
                await asyncio.sleep(self._rate_limit_delay - elapsed)

        self._last_call_time = time.monotonic()

    @staticmethod
    def _is_rate_limit(error_str: str) -> bool:
        return "rate" in error_str or "quota" in error_str or "429" in error_str

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
