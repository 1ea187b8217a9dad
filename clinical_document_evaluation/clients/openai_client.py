"""
OpenAI Client - OpenAI API Implementation

Concrete async LLM client for OpenAI chat models (gpt-4, gpt-4o, ...), used
both for SOAP document generation and for structured differential output.

Author: Shubham Singh
Date: December 2025
"""

from typing import Optional

import openai
from loguru import logger

from clinical_document_evaluation.clients.llm_client import BaseLLMClient
from clinical_document_evaluation.core.exceptions import (
    ConfigurationError,
    LLMContentFilteredError,
    LLMError,
    LLMRateLimitError,
)


# =============================================================================
# STAGE 1: OPENAI CLIENT IMPLEMENTATION
# =============================================================================


class OpenAIClient(BaseLLMClient):
    """
    OpenAI API client for text generation.

    Why it exists:
        1. Encapsulates OpenAI-specific API logic
        2. Translates OpenAI errors to domain exceptions
        3. Supports JSON-object responses for structured output

    Example:
        >>> client = OpenAIClient(api_key="...", model_name="gpt-4")
        >>> text = await client.generate("Write a SOAP note...")
    """

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "gpt-4",
        rate_limit_delay: float = 0.5,
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key
            model_name: Default model (gpt-4)
            rate_limit_delay: Seconds between API calls
            temperature: Sampling temperature
            max_tokens: Response token cap
        """
        super().__init__(api_key=api_key, model_name=model_name, rate_limit_delay=rate_limit_delay)

        self._temperature = temperature
        self._max_tokens = max_tokens
        # SDK-level retries off: the generator owns the retry loop
        self._client = openai.AsyncOpenAI(api_key=self._api_key, max_retries=0)

        logger.info(f"OpenAIClient initialized | Model: {model_name}")

    # =========================================================================
    # STAGE 2: API CALL IMPLEMENTATION
    # =========================================================================

    async def _call_api(
        self,
        prompt: str,
        system_instruction: Optional[str],
        model: str,
        json_output: bool,
    ) -> str:
        """
        Make the actual OpenAI API call.

        Raises:
            ConfigurationError: If the API key is rejected
            LLMRateLimitError: If rate limited
            LLMContentFilteredError: If content was filtered
            LLMError: For any other failure or an empty response
        """
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        request = {
            "model": model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        if json_output:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**request)

        except openai.AuthenticationError as e:
            raise ConfigurationError(
                "OpenAI rejected the API key", context={"setting": "OPENAI_API_KEY"}
            ) from e

        except openai.RateLimitError as e:
            raise LLMRateLimitError(provider="openai", original_error=e) from e

        except openai.APIError as e:
            error_str = str(e).lower()
            if "content_filter" in error_str or "policy" in error_str:
                raise LLMContentFilteredError(provider="openai", reason=str(e)) from e
            if self._is_rate_limit(error_str):
                raise LLMRateLimitError(provider="openai", original_error=e) from e
            raise LLMError(f"OpenAI API error: {e}", provider="openai", original_error=e) from e

        if response.choices:
            choice = response.choices[0]
            if choice.finish_reason == "content_filter":
                raise LLMContentFilteredError(provider="openai", reason="finish_reason")
            if choice.message and choice.message.content:
                return choice.message.content

        raise LLMError("No response from OpenAI", provider="openai")

    # =========================================================================
    # STAGE 3: PROPERTIES
    # =========================================================================

    @property
    def provider_name(self) -> str:
        return "openai"
