"""
Gemini Client - Google Gemini API Implementation

Concrete async LLM client for Google's Gemini models (gemini-1.5-flash,
gemini-1.5-pro, ...).

Author: Shubham Singh
Date: December 2025
"""

from typing import Optional

from loguru import logger

from clinical_document_evaluation.clients.llm_client import BaseLLMClient
from clinical_document_evaluation.core.exceptions import (
    ConfigurationError,
    LLMContentFilteredError,
    LLMError,
    LLMRateLimitError,
)


# Permissive thresholds: clinical text trips the default harm filters
SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]


# =============================================================================
# STAGE 1: GEMINI CLIENT IMPLEMENTATION
# =============================================================================


class GeminiClient(BaseLLMClient):
    """
    Google Gemini API client for text generation.

    Why it exists:
        1. Encapsulates Gemini-specific API logic
        2. Handles Gemini's safety settings
        3. Translates Gemini errors to domain exceptions

    Example:
        >>> client = GeminiClient(api_key="...", model_name="gemini-1.5-flash")
        >>> text = await client.generate("Write a SOAP note...")
    """

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "gemini-1.5-flash",
        rate_limit_delay: float = 0.5,
        temperature: float = 0.7,
        max_output_tokens: int = 1500,
    ):
        super().__init__(api_key=api_key, model_name=model_name, rate_limit_delay=rate_limit_delay)

        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
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
        Make the actual Gemini API call.

        A model object is built per call because the system instruction is
        bound at model construction in this SDK.
        """
        generation_config = {
            "temperature": self._temperature,
            "max_output_tokens": self._max_output_tokens,
        }
        if json_output:
            generation_config["response_mime_type"] = "application/json"

        try:
            generative_model = self._genai.GenerativeModel(
                model_name=model,
                safety_settings=SAFETY_SETTINGS,
                system_instruction=system_instruction,
                generation_config=generation_config,
            )
            response = await generative_model.generate_content_async(prompt)

            if response.prompt_feedback and response.prompt_feedback.block_reason:
                raise LLMContentFilteredError(
                    provider="gemini", reason=str(response.prompt_feedback.block_reason)
                )

            if response.candidates:
                candidate = response.candidates[0]
                if candidate.content and candidate.content.parts:
                    text = "".join(part.text for part in candidate.content.parts)
                    if text:
                        return text

            raise LLMError("Gemini returned empty response", provider="gemini")

        except LLMError:
            raise

        except Exception as e:
            error_str = str(e).lower()

            if "api key" in error_str or "api_key" in error_str:
                raise ConfigurationError(
                    "Gemini rejected the API key", context={"setting": "GEMINI_API_KEY"}
                ) from e

            if self._is_rate_limit(error_str):
                raise LLMRateLimitError(provider="gemini", original_error=e) from e

            if "blocked" in error_str or "safety" in error_str:
                raise LLMContentFilteredError(provider="gemini", reason=str(e)) from e

            raise LLMError(f"Gemini API error: {e}", provider="gemini", original_error=e) from e

    # =========================================================================
    # STAGE 3: PROPERTIES
    # =========================================================================

    @property
    def provider_name(self) -> str:
        return "gemini"
