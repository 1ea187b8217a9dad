"""
Configuration for the Clinical Document Evaluation Pipeline

This module defines the configuration dataclass used to initialize the
pipeline. Configuration is:
    1. Loaded from environment variables (with .env support)
    2. Validated at startup to fail fast on misconfiguration
    3. Treated as read-only after creation

Configuration Hierarchy:
    PipelineConfiguration
    ├── LLM Settings (API keys, model names, rate limits, timeouts)
    ├── Generation Settings (retries, retry delay, batch delay)
    └── Validation Settings (enable flag, score threshold)

Usage:
    from clinical_document_evaluation.core.config import PipelineConfiguration

    config = PipelineConfiguration.from_environment()

    config = PipelineConfiguration(openai_api_key="your-key")

Author: Shubham Singh
Date: December 2025
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from clinical_document_evaluation.core.constants import (
    DEFAULT_GENERATION_MODEL,
    DEFAULT_MAX_RETRIES,
    VALID_SCORE_THRESHOLD,
)
from clinical_document_evaluation.core.exceptions import ConfigurationError


SUPPORTED_PROVIDERS = ("openai", "gemini")


# =============================================================================
# STAGE 1: DEFAULT VALUES
# =============================================================================


class ConfigDefaults:
    """Default configuration values."""

    # -------------------------------------------------------------------------
    # 1.1 LLM Provider Defaults
    # -------------------------------------------------------------------------
    DEFAULT_LLM_PROVIDER = "openai"
    DEFAULT_OPENAI_MODEL = DEFAULT_GENERATION_MODEL
    DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
    DEFAULT_EVALUATION_MODEL = "gpt-4o"
    DEFAULT_RATE_LIMIT_DELAY = 0.5  # seconds between API calls
    DEFAULT_REQUEST_TIMEOUT = 60.0  # seconds per collaborator call

    # -------------------------------------------------------------------------
    # 1.2 Generation Defaults
    # -------------------------------------------------------------------------
    DEFAULT_MAX_RETRIES = DEFAULT_MAX_RETRIES
    DEFAULT_RETRY_DELAY = 1.0  # seconds
    DEFAULT_BATCH_DELAY = 1.0  # seconds between batch items

    # -------------------------------------------------------------------------
    # 1.3 Validation Defaults
    # -------------------------------------------------------------------------
    DEFAULT_VALID_SCORE_THRESHOLD = VALID_SCORE_THRESHOLD


# =============================================================================
# STAGE 2: CONFIGURATION DATACLASS
# =============================================================================


@dataclass
class PipelineConfiguration:
    """
    Configuration for the clinical document evaluation pipeline.

    Why it exists:
        1. Single source of truth for all configuration
        2. Validated at startup to fail fast on errors
        3. Supports both environment and programmatic configuration

    Example:
        >>> config = PipelineConfiguration.from_environment()
        >>> print(config.openai_model)
        'gpt-4'
    """

    # -------------------------------------------------------------------------
    # 2.1 LLM Provider Configuration
    # -------------------------------------------------------------------------
    openai_api_key: Optional[str] = None
    """OpenAI API key. Required if using OpenAI provider."""

    openai_model: str = ConfigDefaults.DEFAULT_OPENAI_MODEL
    """Model used for SOAP document generation."""

    gemini_api_key: Optional[str] = None
    """Google Gemini API key. Required if using Gemini provider."""

    gemini_model: str = ConfigDefaults.DEFAULT_GEMINI_MODEL
    """Gemini model name."""

    evaluation_model: str = ConfigDefaults.DEFAULT_EVALUATION_MODEL
    """Model asked for differential diagnoses during evaluation."""

    llm_provider: str = ConfigDefaults.DEFAULT_LLM_PROVIDER
    """Which LLM provider to use: 'openai' or 'gemini'."""

    rate_limit_delay: float = ConfigDefaults.DEFAULT_RATE_LIMIT_DELAY
    """Minimum delay between API calls in seconds."""

    request_timeout: float = ConfigDefaults.DEFAULT_REQUEST_TIMEOUT
    """Timeout applied to every collaborator call in seconds."""

    # -------------------------------------------------------------------------
    # 2.2 Generation Configuration
    # -------------------------------------------------------------------------
    max_retries: int = ConfigDefaults.DEFAULT_MAX_RETRIES
    """Retries after the first attempt (total attempts = max_retries + 1)."""

    retry_delay: float = ConfigDefaults.DEFAULT_RETRY_DELAY
    """Fixed backoff before a retry after a collaborator failure."""

    batch_delay: float = ConfigDefaults.DEFAULT_BATCH_DELAY
    """Delay between items of a generation batch."""

    # -------------------------------------------------------------------------
    # 2.3 Validation Configuration
    # -------------------------------------------------------------------------
    enable_validation: bool = True
    """Whether generated documents are validated (and retried)."""

    valid_score_threshold: int = ConfigDefaults.DEFAULT_VALID_SCORE_THRESHOLD
    """Minimum score for a document to be valid (0-100)."""

    # -------------------------------------------------------------------------
    # 2.4 Validation Methods
    # -------------------------------------------------------------------------

    @property
    def active_api_key(self) -> Optional[str]:
        """API key of the configured provider."""
        if self.llm_provider == "gemini":
            return self.gemini_api_key
        return self.openai_api_key

    @property
    def generation_model(self) -> str:
        """Generation model of the configured provider."""
        if self.llm_provider == "gemini":
            return self.gemini_model
        return self.openai_model

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Checks:
            1. Provider is supported
            2. The provider's API key is configured
            3. Numeric parameters are in valid ranges

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.llm_provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported LLM provider: {self.llm_provider}",
                context={"supported": list(SUPPORTED_PROVIDERS)},
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

        if self.max_retries < 0:
            raise ConfigurationError(
                f"max_retries must be >= 0, got {self.max_retries}",
                context={"max_retries": self.max_retries},
            )

        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}",
                context={"request_timeout": self.request_timeout},
            )

        if not (0 <= self.valid_score_threshold <= 100):
            raise ConfigurationError(
                f"Score threshold must be 0-100, got {self.valid_score_threshold}",
                context={"threshold": self.valid_score_threshold},
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
                Path(__file__).parent.parent.parent / ".env",
            ]
            for location in possible_locations:
                if location.exists():
                    load_dotenv(location)
                    break

        # STAGE 2: Read environment variables
        openai_key = os.getenv("OPENAI_API_KEY")
        gemini_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")

        llm_provider = os.getenv("LLM_PROVIDER", ConfigDefaults.DEFAULT_LLM_PROVIDER).lower()
        if not openai_key and gemini_key and "LLM_PROVIDER" not in os.environ:
            llm_provider = "gemini"

        # STAGE 3: Create configuration
        try:
            config = cls(
                openai_api_key=openai_key,
                openai_model=os.getenv("OPENAI_MODEL", ConfigDefaults.DEFAULT_OPENAI_MODEL),
                gemini_api_key=gemini_key,
                gemini_model=os.getenv("GEMINI_MODEL", ConfigDefaults.DEFAULT_GEMINI_MODEL),
                evaluation_model=os.getenv(
                    "EVALUATION_MODEL", ConfigDefaults.DEFAULT_EVALUATION_MODEL
                ),
                llm_provider=llm_provider,
                rate_limit_delay=float(
                    os.getenv("RATE_LIMIT_DELAY", ConfigDefaults.DEFAULT_RATE_LIMIT_DELAY)
                ),
                request_timeout=float(
                    os.getenv("REQUEST_TIMEOUT", ConfigDefaults.DEFAULT_REQUEST_TIMEOUT)
                ),
                max_retries=int(os.getenv("MAX_RETRIES", ConfigDefaults.DEFAULT_MAX_RETRIES)),
                retry_delay=float(os.getenv("RETRY_DELAY", ConfigDefaults.DEFAULT_RETRY_DELAY)),
                batch_delay=float(os.getenv("BATCH_DELAY", ConfigDefaults.DEFAULT_BATCH_DELAY)),
                enable_validation=os.getenv("ENABLE_VALIDATION", "true").lower() == "true",
                valid_score_threshold=int(
                    os.getenv(
                        "VALID_SCORE_THRESHOLD", ConfigDefaults.DEFAULT_VALID_SCORE_THRESHOLD
                    )
                ),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        # STAGE 4: Validate
        if validate_on_load:
            config.validate()

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary (for logging/debugging)."""
        return {
            "llm_provider": self.llm_provider,
            "openai_model": self.openai_model,
            "gemini_model": self.gemini_model,
            "evaluation_model": self.evaluation_model,
            "openai_api_key": "***" if self.openai_api_key else None,
            "gemini_api_key": "***" if self.gemini_api_key else None,
            "rate_limit_delay": self.rate_limit_delay,
            "request_timeout": self.request_timeout,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "batch_delay": self.batch_delay,
            "enable_validation": self.enable_validation,
            "valid_score_threshold": self.valid_score_threshold,
        }
