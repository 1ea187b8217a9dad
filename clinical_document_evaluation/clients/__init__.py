"""
Clients Layer - LLM API Client Abstractions

This layer provides async abstractions over LLM providers (OpenAI, Gemini),
enabling the rest of the system to work with any provider interchangeably.

Submodules:
    llm_client.py    → Protocol and base implementation
    openai_client.py → OpenAI implementation
    gemini_client.py → Google Gemini implementation

Author: Shubham Singh
Date: December 2025
"""

from clinical_document_evaluation.clients.llm_client import (
    LLMClientProtocol,
    BaseLLMClient,
)
from clinical_document_evaluation.clients.openai_client import OpenAIClient
from clinical_document_evaluation.clients.gemini_client import GeminiClient

__all__ = [
    "LLMClientProtocol",
    "BaseLLMClient",
    "OpenAIClient",
    "GeminiClient",
]
