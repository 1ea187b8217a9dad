"""
Generation Layer - SOAP Document Generation

Submodules:
    prompt_builder.py     → Generation prompts and retry guidance
    soap_parser.py        → Split responses into SOAP sections
    demographics.py       → Per-condition demographic sampling for batches
    document_generator.py → Retry / best-of loop and batch generation

Dependency Rule:
    This layer depends on: core, clients, validation
    This layer is used by: pipeline

Author: Shubham Singh
Date: December 2025
"""

from clinical_document_evaluation.generation.prompt_builder import (
    PromptBuilder,
    SOAP_SYSTEM_INSTRUCTION,
)
from clinical_document_evaluation.generation.soap_parser import parse_soap_document
from clinical_document_evaluation.generation.demographics import (
    FALLBACK_DISTRIBUTION,
    DemographicDistribution,
    DemographicDistributionProvider,
    PatientDemographics,
    sample_demographics,
    select_from_distribution,
)
from clinical_document_evaluation.generation.document_generator import DocumentGenerator

__all__ = [
    "PromptBuilder",
    "SOAP_SYSTEM_INSTRUCTION",
    "parse_soap_document",
    "FALLBACK_DISTRIBUTION",
    "DemographicDistribution",
    "DemographicDistributionProvider",
    "PatientDemographics",
    "sample_demographics",
    "select_from_distribution",
    "DocumentGenerator",
]
