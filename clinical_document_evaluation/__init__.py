"""
Clinical Document Evaluation Module

Generates SOAP documents that imply a condition without naming it, scores
them with a rule-based validator, and evaluates how well language models
recover the diagnosis from patient demographics.

Architecture Overview:
    clinical_document_evaluation/
    ├── core/           → Domain models, enums, configuration (Layer 0 - Pure)
    ├── validation/     → Rule catalog and document validator (Layer 1 - Pure)
    ├── clients/        → LLM client abstractions (Layer 2 - Infrastructure)
    ├── generation/     → Prompting, parsing, retry loop (Layer 3 - Business Logic)
    ├── evaluation/     → Differential evaluation and insights (Layer 3 - Business Logic)
    └── pipeline.py     → Main orchestrator (Layer 4 - Public API)

Quick Start:
    from clinical_document_evaluation import ClinicalDocumentPipeline, GenerationOptions

    pipeline = ClinicalDocumentPipeline.from_environment()
    document = await pipeline.generate_soap_document(GenerationOptions(disease="Asthma"))

Author: Shubham Singh
Date: December 2025
"""

__version__ = "1.0.0"
__author__ = "Shubham Singh"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================

# Main Entry Point
from clinical_document_evaluation.pipeline import ClinicalDocumentPipeline

# Components
from clinical_document_evaluation.validation import DocumentValidator, RuleCatalog
from clinical_document_evaluation.generation import DocumentGenerator, parse_soap_document
from clinical_document_evaluation.evaluation import DifferentialEvaluator

# Core Models
from clinical_document_evaluation.core.models import (
    ValidationIssue,
    ValidationResult,
    ValidationOptions,
    SOAPDocument,
    GenerationOptions,
    GenerationOutcome,
    ValidOutcome,
    BestEffortOutcome,
    UnvalidatedOutcome,
    FailedOutcome,
    PatientRecord,
    EvaluationResult,
)

# Enums
from clinical_document_evaluation.core.enums import (
    IssueKind,
    IssueCategory,
    InsightVariable,
)

# Configuration
from clinical_document_evaluation.core.config import PipelineConfiguration
from clinical_document_evaluation.core.logging_setup import configure_logging

__all__ = [
    # Main Entry Point (use this!)
    "ClinicalDocumentPipeline",
    # Components
    "DocumentValidator",
    "RuleCatalog",
    "DocumentGenerator",
    "parse_soap_document",
    "DifferentialEvaluator",
    # Core Models
    "ValidationIssue",
    "ValidationResult",
    "ValidationOptions",
    "SOAPDocument",
    "GenerationOptions",
    "GenerationOutcome",
    "ValidOutcome",
    "BestEffortOutcome",
    "UnvalidatedOutcome",
    "FailedOutcome",
    "PatientRecord",
    "EvaluationResult",
    # Enums
    "IssueKind",
    "IssueCategory",
    "InsightVariable",
    # Configuration
    "PipelineConfiguration",
    "configure_logging",
]
