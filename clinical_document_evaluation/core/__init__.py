"""
Core Layer - Domain Models, Enums, Configuration and Exceptions

This layer contains PURE, side-effect-free components that form the foundation
of the clinical document evaluation system.

Submodules:
    models.py        → Data structures (ValidationResult, SOAPDocument, ...)
    enums.py         → Enumerations (IssueKind, IssueCategory, ...)
    constants.py     → Validator lexicons and scoring constants
    config.py        → Configuration dataclass
    exceptions.py    → Domain-specific exceptions
    logging_setup.py → loguru sink configuration

Dependency Rule:
    This layer depends on NOTHING else in the package.
    All other layers may depend on this layer.

Author: Shubham Singh
Date: December 2025
"""

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
    Differential,
    DifferentialDiagnosis,
    EvaluationResult,
    DemographicBreakdown,
)
from clinical_document_evaluation.core.enums import (
    IssueKind,
    IssueCategory,
    SOAPSection,
    DifferentialConclusion,
    InsightVariable,
)
from clinical_document_evaluation.core.config import PipelineConfiguration
from clinical_document_evaluation.core.exceptions import (
    ClinicalDocumentError,
    ConfigurationError,
    GenerationError,
    LLMError,
    GenerationFailedError,
    NoDocumentGeneratedError,
    GenerationCancelledError,
    EvaluationError,
)

__all__ = [
    # Models
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
    "Differential",
    "DifferentialDiagnosis",
    "EvaluationResult",
    "DemographicBreakdown",
    # Enums
    "IssueKind",
    "IssueCategory",
    "SOAPSection",
    "DifferentialConclusion",
    "InsightVariable",
    # Configuration
    "PipelineConfiguration",
    # Exceptions
    "ClinicalDocumentError",
    "ConfigurationError",
    "GenerationError",
    "LLMError",
    "GenerationFailedError",
    "NoDocumentGeneratedError",
    "GenerationCancelledError",
    "EvaluationError",
]
