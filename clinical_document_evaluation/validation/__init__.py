"""
Validation Layer - Rule-Based SOAP Document Scoring

Submodules:
    rule_catalog.py       → Immutable lexicons and weights
    document_validator.py → Checks, scoring and batch validation

Dependency Rule:
    This layer depends on: core
    This layer is used by: generation, pipeline

Author: Shubham Singh
Date: December 2025
"""

from clinical_document_evaluation.validation.rule_catalog import (
    RuleCatalog,
    DEFAULT_RULE_CATALOG,
)
from clinical_document_evaluation.validation.document_validator import (
    DocumentValidator,
    RuleBasedChecks,
)

__all__ = [
    "RuleCatalog",
    "DEFAULT_RULE_CATALOG",
    "DocumentValidator",
    "RuleBasedChecks",
]
