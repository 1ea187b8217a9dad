"""
Evaluation Layer - Differential Diagnosis Evaluation and Insights

Submodules:
    differential_evaluator.py → Prompt, schema-validate and score model differentials
    insights.py               → Demographic pass/fail breakdowns

Dependency Rule:
    This layer depends on: core, clients
    This layer is used by: pipeline

Author: Shubham Singh
Date: December 2025
"""

from clinical_document_evaluation.evaluation.differential_evaluator import (
    DEFAULT_DIFFERENTIAL_PROMPT,
    DifferentialEntrySchema,
    DifferentialEvaluator,
    DifferentialPayloadSchema,
    build_patient_prompt,
    parse_differential_response,
    score_differentials,
)
from clinical_document_evaluation.evaluation.insights import (
    AGE_GROUPS,
    age_group,
    demographic_breakdown,
    overall_accuracy,
)

__all__ = [
    "DEFAULT_DIFFERENTIAL_PROMPT",
    "DifferentialEntrySchema",
    "DifferentialEvaluator",
    "DifferentialPayloadSchema",
    "build_patient_prompt",
    "parse_differential_response",
    "score_differentials",
    "AGE_GROUPS",
    "age_group",
    "demographic_breakdown",
    "overall_accuracy",
]
