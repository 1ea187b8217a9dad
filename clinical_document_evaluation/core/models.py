"""
Domain Models for Clinical Document Evaluation

This module defines the core data structures shared by the validator, the
generator and the differential evaluator. Models are dataclasses designed for:
    1. Type safety and IDE support
    2. Serialization to JSON via to_dict()
    3. Clear domain semantics

Model Hierarchy:
    ValidationIssue     → A single finding of a validator check
    ValidationResult    → Score, validity and ordered issues for one document
    ValidationOptions   → Disease and patient demographics to validate against
    SOAPDocument        → Parsed SOAP note with optional validation attached
    GenerationOptions   → Inputs to the SOAP generator
    GenerationOutcome   → Tagged result of the generation retry loop
    PatientRecord       → Patient supplied by the record collaborator
    Differential        → One candidate condition from a model
    EvaluationResult    → Outcome of scoring a model's differentials
    DemographicBreakdown→ Pass/fail counts for one demographic group

Author: Shubham Singh
Date: December 2025
"""

import json
import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from clinical_document_evaluation.core.constants import (
    DEFAULT_GENERATION_MODEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PATIENT_RACE,
    PATIENT_AGE_RANGE,
    PATIENT_GENDERS,
)
from clinical_document_evaluation.core.enums import (
    DifferentialConclusion,
    IssueCategory,
    IssueKind,
)


# =============================================================================
# STAGE 1: VALIDATION MODELS
# =============================================================================


@dataclass(frozen=True)
class ValidationIssue:
    """
    A single issue found by one of the validator checks.

    Attributes:
        kind: error, warning or info
        category: Which check produced the issue
        message: Human-readable description
        severity: 1-10, 10 being most severe
        suggestion: Optional remediation hint

    Example:
        >>> issue = ValidationIssue(
        ...     kind=IssueKind.ERROR,
        ...     category=IssueCategory.STRUCTURE,
        ...     message="Missing SOAP section: PLAN",
        ...     severity=8,
        ... )
    """

    kind: IssueKind
    category: IssueCategory
    message: str
    severity: int
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.kind.value,
            "category": self.category.value,
            "message": self.message,
            "severity": self.severity,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one document.

    What it does:
        Carries the 0-100 score, the validity verdict and the issues
        (descending severity) that explain the score.

    Why it exists:
        1. Enables the generator to decide whether to retry
        2. Lets callers tell a best-effort document from a validated one
        3. Provides debugging information for failed validations

    Attributes:
        is_valid: score >= threshold and no disease_mention error
        score: 0-100 integer score
        issues: Issues sorted by descending severity
        summary: Score bucket plus error/warning counts
    """

    is_valid: bool
    score: int
    issues: Tuple[ValidationIssue, ...] = ()
    summary: str = ""

    @property
    def error_count(self) -> int:
        """Number of error-kind issues."""
        return sum(1 for issue in self.issues if issue.kind == IssueKind.ERROR)

    @property
    def warning_count(self) -> int:
        """Number of warning-kind issues."""
        return sum(1 for issue in self.issues if issue.kind == IssueKind.WARNING)

    def issues_in(self, category: IssueCategory) -> List[ValidationIssue]:
        """Issues produced by a single check category."""
        return [issue for issue in self.issues if issue.category == category]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_valid": self.is_valid,
            "score": self.score,
            "issues": [issue.to_dict() for issue in self.issues],
            "summary": self.summary,
        }


@dataclass(frozen=True)
class ValidationOptions:
    """
    What a document is validated against.

    Attributes:
        disease: Condition the document must imply but never name
        patient_age: Age used for the age-band vocabulary check
        patient_gender: Gender used for the pronoun check
        patient_race: Passed to the demographic hook
        strict_mode: Set by the generator on retries
        allowed_disease_variations: Synonyms the caller accepts in the text
    """

    disease: str
    patient_age: Optional[int] = None
    patient_gender: Optional[str] = None
    patient_race: Optional[str] = None
    strict_mode: bool = False
    allowed_disease_variations: FrozenSet[str] = frozenset()


# =============================================================================
# STAGE 2: SOAP DOCUMENT MODEL
# =============================================================================


@dataclass
class SOAPDocument:
    """
    A generated SOAP note split into its four sections.

    Created by parse_soap_document(); the validation result is attached
    exactly once by the generator.

    Attributes:
        subjective: Text under the SUBJECTIVE header
        objective: Text under the OBJECTIVE header
        assessment: Text under the ASSESSMENT header
        plan: Text under the PLAN header
        full_document: The raw model response
        validation: Validator result, if validation ran
    """

    subjective: str
    objective: str
    assessment: str
    plan: str
    full_document: str
    validation: Optional[ValidationResult] = None

    @property
    def is_valid(self) -> bool:
        """True only when validation ran and passed."""
        return self.validation is not None and self.validation.is_valid

    @property
    def score(self) -> Optional[int]:
        """Validation score, or None when not validated."""
        return self.validation.score if self.validation else None

    def attach_validation(self, result: ValidationResult) -> "SOAPDocument":
        """Attach the validation result and return self."""
        self.validation = result
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "subjective": self.subjective,
            "objective": self.objective,
            "assessment": self.assessment,
            "plan": self.plan,
            "full_document": self.full_document,
            "validation": self.validation.to_dict() if self.validation else None,
        }


# =============================================================================
# STAGE 3: GENERATION MODELS
# =============================================================================


@dataclass(frozen=True)
class GenerationOptions:
    """
    Inputs to the SOAP document generator.

    Missing demographics are filled in by with_defaults() so that the
    prompt and the validator always see the same patient.
    """

    disease: str
    model: Optional[str] = None
    patient_age: Optional[int] = None
    patient_gender: Optional[str] = None
    patient_race: Optional[str] = None
    validate_document: bool = True
    max_retries: Optional[int] = None

    def with_defaults(self, rng: Optional[random.Random] = None) -> "GenerationOptions":
        """
        Return a copy with every optional field resolved.

        Defaults:
            model: gpt-4
            patient_age: random in [20, 80)
            patient_gender: Male or Female, uniformly
            patient_race: "Not specified"
            max_retries: 2
        """
        rng = rng or random.Random()
        return replace(
            self,
            model=self.model or DEFAULT_GENERATION_MODEL,
            patient_age=(
                self.patient_age
                if self.patient_age is not None
                else rng.randrange(*PATIENT_AGE_RANGE)
            ),
            patient_gender=self.patient_gender or rng.choice(PATIENT_GENDERS),
            patient_race=self.patient_race or DEFAULT_PATIENT_RACE,
            max_retries=self.max_retries if self.max_retries is not None else DEFAULT_MAX_RETRIES,
        )

    def to_validation_options(self, strict_mode: bool = False) -> ValidationOptions:
        """Validation options for a document generated from these options."""
        return ValidationOptions(
            disease=self.disease,
            patient_age=self.patient_age,
            patient_gender=self.patient_gender,
            patient_race=self.patient_race,
            strict_mode=strict_mode,
        )


@dataclass(frozen=True)
class GenerationOutcome:
    """
    Tagged result of the generation retry loop.

    Variants:
        ValidOutcome        → a document that passed validation
        BestEffortOutcome   → highest-scoring document, none passed
        UnvalidatedOutcome  → validation was disabled
        FailedOutcome       → no document was produced

    Callers must check the variant (or `accepted`) before trusting the
    document: a best-effort document is usable but not validated.
    """

    @property
    def document(self) -> Optional[SOAPDocument]:
        return None

    @property
    def accepted(self) -> bool:
        """True when the document passed validation."""
        return False


@dataclass(frozen=True)
class ValidOutcome(GenerationOutcome):
    """Validation passed on some attempt."""

    soap_document: SOAPDocument
    attempts: int = 1

    @property
    def document(self) -> SOAPDocument:
        return self.soap_document

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class BestEffortOutcome(GenerationOutcome):
    """Retries exhausted; the best-scoring invalid candidate."""

    soap_document: SOAPDocument
    result: ValidationResult
    attempts: int = 1

    @property
    def document(self) -> SOAPDocument:
        return self.soap_document


@dataclass(frozen=True)
class UnvalidatedOutcome(GenerationOutcome):
    """First successful response, returned without validation."""

    soap_document: SOAPDocument

    @property
    def document(self) -> SOAPDocument:
        return self.soap_document


@dataclass(frozen=True)
class FailedOutcome(GenerationOutcome):
    """Every attempt failed at the collaborator level."""

    error: Exception


# =============================================================================
# STAGE 4: PATIENT RECORD MODEL
# =============================================================================


def _load_metadata(raw: Any) -> Dict[str, Any]:
    """EHR metadata arrives either as a dict or as a JSON string."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            loaded = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return loaded if isinstance(loaded, dict) else {}
    return {}


@dataclass(frozen=True)
class PatientRecord:
    """
    A patient supplied by the patient-record collaborator.

    Attributes:
        patient_id: Record identifier
        name: Display name
        age: Age in years
        gender: Gender as recorded
        ethnicity: Ethnicity (primary[, secondary])
        race: Race (primary[, secondary])
        diagnosis: Ground-truth condition, if known
        subjective: Optional SOAP subjective text
        objective: Optional SOAP objective text
    """

    age: int
    gender: str
    ethnicity: str
    race: str
    diagnosis: Optional[str] = None
    subjective: Optional[str] = None
    objective: Optional[str] = None
    patient_id: str = ""
    name: str = "Unknown"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatientRecord":
        """
        Create from an EHR user record.

        Accepts both the flat shape (age, gender, race, ethnicity, diagnosis)
        and the EHR shape where race/ethnicity are split into primary and
        secondary fields and the diagnosis lives in metadata as
        "condition" or "diagnosis".
        """
        metadata = _load_metadata(data.get("metadata"))

        race = data.get("race") or data.get("primary_race") or "Unknown"
        ethnicity = data.get("ethnicity") or data.get("primary_ethnicity") or "Unknown"
        if race == "Unknown":
            race = metadata.get("race") or race
            ethnicity = metadata.get("ethnicity") or ethnicity
        if data.get("secondary_race"):
            race += f", {data['secondary_race']}"
        if data.get("secondary_ethnicity"):
            ethnicity += f", {data['secondary_ethnicity']}"

        diagnosis = data.get("diagnosis") or metadata.get("condition") or metadata.get("diagnosis")

        return cls(
            patient_id=str(data.get("id", data.get("patient_id", ""))),
            name=data.get("full_name") or data.get("name") or "Unknown",
            age=int(data.get("age") or 0),
            gender=data.get("gender") or "Unknown",
            ethnicity=ethnicity,
            race=race,
            diagnosis=diagnosis,
            subjective=data.get("subjective"),
            objective=data.get("objective"),
        )


# =============================================================================
# STAGE 5: DIFFERENTIAL EVALUATION MODELS
# =============================================================================


@dataclass(frozen=True)
class Differential:
    """One candidate condition with its assessed likelihood."""

    condition: str
    conclusion: DifferentialConclusion
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "condition": self.condition,
            "conclusion": self.conclusion.value,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class DifferentialDiagnosis:
    """Structured model output: differentials plus overall reasoning."""

    differentials: Tuple[Differential, ...] = ()
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "differentials": [d.to_dict() for d in self.differentials],
            "reasoning": self.reasoning,
        }


@dataclass
class EvaluationResult:
    """
    Outcome of evaluating one patient.

    Attributes:
        patient_id: Patient that was evaluated
        patient_name: Display name
        original_condition: Ground-truth diagnosis
        raw_output: Raw model response, or "Error: ..." on failure
        parsed_differentials: Differentials parsed from the response
        eval_score: True if the diagnosis is a positive differential
        timestamp: When the evaluation finished
        error: Failure description, if the evaluation failed
    """

    patient_id: str
    patient_name: str
    original_condition: str
    raw_output: str
    parsed_differentials: List[Differential] = field(default_factory=list)
    eval_score: bool = False
    timestamp: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "original_condition": self.original_condition,
            "raw_output": self.raw_output,
            "parsed_differentials": [d.to_dict() for d in self.parsed_differentials],
            "eval_score": self.eval_score,
            "timestamp": self.timestamp.isoformat(),
            "error": self.error,
        }


@dataclass(frozen=True)
class DemographicBreakdown:
    """Pass/fail counts of evaluation results for one demographic group."""

    category: str
    passed: int
    failed: int

    @property
    def total(self) -> int:
        return self.passed + self.failed

    @property
    def pass_rate(self) -> float:
        """Percentage of passing results in this group."""
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "pass": self.passed,
            "fail": self.failed,
            "total": self.total,
            "pass_rate": self.pass_rate,
        }


def sort_by_severity(issues: Iterable[ValidationIssue]) -> Tuple[ValidationIssue, ...]:
    """Order issues by descending severity; ties keep detection order."""
    return tuple(sorted(issues, key=lambda issue: issue.severity, reverse=True))
