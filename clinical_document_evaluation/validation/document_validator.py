"""
Document Validator - Rule-Based SOAP Document Scoring

This module scores a generated SOAP document against the disease it is meant
to imply and the patient it describes. Four independent checks produce
issues; their severities, weighted per category, are subtracted from 100.

Checks Performed:
    1. Disease subtlety       (weight 1.0) - name, synonyms, obvious phrasing
    2. Patient specificity    (weight 0.5) - age band, pronouns, genericity
    3. Medical authenticity   (weight 0.7) - vitals, terminology, numbers
    4. Structure              (weight 0.3) - SOAP headers, length

Validity:
    score >= 70 AND no error-kind disease_mention issue. An exact disease
    name in the text therefore invalidates a document whatever its score.

Pipeline Position:
    RuleCatalog → [DocumentValidator] → DocumentGenerator
                   ^^^^^^^^^^^^^^^^^
                   You are here

Author: Shubham Singh
Date: December 2025
"""

import math
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from clinical_document_evaluation.core.enums import IssueCategory, IssueKind
from clinical_document_evaluation.core.models import (
    ValidationIssue,
    ValidationOptions,
    ValidationResult,
    sort_by_severity,
)
from clinical_document_evaluation.validation.rule_catalog import (
    DEFAULT_RULE_CATALOG,
    RuleCatalog,
)


# =============================================================================
# STAGE 1: RULE-BASED CHECKS
# =============================================================================
# Deterministic checks over the lower-cased document. Every lookup is a plain
# substring test, so "he" also matches inside "the" and "chest".


class RuleBasedChecks:
    """
    The four validator checks, bound to one RuleCatalog.

    Each check returns the issues it found and never raises. Checks do not
    know about weights; DocumentValidator applies those when scoring.
    """

    def __init__(self, catalog: RuleCatalog = DEFAULT_RULE_CATALOG):
        self._catalog = catalog

    # -------------------------------------------------------------------------
    # 1.1 Disease subtlety
    # -------------------------------------------------------------------------

    def check_disease_subtlety(
        self, doc_lower: str, options: ValidationOptions
    ) -> List[ValidationIssue]:
        """
        Look for the disease name, its synonyms and obvious diagnostic language.

        Algorithm:
            1. Exact disease name (case-insensitive substring) → error, 10
            2. Each known synonym not in allowed_disease_variations → warning, 7
            3. Each obvious diagnostic phrase → warning, 4
        """
        issues: List[ValidationIssue] = []
        disease = (options.disease or "").strip()

        if disease and disease.lower() in doc_lower:
            issues.append(
                ValidationIssue(
                    kind=IssueKind.ERROR,
                    category=IssueCategory.DISEASE_MENTION,
                    message=f'Disease name "{disease}" found explicitly in document',
                    severity=10,
                    suggestion=(
                        "Remove explicit disease mentions and use subtle clinical "
                        "presentations instead"
                    ),
                )
            )

        allowed = {variation.lower() for variation in options.allowed_disease_variations}
        for variation in self._catalog.synonyms_for(disease):
            if variation.lower() in allowed:
                continue
            if variation.lower() in doc_lower:
                issues.append(
                    ValidationIssue(
                        kind=IssueKind.WARNING,
                        category=IssueCategory.DISEASE_MENTION,
                        message=f'Disease variation "{variation}" found in document',
                        severity=7,
                        suggestion="Consider using more subtle clinical terminology",
                    )
                )

        for term in self._catalog.obvious_diagnosis_terms:
            if term in doc_lower:
                issues.append(
                    ValidationIssue(
                        kind=IssueKind.WARNING,
                        category=IssueCategory.DISEASE_MENTION,
                        message=f'Potentially obvious diagnostic language found: "{term}"',
                        severity=4,
                        suggestion="Use more subtle clinical language to maintain subtlety",
                    )
                )

        return issues

    # -------------------------------------------------------------------------
    # 1.2 Patient specificity
    # -------------------------------------------------------------------------

    def check_patient_specificity(
        self, doc_lower: str, options: ValidationOptions
    ) -> List[ValidationIssue]:
        """
        Check that the document reads as written for this particular patient.

        Age and gender checks only run when the option is supplied.
        """
        issues: List[ValidationIssue] = []

        if options.patient_age is not None:
            age_terms = self._catalog.age_terms_for(options.patient_age)
            if not any(term in doc_lower for term in age_terms):
                issues.append(
                    ValidationIssue(
                        kind=IssueKind.WARNING,
                        category=IssueCategory.PATIENT_SPECIFICITY,
                        message=(
                            "Document lacks age-appropriate content for "
                            f"{options.patient_age}-year-old patient"
                        ),
                        severity=3,
                        suggestion="Include age-relevant clinical considerations and terminology",
                    )
                )

        if options.patient_gender:
            issues.extend(self.check_gender_specificity(doc_lower, options.patient_gender))

        if options.patient_race:
            issues.extend(self.check_demographic_considerations(doc_lower, options.patient_race))

        generic_count = sum(
            doc_lower.count(phrase) for phrase in self._catalog.generic_patient_phrases
        )
        if generic_count > self._catalog.generic_phrase_limit:
            issues.append(
                ValidationIssue(
                    kind=IssueKind.INFO,
                    category=IssueCategory.PATIENT_SPECIFICITY,
                    message="Document uses many generic patient references",
                    severity=2,
                    suggestion=(
                        "Consider adding more specific patient details and personalized "
                        "presentation"
                    ),
                )
            )

        return issues

    def check_gender_specificity(self, doc_lower: str, gender: str) -> List[ValidationIssue]:
        """Info issue when none of the expected pronouns appear."""
        pronouns = self._catalog.pronouns_for(gender)
        if any(pronoun in doc_lower for pronoun in pronouns):
            return []
        return [
            ValidationIssue(
                kind=IssueKind.INFO,
                category=IssueCategory.PATIENT_SPECIFICITY,
                message=f"Document lacks gender-appropriate pronouns for {gender} patient",
                severity=2,
                suggestion="Consider including appropriate pronouns to personalize the record",
            )
        ]

    def check_demographic_considerations(
        self, doc_lower: str, race: str
    ) -> List[ValidationIssue]:
        """
        Extension point for race/ethnicity considerations.

        Intentionally produces no issues: no clinical heuristic tying race to
        disease likelihood is encoded here. Subclasses may override with a
        reviewed rule set.
        """
        return []

    # -------------------------------------------------------------------------
    # 1.3 Medical authenticity
    # -------------------------------------------------------------------------

    def check_medical_authenticity(self, document: str, doc_lower: str) -> List[ValidationIssue]:
        """
        Check that the document reads like a real clinical record.

        Algorithm:
            1. Fewer than 2 vital signs                → warning, 5
            2. Fewer than 5 distinct clinical terms    → warning, 4
            3. No digit anywhere                       → warning, 6
            4. More than 2 informal terms              → warning, 3
            5. Fewer than 3 workflow elements          → warning, 4
        """
        catalog = self._catalog
        issues: List[ValidationIssue] = []

        found_vitals = [vital for vital in catalog.vital_signs if vital in doc_lower]
        if len(found_vitals) < catalog.min_vital_signs:
            issues.append(
                ValidationIssue(
                    kind=IssueKind.WARNING,
                    category=IssueCategory.MEDICAL_AUTHENTICITY,
                    message="Document lacks sufficient vital signs measurements",
                    severity=5,
                    suggestion="Include realistic vital signs in the objective section",
                )
            )

        term_count = sum(1 for term in catalog.clinical_terms if term in doc_lower)
        if term_count < catalog.min_clinical_terms:
            issues.append(
                ValidationIssue(
                    kind=IssueKind.WARNING,
                    category=IssueCategory.MEDICAL_AUTHENTICITY,
                    message="Document lacks sufficient medical terminology",
                    severity=4,
                    suggestion="Include more clinical terminology to enhance authenticity",
                )
            )

        if not any(char.isdigit() for char in document):
            issues.append(
                ValidationIssue(
                    kind=IssueKind.WARNING,
                    category=IssueCategory.MEDICAL_AUTHENTICITY,
                    message="Document lacks numeric measurements or values",
                    severity=6,
                    suggestion="Include realistic vital signs, lab values, or measurements",
                )
            )

        found_informal = [term for term in catalog.informal_terms if term in doc_lower]
        if len(found_informal) > catalog.max_informal_terms:
            issues.append(
                ValidationIssue(
                    kind=IssueKind.WARNING,
                    category=IssueCategory.MEDICAL_AUTHENTICITY,
                    message="Document contains informal medical language",
                    severity=3,
                    suggestion="Use more precise, professional medical terminology",
                )
            )

        found_elements = [
            element
            for element in catalog.workflow_elements
            if element in doc_lower or element.replace(" ", "") in doc_lower
        ]
        if len(found_elements) < catalog.min_workflow_elements:
            issues.append(
                ValidationIssue(
                    kind=IssueKind.WARNING,
                    category=IssueCategory.MEDICAL_AUTHENTICITY,
                    message="Document lacks complete clinical workflow elements",
                    severity=4,
                    suggestion="Ensure all major clinical workflow components are present",
                )
            )

        return issues

    # -------------------------------------------------------------------------
    # 1.4 Structure
    # -------------------------------------------------------------------------

    def check_document_structure(self, document: str, doc_lower: str) -> List[ValidationIssue]:
        """One error per missing SOAP section, plus length warnings."""
        catalog = self._catalog
        issues: List[ValidationIssue] = []

        for section in catalog.soap_sections:
            if section not in doc_lower:
                issues.append(
                    ValidationIssue(
                        kind=IssueKind.ERROR,
                        category=IssueCategory.STRUCTURE,
                        message=f"Missing SOAP section: {section.upper()}",
                        severity=8,
                        suggestion=f"Add the {section.upper()} section to complete SOAP format",
                    )
                )

        if len(document) < catalog.min_document_length:
            issues.append(
                ValidationIssue(
                    kind=IssueKind.WARNING,
                    category=IssueCategory.STRUCTURE,
                    message="Document appears too short for a complete SOAP note",
                    severity=5,
                    suggestion="Expand the document with more clinical details",
                )
            )

        if len(document) > catalog.max_document_length:
            issues.append(
                ValidationIssue(
                    kind=IssueKind.INFO,
                    category=IssueCategory.STRUCTURE,
                    message="Document is quite lengthy for a typical SOAP note",
                    severity=2,
                    suggestion="Consider condensing to focus on key clinical points",
                )
            )

        return issues


# =============================================================================
# STAGE 2: DOCUMENT VALIDATOR
# =============================================================================


class DocumentValidator:
    """
    Scores SOAP documents with the rule-based checks.

    What it does:
        Runs the four checks, weights issue severities per category,
        and produces a ValidationResult with a 0-100 score.

    Why it exists:
        1. Free, instant, deterministic scoring (no LLM calls)
        2. Feedback signal for the generator's retry loop
        3. Pure: identical inputs always give identical results

    How it works:
        STAGE 2.1: Normalize input (never raise on malformed documents)
        STAGE 2.2: Run checks in category order
        STAGE 2.3: Subtract weighted severities, round, clamp to [0, 100]
        STAGE 2.4: Decide validity, sort issues, summarize

    Example:
        >>> validator = DocumentValidator()
        >>> result = validator.validate(text, ValidationOptions(disease="Asthma"))
        >>> result.is_valid, result.score
    """

    def __init__(self, catalog: RuleCatalog = DEFAULT_RULE_CATALOG):
        self._catalog = catalog
        self._checks = RuleBasedChecks(catalog)

    @property
    def catalog(self) -> RuleCatalog:
        return self._catalog

    # =========================================================================
    # STAGE 3: PUBLIC API
    # =========================================================================

    def validate(self, document: Any, options: ValidationOptions) -> ValidationResult:
        """
        Validate a single document.

        Args:
            document: Document text; None and non-strings are coerced
            options: Disease and patient demographics to validate against

        Returns:
            ValidationResult with score, validity, sorted issues and summary
        """
        # =====================================================================
        # STAGE 3.1: NORMALIZE INPUT
        # =====================================================================
        text = self._normalize(document)
        doc_lower = text.lower()

        # =====================================================================
        # STAGE 3.2: RUN CHECKS
        # =====================================================================
        issues: List[ValidationIssue] = []
        issues.extend(self._checks.check_disease_subtlety(doc_lower, options))
        issues.extend(self._checks.check_patient_specificity(doc_lower, options))
        issues.extend(self._checks.check_medical_authenticity(text, doc_lower))
        issues.extend(self._checks.check_document_structure(text, doc_lower))

        # =====================================================================
        # STAGE 3.3: SCORE
        # =====================================================================
        score = self.calculate_score(issues)

        # =====================================================================
        # STAGE 3.4: VALIDITY AND SUMMARY
        # =====================================================================
        is_valid = score >= self._catalog.valid_score_threshold and not any(
            issue.kind == IssueKind.ERROR and issue.category == IssueCategory.DISEASE_MENTION
            for issue in issues
        )

        result = ValidationResult(
            is_valid=is_valid,
            score=score,
            issues=sort_by_severity(issues),
            summary=self.generate_summary(score, issues),
        )

        logger.debug(
            f"Validated document | Disease: {options.disease} | "
            f"Score: {score} | Valid: {is_valid} | Issues: {len(issues)} | "
            f"Strict: {options.strict_mode}"
        )

        return result

    def validate_document(self, document: Any, options: ValidationOptions) -> ValidationResult:
        """Alias of validate()."""
        return self.validate(document, options)

    def validate_multiple_documents(
        self, items: Iterable[Tuple[Any, ValidationOptions]]
    ) -> List[ValidationResult]:
        """
        Validate documents one after another, preserving order.

        A failure inside one item, including an item that is not a
        (content, options) pair, is logged and recorded as a zero score so
        the rest of the batch still runs.

        Args:
            items: (content, options) pairs

        Returns:
            One ValidationResult per item, in input order
        """
        results: List[ValidationResult] = []

        for index, item in enumerate(items):
            try:
                content, options = item
                results.append(self.validate(content, options))
            except Exception as e:
                logger.error(f"Failed to validate document {index + 1}: {e}")
                results.append(
                    ValidationResult(
                        is_valid=False,
                        score=0,
                        issues=(),
                        summary=f"Validation failed: {e}",
                    )
                )

        logger.info(
            f"Batch validation complete | Documents: {len(results)} | "
            f"Valid: {sum(1 for r in results if r.is_valid)}"
        )
        return results

    # =========================================================================
    # STAGE 4: SCORING HELPERS
    # =========================================================================

    def calculate_score(self, issues: Sequence[ValidationIssue]) -> int:
        """100 minus weighted severities, rounded half up and clamped to [0, 100]."""
        penalty = sum(
            issue.severity * self._catalog.weight_for(issue.category) for issue in issues
        )
        # weights are tenths; trim float noise before rounding half up
        raw = round(100 - penalty, 6)
        rounded = math.floor(raw + 0.5)
        return max(0, min(100, rounded))

    def generate_summary(self, score: int, issues: Sequence[ValidationIssue]) -> str:
        """Score bucket label with error and warning counts."""
        error_count = sum(1 for issue in issues if issue.kind == IssueKind.ERROR)
        warning_count = sum(1 for issue in issues if issue.kind == IssueKind.WARNING)
        counts = f"{error_count} errors, {warning_count} warnings."

        label = self._catalog.summary_label(score)
        if label is None:
            return f"Poor SOAP document ({score}/100). Needs improvement. {counts}"
        return f"{label} SOAP document ({score}/100). {counts}"

    @staticmethod
    def _normalize(document: Optional[Any]) -> str:
        if document is None:
            return ""
        if isinstance(document, str):
            return document
        return str(document)
