"""
Enumerations for Clinical Document Evaluation

Enumeration Categories:
    IssueKind              → Severity class of a validation issue
    IssueCategory          → Which validator check produced an issue
    SOAPSection            → The four SOAP note sections
    DifferentialConclusion → Likelihood label on a differential diagnosis
    InsightVariable        → Grouping variable for demographic insights

All enums subclass str so values serialize to JSON unchanged.

Author: Shubham Singh
Date: December 2025
"""

from enum import Enum


# =============================================================================
# STAGE 1: VALIDATION ENUMERATIONS
# =============================================================================


class IssueKind(str, Enum):
    """
    Kind of validation issue.

    Only ERROR issues in the DISEASE_MENTION category can force a document
    to be invalid regardless of its score.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(str, Enum):
    """
    Validator check that produced an issue.

    Each category carries its own weight when issue severities are
    subtracted from the score (see RuleCatalog.category_weights).
    """

    DISEASE_MENTION = "disease_mention"
    """Disease name, synonym, or overly obvious diagnostic language."""

    PATIENT_SPECIFICITY = "patient_specificity"
    """Age-band vocabulary, pronouns, generic phrasing."""

    MEDICAL_AUTHENTICITY = "medical_authenticity"
    """Vital signs, clinical terminology, numeric values, informal language."""

    STRUCTURE = "structure"
    """SOAP section headers and document length."""


# =============================================================================
# STAGE 2: DOCUMENT ENUMERATIONS
# =============================================================================


class SOAPSection(str, Enum):
    """Sections of a SOAP note, in document order."""

    SUBJECTIVE = "subjective"
    OBJECTIVE = "objective"
    ASSESSMENT = "assessment"
    PLAN = "plan"

    @property
    def header(self) -> str:
        """Upper-case header as written in generated documents."""
        return self.value.upper()


# =============================================================================
# STAGE 3: EVALUATION ENUMERATIONS
# =============================================================================


class DifferentialConclusion(str, Enum):
    """
    Assessment attached to a differential diagnosis.

    POSITIVE: High probability based on demographics and risk factors
    NEGATIVE: Low probability or can be ruled out
    NEEDS_FOLLOW_UP: Requires additional testing or information
    """

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEEDS_FOLLOW_UP = "needs follow-up"


class InsightVariable(str, Enum):
    """Patient attribute used to group evaluation results."""

    GENDER = "gender"
    ETHNICITY = "ethnicity"
    AGE = "age"
    DISEASE = "disease"
