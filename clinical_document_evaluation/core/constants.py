"""
Constants for Clinical Document Evaluation

This module holds the raw lexicons behind the rule-based validator. They are
never read directly by the validator: validation/rule_catalog.py freezes them
into an immutable RuleCatalog that is injected at construction.

Constant Categories:
    DISEASE_SYNONYMS        → Variations that leak a disease name
    OBVIOUS_DIAGNOSIS_TERMS → Diagnostic language that gives the answer away
    AGE_BAND_TERMS          → Age-appropriate vocabulary per band
    AUTHENTICITY LEXICONS   → Vital signs, clinical vocabulary, informal terms
    SCORING CONSTANTS       → Category weights and thresholds

Author: Shubham Singh
Date: December 2025
"""

from typing import Dict, List, Tuple

from clinical_document_evaluation.core.enums import IssueCategory


# =============================================================================
# STAGE 1: DISEASE SUBTLETY LEXICONS
# =============================================================================

DISEASE_SYNONYMS: Dict[str, List[str]] = {
    "hypertension": ["high blood pressure", "htn", "elevated bp", "hypertensive"],
    "diabetes": ["dm", "diabetes mellitus", "diabetic", "high blood sugar", "hyperglycemia"],
    "asthma": ["reactive airway disease", "bronchial asthma", "asthmatic"],
    "depression": ["major depressive disorder", "mdd", "depressive disorder", "depressed"],
    "anxiety": ["anxiety disorder", "anxious", "generalized anxiety", "gad"],
    "obesity": ["overweight", "obese", "increased bmi", "weight management"],
    "migraine": ["headache", "cephalgia", "migrainous"],
    "copd": ["chronic obstructive pulmonary disease", "emphysema", "chronic bronchitis"],
}

OBVIOUS_DIAGNOSIS_TERMS: List[str] = [
    "diagnosed with",
    "diagnosis of",
    "confirmed diagnosis",
    "shows signs of",
    "consistent with",
    "suggestive of",
]


# =============================================================================
# STAGE 2: PATIENT SPECIFICITY LEXICONS
# =============================================================================

PEDIATRIC_AGE_LIMIT = 18  # ages below are pediatric
GERIATRIC_AGE_LIMIT = 65  # ages at or above are geriatric

AGE_BAND_TERMS: Dict[str, List[str]] = {
    "pediatric": ["pediatric", "adolescent", "growth", "development", "school", "parent"],
    "adult": ["adult", "working", "occupation", "family history", "lifestyle"],
    "geriatric": ["elderly", "geriatric", "aging", "retirement", "medicare", "senior"],
}

GENDER_PRONOUNS: Dict[str, List[str]] = {
    "male": ["he", "him", "his"],
    "female": ["she", "her"],
}

GENERIC_PATIENT_PHRASES: List[str] = [
    "the patient",
    "patient reports",
    "patient denies",
    "patient presents",
]

GENERIC_PHRASE_LIMIT = 10


# =============================================================================
# STAGE 3: MEDICAL AUTHENTICITY LEXICONS
# =============================================================================

VITAL_SIGNS: List[str] = ["blood pressure", "heart rate", "temperature", "respiratory rate"]

CLINICAL_TERMS: List[str] = [
    "blood pressure",
    "heart rate",
    "temperature",
    "respiratory rate",
    "pulse",
    "oxygen saturation",
    "weight",
    "height",
    "bmi",
    "vital signs",
    "physical examination",
    "assessment",
    "plan",
    "history",
    "symptoms",
    "complaint",
    "medication",
    "allergies",
    "follow-up",
    "patient",
    "presents",
    "reports",
    "denies",
    "examination reveals",
    "normal",
    "abnormal",
    "within normal limits",
]

INFORMAL_TERMS: List[str] = ["feels", "seems", "looks", "appears to be", "maybe", "probably"]

WORKFLOW_ELEMENTS: List[str] = [
    "chief complaint",
    "history",
    "examination",
    "assessment",
    "plan",
]

MIN_VITAL_SIGNS = 2
MIN_CLINICAL_TERMS = 5
MAX_INFORMAL_TERMS = 2
MIN_WORKFLOW_ELEMENTS = 3


# =============================================================================
# STAGE 4: STRUCTURE CONSTANTS
# =============================================================================

SOAP_SECTION_NAMES: List[str] = ["subjective", "objective", "assessment", "plan"]

MIN_DOCUMENT_LENGTH = 200  # characters
MAX_DOCUMENT_LENGTH = 3000  # characters


# =============================================================================
# STAGE 5: SCORING CONSTANTS
# =============================================================================
# Hand-tuned weights kept exactly as published; scores from other
# deployments of the scorer stay comparable.

CATEGORY_WEIGHTS: Dict[IssueCategory, float] = {
    IssueCategory.DISEASE_MENTION: 1.0,
    IssueCategory.PATIENT_SPECIFICITY: 0.5,
    IssueCategory.MEDICAL_AUTHENTICITY: 0.7,
    IssueCategory.STRUCTURE: 0.3,
}

VALID_SCORE_THRESHOLD = 70

# (minimum score, label), checked top to bottom
SUMMARY_BUCKETS: List[Tuple[int, str]] = [
    (90, "Excellent"),
    (80, "Good"),
    (70, "Acceptable"),
]


# =============================================================================
# STAGE 6: GENERATION CONSTANTS
# =============================================================================

DEFAULT_GENERATION_MODEL = "gpt-4"
DEFAULT_PATIENT_RACE = "Not specified"
DEFAULT_MAX_RETRIES = 2  # attempts = max_retries + 1
PATIENT_AGE_RANGE = (20, 80)  # [min, max)
PATIENT_GENDERS: List[str] = ["Male", "Female"]
BATCH_PATIENT_RACES: List[str] = [
    "White",
    "Hispanic or Latino",
    "Black or African American",
    "Asian",
]


# =============================================================================
# STAGE 7: LOGGING CONFIGURATION
# =============================================================================

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
