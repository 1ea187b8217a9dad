"""
Rule Catalog - Immutable Validator Lexicons

The validator never reads module-level word lists. Every lexicon and scoring
constant lives in a frozen RuleCatalog instance that is handed to
DocumentValidator at construction, so tests can substitute a custom
vocabulary with dataclasses.replace().

Pipeline Position:
    [RuleCatalog] → DocumentValidator → DocumentGenerator
     ^^^^^^^^^^^
     You are here

Author: Shubham Singh
Date: December 2025
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from clinical_document_evaluation.core import constants
from clinical_document_evaluation.core.enums import IssueCategory


def _freeze_lexicon(source) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in source.items()})


@dataclass(frozen=True)
class RuleCatalog:
    """
    Static lexicons and weights used by the rule-based validator.

    Attributes:
        disease_synonyms: Lower-cased disease → variations that leak it
        obvious_diagnosis_terms: Diagnostic phrases that give the answer away
        age_band_terms: "pediatric" / "adult" / "geriatric" vocabularies
        pediatric_age_limit: Ages below are pediatric
        geriatric_age_limit: Ages at or above are geriatric
        gender_pronouns: "male" / "female" expected pronouns
        generic_patient_phrases: Phrases counted for genericity
        generic_phrase_limit: More occurrences than this raise an info issue
        vital_signs: Vital-sign keywords
        clinical_terms: Clinical vocabulary for the density check
        informal_terms: Informal language markers
        workflow_elements: Clinical workflow headings
        soap_sections: Required SOAP section names
        category_weights: Severity multiplier per issue category
        valid_score_threshold: Minimum score for a valid document
        summary_buckets: (min score, label) pairs, highest first
    """

    # -------------------------------------------------------------------------
    # Disease subtlety
    # -------------------------------------------------------------------------
    disease_synonyms: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: _freeze_lexicon(constants.DISEASE_SYNONYMS)
    )
    obvious_diagnosis_terms: Tuple[str, ...] = tuple(constants.OBVIOUS_DIAGNOSIS_TERMS)

    # -------------------------------------------------------------------------
    # Patient specificity
    # -------------------------------------------------------------------------
    age_band_terms: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: _freeze_lexicon(constants.AGE_BAND_TERMS)
    )
    pediatric_age_limit: int = constants.PEDIATRIC_AGE_LIMIT
    geriatric_age_limit: int = constants.GERIATRIC_AGE_LIMIT
    gender_pronouns: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: _freeze_lexicon(constants.GENDER_PRONOUNS)
    )
    generic_patient_phrases: Tuple[str, ...] = tuple(constants.GENERIC_PATIENT_PHRASES)
    generic_phrase_limit: int = constants.GENERIC_PHRASE_LIMIT

    # -------------------------------------------------------------------------
    # Medical authenticity
    # -------------------------------------------------------------------------
    vital_signs: Tuple[str, ...] = tuple(constants.VITAL_SIGNS)
    min_vital_signs: int = constants.MIN_VITAL_SIGNS
    clinical_terms: Tuple[str, ...] = tuple(dict.fromkeys(constants.CLINICAL_TERMS))
    min_clinical_terms: int = constants.MIN_CLINICAL_TERMS
    informal_terms: Tuple[str, ...] = tuple(constants.INFORMAL_TERMS)
    max_informal_terms: int = constants.MAX_INFORMAL_TERMS
    workflow_elements: Tuple[str, ...] = tuple(constants.WORKFLOW_ELEMENTS)
    min_workflow_elements: int = constants.MIN_WORKFLOW_ELEMENTS

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------
    soap_sections: Tuple[str, ...] = tuple(constants.SOAP_SECTION_NAMES)
    min_document_length: int = constants.MIN_DOCUMENT_LENGTH
    max_document_length: int = constants.MAX_DOCUMENT_LENGTH

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------
    category_weights: Mapping[IssueCategory, float] = field(
        default_factory=lambda: MappingProxyType(dict(constants.CATEGORY_WEIGHTS))
    )
    valid_score_threshold: int = constants.VALID_SCORE_THRESHOLD
    summary_buckets: Tuple[Tuple[int, str], ...] = tuple(constants.SUMMARY_BUCKETS)

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def synonyms_for(self, disease: str) -> Tuple[str, ...]:
        """Known variations of a disease; empty for unknown diseases."""
        return self.disease_synonyms.get(disease.strip().lower(), ())

    def age_band(self, age: int) -> str:
        """Name of the age band an age falls into."""
        if age < self.pediatric_age_limit:
            return "pediatric"
        if age >= self.geriatric_age_limit:
            return "geriatric"
        return "adult"

    def age_terms_for(self, age: int) -> Tuple[str, ...]:
        """Vocabulary expected for a patient of this age."""
        return self.age_band_terms.get(self.age_band(age), ())

    def pronouns_for(self, gender: str) -> Tuple[str, ...]:
        """Expected pronouns; anything other than male is checked as female."""
        key = "male" if gender.strip().lower() == "male" else "female"
        return self.gender_pronouns.get(key, ())

    def weight_for(self, category: IssueCategory) -> float:
        return self.category_weights.get(category, 1.0)

    def summary_label(self, score: int) -> Optional[str]:
        """Bucket label for a score, or None below the lowest bucket."""
        for minimum, label in self.summary_buckets:
            if score >= minimum:
                return label
        return None


DEFAULT_RULE_CATALOG = RuleCatalog()
