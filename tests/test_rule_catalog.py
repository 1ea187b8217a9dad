"""Tests for RuleCatalog lookups."""

from dataclasses import FrozenInstanceError

import pytest

from clinical_document_evaluation.core.enums import IssueCategory
from clinical_document_evaluation.validation import DEFAULT_RULE_CATALOG, RuleCatalog


@pytest.mark.parametrize(
    "age,band",
    [(0, "pediatric"), (17, "pediatric"), (18, "adult"), (64, "adult"), (65, "geriatric"), (95, "geriatric")],
)
def test_age_band_boundaries(age, band):
    assert DEFAULT_RULE_CATALOG.age_band(age) == band


def test_synonym_lookup_ignores_case_and_whitespace():
    assert "htn" in DEFAULT_RULE_CATALOG.synonyms_for("  Hypertension ")
    assert DEFAULT_RULE_CATALOG.synonyms_for("Gout") == ()


@pytest.mark.parametrize(
    "gender,pronouns",
    [
        ("Male", ("he", "him", "his")),
        ("MALE", ("he", "him", "his")),
        ("Female", ("she", "her")),
        ("Non-binary", ("she", "her")),
    ],
)
def test_pronouns_for_gender(gender, pronouns):
    assert DEFAULT_RULE_CATALOG.pronouns_for(gender) == pronouns


def test_weights_are_preserved():
    weights = {category: DEFAULT_RULE_CATALOG.weight_for(category) for category in IssueCategory}

    assert weights == {
        IssueCategory.DISEASE_MENTION: 1.0,
        IssueCategory.PATIENT_SPECIFICITY: 0.5,
        IssueCategory.MEDICAL_AUTHENTICITY: 0.7,
        IssueCategory.STRUCTURE: 0.3,
    }


def test_summary_label_below_lowest_bucket_is_none():
    assert DEFAULT_RULE_CATALOG.summary_label(95) == "Excellent"
    assert DEFAULT_RULE_CATALOG.summary_label(69) is None


def test_catalog_is_immutable():
    catalog = RuleCatalog()

    with pytest.raises(FrozenInstanceError):
        catalog.valid_score_threshold = 50
    with pytest.raises(TypeError):
        catalog.disease_synonyms["gout"] = ("podagra",)


def test_clinical_terms_are_distinct():
    terms = DEFAULT_RULE_CATALOG.clinical_terms
    assert len(terms) == len(set(terms))
