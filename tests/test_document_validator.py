"""Tests for the rule-based SOAP document validator."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from types import MappingProxyType

import pytest

from clinical_document_evaluation.core.enums import IssueCategory, IssueKind
from clinical_document_evaluation.core.models import ValidationIssue, ValidationOptions
from clinical_document_evaluation.validation import DEFAULT_RULE_CATALOG, DocumentValidator
from tests.fakes import (
    CLEAN_ASTHMA_DOCUMENT,
    DIAGNOSED_ASTHMA_DOCUMENT,
    LEAKING_ASTHMA_DOCUMENT,
)


HYPERTENSION_BRIEF = "SUBJECTIVE: ... OBJECTIVE: BP 158/96, HR 88 ... ASSESSMENT: ... PLAN: ..."


def _issue(category, severity, kind=IssueKind.WARNING):
    return ValidationIssue(kind=kind, category=category, message="x", severity=severity)


# =============================================================================
# Scenarios
# =============================================================================


def test_brief_hypertension_note_is_valid(validator):
    options = ValidationOptions(disease="Hypertension", patient_age=45, patient_gender="Male")

    result = validator.validate(HYPERTENSION_BRIEF, options)

    # penalties: age 1.5, pronouns 1.0, vitals 3.5, terms 2.8, workflow 2.8, length 1.5
    assert result.score == 87
    assert result.is_valid
    assert not [
        issue
        for issue in result.issues_in(IssueCategory.DISEASE_MENTION)
        if issue.kind == IssueKind.ERROR
    ]


def test_explicit_disease_name_invalidates(validator):
    result = validator.validate(
        "Patient has hypertension and reports elevated blood pressure.",
        ValidationOptions(disease="Hypertension"),
    )

    assert not result.is_valid
    top = result.issues[0]
    assert top.kind == IssueKind.ERROR
    assert top.category == IssueCategory.DISEASE_MENTION
    assert top.severity == 10
    assert result.score == 66
    assert result.summary == "Poor SOAP document (66/100). Needs improvement. 5 errors, 5 warnings."


def test_informal_fragment_has_structure_errors(validator):
    result = validator.validate(
        "Patient feels bad. BP high. Need meds.", ValidationOptions(disease="Hypertension")
    )

    structure_errors = [
        issue
        for issue in result.issues_in(IssueCategory.STRUCTURE)
        if issue.kind == IssueKind.ERROR
    ]
    assert len(structure_errors) == 4
    assert {issue.message for issue in structure_errors} == {
        "Missing SOAP section: SUBJECTIVE",
        "Missing SOAP section: OBJECTIVE",
        "Missing SOAP section: ASSESSMENT",
        "Missing SOAP section: PLAN",
    }
    # Structure weighs 0.3, so four missing sections cost only 9.6 points:
    # 100 - (9.6 + 1.5 + 3.5 + 2.8 + 4.2 + 2.8) = 75.6
    assert result.score == 76
    assert result.is_valid


def test_clean_document_scores_full_marks(validator, asthma_patient):
    result = validator.validate(CLEAN_ASTHMA_DOCUMENT, asthma_patient)

    assert result.issues == ()
    assert result.score == 100
    assert result.is_valid
    assert result.summary == "Excellent SOAP document (100/100). 0 errors, 0 warnings."


def test_disease_error_invalidates_despite_high_score(validator, asthma_patient):
    result = validator.validate(LEAKING_ASTHMA_DOCUMENT, asthma_patient)

    assert result.score == 90
    assert not result.is_valid


def test_obvious_diagnostic_language_is_a_warning(validator, asthma_patient):
    result = validator.validate(DIAGNOSED_ASTHMA_DOCUMENT, asthma_patient)

    assert result.score == 86
    warnings = [i for i in result.issues if i.kind == IssueKind.WARNING]
    assert [i.severity for i in warnings] == [4]
    assert "diagnosed with" in warnings[0].message


# =============================================================================
# Disease subtlety
# =============================================================================


def test_synonym_is_a_warning_not_an_error(validator):
    result = validator.validate(
        "History of high blood pressure noted.", ValidationOptions(disease="Hypertension")
    )

    synonyms = result.issues_in(IssueCategory.DISEASE_MENTION)
    assert len(synonyms) == 1
    assert synonyms[0].kind == IssueKind.WARNING
    assert synonyms[0].severity == 7


def test_allowed_variations_are_not_reported(validator):
    options = ValidationOptions(
        disease="Hypertension", allowed_disease_variations=frozenset({"High Blood Pressure"})
    )

    result = validator.validate("History of high blood pressure noted.", options)

    assert result.issues_in(IssueCategory.DISEASE_MENTION) == []


def test_disease_match_is_case_insensitive(validator):
    result = validator.validate("ASTHMA exacerbation", ValidationOptions(disease="asthma"))

    assert result.issues[0].severity == 10
    assert not result.is_valid


def test_empty_disease_skips_exact_match(validator, asthma_patient):
    result = validator.validate(CLEAN_ASTHMA_DOCUMENT, replace(asthma_patient, disease=""))

    assert result.issues_in(IssueCategory.DISEASE_MENTION) == []


def test_unknown_disease_has_no_synonyms(validator):
    result = validator.validate("Tophus on the first toe.", ValidationOptions(disease="Gout"))

    assert result.issues_in(IssueCategory.DISEASE_MENTION) == []


# =============================================================================
# Patient specificity
# =============================================================================


@pytest.mark.parametrize(
    "age,text,expect_warning",
    [
        (0, "Routine visit.", True),
        (12, "Seen with a parent after school.", False),
        (40, "Works a desk occupation.", False),
        (70, "In retirement since last spring.", False),
        (70, "Routine visit.", True),
    ],
)
def test_age_appropriate_content(validator, age, text, expect_warning):
    result = validator.validate(text, ValidationOptions(disease="Gout", patient_age=age))

    age_issues = [
        i for i in result.issues_in(IssueCategory.PATIENT_SPECIFICITY) if i.severity == 3
    ]
    assert bool(age_issues) is expect_warning


def test_missing_pronouns_is_info(validator):
    result = validator.validate("Routine visit.", ValidationOptions(disease="Gout", patient_gender="Female"))

    pronoun_issues = result.issues_in(IssueCategory.PATIENT_SPECIFICITY)
    assert len(pronoun_issues) == 1
    assert pronoun_issues[0].kind == IssueKind.INFO
    assert pronoun_issues[0].severity == 2


def test_pronouns_are_substring_matched(validator):
    # "he" occurs inside "the"
    result = validator.validate("Seen in the clinic.", ValidationOptions(disease="Gout", patient_gender="Male"))

    assert result.issues_in(IssueCategory.PATIENT_SPECIFICITY) == []


def test_race_produces_no_issues(validator, asthma_patient):
    with_race = validator.validate(CLEAN_ASTHMA_DOCUMENT, asthma_patient)
    without_race = validator.validate(CLEAN_ASTHMA_DOCUMENT, replace(asthma_patient, patient_race=None))

    assert with_race == without_race


def test_generic_patient_references(validator):
    text = "The patient reports pain. " * 6  # 12 generic phrases

    result = validator.validate(text, ValidationOptions(disease="Gout"))

    generic = [
        i
        for i in result.issues_in(IssueCategory.PATIENT_SPECIFICITY)
        if "generic" in i.message
    ]
    assert len(generic) == 1


# =============================================================================
# Medical authenticity and structure
# =============================================================================


def test_missing_numbers_is_a_warning(validator):
    result = validator.validate("No measurements recorded.", ValidationOptions(disease="Gout"))

    messages = [i.message for i in result.issues_in(IssueCategory.MEDICAL_AUTHENTICITY)]
    assert "Document lacks numeric measurements or values" in messages


def test_informal_language_over_limit(validator):
    text = "She feels tired, seems pale, looks unwell and maybe febrile."

    result = validator.validate(text, ValidationOptions(disease="Gout"))

    messages = [i.message for i in result.issues_in(IssueCategory.MEDICAL_AUTHENTICITY)]
    assert "Document contains informal medical language" in messages


def test_lengthy_document_is_info(validator, asthma_patient):
    long_document = CLEAN_ASTHMA_DOCUMENT + "\n" + ("Additional notes. " * 200)

    result = validator.validate(long_document, asthma_patient)

    structure = result.issues_in(IssueCategory.STRUCTURE)
    assert [(i.kind, i.severity) for i in structure] == [(IssueKind.INFO, 2)]
    assert result.score == 99


# =============================================================================
# Scoring and aggregation
# =============================================================================


def test_score_rounds_half_up(validator):
    # 100 - 5 * 0.3 = 98.5
    assert validator.calculate_score([_issue(IssueCategory.STRUCTURE, 5)]) == 99


def test_score_is_clamped_at_zero(validator):
    issues = [_issue(IssueCategory.DISEASE_MENTION, 10, IssueKind.ERROR)] * 11

    assert validator.calculate_score(issues) == 0


def test_score_without_issues_is_100(validator):
    assert validator.calculate_score([]) == 100


@pytest.mark.parametrize(
    "score,prefix",
    [
        (90, "Excellent SOAP document (90/100)."),
        (89, "Good SOAP document (89/100)."),
        (80, "Good SOAP document (80/100)."),
        (70, "Acceptable SOAP document (70/100)."),
        (69, "Poor SOAP document (69/100). Needs improvement."),
    ],
)
def test_summary_buckets(validator, score, prefix):
    assert validator.generate_summary(score, []) == f"{prefix} 0 errors, 0 warnings."


def test_issues_sorted_by_descending_severity(validator):
    result = validator.validate("Patient feels bad.", ValidationOptions(disease="Gout"))

    severities = [issue.severity for issue in result.issues]
    assert severities == sorted(severities, reverse=True)


def test_validation_is_idempotent(validator, asthma_patient):
    first = validator.validate(DIAGNOSED_ASTHMA_DOCUMENT, asthma_patient)
    second = validator.validate(DIAGNOSED_ASTHMA_DOCUMENT, asthma_patient)

    assert first == second


def test_none_and_non_string_documents_never_raise(validator):
    options = ValidationOptions(disease="Gout")

    assert validator.validate(None, options) == validator.validate("", options)
    assert validator.validate(12345, options) == validator.validate("12345", options)


def test_custom_catalog_substitution():
    catalog = replace(
        DEFAULT_RULE_CATALOG, disease_synonyms=MappingProxyType({"gout": ("podagra",)})
    )

    result = DocumentValidator(catalog).validate(
        "Acute podagra of the right foot.", ValidationOptions(disease="Gout")
    )

    assert [i.severity for i in result.issues_in(IssueCategory.DISEASE_MENTION)] == [7]


def test_custom_threshold():
    strict = DocumentValidator(replace(DEFAULT_RULE_CATALOG, valid_score_threshold=90))

    result = strict.validate(
        HYPERTENSION_BRIEF,
        ValidationOptions(disease="Hypertension", patient_age=45, patient_gender="Male"),
    )

    assert result.score == 87
    assert not result.is_valid


# =============================================================================
# Batch validation
# =============================================================================


def test_batch_preserves_order(validator, asthma_patient):
    items = [
        (CLEAN_ASTHMA_DOCUMENT, asthma_patient),
        (LEAKING_ASTHMA_DOCUMENT, asthma_patient),
        (DIAGNOSED_ASTHMA_DOCUMENT, asthma_patient),
    ]

    results = validator.validate_multiple_documents(items)

    assert [r.score for r in results] == [100, 90, 86]


def test_batch_isolates_failures(validator, asthma_patient):
    items = [(CLEAN_ASTHMA_DOCUMENT, None), (CLEAN_ASTHMA_DOCUMENT, asthma_patient)]

    results = validator.validate_multiple_documents(items)

    assert results[0].score == 0
    assert not results[0].is_valid
    assert results[1].score == 100


@pytest.mark.parametrize("bad_item", [CLEAN_ASTHMA_DOCUMENT, None, ("only one",), (1, 2, 3)])
def test_batch_scores_malformed_item_as_zero(validator, asthma_patient, bad_item):
    items = [(CLEAN_ASTHMA_DOCUMENT, asthma_patient), bad_item, (LEAKING_ASTHMA_DOCUMENT, asthma_patient)]

    results = validator.validate_multiple_documents(items)

    assert [r.score for r in results] == [100, 0, 90]
    assert results[1].summary.startswith("Validation failed")


def test_batch_validation_is_safe_to_parallelize(validator, asthma_patient):
    """The validator is pure, so a thread pool yields the sequential results."""
    documents = [CLEAN_ASTHMA_DOCUMENT, LEAKING_ASTHMA_DOCUMENT, DIAGNOSED_ASTHMA_DOCUMENT] * 10
    sequential = validator.validate_multiple_documents(
        [(document, asthma_patient) for document in documents]
    )

    with ThreadPoolExecutor(max_workers=8) as pool:
        parallel = list(pool.map(lambda d: validator.validate(d, asthma_patient), documents))

    assert parallel == sequential
