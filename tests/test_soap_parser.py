"""Tests for SOAP section parsing."""

from clinical_document_evaluation.generation import parse_soap_document
from tests.fakes import CLEAN_ASTHMA_DOCUMENT


def test_parses_headers_on_their_own_lines():
    document = parse_soap_document(CLEAN_ASTHMA_DOCUMENT)

    assert document.subjective.startswith("Chief complaint: intermittent wheezing")
    assert document.objective.startswith("Vital signs: blood pressure 118/76")
    assert document.assessment.startswith("Young adult woman")
    assert document.plan.endswith("Follow-up in 4 weeks.")
    assert document.full_document == CLEAN_ASTHMA_DOCUMENT
    assert document.validation is None


def test_parses_inline_headers():
    document = parse_soap_document(
        "SUBJECTIVE: cough. OBJECTIVE: BP 158/96, HR 88. ASSESSMENT: stable. PLAN: recheck."
    )

    assert document.subjective == "cough."
    assert document.objective == "BP 158/96, HR 88."
    assert document.assessment == "stable."
    assert document.plan == "recheck."


def test_headers_are_case_insensitive_and_tolerate_markdown():
    content = (
        "**Subjective:**\nHeadache for two days.\n\n"
        "## Objective\nBP 120/80.\n\n"
        "**Assessment:** Tension pattern.\n\n"
        "Plan:\nHydration."
    )

    document = parse_soap_document(content)

    assert document.subjective == "Headache for two days."
    assert document.objective == "BP 120/80."
    assert document.assessment == "Tension pattern."
    assert document.plan == "Hydration."


def test_section_word_inside_prose_is_not_a_header():
    content = (
        "SUBJECTIVE:\nReports cough.\n"
        "OBJECTIVE:\nClear lungs.\n"
        "ASSESSMENT:\nViral picture; discussed the treatment plan with her.\n"
        "PLAN:\nRest."
    )

    document = parse_soap_document(content)

    assert document.assessment == "Viral picture; discussed the treatment plan with her."
    assert document.plan == "Rest."


def test_section_word_with_colon_inside_prose_does_not_displace_real_header():
    content = (
        "SUBJECTIVE:\nShe asked about her diet plan: low sodium.\n"
        "OBJECTIVE:\nBP 150/95.\n"
        "ASSESSMENT:\nElevated readings.\n"
        "PLAN:\nRecheck in 2 weeks"
    )

    document = parse_soap_document(content)

    assert document.subjective == "She asked about her diet plan: low sodium."
    assert document.assessment == "Elevated readings."
    assert document.plan == "Recheck in 2 weeks"


def test_mid_sentence_inline_header_is_ignored():
    document = parse_soap_document(
        "SUBJECTIVE: reviewed her diet plan: low sodium. OBJECTIVE: BP 150/95. PLAN: recheck."
    )

    assert document.subjective == "reviewed her diet plan: low sodium."
    assert document.plan == "recheck."


def test_missing_section_is_empty():
    document = parse_soap_document("SUBJECTIVE:\nCough.\nOBJECTIVE:\nAfebrile.")

    assert document.subjective == "Cough."
    assert document.objective == "Afebrile."
    assert document.assessment == ""
    assert document.plan == ""


def test_sections_out_of_order_run_to_next_header():
    document = parse_soap_document("PLAN: rest. SUBJECTIVE: cough.")

    assert document.plan == "rest."
    assert document.subjective == "cough."


def test_empty_and_headerless_content_never_raise():
    for content in ("", None, "Just prose without any headers."):
        document = parse_soap_document(content)
        assert (document.subjective, document.objective, document.assessment, document.plan) == (
            "",
            "",
            "",
            "",
        )
