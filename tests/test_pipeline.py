"""Tests for the pipeline facade."""

import asyncio
import json
import random

from clinical_document_evaluation import ClinicalDocumentPipeline, GenerationOptions, PipelineConfiguration
from clinical_document_evaluation.core.enums import InsightVariable
from clinical_document_evaluation.core.models import PatientRecord, ValidationOptions
from clinical_document_evaluation.generation import DocumentGenerator
from clinical_document_evaluation.validation import DocumentValidator
from tests.fakes import CLEAN_ASTHMA_DOCUMENT, LEAKING_ASTHMA_DOCUMENT, ScriptedLLMClient


def _pipeline(responses, **config_overrides):
    config = PipelineConfiguration(openai_api_key="sk-test", **config_overrides)
    client = ScriptedLLMClient(responses)
    validator = DocumentValidator()
    generator = DocumentGenerator(
        client, validator, retry_delay=0, batch_delay=0, rng=random.Random(3)
    )
    return ClinicalDocumentPipeline(config, llm_client=client, validator=validator, generator=generator), client


def test_validate_document_delegates():
    pipeline, _ = _pipeline([])

    result = pipeline.validate_document(
        "Patient has hypertension.", ValidationOptions(disease="Hypertension")
    )

    assert not result.is_valid


def test_validate_multiple_documents():
    pipeline, _ = _pipeline([])
    options = ValidationOptions(disease="Asthma", patient_age=28, patient_gender="Female")

    results = pipeline.validate_multiple_documents(
        [(CLEAN_ASTHMA_DOCUMENT, options), (LEAKING_ASTHMA_DOCUMENT, options)]
    )

    assert [r.is_valid for r in results] == [True, False]


def test_generate_uses_configured_model_and_tracks_counts():
    pipeline, client = _pipeline([CLEAN_ASTHMA_DOCUMENT] + [LEAKING_ASTHMA_DOCUMENT] * 3)
    options = GenerationOptions(disease="Asthma", patient_age=28, patient_gender="Female")

    first = asyncio.run(pipeline.generate_soap_document(options))
    second = asyncio.run(pipeline.generate_soap_document(options))

    assert first.is_valid
    assert not second.is_valid
    assert client.calls[0]["model"] == "gpt-4"
    assert pipeline.documents_generated == 2
    assert pipeline.documents_valid == 1
    assert pipeline.validation_rate == 50.0


def test_validation_can_be_disabled_by_configuration():
    pipeline, client = _pipeline([LEAKING_ASTHMA_DOCUMENT], enable_validation=False)

    document = asyncio.run(pipeline.generate_soap_document(GenerationOptions(disease="Asthma")))

    assert document.validation is None
    assert len(client.calls) == 1


def test_generate_multiple_documents():
    pipeline, _ = _pipeline([CLEAN_ASTHMA_DOCUMENT] * 2)

    documents = asyncio.run(pipeline.generate_multiple_documents("Asthma", count=2))

    assert len(documents) == 2
    assert pipeline.documents_generated == 2


def test_evaluate_and_break_down():
    response = {"differentials": [{"condition": "Asthma", "conclusion": "positive"}], "reasoning": ""}
    pipeline, _ = _pipeline([json.dumps(response)])
    patients = [
        PatientRecord(patient_id="1", age=9, gender="Female", ethnicity="Unknown", race="Black", diagnosis="Asthma")
    ]

    results = asyncio.run(pipeline.evaluate_patients(patients))
    breakdown = pipeline.demographic_breakdown(results, patients, InsightVariable.AGE)

    assert results[0].eval_score
    assert [(b.category, b.passed) for b in breakdown] == [("0-19", 1)]


def test_configured_max_retries_bounds_attempts():
    pipeline, client = _pipeline([LEAKING_ASTHMA_DOCUMENT] * 5, max_retries=0)
    options = GenerationOptions(disease="Asthma", patient_age=28, patient_gender="Female")

    document = asyncio.run(pipeline.generate_soap_document(options))

    assert not document.is_valid
    assert len(client.calls) == 1


def test_explicit_max_retries_overrides_configuration():
    pipeline, client = _pipeline([LEAKING_ASTHMA_DOCUMENT] * 5, max_retries=0)
    options = GenerationOptions(
        disease="Asthma", patient_age=28, patient_gender="Female", max_retries=1
    )

    asyncio.run(pipeline.generate_soap_document(options))

    assert len(client.calls) == 2


def test_batch_uses_configured_max_retries():
    pipeline, client = _pipeline([LEAKING_ASTHMA_DOCUMENT] * 6, max_retries=1)

    documents = asyncio.run(pipeline.generate_multiple_documents("Asthma", count=2))

    assert len(documents) == 2
    assert len(client.calls) == 4
