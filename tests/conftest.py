"""Shared pytest fixtures."""

import pytest

from clinical_document_evaluation.validation import DocumentValidator
from tests.fakes import ASTHMA_PATIENT


@pytest.fixture
def validator():
    return DocumentValidator()


@pytest.fixture
def asthma_patient():
    return ASTHMA_PATIENT
