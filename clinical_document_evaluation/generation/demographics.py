"""
Demographic Distributions - Condition-specific patient sampling for batches

Batch generation can draw each synthetic patient from the demographic
profile of the condition instead of uniformly at random. The profile is
requested from the LLM as JSON once per batch; when the request or the
payload fails, a general-population fallback table is used.

Pipeline Position:
    disease → [DemographicDistributionProvider] → DemographicDistribution
            → sample_demographics() per patient → DocumentGenerator

Author: Shubham Singh
Date: December 2025
"""

import asyncio
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from clinical_document_evaluation.clients.llm_client import LLMClientProtocol
from clinical_document_evaluation.core.exceptions import LLMError
from clinical_document_evaluation.core.json_payload import extract_json_payload


# =============================================================================
# STAGE 1: DISTRIBUTION SCHEMA
# =============================================================================
# Field aliases follow the camelCase keys the model is asked to return.


class AgeRangeShare(BaseModel):
    """Share of patients in one age range."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    label: str = Field(..., alias="range", description="Display label, e.g. '31-45'")
    percentage: float = Field(..., ge=0)
    min_age: int = Field(..., alias="minAge", ge=0)
    max_age: int = Field(..., alias="maxAge", ge=0)

    @model_validator(mode="after")
    def check_bounds(self) -> "AgeRangeShare":
        if self.max_age < self.min_age:
            raise ValueError(f"maxAge {self.max_age} is below minAge {self.min_age}")
        return self


class GenderShare(BaseModel):
    """Share of patients of one gender."""

    model_config = ConfigDict(frozen=True)

    gender: str
    percentage: float = Field(..., ge=0)


class RaceEthnicityShare(BaseModel):
    """Share of patients in one race/ethnicity category."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    race_ethnicity: str = Field(..., alias="raceEthnicity")
    percentage: float = Field(..., ge=0)


class DemographicDistribution(BaseModel):
    """
    Demographic profile of patients diagnosed with one condition.

    Percentages are expected to add up to 100 per category but are not
    required to: selection falls through to the last entry.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    age_ranges: List[AgeRangeShare] = Field(..., alias="ageRanges", min_length=1)
    gender_distribution: List[GenderShare] = Field(
        ..., alias="genderDistribution", min_length=1
    )
    race_ethnicity_distribution: List[RaceEthnicityShare] = Field(
        ..., alias="raceEthnicityDistribution", min_length=1
    )


FALLBACK_DISTRIBUTION = DemographicDistribution.model_validate(
    {
        "ageRanges": [
            {"range": "18-30", "percentage": 25, "minAge": 18, "maxAge": 30},
            {"range": "31-45", "percentage": 30, "minAge": 31, "maxAge": 45},
            {"range": "46-65", "percentage": 30, "minAge": 46, "maxAge": 65},
            {"range": "66+", "percentage": 15, "minAge": 66, "maxAge": 90},
        ],
        "genderDistribution": [
            {"gender": "Male", "percentage": 50},
            {"gender": "Female", "percentage": 50},
        ],
        "raceEthnicityDistribution": [
            {"raceEthnicity": "White", "percentage": 61},
            {"raceEthnicity": "Hispanic or Latino", "percentage": 18},
            {"raceEthnicity": "Black or African American", "percentage": 12},
            {"raceEthnicity": "Asian", "percentage": 6},
            {"raceEthnicity": "American Indian or Alaska Native", "percentage": 1},
            {"raceEthnicity": "Native Hawaiian or Pacific Islander", "percentage": 1},
            {"raceEthnicity": "Middle Eastern or North African", "percentage": 1},
        ],
    }
)


# =============================================================================
# STAGE 2: WEIGHTED SELECTION
# =============================================================================

ShareT = TypeVar("ShareT", AgeRangeShare, GenderShare, RaceEthnicityShare)

# Roughly 5% of patients get a second race/ethnicity
SECONDARY_RACE_THRESHOLD = 0.95


@dataclass(frozen=True)
class PatientDemographics:
    """Sampled demographics for one synthetic patient."""

    age: int
    gender: str
    race: str


def select_from_distribution(items: Sequence[ShareT], rng: random.Random) -> ShareT:
    """
    Pick one entry with probability proportional to its percentage.

    A roll in [0, 100) walks the cumulative percentages, so a 0% entry is
    never picked unless the percentages add up to less than the roll, in
    which case the last entry is returned.
    """
    roll = rng.random() * 100
    cumulative = 0.0

    for item in items:
        cumulative += item.percentage
        if roll < cumulative:
            return item

    return items[-1]


def sample_demographics(
    distribution: DemographicDistribution, rng: random.Random
) -> PatientDemographics:
    """Draw age, gender and race for one patient from a distribution."""
    age_range = select_from_distribution(distribution.age_ranges, rng)
    age = rng.randint(age_range.min_age, age_range.max_age)

    gender = select_from_distribution(distribution.gender_distribution, rng).gender

    race = select_from_distribution(distribution.race_ethnicity_distribution, rng).race_ethnicity
    if rng.random() > SECONDARY_RACE_THRESHOLD:
        secondary = select_from_distribution(
            distribution.race_ethnicity_distribution, rng
        ).race_ethnicity
        if secondary != race:
            race = f"{race}, {secondary}"

    return PatientDemographics(age=age, gender=gender, race=race)


# =============================================================================
# STAGE 3: DISTRIBUTION PROVIDER
# =============================================================================

DISTRIBUTION_SYSTEM_INSTRUCTION = (
    "You are a medical epidemiologist with access to demographic data about various "
    "medical conditions. Provide accurate demographic distributions based on real "
    "medical data."
)

DISTRIBUTION_PROMPT_TEMPLATE = """Please provide the demographic distribution for patients diagnosed with {condition}.

Return the data in the following JSON format:
{{
  "ageRanges": [
    {{"range": "18-30", "percentage": 15, "minAge": 18, "maxAge": 30}},
    {{"range": "31-45", "percentage": 25, "minAge": 31, "maxAge": 45}},
    {{"range": "46-65", "percentage": 40, "minAge": 46, "maxAge": 65}},
    {{"range": "66+", "percentage": 20, "minAge": 66, "maxAge": 90}}
  ],
  "genderDistribution": [
    {{"gender": "Male", "percentage": 50}},
    {{"gender": "Female", "percentage": 50}}
  ],
  "raceEthnicityDistribution": [
    {{"raceEthnicity": "White", "percentage": 60}},
    {{"raceEthnicity": "Hispanic or Latino", "percentage": 18}},
    {{"raceEthnicity": "Black or African American", "percentage": 12}},
    {{"raceEthnicity": "Asian", "percentage": 6}},
    {{"raceEthnicity": "American Indian or Alaska Native", "percentage": 2}},
    {{"raceEthnicity": "Native Hawaiian or Pacific Islander", "percentage": 1}},
    {{"raceEthnicity": "Middle Eastern or North African", "percentage": 1}}
  ]
}}

Use these exact race/ethnicity categories: American Indian or Alaska Native, Asian, Black or African American, Hispanic or Latino, Middle Eastern or North African, Native Hawaiian or Pacific Islander, White.

Use actual medical and epidemiological data for {condition}. Make sure percentages add up to 100% for each category."""


def parse_distribution_response(
    raw: Optional[str],
    fallback: DemographicDistribution = FALLBACK_DISTRIBUTION,
) -> DemographicDistribution:
    """Validate a model response as a DemographicDistribution, or return the fallback."""
    payload = extract_json_payload(raw)
    if payload is None:
        logger.warning("Demographic distribution response contains no JSON, using fallback")
        return fallback

    try:
        return DemographicDistribution.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            f"Demographic distribution failed schema validation ({e.error_count()} errors), "
            f"using fallback"
        )
        return fallback


class DemographicDistributionProvider:
    """
    Fetches a condition's demographic distribution from the LLM.

    What it does:
        Sends one JSON request per condition and validates the payload.
        LLM failures, timeouts and invalid payloads all resolve to the
        fallback distribution. Configuration errors propagate.

    Example:
        >>> provider = DemographicDistributionProvider(llm_client)
        >>> distribution = await provider.get_distribution("Hypertension")
    """

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        model: Optional[str] = None,
        request_timeout: float = 60.0,
        fallback: DemographicDistribution = FALLBACK_DISTRIBUTION,
    ):
        self._llm_client = llm_client
        self._model = model
        self._request_timeout = request_timeout
        self._fallback = fallback

    async def get_distribution(self, condition: str) -> DemographicDistribution:
        prompt = DISTRIBUTION_PROMPT_TEMPLATE.format(condition=condition)

        try:
            raw = await asyncio.wait_for(
                self._llm_client.generate(
                    prompt,
                    system_instruction=DISTRIBUTION_SYSTEM_INSTRUCTION,
                    model=self._model,
                    json_output=True,
                ),
                timeout=self._request_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Demographic distribution request for {condition} timed out, using fallback"
            )
            return self._fallback
        except LLMError as e:
            logger.warning(
                f"Demographic distribution request for {condition} failed: {e.message}, "
                f"using fallback"
            )
            return self._fallback

        distribution = parse_distribution_response(raw, self._fallback)
        logger.info(
            f"Demographic distribution ready | Condition: {condition} | "
            f"Age ranges: {len(distribution.age_ranges)}"
        )
        return distribution
