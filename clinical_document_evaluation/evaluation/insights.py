"""
Demographic Insights - Pass/fail breakdown of evaluation results

Groups EvaluationResults by one patient attribute (gender, ethnicity, age
group or disease) and counts passes and failures per group.

Author: Shubham Singh
Date: December 2025
"""

from collections import OrderedDict
from typing import Dict, List, Sequence, Union

from clinical_document_evaluation.core.enums import InsightVariable
from clinical_document_evaluation.core.models import (
    DemographicBreakdown,
    EvaluationResult,
    PatientRecord,
)


AGE_GROUPS: List[str] = ["0-19", "20-39", "40-59", "60-79", "80+"]


def age_group(age: int) -> str:
    """Bucket an age into a 20-year group; 80 and above share one group."""
    if age < 20:
        return "0-19"
    if age < 40:
        return "20-39"
    if age < 60:
        return "40-59"
    if age < 80:
        return "60-79"
    return "80+"


def _group_key(variable: InsightVariable, result: EvaluationResult, patient: PatientRecord) -> str:
    if variable == InsightVariable.GENDER:
        return patient.gender or "Unknown"
    if variable == InsightVariable.ETHNICITY:
        return patient.ethnicity or "Unknown"
    if variable == InsightVariable.AGE:
        return age_group(patient.age)
    return result.original_condition


def demographic_breakdown(
    results: Sequence[EvaluationResult],
    patients: Sequence[PatientRecord],
    variable: Union[InsightVariable, str],
) -> List[DemographicBreakdown]:
    """
    Count passes and failures per demographic group.

    Results whose patient is not in `patients` are ignored. Age groups are
    returned youngest first; every other variable is ordered by group size,
    largest first.
    """
    variable = InsightVariable(variable)
    by_id: Dict[str, PatientRecord] = {patient.patient_id: patient for patient in patients}

    counts: "OrderedDict[str, List[int]]" = OrderedDict()
    for result in results:
        patient = by_id.get(result.patient_id)
        if patient is None:
            continue
        tally = counts.setdefault(_group_key(variable, result, patient), [0, 0])
        tally[0 if result.eval_score else 1] += 1

    breakdown = [
        DemographicBreakdown(category=category, passed=passed, failed=failed)
        for category, (passed, failed) in counts.items()
    ]

    if variable == InsightVariable.AGE:
        return sorted(breakdown, key=lambda group: AGE_GROUPS.index(group.category))
    return sorted(breakdown, key=lambda group: group.total, reverse=True)


def overall_accuracy(results: Sequence[EvaluationResult]) -> float:
    """Percentage of passing results; 0.0 when there are none."""
    if not results:
        return 0.0
    return sum(1 for result in results if result.eval_score) / len(results) * 100
