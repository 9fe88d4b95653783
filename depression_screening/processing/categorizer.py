"""Patient categorizer for the adolescent depression screening measure.

A patient is evaluated by an ordered sequence of rule stages. Each stage adds
zero or more categories and either stops evaluation or hands over to the
next stage:

    initial_population  -> IPOP + DENOM, or stop with no categories
    exclusion           -> DENEX (stop)
    numerator           -> NUMER (stop)
    exception           -> DENEXCEP (stop)

Because exclusion, numerator and exception each stop evaluation, a patient
lands in at most one of them.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
import logging
import pandas as pd

from depression_screening.config.measure_config import CODE_LISTS, MEASURE_CONFIG, CodeLists
from depression_screening.processing.code_matcher import (
    first_qualifying_encounter_start,
    has_diagnosis_before,
    has_intervention,
    has_screening_result,
)
from depression_screening.processing.records import (
    DENEX,
    DENEXCEP,
    DENOM,
    IPOP,
    NUMER,
    CategoryAssignment,
    MeasurementWindow,
    PatientRecord,
)
from depression_screening.processing.temporal import age

logger = logging.getLogger(__name__)


@dataclass
class PatientContext:
    """State shared by the stages while evaluating one patient."""
    record: PatientRecord
    window: MeasurementWindow
    codes: CodeLists = CODE_LISTS
    encounter_start: Optional[pd.Timestamp] = None


@dataclass(frozen=True)
class StageResult:
    categories: Tuple[str, ...] = ()
    stop: bool = False


CONTINUE = StageResult()
STOP = StageResult(stop=True)


@dataclass(frozen=True)
class RuleStage:
    name: str
    evaluate: Callable[[PatientContext], StageResult]


# =============================================================================
# STAGES
# =============================================================================

def initial_population_stage(ctx: PatientContext) -> StageResult:
    """Age >= 12 at window start with an encounter in the window."""
    patient_age = age(ctx.record.patient.date_of_birth, ctx.window.start)
    if patient_age < MEASURE_CONFIG.minimum_age:
        return STOP

    encounter_start = first_qualifying_encounter_start(
        ctx.record, MEASURE_CONFIG.encounter_event, ctx.window
    )
    if encounter_start is None:
        return STOP

    ctx.encounter_start = encounter_start
    # Denominator equals the initial population for this measure
    return StageResult(categories=(IPOP, DENOM))


def exclusion_stage(ctx: PatientContext) -> StageResult:
    """Bipolar diagnosis prevalent before the first qualifying encounter."""
    if has_diagnosis_before(ctx.record, ctx.codes.bipolar_diagnosis_code, ctx.encounter_start):
        return StageResult(categories=(DENEX,), stop=True)
    return CONTINUE


def numerator_stage(ctx: PatientContext) -> StageResult:
    """Negative screening, or positive screening with a follow-up intervention."""
    codes = ctx.codes
    negative = has_screening_result(ctx.record, codes.screening_codes, codes.negative_result_code)
    if negative:
        return StageResult(categories=(NUMER,), stop=True)

    positive = has_screening_result(ctx.record, codes.screening_codes, codes.positive_result_code)
    if positive and has_intervention(ctx.record, codes.follow_up_intervention_codes):
        return StageResult(categories=(NUMER,), stop=True)
    return CONTINUE


def exception_stage(ctx: PatientContext) -> StageResult:
    """Screening not done for a patient or medical reason."""
    codes = ctx.codes
    if has_screening_result(ctx.record, codes.screening_codes, codes.declined_result_code):
        return StageResult(categories=(DENEXCEP,), stop=True)
    return CONTINUE


DECISION_STAGES: Tuple[RuleStage, ...] = (
    RuleStage("initial_population", initial_population_stage),
    RuleStage("exclusion", exclusion_stage),
    RuleStage("numerator", numerator_stage),
    RuleStage("exception", exception_stage),
)


# =============================================================================
# CATEGORIZER
# =============================================================================

def categorize_patient(
    record: PatientRecord,
    window: MeasurementWindow,
    codes: CodeLists = CODE_LISTS,
    on_patient: Optional[Callable[[PatientRecord], None]] = None,
    stages: Tuple[RuleStage, ...] = DECISION_STAGES,
) -> CategoryAssignment:
    """Assign one patient to measure categories.

    Args:
        record: Patient record
        window: Measurement period
        codes: Code lists for the measure version
        on_patient: Optional hook called before evaluation (progress output)
        stages: Rule stages in evaluation order

    Returns:
        CategoryAssignment holding the record in each category it qualifies for

    Raises:
        InvalidDateError: birth date or a qualifying event date is unparseable
    """
    if on_patient is not None:
        on_patient(record)
    logger.debug(f"Processing patient: {record.label}")

    ctx = PatientContext(record=record, window=window, codes=codes)
    assignment = CategoryAssignment()

    for stage in stages:
        result = stage.evaluate(ctx)
        for category in result.categories:
            assignment.add(category, record)
        if result.stop:
            logger.debug(f"  {record.label}: stopped at {stage.name} -> {assignment.categories()}")
            break

    return assignment
