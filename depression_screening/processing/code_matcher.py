"""Match a patient's coded clinical events against code lists.

All matchers return False when the record has no events of the requested
type, and treat malformed coded values as non-matches.
"""
from typing import Collection, Iterator, Optional
import pandas as pd

from depression_screening.config.measure_config import MEASURE_CONFIG
from depression_screening.processing.records import ClinicalEvent, PatientRecord
from depression_screening.processing.temporal import in_window, parse_timestamp

# Separators between a code and its display text, in order of preference
CODE_SEPARATORS = (" - ", ":")


def parse_coded_value(value: Optional[str]) -> Optional[str]:
    """Leading code of a "<code> - <display>" value.

    Args:
        value: Coded value, e.g. "F31.9 - Bipolar disorder, unspecified"

    Returns:
        The code ("F31.9"), or None if the value is empty or has no separator
    """
    if not value:
        return None
    value = str(value).strip()
    for separator in CODE_SEPARATORS:
        if separator in value:
            code = value.split(separator, 1)[0].strip()
            return code or None
    return None


def leading_token(value: Optional[str]) -> Optional[str]:
    """First whitespace-delimited token of a value, or None if empty."""
    if not value:
        return None
    parts = str(value).split()
    return parts[0] if parts else None


def _event_code(event: ClinicalEvent, code_system: str) -> Optional[str]:
    return parse_coded_value(event.codes.get(code_system))


def _anchor(event: ClinicalEvent, anchor: str) -> Optional[pd.Timestamp]:
    """Parsed anchor timestamp; None when the anchor is not recorded.

    A recorded but unparseable anchor raises InvalidDateError.
    """
    value = event.time_elements.get(anchor)
    if not value:
        return None
    return parse_timestamp(value, anchor)


def iter_qualifying_encounter_starts(
    record: PatientRecord,
    event_type: str,
    window,
) -> Iterator[pd.Timestamp]:
    anchor = MEASURE_CONFIG.encounter_start_anchor
    for event in record.events_of(event_type):
        start = _anchor(event, anchor)
        if start is not None and in_window(start, window):
            yield start


def has_qualifying_encounter(record: PatientRecord, event_type: str, window) -> bool:
    """True if any encounter of event_type starts inside the window."""
    return any(True for _ in iter_qualifying_encounter_starts(record, event_type, window))


def first_qualifying_encounter_start(
    record: PatientRecord,
    event_type: str,
    window,
) -> Optional[pd.Timestamp]:
    """Earliest start among encounters inside the window."""
    return min(iter_qualifying_encounter_starts(record, event_type, window), default=None)


def has_diagnosis_before(
    record: PatientRecord,
    code: str,
    encounter_start: pd.Timestamp,
) -> bool:
    """True if a diagnosis with this code was prevalent before the encounter.

    Args:
        record: Patient record
        code: Diagnosis code, compared exactly (e.g. "F31.9")
        encounter_start: Start of the reference encounter

    Returns:
        True if a Diagnosis event has prevalence start strictly before
        encounter_start and a matching diagnosis code
    """
    for event in record.events_of(MEASURE_CONFIG.diagnosis_event):
        if _event_code(event, MEASURE_CONFIG.diagnosis_code_system) != code:
            continue
        prevalence_start = _anchor(event, MEASURE_CONFIG.prevalence_start_anchor)
        if prevalence_start is not None and prevalence_start < encounter_start:
            return True
    return False


def has_screening_result(
    record: PatientRecord,
    candidate_codes: Collection[str],
    result_code: str,
) -> bool:
    """True if a screening assessment in candidate_codes recorded result_code.

    Args:
        record: Patient record
        candidate_codes: Observation codes of qualifying screening tools
        result_code: Expected leading token of the result field

    Returns:
        True on the first matching AssessmentPerformed event
    """
    for event in record.events_of(MEASURE_CONFIG.assessment_event):
        if _event_code(event, MEASURE_CONFIG.observation_code_system) not in candidate_codes:
            continue
        if leading_token(event.results.get(MEASURE_CONFIG.result_field)) == result_code:
            return True
    return False


def has_intervention(record: PatientRecord, candidate_codes: Collection[str]) -> bool:
    """True if an InterventionPerformed event has a procedure code in candidate_codes."""
    for event in record.events_of(MEASURE_CONFIG.intervention_event):
        code = leading_token(event.codes.get(MEASURE_CONFIG.procedure_code_system))
        if code is not None and code in candidate_codes:
            return True
    return False
