"""Load structured patient records from JSON.

The input is a JSON array of objects shaped like

    {
        "patient": {"name": ..., "date_of_birth": ..., "race": ..., ...},
        "assessments": {
            "QDM::EncounterPerformed": [
                {"description": ..., "codes": {...}, "time_elements": {...}, "results": {...}},
                ...
            ],
            ...
        }
    }
"""
from pathlib import Path
from typing import Any, List, TextIO, Union
import json
import logging

from depression_screening.processing.errors import RecordFormatError
from depression_screening.processing.records import PatientRecord

logger = logging.getLogger(__name__)

EVENT_MAPPINGS = ("codes", "time_elements", "results")
PATIENT_MAPPINGS = ("address", "telecom")


def _is_mapping_or_empty(value: Any) -> bool:
    return not value or isinstance(value, dict)


def _check_entry(i: int, entry: Any) -> None:
    if not isinstance(entry, dict) or not isinstance(entry.get("patient"), dict):
        raise RecordFormatError(f"Record {i} has no 'patient' object")

    patient = entry["patient"]
    for key in PATIENT_MAPPINGS:
        if not _is_mapping_or_empty(patient.get(key)):
            raise RecordFormatError(f"Record {i} has a malformed patient '{key}' object")

    assessments = entry.get("assessments") or {}
    if not isinstance(assessments, dict):
        raise RecordFormatError(f"Record {i} has a malformed 'assessments' mapping")

    for event_type, items in assessments.items():
        if not items:
            continue
        if not isinstance(items, list):
            raise RecordFormatError(f"Record {i}: '{event_type}' is not a list of events")
        for j, item in enumerate(items):
            if not isinstance(item, dict):
                raise RecordFormatError(f"Record {i}: '{event_type}' event {j} is not an object")
            for key in EVENT_MAPPINGS:
                if not _is_mapping_or_empty(item.get(key)):
                    raise RecordFormatError(
                        f"Record {i}: '{event_type}' event {j} has a malformed '{key}' mapping"
                    )


def records_from_json(data: Any) -> List[PatientRecord]:
    """Convert decoded JSON into patient records.

    Args:
        data: List of {"patient": ..., "assessments": ...} dicts

    Returns:
        List of PatientRecord

    Raises:
        RecordFormatError: data is not a list, or an entry is not shaped like
            a patient record
    """
    if not isinstance(data, list):
        raise RecordFormatError(f"Expected a list of patient records, got {type(data).__name__}")

    records = []
    for i, entry in enumerate(data):
        _check_entry(i, entry)
        records.append(PatientRecord.from_dict(entry))
    return records


def load_patient_records(source: Union[str, Path, TextIO]) -> List[PatientRecord]:
    """Load patient records from a JSON file or open handle.

    Args:
        source: Path to the JSON file or a text file handle

    Returns:
        List of PatientRecord
    """
    if isinstance(source, (str, Path)):
        logger.info(f"Loading patient records from {source}")
        with open(source, "r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        data = json.load(source)

    try:
        records = records_from_json(data)
    except RecordFormatError:
        logger.error(f"Malformed patient record file: {source}")
        raise

    logger.info(f"  Loaded {len(records)} patient records")
    return records
