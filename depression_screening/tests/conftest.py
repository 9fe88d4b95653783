"""Shared record factories for measure tests."""
from datetime import datetime
from typing import Dict, List, Optional

import pytest

from depression_screening.processing.records import MeasurementWindow, PatientRecord

SCREENING_LOINC = "73831-0 - Adolescent depression screening assessment"
NEGATIVE = "428171000124102 (Depression screening negative (finding))"
POSITIVE = "428181000124104 (Depression screening positive (finding))"
DECLINED = "183932001 (Procedure contraindicated (situation))"
FOLLOW_UP = "18512000 - Individual psychotherapy (regime/therapy)"
BIPOLAR = "F31.9 - Bipolar disorder, unspecified"


def encounter(start: str = "03/15/2022 9:00 AM") -> Dict:
    return {
        "description": "Encounter, Performed: Office Visit",
        "codes": {"SNOMEDCT": "185463005 - Visit out of hours (procedure)"},
        "time_elements": {"Relevant Period Start": start, "Relevant Period End": start},
        "results": {},
    }


def diagnosis(code: str = BIPOLAR, prevalence_start: str = "01/10/2021 8:00 AM") -> Dict:
    return {
        "description": "Diagnosis: Bipolar Diagnosis",
        "codes": {"ICD10CM": code},
        "time_elements": {"Prevalence Period Start": prevalence_start},
        "results": {},
    }


def screening(result: str, code: str = SCREENING_LOINC) -> Dict:
    return {
        "description": "Assessment, Performed: Adolescent Depression Screening",
        "codes": {"LOINC": code},
        "time_elements": {"Relevant dateTime": "03/15/2022 9:30 AM"},
        "results": {"Result": result},
    }


def intervention(code: str = FOLLOW_UP) -> Dict:
    return {
        "description": "Intervention, Performed: Follow Up for Adolescent Depression",
        "codes": {"SNOMEDCT": code},
        "time_elements": {"Relevant Period Start": "03/15/2022 10:00 AM"},
        "results": {},
    }


def patient_dict(
    name: str = "Test Patient",
    date_of_birth: str = "June 1, 2008",
    race: Optional[str] = "2106-3",
    ethnicity: Optional[str] = "2186-5",
    payer: Optional[str] = "1",
    sex: Optional[str] = "Female",
    encounters: Optional[List[Dict]] = None,
    diagnoses: Optional[List[Dict]] = None,
    assessments: Optional[List[Dict]] = None,
    interventions: Optional[List[Dict]] = None,
) -> Dict:
    events = {"QDM::EncounterPerformed": [encounter()] if encounters is None else encounters}
    if diagnoses:
        events["QDM::Diagnosis"] = diagnoses
    if assessments:
        events["QDM::AssessmentPerformed"] = assessments
    if interventions:
        events["QDM::InterventionPerformed"] = interventions

    patient = {
        "name": name,
        "sex": sex,
        "date_of_birth": date_of_birth,
        "date_of_expiration": "",
        "race": race,
        "ethnicity": ethnicity,
        "insurance_providers": payer,
        "patient_ids": f"ID-{name.replace(' ', '-')}",
        "address": {"line1": "1 Main St", "city": "Boston", "state": "MA", "zip": "02110", "country": "US"},
        "telecom": {"phone": "555-0100", "email": "test@example.com"},
    }
    return {"patient": patient, "assessments": events}


def make_record(**kwargs) -> PatientRecord:
    return PatientRecord.from_dict(patient_dict(**kwargs))


@pytest.fixture
def window() -> MeasurementWindow:
    return MeasurementWindow(start=datetime(2022, 1, 1), end=datetime(2022, 12, 31, 23, 59, 59))


@pytest.fixture
def record_factory():
    return make_record
