"""Adolescent depression screening measure: patient categorization and
population breakdown by race, ethnicity, payer and sex."""

from depression_screening.processing.aggregator import aggregate_population, partition_by
from depression_screening.processing.categorizer import DECISION_STAGES, categorize_patient
from depression_screening.processing.errors import (
    InvalidDateError,
    MeasureError,
    PatientProcessingError,
    RecordFormatError,
)
from depression_screening.processing.records import (
    MEASURE_CATEGORIES,
    AggregatedBreakdown,
    CategoryAssignment,
    ClinicalEvent,
    MeasurementWindow,
    Patient,
    PatientRecord,
)

__version__ = "0.1.0"

__all__ = [
    'aggregate_population',
    'partition_by',
    'DECISION_STAGES',
    'categorize_patient',
    'InvalidDateError',
    'MeasureError',
    'PatientProcessingError',
    'RecordFormatError',
    'MEASURE_CATEGORIES',
    'AggregatedBreakdown',
    'CategoryAssignment',
    'ClinicalEvent',
    'MeasurementWindow',
    'Patient',
    'PatientRecord',
]
