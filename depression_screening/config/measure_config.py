"""
Adolescent Depression Screening Measure Configuration
=====================================================

Central configuration for the measure engine: paths, measurement period,
record field names and code lists.
"""

from pathlib import Path
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple, Union
import yaml


# =============================================================================
# PATH CONFIGURATION
# =============================================================================

MODULE_ROOT = Path(__file__).parent.parent
DATA_DIR = MODULE_ROOT / "data"
OUTPUT_DIR = MODULE_ROOT / "outputs"

# Input data (structured patient records produced upstream)
DEFAULT_INPUT_FILE = DATA_DIR / "patients.json"

# Config files
CONFIG_DIR = MODULE_ROOT / "config"
CODE_LISTS_YAML = CONFIG_DIR / "measure_codes.yaml"


# =============================================================================
# MEASUREMENT PERIOD
# =============================================================================

@dataclass
class MeasurementPeriodConfig:
    """Default reporting period (inclusive on both ends, UTC)."""

    start: datetime = datetime(2022, 1, 1, 0, 0, 0)
    end: datetime = datetime(2022, 12, 31, 23, 59, 59)


MEASUREMENT_PERIOD = MeasurementPeriodConfig()


# =============================================================================
# RECORD FIELD NAMES
# =============================================================================

@dataclass
class MeasureConfig:
    """Event types, anchors and code systems read by the matchers."""

    # Prefix carried by event-type keys in exported QDM documents
    event_type_prefix: str = "QDM::"

    # Clinical event types
    encounter_event: str = "EncounterPerformed"
    diagnosis_event: str = "Diagnosis"
    assessment_event: str = "AssessmentPerformed"
    intervention_event: str = "InterventionPerformed"

    # Temporal anchors
    encounter_start_anchor: str = "Relevant Period Start"
    prevalence_start_anchor: str = "Prevalence Period Start"

    # Terminology systems
    diagnosis_code_system: str = "ICD10CM"
    observation_code_system: str = "LOINC"
    procedure_code_system: str = "SNOMEDCT"

    # Result field on assessments
    result_field: str = "Result"

    # Initial population
    minimum_age: int = 12

    # Demographic breakdown: dimension name -> patient attribute
    unknown_label: str = "Unknown"
    demographic_dimensions: Dict[str, str] = field(default_factory=lambda: {
        'race': 'race',
        'ethnicity': 'ethnicity',
        'payer': 'insurance_providers',
        'sex': 'sex',
    })


MEASURE_CONFIG = MeasureConfig()


# =============================================================================
# CODE LISTS
# =============================================================================

@dataclass(frozen=True)
class CodeLists:
    """Measure-version specific code lists."""

    bipolar_diagnosis_code: str = "F31.9"
    screening_codes: Tuple[str, ...] = ("73831-0", "73832-8")
    negative_result_code: str = "428171000124102"
    positive_result_code: str = "428181000124104"
    declined_result_code: str = "183932001"
    follow_up_intervention_codes: Tuple[str, ...] = (
        "18512000",   # Individual psychotherapy
        "10197000",   # Psychiatric interview and evaluation
        "385726000",  # Safety planning
        "108313002",  # Family psychotherapy
    )


CODE_LISTS = CodeLists()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def load_code_lists(path: Optional[Union[str, Path]] = None) -> CodeLists:
    """Load code lists from YAML.

    Keys missing from the file keep their defaults. Unknown keys are ignored.

    Args:
        path: YAML file (default: bundled measure_codes.yaml)

    Returns:
        CodeLists instance
    """
    path = Path(path) if path else CODE_LISTS_YAML
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    values = {}
    for name in CodeLists.__dataclass_fields__:
        if name not in raw or raw[name] is None:
            continue
        value = raw[name]
        if isinstance(value, list):
            value = tuple(str(v).strip() for v in value)
        else:
            value = str(value).strip()
        values[name] = value

    return CodeLists(**values)


def ensure_directories(output_dir: Optional[Path] = None) -> Path:
    """Create the output directory."""
    output_dir = Path(output_dir) if output_dir else OUTPUT_DIR
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir
