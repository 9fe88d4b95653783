"""Patient records, measurement window and category containers."""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterator, List, Optional, Tuple
import pandas as pd

from depression_screening.config.measure_config import (
    MEASURE_CONFIG,
    MEASUREMENT_PERIOD,
)
from depression_screening.processing.temporal import DateLike, parse_timestamp

# Measure categories, in decision order
IPOP = "IPOP"
DENOM = "DENOM"
DENEX = "DENEX"
NUMER = "NUMER"
DENEXCEP = "DENEXCEP"

MEASURE_CATEGORIES = (IPOP, DENOM, DENEX, NUMER, DENEXCEP)

CATEGORY_LABELS = {
    IPOP: "Initial Population",
    DENOM: "Denominator",
    DENEX: "Denominator Exclusion",
    NUMER: "Numerator",
    DENEXCEP: "Denominator Exception",
}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _text_map(raw: Optional[Dict[str, Any]]) -> Dict[str, str]:
    return {str(k).strip(): _text(v) for k, v in (raw or {}).items()}


# =============================================================================
# DEMOGRAPHICS
# =============================================================================

@dataclass(frozen=True)
class Address:
    line1: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""


@dataclass(frozen=True)
class Telecom:
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class Patient:
    """Demographic attributes of a patient."""
    name: str = ""
    sex: str = ""
    date_of_birth: str = ""
    date_of_expiration: str = ""
    race: str = ""
    ethnicity: str = ""
    insurance_providers: str = ""
    patient_ids: str = ""
    address: Address = field(default_factory=Address)
    telecom: Telecom = field(default_factory=Telecom)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Patient":
        address = raw.get("address") or {}
        telecom = raw.get("telecom") or {}
        return cls(
            name=_text(raw.get("name")),
            sex=_text(raw.get("sex")),
            date_of_birth=_text(raw.get("date_of_birth")),
            date_of_expiration=_text(raw.get("date_of_expiration")),
            race=_text(raw.get("race")),
            ethnicity=_text(raw.get("ethnicity")),
            insurance_providers=_text(raw.get("insurance_providers")),
            patient_ids=_text(raw.get("patient_ids")),
            address=Address(**{k: _text(address.get(k)) for k in Address.__dataclass_fields__}),
            telecom=Telecom(**{k: _text(telecom.get(k)) for k in Telecom.__dataclass_fields__}),
        )


# =============================================================================
# CLINICAL EVENTS
# =============================================================================

@dataclass(frozen=True)
class ClinicalEvent:
    """A single recorded clinical event (encounter, diagnosis, assessment...).

    Attributes:
        description: Free-text heading of the event
        codes: Terminology system -> "<code> - <display>"
        time_elements: Anchor name -> date-time string
        results: Result field name -> free text
    """
    description: str = ""
    codes: Dict[str, str] = field(default_factory=dict)
    time_elements: Dict[str, str] = field(default_factory=dict)
    results: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ClinicalEvent":
        return cls(
            description=_text(raw.get("description")),
            codes=_text_map(raw.get("codes")),
            time_elements=_text_map(raw.get("time_elements")),
            results=_text_map(raw.get("results")),
        )


def normalize_event_type(event_type: str) -> str:
    """Strip the QDM namespace: 'QDM::Diagnosis' -> 'Diagnosis'."""
    event_type = _text(event_type)
    prefix = MEASURE_CONFIG.event_type_prefix
    if event_type.startswith(prefix):
        return event_type[len(prefix):]
    return event_type


@dataclass(frozen=True)
class PatientRecord:
    """One patient's demographics and clinical events, keyed by event type.

    Read-only input to the engine.
    """
    patient: Patient
    events: Dict[str, Tuple[ClinicalEvent, ...]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PatientRecord":
        """Build from the {"patient": {...}, "assessments": {...}} layout."""
        events: Dict[str, Tuple[ClinicalEvent, ...]] = {}
        for event_type, items in (raw.get("assessments") or {}).items():
            key = normalize_event_type(event_type)
            parsed = tuple(ClinicalEvent.from_dict(item) for item in (items or []))
            events[key] = events.get(key, ()) + parsed
        return cls(patient=Patient.from_dict(raw.get("patient") or {}), events=events)

    def events_of(self, event_type: str) -> Tuple[ClinicalEvent, ...]:
        """Events of a type; empty when the record has none."""
        return self.events.get(normalize_event_type(event_type), ())

    @property
    def label(self) -> str:
        """Identifier used in logs and failure reports."""
        return self.patient.patient_ids or self.patient.name or "<unnamed>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient": asdict(self.patient),
            "assessments": {
                MEASURE_CONFIG.event_type_prefix + event_type: [asdict(e) for e in items]
                for event_type, items in self.events.items()
            },
        }


# =============================================================================
# MEASUREMENT WINDOW
# =============================================================================

@dataclass(frozen=True)
class MeasurementWindow:
    """Inclusive observation period; bounds are stored as naive UTC."""
    start: pd.Timestamp
    end: pd.Timestamp

    def __post_init__(self):
        start = parse_timestamp(self.start, "measurement period start")
        end = parse_timestamp(self.end, "measurement period end")
        if end < start:
            raise ValueError(f"Measurement period ends before it starts: {start} > {end}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def default(cls) -> "MeasurementWindow":
        return cls(start=MEASUREMENT_PERIOD.start, end=MEASUREMENT_PERIOD.end)

    @classmethod
    def from_strings(cls, start: DateLike, end: DateLike) -> "MeasurementWindow":
        return cls(start=start, end=end)

    def isoformat(self) -> Tuple[str, str]:
        return (
            self.start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            self.end.strftime("%Y-%m-%dT%H:%M:%SZ"),
        )


# =============================================================================
# CATEGORY CONTAINERS
# =============================================================================

@dataclass
class CategoryAssignment:
    """Patients per measure category.

    Exclusion, numerator and exception are mutually exclusive for a single
    patient; the categorizer guarantees it, this container does not check.
    """
    IPOP: List[PatientRecord] = field(default_factory=list)
    DENOM: List[PatientRecord] = field(default_factory=list)
    DENEX: List[PatientRecord] = field(default_factory=list)
    NUMER: List[PatientRecord] = field(default_factory=list)
    DENEXCEP: List[PatientRecord] = field(default_factory=list)

    def __getitem__(self, category: str) -> List[PatientRecord]:
        if category not in MEASURE_CATEGORIES:
            raise KeyError(category)
        return getattr(self, category)

    def add(self, category: str, record: PatientRecord) -> None:
        self[category].append(record)

    def extend(self, other: "CategoryAssignment") -> None:
        for category in MEASURE_CATEGORIES:
            self[category].extend(other[category])

    def items(self) -> Iterator[Tuple[str, List[PatientRecord]]]:
        for category in MEASURE_CATEGORIES:
            yield category, self[category]

    def categories(self) -> List[str]:
        """Categories holding at least one patient."""
        return [c for c in MEASURE_CATEGORIES if self[c]]

    def counts(self) -> Dict[str, int]:
        return {c: len(self[c]) for c in MEASURE_CATEGORIES}


@dataclass
class FailedPatient:
    label: str
    reason: str


@dataclass
class AggregatedBreakdown:
    """Population results partitioned by demographic dimension."""
    race: Dict[str, CategoryAssignment] = field(default_factory=dict)
    ethnicity: Dict[str, CategoryAssignment] = field(default_factory=dict)
    payer: Dict[str, CategoryAssignment] = field(default_factory=dict)
    sex: Dict[str, CategoryAssignment] = field(default_factory=dict)
    eligible: int = 0
    properly_screened: int = 0
    failed: int = 0
    failed_patients: List[FailedPatient] = field(default_factory=list)

    def by_dimension(self, dimension: str) -> Dict[str, CategoryAssignment]:
        if dimension not in MEASURE_CONFIG.demographic_dimensions:
            raise KeyError(dimension)
        return getattr(self, dimension)

    def dimensions(self) -> Iterator[Tuple[str, Dict[str, CategoryAssignment]]]:
        for dimension in MEASURE_CONFIG.demographic_dimensions:
            yield dimension, getattr(self, dimension)

    @property
    def compliance_rate(self) -> Optional[float]:
        """Properly screened / eligible, None when nobody is eligible."""
        if not self.eligible:
            return None
        return self.properly_screened / self.eligible
