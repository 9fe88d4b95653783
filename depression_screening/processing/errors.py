"""Exceptions raised by the measure engine."""


class MeasureError(Exception):
    """Base class for measure engine errors."""


class RecordFormatError(MeasureError):
    """Input document does not have the expected patient record structure."""


class PatientProcessingError(MeasureError):
    """A single patient cannot be categorized.

    The aggregator skips the patient and keeps processing the population.
    """


class InvalidDateError(PatientProcessingError):
    """Birth date or event timestamp could not be parsed."""

    def __init__(self, value, field_name: str = "date"):
        self.value = value
        self.field_name = field_name
        super().__init__(f"Invalid {field_name}: {value!r}")
