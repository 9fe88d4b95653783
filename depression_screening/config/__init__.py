"""Configuration for the depression screening measure."""

from .measure_config import (
    CODE_LISTS,
    CODE_LISTS_YAML,
    MEASURE_CONFIG,
    MEASUREMENT_PERIOD,
    CodeLists,
    MeasureConfig,
    MeasurementPeriodConfig,
    load_code_lists,
)

__all__ = [
    'CODE_LISTS',
    'CODE_LISTS_YAML',
    'MEASURE_CONFIG',
    'MEASUREMENT_PERIOD',
    'CodeLists',
    'MeasureConfig',
    'MeasurementPeriodConfig',
    'load_code_lists',
]
