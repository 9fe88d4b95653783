"""Tabular reports of measure results (CSV / parquet) and a JSON summary."""
from pathlib import Path
from typing import Any, Dict, List, Union
import json
import logging
import pandas as pd

from depression_screening.processing.records import (
    CATEGORY_LABELS,
    MEASURE_CATEGORIES,
    AggregatedBreakdown,
    PatientRecord,
)

logger = logging.getLogger(__name__)

BREAKDOWN_COLUMNS = ["dimension", "value", "category", "category_label", "patient_count"]

MEMBERSHIP_COLUMNS = (
    ["name", "patient_ids", "sex", "date_of_birth", "race", "ethnicity", "insurance_providers"]
    + list(MEASURE_CATEGORIES)
)

REPORT_FORMATS = ("csv", "parquet")


def breakdown_to_frame(breakdown: AggregatedBreakdown) -> pd.DataFrame:
    """Long table with one row per dimension, value and category.

    Args:
        breakdown: Aggregated results

    Returns:
        DataFrame with BREAKDOWN_COLUMNS
    """
    rows = []
    for dimension, buckets in breakdown.dimensions():
        for value, assignment in buckets.items():
            for category, count in assignment.counts().items():
                rows.append({
                    "dimension": dimension,
                    "value": value,
                    "category": category,
                    "category_label": CATEGORY_LABELS[category],
                    "patient_count": count,
                })

    if not rows:
        return pd.DataFrame(columns=BREAKDOWN_COLUMNS)
    return pd.DataFrame(rows)[BREAKDOWN_COLUMNS]


def membership_to_frame(breakdown: AggregatedBreakdown) -> pd.DataFrame:
    """One row per categorized patient with a boolean column per category.

    Patients are read from the sex dimension; every categorized patient
    appears exactly once in each dimension.
    """
    memberships: Dict[int, Dict[str, Any]] = {}
    for assignment in breakdown.sex.values():
        for category, records in assignment.items():
            for record in records:
                row = memberships.setdefault(id(record), _patient_row(record))
                row[category] = True

    if not memberships:
        return pd.DataFrame(columns=MEMBERSHIP_COLUMNS)
    return pd.DataFrame(list(memberships.values()))[MEMBERSHIP_COLUMNS]


def _patient_row(record: PatientRecord) -> Dict[str, Any]:
    patient = record.patient
    row = {
        "name": patient.name,
        "patient_ids": patient.patient_ids,
        "sex": patient.sex,
        "date_of_birth": patient.date_of_birth,
        "race": patient.race,
        "ethnicity": patient.ethnicity,
        "insurance_providers": patient.insurance_providers,
    }
    row.update({category: False for category in MEASURE_CATEGORIES})
    return row


def summary_dict(breakdown: AggregatedBreakdown) -> Dict[str, Any]:
    return {
        "eligible": breakdown.eligible,
        "properly_screened": breakdown.properly_screened,
        "compliance_rate": breakdown.compliance_rate,
        "failed": breakdown.failed,
        "failed_patients": [
            {"label": f.label, "reason": f.reason} for f in breakdown.failed_patients
        ],
    }


def export_report(
    breakdown: AggregatedBreakdown,
    output_dir: Union[str, Path],
    fmt: str = "csv",
) -> List[Path]:
    """Write breakdown and membership tables plus summary.json.

    Args:
        breakdown: Aggregated results
        output_dir: Output directory
        fmt: "csv" or "parquet"

    Returns:
        Paths written
    """
    if fmt not in REPORT_FORMATS:
        raise ValueError(f"Unsupported report format: {fmt} (expected one of {REPORT_FORMATS})")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for name, df in (
        ("breakdown", breakdown_to_frame(breakdown)),
        ("membership", membership_to_frame(breakdown)),
    ):
        path = output_dir / f"{name}.{fmt}"
        if fmt == "csv":
            df.to_csv(path, index=False)
        else:
            df.to_parquet(path, index=False)
        written.append(path)
        logger.info(f"Saved {len(df):,} rows to {path}")

    summary_path = output_dir / "summary.json"
    with open(summary_path, "w") as f:
        json.dump(summary_dict(breakdown), f, indent=2)
    written.append(summary_path)

    return written
