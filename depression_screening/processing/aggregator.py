"""Population aggregation: categorize every patient and break results down
by race, ethnicity, payer and sex."""
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
import logging
from tqdm import tqdm

from depression_screening.config.measure_config import CODE_LISTS, MEASURE_CONFIG, CodeLists
from depression_screening.processing.categorizer import categorize_patient
from depression_screening.processing.errors import PatientProcessingError
from depression_screening.processing.records import (
    DENOM,
    NUMER,
    AggregatedBreakdown,
    CategoryAssignment,
    FailedPatient,
    MeasurementWindow,
    PatientRecord,
)

logger = logging.getLogger(__name__)

CategorizedPatient = Tuple[PatientRecord, CategoryAssignment]


def demographic_value(record: PatientRecord, dimension: str) -> str:
    """Demographic value for a breakdown dimension, "Unknown" when missing."""
    attribute = MEASURE_CONFIG.demographic_dimensions[dimension]
    value = getattr(record.patient, attribute, "") or ""
    return value.strip() or MEASURE_CONFIG.unknown_label


def partition_by(
    results: Iterable[CategorizedPatient],
    key_func: Callable[[PatientRecord], str],
) -> Dict[str, CategoryAssignment]:
    """Group categorized patients by key, merging their category lists.

    Args:
        results: (record, assignment) pairs
        key_func: Maps a record to its bucket key

    Returns:
        Dict mapping key -> combined CategoryAssignment
    """
    partitions: Dict[str, CategoryAssignment] = {}
    for record, assignment in results:
        key = key_func(record)
        if key not in partitions:
            partitions[key] = CategoryAssignment()
        partitions[key].extend(assignment)
    return partitions


def _categorize_worker(args) -> Tuple[int, List[str], Optional[str]]:
    """Process pool entry point: returns category names, not records."""
    index, record, window, codes = args
    try:
        assignment = categorize_patient(record, window, codes)
    except PatientProcessingError as e:
        return index, [], str(e)
    return index, assignment.categories(), None


def _rebuild(record: PatientRecord, categories: Sequence[str]) -> CategoryAssignment:
    assignment = CategoryAssignment()
    for category in categories:
        assignment.add(category, record)
    return assignment


def categorize_population(
    records: Sequence[PatientRecord],
    window: MeasurementWindow,
    codes: CodeLists = CODE_LISTS,
    on_patient: Optional[Callable[[PatientRecord], None]] = None,
    n_workers: int = 1,
    show_progress: bool = False,
) -> Tuple[List[CategorizedPatient], List[FailedPatient]]:
    """Categorize each patient independently.

    A patient whose evaluation raises PatientProcessingError is logged and
    returned in the failure list; the rest of the population is unaffected.

    Args:
        records: Patient records
        window: Measurement period
        codes: Code lists
        on_patient: Optional per-patient hook
        n_workers: Worker processes (1 = evaluate in this process)
        show_progress: Show a tqdm progress bar

    Returns:
        (categorized patients in input order, failed patients)
    """
    outcomes: List[Optional[Tuple[List[str], Optional[str]]]] = [None] * len(records)

    if n_workers > 1 and len(records) > 1:
        args_list = [(i, record, window, codes) for i, record in enumerate(records)]
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = [executor.submit(_categorize_worker, args) for args in args_list]
            with tqdm(total=len(futures), desc="  Categorizing", unit="patient",
                      disable=not show_progress) as pbar:
                for future in as_completed(futures):
                    index, categories, error = future.result()
                    outcomes[index] = (categories, error)
                    pbar.update(1)
        if on_patient is not None:
            for record in records:
                on_patient(record)
    else:
        for i, record in enumerate(tqdm(records, desc="  Categorizing", unit="patient",
                                        disable=not show_progress)):
            try:
                assignment = categorize_patient(record, window, codes, on_patient=on_patient)
                outcomes[i] = (assignment.categories(), None)
            except PatientProcessingError as e:
                outcomes[i] = ([], str(e))

    categorized: List[CategorizedPatient] = []
    failed: List[FailedPatient] = []
    for record, (categories, error) in zip(records, outcomes):
        if error is not None:
            logger.warning(f"Skipping patient {record.label}: {error}")
            failed.append(FailedPatient(label=record.label, reason=error))
            continue
        categorized.append((record, _rebuild(record, categories)))

    return categorized, failed


def aggregate_population(
    records: Sequence[PatientRecord],
    window: Optional[MeasurementWindow] = None,
    codes: CodeLists = CODE_LISTS,
    on_patient: Optional[Callable[[PatientRecord], None]] = None,
    n_workers: int = 1,
    show_progress: bool = False,
) -> AggregatedBreakdown:
    """Categorize a population and build the demographic breakdown.

    Args:
        records: Patient records
        window: Measurement period (default: configured reporting year)
        codes: Code lists
        on_patient: Optional per-patient hook
        n_workers: Worker processes for categorization
        show_progress: Show a tqdm progress bar

    Returns:
        AggregatedBreakdown with per-dimension buckets and summary counts
    """
    window = window or MeasurementWindow.default()
    logger.info(f"Categorizing {len(records)} patients for {window.start} - {window.end}")

    categorized, failed = categorize_population(
        records, window, codes,
        on_patient=on_patient,
        n_workers=n_workers,
        show_progress=show_progress,
    )

    breakdown = AggregatedBreakdown(failed=len(failed), failed_patients=failed)
    for dimension in MEASURE_CONFIG.demographic_dimensions:
        partitions = partition_by(categorized, lambda r: demographic_value(r, dimension))
        setattr(breakdown, dimension, partitions)

    breakdown.eligible = sum(1 for _, a in categorized if a[DENOM])
    breakdown.properly_screened = sum(1 for _, a in categorized if a[NUMER])

    logger.info(
        f"  Eligible: {breakdown.eligible}, properly screened: {breakdown.properly_screened}, "
        f"failed: {breakdown.failed}"
    )
    return breakdown
