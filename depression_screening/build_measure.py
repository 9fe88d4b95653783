"""Main pipeline for computing the adolescent depression screening measure."""
from pathlib import Path
from typing import Iterable, Optional, TextIO, Union
import logging

from depression_screening.config.measure_config import (
    CODE_LISTS,
    DEFAULT_INPUT_FILE,
    OUTPUT_DIR,
    ensure_directories,
    load_code_lists,
)
from depression_screening.exporters.report_exporter import REPORT_FORMATS, export_report
from depression_screening.exporters.xml_exporter import export_to_xml
from depression_screening.extractors.patient_loader import load_patient_records
from depression_screening.processing.aggregator import aggregate_population
from depression_screening.processing.errors import MeasureError
from depression_screening.processing.records import AggregatedBreakdown, MeasurementWindow

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("xml",) + REPORT_FORMATS
XML_FILENAME = "breakdown_results.xml"


def run_pipeline(
    data_file: Union[str, Path, TextIO],
    output_path: Union[str, Path],
    window: Optional[MeasurementWindow] = None,
    code_lists_path: Optional[Union[str, Path]] = None,
    formats: Iterable[str] = ("xml", "csv"),
    n_workers: int = 1,
    show_progress: bool = False,
) -> AggregatedBreakdown:
    """Load records, categorize the population and write results.

    Args:
        data_file: Patient records JSON (path or file handle)
        output_path: Output directory
        window: Measurement period (default: configured reporting year)
        code_lists_path: YAML code lists (default: bundled lists)
        formats: Any of "xml", "csv", "parquet"
        n_workers: Worker processes for categorization
        show_progress: Show a progress bar while categorizing

    Returns:
        AggregatedBreakdown
    """
    formats = list(formats)
    unknown = [fmt for fmt in formats if fmt not in OUTPUT_FORMATS]
    if unknown:
        raise ValueError(f"Unsupported output format(s): {unknown}")

    window = window or MeasurementWindow.default()
    codes = load_code_lists(code_lists_path) if code_lists_path else CODE_LISTS
    output_path = ensure_directories(Path(output_path))

    records = load_patient_records(data_file)

    breakdown = aggregate_population(
        records, window, codes,
        n_workers=n_workers,
        show_progress=show_progress,
    )

    if "xml" in formats:
        export_to_xml(breakdown, output_path / XML_FILENAME, window)
    for fmt in REPORT_FORMATS:
        if fmt in formats:
            export_report(breakdown, output_path, fmt)

    logger.info("=" * 60)
    logger.info(f"Patients loaded:           {len(records)}")
    logger.info(f"Eligible (denominator):    {breakdown.eligible}")
    logger.info(f"Properly screened:         {breakdown.properly_screened}")
    if breakdown.compliance_rate is not None:
        logger.info(f"Compliance rate:           {breakdown.compliance_rate:.1%}")
    logger.info(f"Failed to process:         {breakdown.failed}")
    logger.info("=" * 60)

    return breakdown


def main(argv=None):
    """Main entry point for CLI."""
    import argparse

    parser = argparse.ArgumentParser(description="Compute the adolescent depression screening measure")
    parser.add_argument("--input", type=Path, default=DEFAULT_INPUT_FILE, help="Patient records JSON")
    parser.add_argument("--output", type=Path, default=OUTPUT_DIR, help="Output directory")
    parser.add_argument("--start", type=str, default=None, help="Measurement period start (e.g. 2022-01-01T00:00:00Z)")
    parser.add_argument("--end", type=str, default=None, help="Measurement period end (e.g. 2022-12-31T23:59:59Z)")
    parser.add_argument("--codes", type=Path, default=None, help="YAML code lists overriding the bundled ones")
    parser.add_argument("--format", dest="formats", action="append", choices=OUTPUT_FORMATS,
                        help="Output format, repeatable (default: xml and csv)")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes for categorization")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("--verbose", action="store_true", help="Log each patient")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if (args.start is None) != (args.end is None):
        parser.error("--start and --end must be given together")

    try:
        window = MeasurementWindow.from_strings(args.start, args.end) if args.start else None
        breakdown = run_pipeline(
            data_file=args.input,
            output_path=args.output,
            window=window,
            code_lists_path=args.codes,
            formats=args.formats or ("xml", "csv"),
            n_workers=args.workers,
            show_progress=args.progress,
        )
    except (MeasureError, ValueError, OSError) as e:
        logger.error(f"Measure computation failed: {e}")
        return 1

    logger.info(f"Results successfully exported to {args.output}")
    if breakdown.failed:
        logger.warning(f"{breakdown.failed} patient(s) could not be processed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
