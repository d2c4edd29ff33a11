"""Command-line interface for bulletin extraction and CSV export.

Provides subcommands for extracting a single bulletin to JSON and for
processing a folder of bulletins into one CSV of shift entries.
"""

import argparse
import asyncio
import csv
import json
import sys
import time
from pathlib import Path

from bulletin_ocr.extraction.models import ExtractionResult
from bulletin_ocr.extraction.pipeline import BulletinExtractor
from bulletin_ocr.extraction.service_codes import lookup
from bulletin_ocr.utils.config import load_config
from bulletin_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.pdf", "*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif")
_CSV_COLUMNS = [
    "filename",
    "status",
    "extraction_method",
    "accuracy",
    "agent",
    "numero_cp",
    "date",
    "date_display",
    "day_of_week",
    "service_code",
    "service_label",
    "service",
    "poste",
    "horaires",
    "complement",
    "is_night",
    "is_valid",
    "has_error",
    "error_message",
    "processing_time_s",
    "error",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported bulletin files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of document file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def result_to_rows(filename: str, result: ExtractionResult) -> list[dict[str, object]]:
    """Flatten an extraction result into one CSV row per shift entry.

    A result without entries still yields one row so the file shows up
    in the export.
    """
    base: dict[str, object] = {
        "filename": filename,
        "status": "success",
        "extraction_method": result.extraction_method.value,
        "accuracy": result.accuracy,
        "agent": result.metadata.agent,
        "numero_cp": result.metadata.numero_cp,
        "error": "; ".join(result.errors) or None,
    }
    if not result.entries:
        return [base]

    rows: list[dict[str, object]] = []
    for entry in result.entries:
        known = lookup(entry.service_code)
        rows.append(
            {
                **base,
                "date": entry.date,
                "date_display": entry.date_display,
                "day_of_week": entry.day_of_week,
                "service_code": entry.service_code,
                "service_label": entry.service_label,
                "service": known.service if known else None,
                "poste": known.poste if known else None,
                "horaires": " ".join(
                    f"{h.type.value}:{h.debut}-{h.fin}" for h in entry.horaires
                ),
                "complement": entry.complement,
                "is_night": entry.is_night,
                "is_valid": entry.is_valid,
                "has_error": entry.has_error,
                "error_message": entry.error_message,
            }
        )
    return rows


async def _process_files(
    files: list[Path], extractor: BulletinExtractor, verbose: bool
) -> tuple[list[dict[str, object]], int, int]:
    rows: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = await extractor.extract(file_path, file_path.name)
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            rows.append({"filename": file_path.name, "status": "failed", "error": str(exc)})
            failed += 1
            continue

        elapsed = round(time.time() - start_time, 2)
        for row in result_to_rows(file_path.name, result):
            row["processing_time_s"] = elapsed
            rows.append(row)
        successful += 1

    return rows, successful, failed


def process_folder(
    input_dir: Path,
    output_csv: Path,
    verbose: bool = False,
    extractor: BulletinExtractor | None = None,
) -> dict[str, int]:
    """Extract every bulletin in a folder and export entries to CSV.

    Args:
        input_dir: Directory containing bulletin files.
        output_csv: Path for the output CSV file.
        verbose: Whether to print per-file progress.
        extractor: Pipeline to use; built from configuration if omitted.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))

    async def _run() -> tuple[list[dict[str, object]], int, int]:
        async with extractor or BulletinExtractor.from_config(load_config()) as pipeline:
            return await _process_files(files, pipeline, verbose)

    rows, successful, failed = asyncio.run(_run())

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction rows to a CSV file.

    Args:
        rows: List of row dictionaries.
        output_path: Path for the output CSV file.
    """
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Extraction Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(
    file_path: Path, extractor: BulletinExtractor | None = None
) -> dict[str, object]:
    """Extract one bulletin and return a JSON-ready dictionary.

    Args:
        file_path: Path to the bulletin.
        extractor: Pipeline to use; built from configuration if omitted.

    Returns:
        Dictionary with the filename, ``needsReview`` and the result fields.
    """

    async def _run() -> ExtractionResult:
        async with extractor or BulletinExtractor.from_config(load_config()) as pipeline:
            return await pipeline.extract(file_path, file_path.name)

    result = asyncio.run(_run())
    return {
        "filename": file_path.name,
        "needsReview": result.needs_review,
        **result.to_dict(),
    }


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="SNCF bulletin extractor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of bulletins")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with bulletins")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("entries.csv"),
        help="Output CSV file (default: entries.csv)",
    )
    batch_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    single_parser = subparsers.add_parser("extract", help="Process a single bulletin")
    single_parser.add_argument("file", type=Path, help="Bulletin file to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    setup_logging(load_config().log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.verbose)
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = extract_single(args.file)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
