#!/usr/bin/env python3
"""
compress_pdf.py - Target-size PDF compression CLI.

Every page is rasterized and re-encoded as JPEG; resolution and quality
are chosen from the requested output size.

Usage:
    python compress_pdf.py input.pdf -t 2.5 -o output.pdf
    python compress_pdf.py input.pdf --ratio 0.5 --analyze
    python compress_pdf.py *.pdf --output-dir ./compressed/
"""

import argparse
import asyncio
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Add parent to path when running as script
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent))

from smart_compressor.analysis import AnalysisStatus, analyze_document, get_summarizer
from smart_compressor.config import Settings
from smart_compressor.errors import CompressionError
from smart_compressor.pipeline import DEFAULT_TARGET_RATIO, compress_file
from smart_compressor.planner import mb_to_bytes


def setup_logging(verbose: bool = False, level_name: str = "INFO"):
    """Configure logging."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Compress a PDF towards a target size by rasterizing its pages.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python compress_pdf.py report.pdf -t 2 -o report_small.pdf
  python compress_pdf.py report.pdf --ratio 0.5
  python compress_pdf.py *.pdf --output-dir ./out/

The output PDF will be:
  - Fully rasterized (no vectors, fonts or selectable text)
  - One JPEG per page, A4 width, original aspect ratio
  - Close to the target size, possibly above it for very small targets
"""
    )

    parser.add_argument(
        "input",
        nargs="+",
        type=Path,
        help="Input PDF file(s)"
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-o", "--output",
        type=Path,
        help="Output file (single input only)"
    )
    output.add_argument(
        "--output-dir",
        type=Path,
        help="Output directory (for multiple files)"
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "-t", "--target-mb",
        type=float,
        help="Target size in MB (per file)"
    )
    target.add_argument(
        "-r", "--ratio",
        type=float,
        default=DEFAULT_TARGET_RATIO,
        help=f"Target size as a fraction of the input size (default: {DEFAULT_TARGET_RATIO})"
    )

    parser.add_argument(
        "--analyze",
        action="store_true",
        help="Also summarize the first pages (needs SUMMARY_API_KEY)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    return parser.parse_args(argv)


def print_progress(percent: int):
    """Print progress bar."""
    width = 40
    filled = int(width * percent / 100)
    bar = "=" * filled + "-" * (width - filled)
    print(f"\r[{bar}] {percent:3d}%", end="", file=sys.stderr)
    if percent >= 100:
        print(file=sys.stderr)


def target_for(input_path: Path, args) -> float:
    if args.target_mb is not None:
        return mb_to_bytes(args.target_mb)
    return input_path.stat().st_size * args.ratio


def print_analysis(name: str, result):
    if result.status == AnalysisStatus.SKIPPED:
        print(f"Analysis ({name}): skipped, no API key configured")
    elif result.status == AnalysisStatus.ERROR:
        print(f"Analysis ({name}): failed ({result.error})")
    else:
        print(f"Analysis ({name}):\n{result.text}")


def process_file(input_path: Path, output_path: Path, args, summarizer, executor) -> bool:
    """Compress one file, running the optional analysis alongside."""
    analysis_future = None
    success = False
    try:
        if args.analyze:
            analysis_future = executor.submit(
                asyncio.run, analyze_document(input_path.read_bytes(), summarizer)
            )

        result = compress_file(
            input_path,
            output_path,
            target_size_bytes=target_for(input_path, args),
            on_progress=print_progress
        )
        print(f"\n{result.summary()}")
        success = True
    except (CompressionError, OSError) as e:
        print(file=sys.stderr)
        print(f"Error: {input_path.name}: {e}", file=sys.stderr)

    if analysis_future is not None:
        print_analysis(input_path.name, analysis_future.result())

    return success


def main(argv=None):
    args = parse_args(argv)
    settings = Settings.from_env()
    setup_logging(args.verbose, settings.log_level)

    if args.target_mb is not None and args.target_mb <= 0:
        print("Error: --target-mb must be positive", file=sys.stderr)
        sys.exit(1)
    if args.ratio <= 0:
        print("Error: --ratio must be positive", file=sys.stderr)
        sys.exit(1)

    # Validate inputs
    valid_inputs = []
    for p in args.input:
        if not p.exists():
            print(f"Error: File not found: {p}", file=sys.stderr)
            continue
        if p.suffix.lower() != ".pdf":
            print(f"Warning: Skipping non-PDF: {p}", file=sys.stderr)
            continue
        valid_inputs.append(p)

    if not valid_inputs:
        print("Error: No valid PDF files", file=sys.stderr)
        sys.exit(1)

    # Determine output
    if len(valid_inputs) > 1:
        if args.output:
            print("Error: Use --output-dir for multiple files", file=sys.stderr)
            sys.exit(1)
        if not args.output_dir:
            args.output_dir = Path(".")

    summarizer = get_summarizer(settings) if args.analyze else None

    with ThreadPoolExecutor(max_workers=1) as executor:
        # Process single file
        if len(valid_inputs) == 1:
            input_path = valid_inputs[0]
            if args.output:
                output_path = args.output
            elif args.output_dir:
                args.output_dir.mkdir(parents=True, exist_ok=True)
                output_path = args.output_dir / f"{input_path.stem}_compressed.pdf"
            else:
                output_path = input_path.with_stem(input_path.stem + "_compressed")

            ok = process_file(input_path, output_path, args, summarizer, executor)
            sys.exit(0 if ok else 1)

        # Batch processing
        args.output_dir.mkdir(parents=True, exist_ok=True)

        total_in = 0
        total_out = 0
        successes = 0

        for i, input_path in enumerate(valid_inputs):
            output_path = args.output_dir / f"{input_path.stem}_compressed.pdf"
            print(f"\n[{i+1}/{len(valid_inputs)}] {input_path.name}")

            total_in += input_path.stat().st_size
            if process_file(input_path, output_path, args, summarizer, executor):
                total_out += output_path.stat().st_size
                successes += 1

        print(f"\n{'='*50}")
        print(f"Batch complete: {successes}/{len(valid_inputs)} files")
        print(f"Total: {total_in:,} -> {total_out:,} bytes")
        if total_in > 0:
            print(f"Reduction: {(1 - total_out/total_in)*100:.1f}%")

        sys.exit(0 if successes == len(valid_inputs) else 1)


if __name__ == "__main__":
    main()
