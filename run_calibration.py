#!/usr/bin/env python3
"""
run_calibration.py — Benchmark the detector against a labeled corpus.

Usage:
    python run_calibration.py                              # Bundled sample corpus
    python run_calibration.py --corpus path/posts.jsonl    # Custom corpus file or directory
    python run_calibration.py --threshold 0.7              # Override display threshold
    python run_calibration.py --json                       # Output JSON only (for CI)
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from calibration.benchmark import run_benchmark, format_report, save_report
from calibration.corpus import CorpusError, load_corpus
from tweetdetect.logging import setup_logging

DEFAULT_CORPUS = Path(__file__).parent / "calibration" / "corpus"
MIN_F1 = 0.5


def main(argv=None):
    parser = argparse.ArgumentParser(description="tweetdetect Calibration Runner")
    parser.add_argument(
        "--corpus",
        default=str(DEFAULT_CORPUS),
        help="Corpus .jsonl file or directory (default: calibration/corpus)",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Display threshold (default: TWEETDETECT_CONFIDENCE_THRESHOLD)",
    )
    parser.add_argument(
        "--output-dir",
        default="calibration/reports",
        help="Directory for output reports (default: calibration/reports)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON only (for CI/automation)",
    )
    args = parser.parse_args(argv)
    if not args.json:
        setup_logging()

    corpus = Path(args.corpus)
    if not corpus.exists():
        print(f"Error: Corpus not found: {corpus}")
        sys.exit(1)

    try:
        posts = load_corpus(corpus)
    except CorpusError as e:
        print(f"Error: {e}")
        sys.exit(1)
    if not posts:
        print(f"Error: No posts found in {corpus}")
        sys.exit(1)

    result = run_benchmark(posts, threshold=args.threshold)

    if args.json:
        print(json.dumps(result.as_dict(), indent=2))
    else:
        print(f"Loaded {len(posts)} posts from {corpus}")
        print(format_report(result))
        report_path, json_path = save_report(result, args.output_dir)
        print(f"\nReport saved to: {report_path}")
        print(f"JSON saved to:   {json_path}")

    # Exit code for CI
    if result.at_threshold.f1 < MIN_F1:
        if not args.json:
            print(f"\nF1 below {MIN_F1} at threshold {result.threshold:.2f}, calibration failing")
        sys.exit(2)

    sys.exit(0)


if __name__ == "__main__":
    main()
