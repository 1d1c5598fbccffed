#!/usr/bin/env python
"""
Batch validation of level files.

Parses and validates every .dat file found under the given paths and
classifies each one. Writes structured output to validation_results/.

Usage:
    python scripts/validate_all.py levels/                  # every .dat under levels/
    python scripts/validate_all.py a.dat b.dat              # specific files
    python scripts/validate_all.py levels/ --checks structural referential
    python scripts/validate_all.py levels/ --threshold 2.0  # stricter balance check
    python scripts/validate_all.py levels/ --strict         # exit 1 if any file has errors
    python scripts/validate_all.py levels/ -v               # debug logging
"""

import argparse
import glob
import json
import logging
import os
import sys
import time

from mmdat.data_model import Severity
from mmdat.parser import parse
from mmdat.validate import ValidationConfig, count_by_severity, validate
from mmdat.validate.constants import ALL_CHECKS

logger = logging.getLogger("validate_all")

# ── Constants ────────────────────────────────────────────────────────────────

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_DIR = os.path.join(SCRIPT_DIR, "..")

OUTPUT_DIR = os.path.join(PROJECT_DIR, "validation_results")
LEVEL_EXTENSION = ".dat"

STATUS_RANK = {"clean": 0, "warnings": 1, "errors": 2, "parse_errors": 3, "read_error": 4}


# ── File discovery ───────────────────────────────────────────────────────────


def find_levels(paths):
    """Expand files and directories into a sorted list of level files."""
    found = []
    for path in paths:
        if os.path.isdir(path):
            pattern = os.path.join(path, "**", f"*{LEVEL_EXTENSION}")
            found.extend(glob.glob(pattern, recursive=True))
        else:
            found.append(path)
    return sorted(set(found))


# ── Classification ───────────────────────────────────────────────────────────


def _classify(parse_errors, issues):
    """Worst outcome for one file.

    Returns one of:
        'parse_errors' - the parser reported at least one error
        'errors'       - validation found a map-breaking problem
        'warnings'     - only warnings
        'clean'        - nothing above info level
    """
    if any(e.severity == Severity.ERROR for e in parse_errors):
        return "parse_errors"
    severities = {i.severity for i in issues} | {e.severity for e in parse_errors}
    if Severity.ERROR in severities:
        return "errors"
    if Severity.WARNING in severities:
        return "warnings"
    return "clean"


# ── Per-file validation ─────────────────────────────────────────────────────


def validate_level(path, config):
    """Parse and validate one file.

    Returns:
        dict with keys: status, parse_errors, issues, counts, timing_s
    """
    t0 = time.time()
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        logger.error("Cannot read %s: %s", path, e)
        return {"status": "read_error", "error": str(e), "parse_errors": [],
                "issues": [], "counts": {}, "timing_s": 0.0}

    doc, parse_errors = parse(text)
    issues = validate(doc, config)
    return {
        "status": _classify(parse_errors, issues),
        "parse_errors": [str(e) for e in parse_errors],
        "issues": [i.format() for i in issues],
        "counts": dict(count_by_severity(issues)),
        "timing_s": round(time.time() - t0, 4),
    }


# ── Output writers ───────────────────────────────────────────────────────────


def write_results(all_results, output_dir):
    """Write structured results to output_dir/.

    Creates:
        results.json              - aggregate stats and per-file summary
        per_file/{name}.txt       - human-readable diagnostics for files with any
    """
    os.makedirs(output_dir, exist_ok=True)

    summary = {"total_files": len(all_results)}
    for status in STATUS_RANK:
        summary[status] = sum(1 for r in all_results.values() if r["status"] == status)

    per_file = {
        path: {
            "status": result["status"],
            "timing_s": result["timing_s"],
            "counts": result["counts"],
            "parse_errors": len(result["parse_errors"]),
        }
        for path, result in all_results.items()
    }
    results_path = os.path.join(output_dir, "results.json")
    with open(results_path, "w") as f:
        json.dump({"summary": summary, "per_file": per_file}, f, indent=2)
    print(f"  Wrote {results_path}")

    detail_dir = os.path.join(output_dir, "per_file")
    os.makedirs(detail_dir, exist_ok=True)
    for path, result in all_results.items():
        if not (result["parse_errors"] or result["issues"] or result.get("error")):
            continue
        name = os.path.splitext(os.path.basename(path))[0]
        with open(os.path.join(detail_dir, f"{name}.txt"), "w") as f:
            f.write(f"Diagnostics for {path}\n")
            f.write("=" * 60 + "\n\n")
            if result.get("error"):
                f.write(f"- {result['error']}\n")
            for line in result["parse_errors"] + result["issues"]:
                f.write(f"- {line}\n")
    print(f"  Wrote per-file diagnostics to {detail_dir}/")
    return summary


def print_summary(summary):
    print()
    print("=" * 60)
    print(f"  {summary['total_files']} file(s): " + ", ".join(
        f"{summary[status]} {status}" for status in STATUS_RANK if summary[status]))
    print("=" * 60)


# ── Main ─────────────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(description="Batch parse + validate level files")
    parser.add_argument(
        "paths", nargs="+",
        help="Level files or directories to search for *.dat",
    )
    parser.add_argument(
        "--checks", nargs="+", choices=ALL_CHECKS, default=list(ALL_CHECKS),
        help="Check families to run (default: all)",
    )
    parser.add_argument(
        "--threshold", type=float, default=None,
        help="Balance threshold (default: 1.5)",
    )
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help=f"Output directory (default: {OUTPUT_DIR})",
    )
    parser.add_argument(
        "--strict", action="store_true",
        help="Exit with status 1 if any file has errors",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Debug logging",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    output_dir = args.output_dir or OUTPUT_DIR

    overrides = {} if args.threshold is None else {"balance_threshold": args.threshold}
    config = ValidationConfig(checks=args.checks, **overrides)

    levels = find_levels(args.paths)
    if not levels:
        print(f"ERROR: no {LEVEL_EXTENSION} files found in {args.paths}")
        sys.exit(1)

    logger.info("Validating %d file(s) with checks %s", len(levels), config.checks)
    all_results = {}
    for path in levels:
        result = validate_level(path, config)
        all_results[path] = result
        logger.info("%s: %s (%s)", path, result["status"], result["counts"])

    print()
    print("Writing results...")
    summary = write_results(all_results, output_dir)
    print_summary(summary)

    if args.strict and any(STATUS_RANK[r["status"]] >= STATUS_RANK["errors"]
                           for r in all_results.values()):
        sys.exit(1)


if __name__ == "__main__":
    main()
