#!/usr/bin/env python3
"""
Archetype Finder — Question Bank Validator

Loads a question bank the same way the service does and reports what was
admitted: per-section question counts, the catalogue version, and any
options that carry no archetype mapping (usually an abbreviated key that
could not be matched).

Usage examples
--------------
  # Validate the packaged bank
  python scripts/validate_bank.py

  # Validate a replacement bank, failing on unmapped options too
  python scripts/validate_bank.py --path banks/v2.csv --strict

Exit status is 1 when rows were skipped (or, with ``--strict``, when any
non-slider option is unmapped).
"""

from __future__ import annotations

import argparse
import json
import sys

from archetype_finder.schemas.questionnaire import Category, ResponseFormat
from archetype_finder.services.catalogue_service import CatalogueService


def _unmapped_options(catalogue) -> dict[str, list[str]]:
    gaps: dict[str, list[str]] = {}
    for question in catalogue:
        if question.response_format is ResponseFormat.SLIDER:
            if not question.answer_mapping:
                gaps[question.id] = ["<scale>"]
            continue
        missing = [o for o in question.options if o not in question.answer_mapping]
        if missing:
            gaps[question.id] = missing
    return gaps


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Validate an archetype question bank.",
    )
    parser.add_argument(
        "--path",
        default=None,
        help="Bank file to validate (default: configured or packaged bank).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Also fail when options are left without an archetype mapping.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON.",
    )
    args = parser.parse_args()

    catalogue = CatalogueService().load(args.path)
    gaps = _unmapped_options(catalogue)
    summary = {
        "version": catalogue.version,
        "questions": len(catalogue),
        "skipped_rows": catalogue.skipped_rows,
        "sections": {c.value: len(catalogue.by_category(c)) for c in Category},
        "unmapped_options": gaps,
    }

    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print(f"Catalogue {summary['version']}: {summary['questions']} questions")
        for section, count in summary["sections"].items():
            print(f"  {section:<10} {count:>3}")
        if catalogue.skipped_rows:
            print(f"  Skipped rows: {catalogue.skipped_rows}")
        for qid, options in gaps.items():
            print(f"  {qid}: unmapped {', '.join(options)}")

    failed = catalogue.skipped_rows > 0 or (args.strict and bool(gaps))
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
