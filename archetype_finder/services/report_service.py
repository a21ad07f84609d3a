"""
Archetype Finder — Result Reports and Export

Two outputs built from scored ``AssessmentResult`` objects:

  participant report   dict for the results page: primary/secondary profile
                       (description, traits, colour), the full distribution,
                       confidence and section subtotals
  CSV export           one row per participant for administrators, with a
                       percentage column per archetype in the stable order
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from typing import Any

import structlog

from archetype_finder.data.archetypes import get_profile
from archetype_finder.schemas.questionnaire import ARCHETYPES, Category
from archetype_finder.schemas.result import ArchetypeScore, AssessmentResult

logger = structlog.get_logger("archetype_finder.report_service")

EXPORT_FIELDS: tuple[str, ...] = (
    "participant",
    "completed_at",
    "primary_archetype",
    "primary_percentage",
    "secondary_archetype",
    "secondary_percentage",
    "confidence",
    *(f"pct_{a.value.lower()}" for a in ARCHETYPES),
)


def _describe(score: ArchetypeScore) -> dict[str, Any]:
    profile = get_profile(score.archetype)
    return {
        "name": score.archetype.value,
        "score": score.score,
        "percentage": score.percentage,
        "description": profile.description,
        "traits": list(profile.traits),
        "color": profile.color,
    }


def build_report(result: AssessmentResult) -> dict[str, Any]:
    """Compile the participant-facing report for one result."""
    report = {
        "primary": _describe(result.primary_archetype),
        "secondary": _describe(result.secondary_archetype),
        "distribution": [
            {
                "name": s.archetype.value,
                "percentage": s.percentage,
                "color": get_profile(s.archetype).color,
            }
            for s in result.all_scores
        ],
        "confidence": result.confidence,
        "section_subtotals": {
            category.section_key: {
                a.value: points
                for a, points in result.section_scores.for_category(category).items()
            }
            for category in Category
        },
        "completed_at": result.completed_at.isoformat(),
    }
    logger.info(
        "report_built",
        primary=report["primary"]["name"],
        confidence=result.confidence,
    )
    return report


def _export_row(participant: str, result: AssessmentResult) -> dict[str, Any]:
    row: dict[str, Any] = {
        "participant": participant,
        "completed_at": result.completed_at.isoformat(),
        "primary_archetype": result.primary_archetype.archetype.value,
        "primary_percentage": result.primary_archetype.percentage,
        "secondary_archetype": result.secondary_archetype.archetype.value,
        "secondary_percentage": result.secondary_archetype.percentage,
        "confidence": result.confidence,
    }
    for entry in result.all_scores:
        row[f"pct_{entry.archetype.value.lower()}"] = entry.percentage
    return row


def export_results_csv(rows: Iterable[tuple[str, AssessmentResult]]) -> str:
    """Render ``(participant, result)`` pairs as CSV with a fixed header."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    count = 0
    for participant, result in rows:
        writer.writerow(_export_row(participant, result))
        count += 1
    logger.info("results_exported", rows=count)
    return buf.getvalue()
