"""
Archetype Finder — Assessment API

Endpoints that score a participant's completed response batch against the
active catalogue, render the participant report, and export a CSV of
results for administrators.  Responses naming unknown questions are
ignored; answers whose shape does not fit their question are rejected
with 422.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi import Response as HTTPResponse

from archetype_finder.schemas.assessment import ExportRequest, ResponseSubmit, ScoreRequest
from archetype_finder.schemas.questionnaire import Response
from archetype_finder.schemas.result import AssessmentResult
from archetype_finder.services.catalogue_service import QuestionCatalogue, get_catalogue
from archetype_finder.services.report_service import build_report, export_results_csv
from archetype_finder.services.scoring_service import ScoringService

logger = structlog.get_logger("archetype_finder.api.assessment")

router = APIRouter()

# ── Service singleton (lazy, constructed on first use) ────────────────────────

_scoring_service: ScoringService | None = None


def _get_scoring_service() -> ScoringService:
    global _scoring_service
    if _scoring_service is None:
        _scoring_service = ScoringService()
    return _scoring_service


def _build_responses(
    submissions: list[ResponseSubmit],
    catalogue: QuestionCatalogue,
    log,
) -> list[Response]:
    responses: list[Response] = []
    for item in submissions:
        question = catalogue.get(item.question_id)
        if question is None:
            log.info("response_ignored", question_id=item.question_id, reason="unknown_question")
            continue
        try:
            responses.append(Response.for_question(question, item.value, item.timestamp))
        except ValueError as exc:
            log.warning("response_rejected", question_id=item.question_id, error=str(exc))
            raise HTTPException(
                status_code=422,
                detail=str(exc),
            ) from exc
    return responses


def _score(
    submissions: list[ResponseSubmit],
    catalogue: QuestionCatalogue,
    log,
) -> AssessmentResult:
    responses = _build_responses(submissions, catalogue, log)
    return _get_scoring_service().score(responses, list(catalogue))


# ──────────────────────────────────────────────────────────────────────────────
# POST /score — Score a completed response batch
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/score",
    response_model=AssessmentResult,
    summary="Score a completed assessment",
)
async def score_assessment(
    payload: ScoreRequest,
    catalogue: QuestionCatalogue = Depends(get_catalogue),
) -> AssessmentResult:
    """Score every submitted response and return the archetype profile.

    The caller is responsible for persisting the returned result.
    """
    log = logger.bind(catalogue_version=catalogue.version, n_responses=len(payload.responses))
    log.info("score_assessment_start")
    return _score(payload.responses, catalogue, log)


# ──────────────────────────────────────────────────────────────────────────────
# POST /report — Score and render the participant report
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/report",
    summary="Score an assessment and build the participant report",
)
async def report_assessment(
    payload: ScoreRequest,
    catalogue: QuestionCatalogue = Depends(get_catalogue),
) -> dict:
    log = logger.bind(catalogue_version=catalogue.version, n_responses=len(payload.responses))
    log.info("report_assessment_start")
    return build_report(_score(payload.responses, catalogue, log))


# ──────────────────────────────────────────────────────────────────────────────
# POST /export — CSV of results for several participants
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/export",
    summary="Export scored results as CSV",
    response_class=HTTPResponse,
)
async def export_assessments(
    payload: ExportRequest,
    catalogue: QuestionCatalogue = Depends(get_catalogue),
) -> HTTPResponse:
    """Score each participant's batch and return one CSV row per participant."""
    log = logger.bind(catalogue_version=catalogue.version, participants=len(payload.participants))
    log.info("export_start")

    rows = [
        (entry.participant, _score(entry.responses, catalogue, log.bind(participant=entry.participant)))
        for entry in payload.participants
    ]
    filename = f"archetype-results-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return HTTPResponse(
        content=export_results_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
