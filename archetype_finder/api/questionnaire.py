"""
Archetype Finder — Questionnaire API

Read-only endpoints exposing the active question catalogue and the
archetype reference profiles shown alongside results.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from archetype_finder.data.archetypes import all_profiles
from archetype_finder.data.image_assets import image_url
from archetype_finder.schemas.assessment import ArchetypeProfileResponse, CatalogueResponse
from archetype_finder.services.catalogue_service import QuestionCatalogue, get_catalogue

logger = structlog.get_logger("archetype_finder.api.questionnaire")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# GET /questions — Return the active catalogue in section order
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/questions",
    response_model=CatalogueResponse,
    summary="Get the active question catalogue",
)
async def get_questions(
    catalogue: QuestionCatalogue = Depends(get_catalogue),
) -> CatalogueResponse:
    """Return every question, Broad first, then Clarifier, then Validator.

    The ``version`` field identifies the bank the questions were loaded
    from; clients should store it with collected responses.  ``assets``
    resolves every image key referenced by the questions to a URL.
    """
    questions = catalogue.ordered()
    assets = {key: image_url(key) for q in questions for key in q.asset_keys}
    logger.info("get_questions", version=catalogue.version, count=len(questions), assets=len(assets))
    return CatalogueResponse(version=catalogue.version, questions=questions, assets=assets)


# ──────────────────────────────────────────────────────────────────────────────
# GET /archetypes — Return the twelve reference profiles
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/archetypes",
    response_model=list[ArchetypeProfileResponse],
    summary="Get archetype reference profiles",
)
async def get_archetypes() -> list[ArchetypeProfileResponse]:
    return [
        ArchetypeProfileResponse(
            name=p.archetype.value,
            description=p.description,
            traits=list(p.traits),
            color=p.color,
        )
        for p in all_profiles()
    ]
