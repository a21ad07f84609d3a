"""
Archetype Finder — Main API Router

Aggregates all sub-routers under a single prefix so that
``archetype_finder.main`` can mount the entire API surface with one
``include_router`` call.
"""

from fastapi import APIRouter

from archetype_finder.api import assessment, questionnaire

router = APIRouter()

router.include_router(questionnaire.router, tags=["Questionnaire"])
router.include_router(assessment.router, prefix="/assessments", tags=["Assessments"])
