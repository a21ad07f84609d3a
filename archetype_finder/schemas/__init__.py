"""
Archetype Finder — schema registry.

Re-exports the catalogue, response and result types so call-sites can
import them from one place.
"""

from archetype_finder.schemas.questionnaire import (
    ARCHETYPES,
    Answer,
    Archetype,
    ArchetypeWeight,
    Category,
    ChoiceAnswer,
    Question,
    RankingAnswer,
    Response,
    ResponseFormat,
    SelectionAnswer,
    SliderAnswer,
)
from archetype_finder.schemas.result import ArchetypeScore, AssessmentResult, SectionScores

__all__ = [
    "ARCHETYPES",
    "Answer",
    "Archetype",
    "ArchetypeWeight",
    "Category",
    "ChoiceAnswer",
    "Question",
    "RankingAnswer",
    "Response",
    "ResponseFormat",
    "SelectionAnswer",
    "SliderAnswer",
    "ArchetypeScore",
    "AssessmentResult",
    "SectionScores",
]
