from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from archetype_finder.schemas.questionnaire import Archetype, Category


class ArchetypeScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    archetype: Archetype
    score: float = Field(ge=0)
    percentage: float = Field(ge=0, le=100)


class SectionScores(BaseModel):
    """Per-category point subtotals; used for tie-breaking, not displayed as percentages."""

    broad: dict[Archetype, float]
    clarifier: dict[Archetype, float]
    validator: dict[Archetype, float]

    def for_category(self, category: Category) -> dict[Archetype, float]:
        return getattr(self, category.section_key)


class AssessmentResult(BaseModel):
    primary_archetype: ArchetypeScore
    secondary_archetype: ArchetypeScore
    all_scores: list[ArchetypeScore]
    confidence: int = Field(ge=0, le=100)
    section_scores: SectionScores
    completed_at: datetime

    def score_for(self, archetype: Archetype | str) -> ArchetypeScore:
        wanted = Archetype(archetype)
        for entry in self.all_scores:
            if entry.archetype is wanted:
                return entry
        raise KeyError(wanted.value)
