from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Union

from archetype_finder.schemas.questionnaire import Question


class ResponseSubmit(BaseModel):
    question_id: str = Field(min_length=1)
    value: Union[str, int, float, list[str]]  # shape depends on the question format
    timestamp: Optional[datetime] = None


class ScoreRequest(BaseModel):
    responses: list[ResponseSubmit]


class ParticipantSubmission(BaseModel):
    participant: str = Field(min_length=1)
    responses: list[ResponseSubmit]


class ExportRequest(BaseModel):
    participants: list[ParticipantSubmission] = Field(min_length=1)


class CatalogueResponse(BaseModel):
    version: str
    questions: list[Question]
    assets: dict[str, str] = Field(default_factory=dict)  # asset key -> image URL


class ArchetypeProfileResponse(BaseModel):
    name: str
    description: str
    traits: list[str]
    color: str
