"""
Archetype Finder — Question catalogue and response types.

Questions are immutable catalogue records validated at construction.  A
response carries a tagged answer whose kind is fixed by the format of the
question it answers; ``Response.for_question`` builds and checks it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Archetype(str, Enum):
    HERO = "Hero"
    MAGICIAN = "Magician"
    OUTLAW = "Outlaw"
    LOVER = "Lover"
    JESTER = "Jester"
    EVERYMAN = "Everyman"
    CAREGIVER = "Caregiver"
    RULER = "Ruler"
    CREATOR = "Creator"
    INNOCENT = "Innocent"
    SAGE = "Sage"
    EXPLORER = "Explorer"


# Stable order used for initialisation and for breaking sort ties.
ARCHETYPES: tuple[Archetype, ...] = tuple(Archetype)

AnswerKind = Literal["choice", "selection", "ranking", "slider"]


class ResponseFormat(str, Enum):
    FORCED_CHOICE = "Forced Choice"
    WORD_CHOICE = "Word Choice"
    IMAGE_CHOICE = "Image Choice"
    WORD_CHOICE_MULTI = "Word Choice (Multi)"
    RANKING = "Ranking"
    SLIDER = "Slider"
    SCENARIO_DECISION = "Scenario Decision"
    STORY_COMPLETION = "Story Completion"

    @property
    def answer_kind(self) -> AnswerKind:
        if self is ResponseFormat.SLIDER:
            return "slider"
        if self is ResponseFormat.RANKING:
            return "ranking"
        if self is ResponseFormat.WORD_CHOICE_MULTI:
            return "selection"
        return "choice"


class Category(str, Enum):
    BROAD = "Broad"
    CLARIFIER = "Clarifier"
    VALIDATOR = "Validator"

    @property
    def section_key(self) -> str:
        return self.value.lower()


SLIDER_MIN: int = 1
SLIDER_MAX: int = 7
SLIDER_OPTIONS: tuple[str, ...] = tuple(str(p) for p in range(SLIDER_MIN, SLIDER_MAX + 1))
# Slider mappings are stored under the top of the scale; every entry applies
# to whichever position is chosen.
SLIDER_MAPPING_KEY: str = SLIDER_OPTIONS[-1]
DEFAULT_MAX_SELECTIONS: int = 2


class ArchetypeWeight(BaseModel):
    model_config = ConfigDict(frozen=True)

    archetype: Archetype
    weight: int = Field(default=1, ge=1)


class Question(BaseModel):
    """A single catalogue item.

    ``answer_mapping`` keys must be drawn from ``options``; slider questions
    always carry the 1..7 domain as their options and apply every mapped
    weight uniformly across the scale.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    text: str = ""
    response_format: ResponseFormat
    category: Category
    options: tuple[str, ...] = ()
    answer_mapping: dict[str, tuple[ArchetypeWeight, ...]] = Field(default_factory=dict)
    max_selections: Optional[int] = Field(default=None, ge=1)
    overlap_group: Optional[str] = None
    asset_keys: tuple[str, ...] = ()
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _fill_format_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        try:
            fmt = ResponseFormat(data.get("response_format"))
        except (TypeError, ValueError):
            return data  # field validation reports the bad format
        data = dict(data)
        if fmt is ResponseFormat.SLIDER and not data.get("options"):
            data["options"] = SLIDER_OPTIONS
        if fmt is ResponseFormat.WORD_CHOICE_MULTI and data.get("max_selections") is None:
            data["max_selections"] = DEFAULT_MAX_SELECTIONS
        return data

    @model_validator(mode="after")
    def _check_mapping_keys(self) -> "Question":
        if self.response_format is ResponseFormat.SLIDER and self.options != SLIDER_OPTIONS:
            raise ValueError(
                f"Slider question {self.id} must use the {SLIDER_MIN}..{SLIDER_MAX} domain"
            )
        unknown = [key for key in self.answer_mapping if key not in self.options]
        if unknown:
            raise ValueError(
                f"Question {self.id} maps answers that are not options: {unknown}"
            )
        return self

    @property
    def answer_kind(self) -> AnswerKind:
        return self.response_format.answer_kind


# ── Answers ──────────────────────────────────────────────────────────────────


class ChoiceAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["choice"] = "choice"
    option: str

    @property
    def raw(self) -> str:
        return self.option


class SelectionAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["selection"] = "selection"
    options: tuple[str, ...]

    @property
    def raw(self) -> list[str]:
        return list(self.options)


class RankingAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["ranking"] = "ranking"
    order: tuple[str, ...]

    @property
    def raw(self) -> list[str]:
        return list(self.order)


class SliderAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["slider"] = "slider"
    value: int = Field(ge=SLIDER_MIN, le=SLIDER_MAX)

    @property
    def raw(self) -> int:
        return self.value


Answer = Annotated[
    Union[ChoiceAnswer, SelectionAnswer, RankingAnswer, SliderAnswer],
    Field(discriminator="kind"),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Response(BaseModel):
    """One participant's answer to one question."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    answer: Answer
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def value(self) -> str | int | list[str]:
        return self.answer.raw

    @classmethod
    def for_question(
        cls,
        question: Question,
        value: Any,
        timestamp: datetime | None = None,
    ) -> "Response":
        """Build the answer variant that ``question``'s format expects.

        Raises ``ValueError`` when ``value`` does not fit the question: an
        unknown option, too many selections, a repeated ranking entry or a
        slider position outside the scale.
        """
        kind = question.answer_kind
        answer: ChoiceAnswer | SelectionAnswer | RankingAnswer | SliderAnswer
        if kind == "slider":
            answer = SliderAnswer(value=_slider_position(question, value))
        elif kind == "choice":
            if not isinstance(value, str):
                raise ValueError(f"Question {question.id} expects a single option")
            _require_options(question, (value,))
            answer = ChoiceAnswer(option=value)
        else:
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise ValueError(f"Question {question.id} expects a list of options")
            tokens = tuple(value)
            _require_options(question, tokens)
            if len(set(tokens)) != len(tokens):
                raise ValueError(f"Question {question.id} received a repeated option")
            if kind == "selection":
                limit = question.max_selections or DEFAULT_MAX_SELECTIONS
                if len(tokens) > limit:
                    raise ValueError(
                        f"Question {question.id} allows at most {limit} selections, "
                        f"got {len(tokens)}"
                    )
                answer = SelectionAnswer(options=tokens)
            else:
                answer = RankingAnswer(order=tokens)

        data: dict[str, Any] = {"question_id": question.id, "answer": answer}
        if timestamp is not None:
            data["timestamp"] = timestamp
        return cls(**data)


def _require_options(question: Question, tokens: tuple[Any, ...]) -> None:
    unknown = [t for t in tokens if not isinstance(t, str) or t not in question.options]
    if unknown:
        raise ValueError(f"Question {question.id} has no option(s) {unknown}")


def _slider_position(question: Question, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"Question {question.id} expects a slider position")
    try:
        numeric = float(value)
    except (ValueError, OverflowError):
        raise ValueError(f"Question {question.id} expects a slider position") from None
    if not numeric.is_integer() or not SLIDER_MIN <= numeric <= SLIDER_MAX:
        raise ValueError(
            f"Slider position must be an integer in {SLIDER_MIN}..{SLIDER_MAX}, got {value!r}"
        )
    return int(numeric)
