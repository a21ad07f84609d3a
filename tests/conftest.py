"""Shared pytest fixtures for Archetype Finder tests."""
import pytest

from archetype_finder.schemas.questionnaire import ArchetypeWeight, Question
from archetype_finder.services.catalogue_service import CatalogueService
from archetype_finder.services.scoring_service import ScoringService


def _weights(targets):
    """Accept ``"Hero"`` or ``("Hero", 2)`` entries."""
    out = []
    for target in targets:
        if isinstance(target, tuple):
            out.append(ArchetypeWeight(archetype=target[0], weight=target[1]))
        else:
            out.append(ArchetypeWeight(archetype=target, weight=1))
    return tuple(out)


def _make_question(qid, response_format, mapping=None, category="Broad", options=None, **extra):
    mapping = mapping or {}
    if options is None and response_format != "Slider":
        options = tuple(mapping)
    data = {
        "id": qid,
        "text": f"Question {qid}",
        "response_format": response_format,
        "category": category,
        "answer_mapping": {key: _weights(targets) for key, targets in mapping.items()},
        **extra,
    }
    if options is not None:
        data["options"] = tuple(options)
    return Question(**data)


@pytest.fixture
def make_question():
    """Factory for synthetic questions.

    ``make_question("Q1", "Forced Choice", {"A": ["Hero"], "B": [("Sage", 2)]})``
    """
    return _make_question


@pytest.fixture
def scoring_service():
    return ScoringService()


@pytest.fixture
def catalogue_service():
    return CatalogueService(multi_select_max_default=2)


@pytest.fixture
def bank_catalogue(catalogue_service):
    """The question bank shipped with the package."""
    return catalogue_service.load()


@pytest.fixture
def small_bank_csv():
    """A four-row bank covering choice, multi-select, slider and validator rows."""
    return (
        "QID,Question,Format,Options,Archetype Mapping,Category,Overlap Group,Asset Keys (optional),Notes\n"
        "T01,Pick one,Forced Choice,\"Lead the way, Share wisdom\",Lead=Hero; Wisdom=Sage,Broad,,,\n"
        "T02,Pick two,Word Choice (Multi),\"Bold, Playful, Caring\",Bold=Rebel; Playful=Jester; Caring=Caregiver,Broad,,,Allow multi-select (max 2)\n"
        "T03,How adventurous?,Slider,1..7,Explorer=+value,Clarifier,,,\n"
        "T04,Which fits?,Forced Choice,\"Order, Freedom\",Order=Ruler; Freedom=Explorer,Validator,Ruler vs Explorer,,\n"
    )
