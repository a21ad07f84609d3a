"""
Archetype Finder — Question Catalogue Loader

Builds the validated, versioned question catalogue from a delimited bank
with the columns::

    QID, Question, Format, Options, Archetype Mapping, Category,
    Overlap Group, Asset Keys (optional), Notes

Mapping expressions look like ``Freedom=Explorer/Rebel; Belonging=Everyman``.
Keys may abbreviate their option ("Order" for "Order and stability"); they
are resolved by exact match, then unique prefix, then the unique option
in which every key word begins some word ("Love" for "Loving deeply",
a trailing "e" dropped).  Ranking rows may borrow another row's
pairing ("map via same pairing as B01") and slider rows name archetypes
with linear value expressions ("Explorer=+value").

Rows missing an id or question text, or failing ``Question`` validation,
are skipped and logged; nothing is admitted with partial data.
"""

from __future__ import annotations

import csv
import hashlib
import io
import re
from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path

import structlog
from pydantic import ValidationError

from archetype_finder.config import get_settings
from archetype_finder.schemas.questionnaire import (
    Archetype,
    ArchetypeWeight,
    Category,
    Question,
    ResponseFormat,
    SLIDER_MAPPING_KEY,
    SLIDER_OPTIONS,
)

logger = structlog.get_logger("archetype_finder.catalogue_service")

DEFAULT_BANK_PACKAGE = "archetype_finder.data"
DEFAULT_BANK_FILE = "questions.csv"

# Bank column headers
COL_ID = "QID"
COL_TEXT = "Question"
COL_FORMAT = "Format"
COL_OPTIONS = "Options"
COL_MAPPING = "Archetype Mapping"
COL_CATEGORY = "Category"
COL_OVERLAP = "Overlap Group"
COL_ASSETS = "Asset Keys (optional)"
COL_NOTES = "Notes"

ARCHETYPE_ALIASES: dict[str, Archetype] = {
    "rebel": Archetype.OUTLAW,
}

_ARCHETYPE_LOOKUP: dict[str, Archetype] = {
    **{a.value.lower(): a for a in Archetype},
    **ARCHETYPE_ALIASES,
}

_PAIRING_REF_RX = re.compile(r"same\s+pairing\s+as\s+([A-Za-z]+\d+)", re.I)
_SLIDER_EXPR_RX = re.compile(r"^\+?\s*(?:(\d+)\s*\*\s*)?value(?:\s*\*\s*(\d+))?$", re.I)
_MAX_SELECTIONS_RX = re.compile(r"\bmax\s*(\d+)", re.I)
_WORD_RX = re.compile(r"[a-z0-9']+(?:-[a-z0-9']+)*")


@dataclass(frozen=True)
class QuestionCatalogue:
    """An immutable, versioned sequence of questions in bank order."""

    version: str
    questions: tuple[Question, ...]
    skipped_rows: int = 0

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def get(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def by_category(self, category: Category | str) -> list[Question]:
        wanted = Category(category)
        return [q for q in self.questions if q.category is wanted]

    def ordered(self) -> list[Question]:
        """Questions grouped by section: Broad, then Clarifier, then Validator."""
        return [q for category in Category for q in self.by_category(category)]


class CatalogueService:
    """Parse question banks into ``QuestionCatalogue`` instances."""

    def __init__(self, multi_select_max_default: int | None = None) -> None:
        if multi_select_max_default is None:
            multi_select_max_default = get_settings().MULTI_SELECT_MAX_DEFAULT
        self.multi_select_max_default = multi_select_max_default

    # ── Public API ──────────────────────────────────────────────────

    def load(self, path: str | Path | None = None) -> QuestionCatalogue:
        """Read and parse a bank file.

        With no ``path`` the configured ``QUESTION_BANK_PATH`` is used,
        falling back to the bank shipped with the package.
        """
        if path is None:
            path = get_settings().QUESTION_BANK_PATH or None

        if path is None:
            source = f"package:{DEFAULT_BANK_PACKAGE}/{DEFAULT_BANK_FILE}"
            text = (
                resources.files(DEFAULT_BANK_PACKAGE)
                .joinpath(DEFAULT_BANK_FILE)
                .read_text(encoding="utf-8-sig")
            )
        else:
            source = str(path)
            text = Path(path).read_text(encoding="utf-8-sig")

        return self.parse(text, source=source)

    def parse(self, text: str, source: str = "<memory>") -> QuestionCatalogue:
        log = logger.bind(source=source)
        version = "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]

        parsed: dict[str, Question] = {}
        skipped = 0
        reader = csv.DictReader(io.StringIO(text))
        for line_no, row in enumerate(reader, start=2):
            question = self._parse_row(row, line_no, parsed, log)
            if question is None:
                skipped += 1
                continue
            parsed[question.id] = question

        log.info(
            "catalogue_loaded",
            version=version,
            questions=len(parsed),
            skipped_rows=skipped,
        )
        return QuestionCatalogue(
            version=version,
            questions=tuple(parsed.values()),
            skipped_rows=skipped,
        )

    # ── Rows ────────────────────────────────────────────────────────

    def _parse_row(
        self,
        row: dict[str, str | None],
        line_no: int,
        parsed: dict[str, Question],
        log,
    ) -> Question | None:
        qid = _cell(row, COL_ID)
        text = _cell(row, COL_TEXT)
        if not qid or not text:
            log.warning(
                "row_skipped",
                line=line_no,
                reason="missing_id" if not qid else "missing_text",
            )
            return None
        if qid in parsed:
            log.warning("row_skipped", line=line_no, question_id=qid, reason="duplicate_id")
            return None

        try:
            fmt = ResponseFormat(_cell(row, COL_FORMAT))
            category = Category(_cell(row, COL_CATEGORY))
        except ValueError as exc:
            log.warning("row_skipped", line=line_no, question_id=qid, reason=str(exc))
            return None

        row_log = log.bind(question_id=qid)
        options = self._parse_options(_cell(row, COL_OPTIONS), fmt)
        raw_mapping = _cell(row, COL_MAPPING)
        if fmt is ResponseFormat.SLIDER:
            mapping = self._parse_slider_mapping(raw_mapping, row_log)
        else:
            reference = _PAIRING_REF_RX.search(raw_mapping)
            if reference is not None:
                mapping = self._borrow_mapping(reference.group(1), options, parsed, row_log)
            else:
                mapping = self._parse_mapping(raw_mapping, options, row_log)

        notes = _cell(row, COL_NOTES) or None
        max_selections = None
        if fmt is ResponseFormat.WORD_CHOICE_MULTI:
            found = _MAX_SELECTIONS_RX.search(notes or "")
            max_selections = int(found.group(1)) if found else self.multi_select_max_default

        try:
            return Question(
                id=qid,
                text=text,
                response_format=fmt,
                category=category,
                options=options,
                answer_mapping=mapping,
                max_selections=max_selections,
                overlap_group=_cell(row, COL_OVERLAP) or None,
                asset_keys=self._parse_asset_keys(_cell(row, COL_ASSETS)),
                notes=notes,
            )
        except ValidationError as exc:
            log.warning(
                "row_skipped",
                line=line_no,
                question_id=qid,
                reason="invalid",
                error=str(exc),
            )
            return None

    @staticmethod
    def _parse_options(raw: str, fmt: ResponseFormat) -> tuple[str, ...]:
        if fmt is ResponseFormat.SLIDER:
            return SLIDER_OPTIONS
        separator = "|" if fmt is ResponseFormat.RANKING else ","
        return tuple(
            o.strip().strip('"').strip()
            for o in raw.split(separator)
            if o.strip().strip('"').strip()
        )

    @staticmethod
    def _parse_asset_keys(raw: str) -> tuple[str, ...]:
        if raw.lower().startswith("img:"):
            raw = raw[4:]
        return tuple(k.strip() for k in raw.split(",") if k.strip())

    # ── Mappings ────────────────────────────────────────────────────

    def _parse_mapping(
        self,
        raw: str,
        options: tuple[str, ...],
        log,
    ) -> dict[str, tuple[ArchetypeWeight, ...]]:
        mapping: dict[str, tuple[ArchetypeWeight, ...]] = {}
        for key, targets in _mapping_entries(raw, log):
            option = self._resolve_key(key, options)
            if option is None:
                log.warning("mapping_key_unresolved", key=key, options=list(options))
                continue
            if option in mapping:
                log.warning("mapping_key_duplicate", key=key, option=option)
                continue
            weights = self._parse_archetypes(targets, log)
            if weights:
                mapping[option] = weights
        return mapping

    def _borrow_mapping(
        self,
        reference_id: str,
        options: tuple[str, ...],
        parsed: dict[str, Question],
        log,
    ) -> dict[str, tuple[ArchetypeWeight, ...]]:
        """Re-key another question's mapping onto this question's options."""
        referenced = parsed.get(reference_id)
        if referenced is None:
            log.warning("mapping_reference_missing", reference=reference_id)
            return {}

        source_keys = tuple(referenced.answer_mapping)
        mapping: dict[str, tuple[ArchetypeWeight, ...]] = {}
        for option in options:
            source = self._resolve_key(option, source_keys)
            if source is None:
                log.warning("mapping_key_unresolved", key=option, reference=reference_id)
                continue
            mapping[option] = referenced.answer_mapping[source]
        return mapping

    def _parse_slider_mapping(
        self,
        raw: str,
        log,
    ) -> dict[str, tuple[ArchetypeWeight, ...]]:
        weights: list[ArchetypeWeight] = []
        for name, expression in _mapping_entries(raw, log):
            match = _SLIDER_EXPR_RX.match(expression.replace(" ", ""))
            if match is None:
                log.warning("slider_expression_unsupported", archetype=name, expression=expression)
                continue
            archetype = _ARCHETYPE_LOOKUP.get(name.lower())
            if archetype is None:
                log.warning("archetype_unknown", name=name)
                continue
            factor = int(match.group(1) or match.group(2) or 1)
            weights.append(ArchetypeWeight(archetype=archetype, weight=factor))
        return {SLIDER_MAPPING_KEY: tuple(weights)} if weights else {}

    @staticmethod
    def _parse_archetypes(raw: str, log) -> tuple[ArchetypeWeight, ...]:
        weights: list[ArchetypeWeight] = []
        for name in (n.strip() for n in raw.split("/")):
            if not name:
                continue
            archetype = _ARCHETYPE_LOOKUP.get(name.lower())
            if archetype is None:
                log.warning("archetype_unknown", name=name)
                continue
            weights.append(ArchetypeWeight(archetype=archetype, weight=1))
        return tuple(weights)

    @staticmethod
    def _resolve_key(key: str, options: tuple[str, ...]) -> str | None:
        """Match a (possibly abbreviated) mapping key to exactly one option."""
        wanted = key.strip().lower()
        lowered = [(option, option.lower()) for option in options]

        for option, low in lowered:
            if low == wanted:
                return option

        prefixed = [option for option, low in lowered if low.startswith(wanted)]
        if len(prefixed) == 1:
            return prefixed[0]

        stems = [_stem(w) for w in _WORD_RX.findall(wanted)]
        if stems:
            containing = [
                option for option, low in lowered
                if all(
                    any(word.startswith(stem) for word in _WORD_RX.findall(low))
                    for stem in stems
                )
            ]
            if len(containing) == 1:
                return containing[0]
        return None


def _stem(word: str) -> str:
    # "love" should reach "loving"
    if len(word) > 3 and word.endswith("e"):
        return word[:-1]
    return word


def _cell(row: dict[str, str | None], column: str) -> str:
    return (row.get(column) or "").strip()


def _mapping_entries(raw: str, log) -> list[tuple[str, str]]:
    entries: list[tuple[str, str]] = []
    for entry in (e.strip() for e in raw.split(";")):
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        if not sep or not key.strip() or not value.strip():
            log.warning("mapping_entry_ignored", entry=entry)
            continue
        entries.append((key.strip(), value.strip()))
    return entries


# ── Module-level helpers ────────────────────────────────────────────


def load_catalogue(path: str | Path | None = None) -> QuestionCatalogue:
    return CatalogueService().load(path)


def load_questions(path: str | Path | None = None) -> list[Question]:
    """Return the validated question list, ready to pass to the scoring engine."""
    return list(load_catalogue(path))


@lru_cache(maxsize=1)
def get_catalogue() -> QuestionCatalogue:
    """Process-wide catalogue for the configured bank (read once)."""
    return load_catalogue()
