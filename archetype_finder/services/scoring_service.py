"""
Archetype Finder — Archetype Scoring Engine

Turns one participant's batch of responses into a ranked archetype profile.
The engine is a pure function of (responses, questions):

  1. Initialise all twelve archetypes at zero, globally and per section
  2. Accumulate weighted points per response format
       slider       value x weight        (every mapped archetype)
       single       weight x 3            (chosen option)
       multi        weight x 2            (each selected option)
       ranking      weight x [3, 2, 1, 0] (by position)
  3. Clamp at zero and normalise to one-decimal percentages
  4. Resolve the primary archetype, breaking ties
  5. Resolve the secondary archetype from the remainder, breaking ties
  6. Compute a 0-100 confidence score

Tie-break order: top-weight selection count, then validator subtotal, then
alphabetical.  Responses whose question is unknown, or whose answer does
not fit the question's format, are skipped rather than raised.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from archetype_finder.schemas.questionnaire import (
    ARCHETYPES,
    Archetype,
    Category,
    ChoiceAnswer,
    Question,
    RankingAnswer,
    Response,
    SelectionAnswer,
    SliderAnswer,
)
from archetype_finder.schemas.result import ArchetypeScore, AssessmentResult, SectionScores

logger = structlog.get_logger("archetype_finder.scoring_service")

AnswerVariant = ChoiceAnswer | SelectionAnswer | RankingAnswer | SliderAnswer
Resolved = list[tuple[Question, AnswerVariant]]


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class ScoringService:
    """Score archetype assessments.

    All multipliers and thresholds are class-level attributes so they can be
    introspected or overridden in tests.  Instances hold no state; one
    service may score any number of participants concurrently.
    """

    # ── Format multipliers ────────────────────────────────────────────────

    SINGLE_CHOICE_MULTIPLIER: int = 3
    MULTI_SELECT_MULTIPLIER: int = 2
    RANK_MULTIPLIERS: tuple[int, ...] = (3, 2, 1, 0)  # 1st, 2nd, 3rd, 4th+

    # ── Ranking resolution ────────────────────────────────────────────────

    TIE_TOLERANCE: float = 0.1  # percentage points

    # ── Confidence ────────────────────────────────────────────────────────

    COMPLETION_WEIGHT: float = 0.7
    STRENGTH_WEIGHT: float = 0.3
    STRENGTH_CEILING: float = 3.0
    SLIDER_NEUTRAL: int = 4
    RANKING_STRENGTH: float = 2.0
    DEFAULT_STRENGTH: float = 1.0

    # ══════════════════════════════════════════════════════════════════════
    # Public API
    # ══════════════════════════════════════════════════════════════════════

    def score(
        self,
        responses: Sequence[Response],
        questions: Sequence[Question],
    ) -> AssessmentResult:
        """Score a complete response batch against ``questions``.

        Parameters
        ----------
        responses:
            One response per answered question.  Never mutated; duplicates
            are not removed.
        questions:
            The catalogue the responses were collected against.  Assumed to
            be valid already.

        Returns
        -------
        AssessmentResult
            Primary and secondary archetypes, all twelve scores sorted by
            percentage, per-section subtotals and a 0-100 confidence.
        """
        log = logger.bind(n_responses=len(responses), n_questions=len(questions))
        log.info("scoring_start")

        resolved = self._resolve_responses(responses, questions, log)

        totals: dict[Archetype, float] = {a: 0.0 for a in ARCHETYPES}
        sections: dict[Category, dict[Archetype, float]] = {
            category: {a: 0.0 for a in ARCHETYPES} for category in Category
        }
        for question, answer in resolved:
            section = sections[question.category]
            for archetype, points in self._points_for(question, answer):
                totals[archetype] += points
                section[archetype] += points

        section_scores = SectionScores(
            broad=sections[Category.BROAD],
            clarifier=sections[Category.CLARIFIER],
            validator=sections[Category.VALIDATOR],
        )
        all_scores = self._normalise(totals)
        primary, secondary = self._pick_primary_secondary(
            all_scores, section_scores, resolved, log,
        )
        confidence = self._confidence(resolved, questions)

        log.info(
            "scoring_complete",
            skipped=len(responses) - len(resolved),
            primary=primary.archetype.value,
            secondary=secondary.archetype.value,
            confidence=confidence,
        )
        return AssessmentResult(
            primary_archetype=primary,
            secondary_archetype=secondary,
            all_scores=all_scores,
            confidence=confidence,
            section_scores=section_scores,
            completed_at=datetime.now(timezone.utc),
        )

    def calculate_confidence(
        self,
        responses: Sequence[Response],
        questions: Sequence[Question],
    ) -> int:
        """Return only the 0-100 confidence for a response batch."""
        resolved = self._resolve_responses(responses, questions, logger)
        return self._confidence(resolved, questions)

    # ══════════════════════════════════════════════════════════════════════
    # Accumulation
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _resolve_responses(
        responses: Sequence[Response],
        questions: Sequence[Question],
        log,
    ) -> Resolved:
        by_id: dict[str, Question] = {}
        for question in questions:
            by_id.setdefault(question.id, question)

        resolved: Resolved = []
        for response in responses:
            question = by_id.get(response.question_id)
            if question is None:
                log.debug(
                    "response_skipped",
                    question_id=response.question_id,
                    reason="unknown_question",
                )
                continue
            if response.answer.kind != question.answer_kind:
                log.warning(
                    "response_skipped",
                    question_id=response.question_id,
                    reason="answer_kind_mismatch",
                    expected=question.answer_kind,
                    received=response.answer.kind,
                )
                continue
            resolved.append((question, response.answer))
        return resolved

    def _points_for(
        self, question: Question, answer: AnswerVariant,
    ) -> list[tuple[Archetype, float]]:
        """Weighted (archetype, points) pairs contributed by one answer."""
        mapping = question.answer_mapping

        if isinstance(answer, SliderAnswer):
            return [
                (w.archetype, float(answer.value * w.weight))
                for weights in mapping.values()
                for w in weights
            ]

        if isinstance(answer, ChoiceAnswer):
            return [
                (w.archetype, float(w.weight * self.SINGLE_CHOICE_MULTIPLIER))
                for w in mapping.get(answer.option, ())
            ]

        if isinstance(answer, SelectionAnswer):
            return [
                (w.archetype, float(w.weight * self.MULTI_SELECT_MULTIPLIER))
                for option in answer.options
                for w in mapping.get(option, ())
            ]

        points: list[tuple[Archetype, float]] = []
        for rank, option in enumerate(answer.order):
            if rank >= len(self.RANK_MULTIPLIERS) or self.RANK_MULTIPLIERS[rank] <= 0:
                continue
            multiplier = self.RANK_MULTIPLIERS[rank]
            points.extend(
                (w.archetype, float(w.weight * multiplier))
                for w in mapping.get(option, ())
            )
        return points

    @staticmethod
    def _normalise(totals: dict[Archetype, float]) -> list[ArchetypeScore]:
        # Negative totals cannot arise from the current multipliers; clamp anyway.
        clamped = {a: max(0.0, totals[a]) for a in ARCHETYPES}
        total = sum(clamped.values())

        scores = [
            ArchetypeScore(
                archetype=a,
                score=clamped[a],
                percentage=_round_half_up(100.0 * clamped[a] / total, 1) if total > 0 else 0.0,
            )
            for a in ARCHETYPES
        ]
        # sorted() is stable, so equal percentages keep the archetype order.
        return sorted(scores, key=lambda s: -s.percentage)

    # ══════════════════════════════════════════════════════════════════════
    # Primary / secondary resolution
    # ══════════════════════════════════════════════════════════════════════

    def _is_tied(self, a: float, b: float) -> bool:
        return round(abs(a - b), 6) < self.TIE_TOLERANCE

    def _pick_primary_secondary(
        self,
        all_scores: list[ArchetypeScore],
        section_scores: SectionScores,
        resolved: Resolved,
        log,
    ) -> tuple[ArchetypeScore, ArchetypeScore]:
        primary, secondary = all_scores[0], all_scores[1]

        # Nothing scored: keep the stable order instead of a twelve-way tie-break.
        if all(s.score == 0 for s in all_scores):
            return primary, secondary

        tied_first = [s for s in all_scores if self._is_tied(s.percentage, primary.percentage)]
        if len(tied_first) > 1:
            primary = self._break_tie(tied_first, section_scores, resolved)
            secondary = next(s for s in all_scores if s.archetype is not primary.archetype)
            log.info(
                "tie_resolved",
                position="primary",
                candidates=[s.archetype.value for s in tied_first],
                winner=primary.archetype.value,
            )

        tied_second = [
            s for s in all_scores
            if s.archetype is not primary.archetype
            and self._is_tied(s.percentage, secondary.percentage)
        ]
        if len(tied_second) > 1:
            secondary = self._break_tie(tied_second, section_scores, resolved)
            log.info(
                "tie_resolved",
                position="secondary",
                candidates=[s.archetype.value for s in tied_second],
                winner=secondary.archetype.value,
            )

        return primary, secondary

    def _break_tie(
        self,
        candidates: list[ArchetypeScore],
        section_scores: SectionScores,
        resolved: Resolved,
    ) -> ArchetypeScore:
        # Rule 1: most top-weight selections
        counts = self._count_top_weight_selections(
            [c.archetype for c in candidates], resolved,
        )
        best = max(counts.values())
        leaders = [c for c in candidates if counts[c.archetype] == best]
        if len(leaders) == 1:
            return leaders[0]

        # Rule 2: highest validator subtotal, shared maxima fall through
        validator = section_scores.validator
        top = max(validator[c.archetype] for c in leaders)
        leaders = [c for c in leaders if validator[c.archetype] == top]
        if len(leaders) == 1:
            return leaders[0]

        # Rule 3: alphabetical
        return min(leaders, key=lambda c: c.archetype.value)

    def _count_top_weight_selections(
        self,
        archetypes: list[Archetype],
        resolved: Resolved,
    ) -> dict[Archetype, int]:
        """Count, per archetype, the selected options where it carries the
        heaviest weight in that option's mapping."""
        counts: dict[Archetype, int] = {a: 0 for a in archetypes}
        for question, answer in resolved:
            selected = self._selected_options(answer)
            if not selected:
                continue
            for option, weights in question.answer_mapping.items():
                if option not in selected or not weights:
                    continue
                top_weight = max(w.weight for w in weights)
                for w in weights:
                    if w.weight == top_weight and w.archetype in counts:
                        counts[w.archetype] += 1
        return counts

    @staticmethod
    def _selected_options(answer: AnswerVariant) -> frozenset[str]:
        if isinstance(answer, ChoiceAnswer):
            return frozenset((answer.option,))
        if isinstance(answer, SelectionAnswer):
            return frozenset(answer.options)
        if isinstance(answer, RankingAnswer):
            return frozenset(answer.order[:1])
        return frozenset()

    # ══════════════════════════════════════════════════════════════════════
    # Confidence
    # ══════════════════════════════════════════════════════════════════════

    def _response_strength(self, answer: AnswerVariant) -> float:
        if isinstance(answer, SliderAnswer):
            return float(abs(answer.value - self.SLIDER_NEUTRAL))
        if isinstance(answer, RankingAnswer):
            return self.RANKING_STRENGTH
        if isinstance(answer, SelectionAnswer):
            return float(len(answer.options))
        return self.DEFAULT_STRENGTH

    def _confidence(self, resolved: Resolved, questions: Sequence[Question]) -> int:
        """0-100 blend of completion rate (70%) and answer strength (30%).

        Only responses that resolved to a known question count towards the
        completion rate.
        """
        if not resolved or not questions:
            return 0

        completion_rate = len(resolved) / len(questions)
        avg_strength = sum(self._response_strength(a) for _, a in resolved) / len(resolved)
        normalised_strength = min(avg_strength / self.STRENGTH_CEILING, 1.0)

        raw = 100.0 * (
            self.COMPLETION_WEIGHT * completion_rate
            + self.STRENGTH_WEIGHT * normalised_strength
        )
        return max(0, min(100, int(_round_half_up(raw))))


_default_service = ScoringService()


def score(responses: Sequence[Response], questions: Sequence[Question]) -> AssessmentResult:
    """Score ``responses`` with the default engine settings."""
    return _default_service.score(responses, questions)
