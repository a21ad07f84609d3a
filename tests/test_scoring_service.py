"""Unit tests for ScoringService — archetype accumulation, ranking and confidence."""
from archetype_finder.schemas.questionnaire import (
    ARCHETYPES,
    Archetype,
    ChoiceAnswer,
    Response,
    SelectionAnswer,
    SliderAnswer,
)
from archetype_finder.services import scoring_service as scoring_module


def _answer(question, value):
    return Response.for_question(question, value)


def _pct(result, archetype):
    return result.score_for(Archetype(archetype)).percentage


def _points(result, archetype):
    return result.score_for(Archetype(archetype)).score


class TestFormatMultipliers:
    """Points awarded per response format."""

    def test_single_choice_weight_times_three(self, scoring_service, make_question):
        """A chosen option with weight 1 gives 3 points."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"], "B": ["Sage"]})
        result = scoring_service.score([_answer(q, "A")], [q])
        assert _points(result, "Hero") == 3
        assert _points(result, "Sage") == 0
        assert result.primary_archetype.archetype is Archetype.HERO
        assert result.primary_archetype.percentage == 100.0

    def test_single_choice_heavier_weight(self, scoring_service, make_question):
        """Weight 2 on a chosen option gives 6 points."""
        q = make_question("Q1", "Image Choice", {"A": [("Ruler", 2), "Hero"]})
        result = scoring_service.score([_answer(q, "A")], [q])
        assert _points(result, "Ruler") == 6
        assert _points(result, "Hero") == 3

    def test_multi_select_scenario(self, scoring_service, make_question):
        """Two selected words both mapped to Creator give 4 points."""
        q = make_question(
            "Q1", "Word Choice (Multi)",
            {"Bold": ["Creator"], "Brave": ["Creator"], "Calm": ["Innocent"]},
        )
        result = scoring_service.score([_answer(q, ["Bold", "Brave"])], [q])
        assert _points(result, "Creator") == 4
        assert _points(result, "Innocent") == 0

    def test_multi_select_sums_every_selection(self, scoring_service, make_question):
        """Selections are summed even when the same option arrives twice."""
        q = make_question("Q1", "Word Choice (Multi)", {"A": ["Lover"], "B": ["Sage"]})
        response = Response(question_id="Q1", answer=SelectionAnswer(options=("A", "A")))
        result = scoring_service.score([response], [q])
        assert _points(result, "Lover") == 4

    def test_ranking_positions(self, scoring_service, make_question):
        """Ranks 1-4 award 3, 2, 1 and 0 times the weight."""
        q = make_question(
            "Q1", "Ranking",
            {"W": ["Hero"], "X": ["Sage"], "Y": ["Jester"], "Z": ["Ruler"]},
        )
        result = scoring_service.score([_answer(q, ["W", "X", "Y", "Z"])], [q])
        assert _points(result, "Hero") == 3
        assert _points(result, "Sage") == 2
        assert _points(result, "Jester") == 1
        assert _points(result, "Ruler") == 0

    def test_ranking_beyond_fourth_scores_nothing(self, scoring_service, make_question):
        """Options ranked fifth or lower contribute zero."""
        q = make_question(
            "Q1", "Ranking",
            {"A": ["Hero"], "B": ["Sage"], "C": ["Jester"], "D": ["Ruler"], "E": ["Lover"]},
        )
        result = scoring_service.score([_answer(q, ["A", "B", "C", "D", "E"])], [q])
        assert _points(result, "Ruler") == 0
        assert _points(result, "Lover") == 0

    def test_slider_scenario(self, scoring_service, make_question):
        """Slider 7 mapped to Explorer and Outlaw gives both 7 points."""
        q = make_question("Q1", "Slider", {"7": ["Explorer", "Outlaw"]})
        result = scoring_service.score([_answer(q, 7)], [q])
        assert _points(result, "Explorer") == 7
        assert _points(result, "Outlaw") == 7
        assert result.primary_archetype.archetype is Archetype.EXPLORER
        assert result.secondary_archetype.archetype is Archetype.OUTLAW

    def test_slider_value_times_weight(self, scoring_service, make_question):
        """Slider points are the chosen position times the weight."""
        q = make_question("Q1", "Slider", {"7": [("Sage", 2)]})
        result = scoring_service.score([_answer(q, 3)], [q])
        assert _points(result, "Sage") == 6

    def test_unmapped_option_scores_nothing(self, scoring_service, make_question):
        """Choosing an option without a mapping leaves every score at zero."""
        q = make_question("Q1", "Word Choice", {"A": ["Hero"]}, options=("A", "B"))
        result = scoring_service.score([_answer(q, "B")], [q])
        assert all(s.score == 0 for s in result.all_scores)

    def test_points_recorded_in_section(self, scoring_service, make_question):
        """Points land in the subtotal of the question's category only."""
        q = make_question("Q1", "Forced Choice", {"A": ["Ruler"]}, category="Validator")
        result = scoring_service.score([_answer(q, "A")], [q])
        assert result.section_scores.validator[Archetype.RULER] == 3
        assert result.section_scores.broad[Archetype.RULER] == 0
        assert result.section_scores.clarifier[Archetype.RULER] == 0


class TestNormalisation:
    """Percentages and ordering of the final scores."""

    def test_all_twelve_archetypes_present(self, scoring_service, make_question):
        """Every archetype is reported even when unscored."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        result = scoring_service.score([_answer(q, "A")], [q])
        assert len(result.all_scores) == 12
        assert {s.archetype for s in result.all_scores} == set(ARCHETYPES)

    def test_percentages_sum_to_hundred(self, scoring_service, make_question):
        """One-decimal rounding keeps the sum within rounding error of 100."""
        q1 = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        q2 = make_question("Q2", "Forced Choice", {"A": ["Sage"]})
        q3 = make_question("Q3", "Forced Choice", {"A": ["Jester"]})
        result = scoring_service.score(
            [_answer(q1, "A"), _answer(q2, "A"), _answer(q3, "A")], [q1, q2, q3],
        )
        total = sum(s.percentage for s in result.all_scores)
        assert abs(total - 100.0) <= 0.6
        assert _pct(result, "Hero") == 33.3

    def test_sorted_descending(self, scoring_service, make_question):
        """Scores are ordered by percentage, highest first."""
        q1 = make_question("Q1", "Ranking", {"A": ["Lover"], "B": ["Sage"], "C": ["Hero"]})
        result = scoring_service.score([_answer(q1, ["C", "A", "B"])], [q1])
        percentages = [s.percentage for s in result.all_scores]
        assert percentages == sorted(percentages, reverse=True)
        assert result.primary_archetype.percentage >= result.secondary_archetype.percentage
        assert result.primary_archetype.archetype is not result.secondary_archetype.archetype

    def test_half_up_rounding(self):
        """Percentages round half away from zero, not to even."""
        assert scoring_module._round_half_up(12.25, 1) == 12.3
        assert scoring_module._round_half_up(0.5) == 1.0
        assert scoring_module._round_half_up(2.5) == 3.0

    def test_negative_totals_clamped(self, scoring_service):
        """A negative running total is reported as zero."""
        totals = {a: 0.0 for a in ARCHETYPES}
        totals[Archetype.HERO] = -5.0
        totals[Archetype.SAGE] = 5.0
        scores = {s.archetype: s for s in scoring_service._normalise(totals)}
        assert scores[Archetype.HERO].score == 0
        assert scores[Archetype.HERO].percentage == 0.0
        assert scores[Archetype.SAGE].percentage == 100.0


class TestEmptyInput:
    """No usable responses."""

    def test_no_responses(self, scoring_service, bank_catalogue):
        """All scores zero, Hero then Magician, confidence zero."""
        result = scoring_service.score([], bank_catalogue.questions)
        assert all(s.score == 0 and s.percentage == 0.0 for s in result.all_scores)
        assert result.primary_archetype.archetype is Archetype.HERO
        assert result.secondary_archetype.archetype is Archetype.MAGICIAN
        assert result.confidence == 0

    def test_no_questions(self, scoring_service, make_question):
        """Responses against an empty catalogue are all skipped."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        result = scoring_service.score([_answer(q, "A")], [])
        assert result.primary_archetype.archetype is Archetype.HERO
        assert result.confidence == 0


class TestTieBreak:
    """Primary and secondary resolution when percentages are within 0.1."""

    def test_tolerance(self, scoring_service):
        """Differences below 0.1 points count as a tie."""
        assert scoring_service._is_tied(25.0, 25.0)
        assert scoring_service._is_tied(25.05, 25.0)
        assert not scoring_service._is_tied(33.3, 33.2)
        assert not scoring_service._is_tied(50.0, 40.0)

    def test_alphabetical_fallback(self, scoring_service, make_question):
        """Equal counts and validator subtotals fall back to alphabetical order."""
        q1 = make_question("Q1", "Forced Choice", {"A": ["Sage"]})
        q2 = make_question("Q2", "Forced Choice", {"B": ["Hero"]})
        result = scoring_service.score([_answer(q1, "A"), _answer(q2, "B")], [q1, q2])
        assert result.primary_archetype.archetype is Archetype.HERO
        assert result.secondary_archetype.archetype is Archetype.SAGE

    def test_top_weight_selections_win(self, scoring_service, make_question):
        """An archetype picked directly beats one that only scored via a slider."""
        q1 = make_question("Q1", "Forced Choice", {"A": ["Sage"]})
        q2 = make_question("Q2", "Slider", {"7": ["Lover"]})
        result = scoring_service.score([_answer(q1, "A"), _answer(q2, 3)], [q1, q2])
        assert _points(result, "Sage") == _points(result, "Lover") == 3
        assert result.primary_archetype.archetype is Archetype.SAGE

    def test_lighter_weight_not_counted(self, scoring_service, make_question):
        """Only the heaviest-weighted archetype of a chosen option earns a selection."""
        q1 = make_question("Q1", "Forced Choice", {"A": [("Sage", 2), "Hero"]})
        q2 = make_question("Q2", "Slider", {"7": ["Hero"]})
        result = scoring_service.score([_answer(q1, "A"), _answer(q2, 3)], [q1, q2])
        assert _points(result, "Sage") == _points(result, "Hero") == 6
        assert result.primary_archetype.archetype is Archetype.SAGE
        assert result.secondary_archetype.archetype is Archetype.HERO

    def test_only_top_ranked_option_counts(self, scoring_service, make_question):
        """Only the first-ranked option counts as a top-weight selection."""
        q1 = make_question("Q1", "Ranking", {"P": ["Sage"], "Q": ["Lover"]})
        q2 = make_question("Q2", "Slider", {"7": ["Lover"]})
        result = scoring_service.score([_answer(q1, ["P", "Q"]), _answer(q2, 1)], [q1, q2])
        assert _points(result, "Sage") == _points(result, "Lover") == 3
        assert result.primary_archetype.archetype is Archetype.SAGE

    def test_validator_subtotal_wins(self, scoring_service, make_question):
        """With equal counts the higher validator subtotal wins."""
        q1 = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        q2 = make_question("Q2", "Forced Choice", {"B": ["Ruler"]}, category="Validator")
        result = scoring_service.score([_answer(q1, "A"), _answer(q2, "B")], [q1, q2])
        assert result.primary_archetype.archetype is Archetype.RULER
        assert result.secondary_archetype.archetype is Archetype.HERO

    def test_shared_validator_maximum_goes_alphabetical(self, scoring_service, make_question):
        """Only candidates sharing the top validator subtotal reach the alphabetical rule."""
        q1 = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        q2 = make_question("Q2", "Forced Choice", {"A": ["Sage"]}, category="Validator")
        q3 = make_question("Q3", "Forced Choice", {"A": ["Ruler"]}, category="Validator")
        result = scoring_service.score(
            [_answer(q1, "A"), _answer(q2, "A"), _answer(q3, "A")], [q1, q2, q3],
        )
        assert result.primary_archetype.archetype is Archetype.RULER
        assert result.secondary_archetype.archetype is Archetype.SAGE

    def test_secondary_tie(self, scoring_service, make_question):
        """The runner-up is resolved with the same rules among the remainder."""
        q1 = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        q2 = make_question("Q2", "Forced Choice", {"A": ["Hero"]})
        q3 = make_question("Q3", "Forced Choice", {"A": ["Sage"]})
        q4 = make_question("Q4", "Forced Choice", {"A": ["Jester"]}, category="Validator")
        questions = [q1, q2, q3, q4]
        result = scoring_service.score([_answer(q, "A") for q in questions], questions)
        assert result.primary_archetype.archetype is Archetype.HERO
        assert result.secondary_archetype.archetype is Archetype.JESTER

    def test_zero_runners_up_resolve_alphabetically(self, scoring_service, make_question):
        """With one scored archetype the secondary is the alphabetically first of the rest."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        result = scoring_service.score([_answer(q, "A")], [q])
        assert result.secondary_archetype.archetype is Archetype.CAREGIVER


class TestConfidence:
    """Confidence = 100 x (0.7 x completion + 0.3 x normalised strength)."""

    def test_full_completion_single_choices(self, scoring_service, make_question):
        """Every question answered with single choices gives 80."""
        q1 = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        q2 = make_question("Q2", "Word Choice", {"A": ["Sage"]})
        result = scoring_service.score([_answer(q1, "A"), _answer(q2, "A")], [q1, q2])
        assert result.confidence == 80

    def test_extreme_slider(self, scoring_service, make_question):
        """A single extreme slider on a one-question catalogue gives 100."""
        q = make_question("Q1", "Slider", {"7": ["Explorer", "Outlaw"]})
        result = scoring_service.score([_answer(q, 7)], [q])
        assert result.confidence == 100

    def test_neutral_slider_has_no_strength(self, scoring_service, make_question):
        """A slider at 4 contributes completion only."""
        q = make_question("Q1", "Slider", {"7": ["Explorer"]})
        assert scoring_service.calculate_confidence([_answer(q, 4)], [q]) == 70

    def test_partial_completion(self, scoring_service, make_question):
        """Half the questions answered with single choices gives 45."""
        questions = [make_question(f"Q{i}", "Forced Choice", {"A": ["Hero"]}) for i in range(4)]
        responses = [_answer(questions[0], "A"), _answer(questions[1], "A")]
        assert scoring_service.calculate_confidence(responses, questions) == 45

    def test_selection_and_ranking_strength(self, scoring_service, make_question):
        """Two selections and a ranking both carry strength 2."""
        multi = make_question("Q1", "Word Choice (Multi)", {"A": ["Hero"], "B": ["Sage"]})
        ranking = make_question("Q2", "Ranking", {"A": ["Hero"], "B": ["Sage"]})
        responses = [_answer(multi, ["A", "B"]), _answer(ranking, ["B", "A"])]
        assert scoring_service.calculate_confidence(responses, [multi, ranking]) == 90

    def test_unknown_questions_do_not_inflate_completion(self, scoring_service, make_question):
        """Responses to unknown questions are left out of the completion rate."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        stale = Response(question_id="GONE", answer=ChoiceAnswer(option="A"))
        result = scoring_service.score([_answer(q, "A"), stale], [q])
        assert result.confidence == 80

    def test_matches_score_result(self, scoring_service, bank_catalogue):
        """calculate_confidence agrees with the confidence inside a full result."""
        q = bank_catalogue.get("V01")
        responses = [_answer(q, "Breaking boundaries")]
        result = scoring_service.score(responses, bank_catalogue.questions)
        assert scoring_service.calculate_confidence(responses, bank_catalogue.questions) == result.confidence

    def test_no_responses(self, scoring_service, make_question):
        """No resolved responses gives zero."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        assert scoring_service.calculate_confidence([], [q]) == 0


class TestTolerance:
    """Responses the engine skips instead of raising on."""

    def test_unknown_question_ignored(self, scoring_service, make_question):
        """A response to a question not in the catalogue changes nothing."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        stale = Response(question_id="GONE", answer=ChoiceAnswer(option="A"))
        with_stale = scoring_service.score([_answer(q, "A"), stale], [q])
        without = scoring_service.score([_answer(q, "A")], [q])
        assert with_stale.all_scores == without.all_scores

    def test_answer_kind_mismatch_skipped(self, scoring_service, make_question):
        """A slider answer to a choice question is skipped."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        wrong = Response(question_id="Q1", answer=SliderAnswer(value=6))
        result = scoring_service.score([wrong], [q])
        assert all(s.score == 0 for s in result.all_scores)
        assert result.confidence == 0

    def test_duplicate_question_ids_use_first(self, scoring_service, make_question):
        """When a catalogue repeats an id the first question wins."""
        first = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        second = make_question("Q1", "Forced Choice", {"A": ["Sage"]})
        result = scoring_service.score([_answer(first, "A")], [first, second])
        assert _points(result, "Hero") == 3
        assert _points(result, "Sage") == 0


class TestPurity:
    """Scoring is deterministic and leaves its inputs alone."""

    def test_idempotent(self, scoring_service, make_question):
        """Scoring the same batch twice gives the same result apart from the timestamp."""
        q1 = make_question("Q1", "Ranking", {"A": ["Lover"], "B": ["Sage"], "C": ["Hero"]})
        q2 = make_question("Q2", "Slider", {"7": ["Explorer"]})
        responses = [_answer(q1, ["B", "C", "A"]), _answer(q2, 6)]
        first = scoring_service.score(responses, [q1, q2])
        second = scoring_service.score(responses, [q1, q2])
        assert first.model_dump(exclude={"completed_at"}) == second.model_dump(exclude={"completed_at"})

    def test_inputs_unchanged(self, scoring_service, make_question):
        """The response and question sequences are not modified."""
        q = make_question("Q1", "Forced Choice", {"A": ["Hero"]})
        responses = [_answer(q, "A")]
        questions = [q]
        snapshot = (list(responses), list(questions))
        scoring_service.score(responses, questions)
        assert (responses, questions) == snapshot

    def test_module_level_score(self, make_question):
        """The module-level helper scores with default settings."""
        q = make_question("Q1", "Forced Choice", {"A": ["Magician"]})
        result = scoring_module.score([_answer(q, "A")], [q])
        assert result.primary_archetype.archetype is Archetype.MAGICIAN


class TestPackagedBank:
    """End-to-end scoring against the shipped question bank."""

    def test_validator_answer(self, scoring_service, bank_catalogue):
        """A single validator answer makes its archetype primary."""
        q = bank_catalogue.get("V01")
        result = scoring_service.score(
            [_answer(q, "Breaking boundaries")], bank_catalogue.questions,
        )
        assert result.primary_archetype.archetype is Archetype.OUTLAW
        assert result.section_scores.validator[Archetype.OUTLAW] == 3
        # 100 x (0.7 x 1/31 + 0.3 x 1/3)
        assert result.confidence == 12

    def test_freedom_slider(self, scoring_service, bank_catalogue):
        """The freedom slider at 7 scores Explorer 7."""
        q = bank_catalogue.get("B06")
        result = scoring_service.score([_answer(q, 7)], bank_catalogue.questions)
        assert result.primary_archetype.archetype is Archetype.EXPLORER
        assert _points(result, "Explorer") == 7
        assert result.confidence == 32
