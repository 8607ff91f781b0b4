"""
Tests for the survey aggregation engine: full recompute, incremental fold, skip rules.
"""

from __future__ import annotations

import copy

import pytest

from conftest import make_response, make_responses
from survey_insights.analysis.engine import SurveyAggregationEngine, aggregate
from survey_insights.analysis.models import Answer, Question, QuestionType, Response


@pytest.fixture
def engine(classifier):
    return SurveyAggregationEngine(classifier)


def test_aggregate_builds_one_analysis_per_question(engine, survey, responses):
    analyses = engine.aggregate(survey.questions, responses)
    assert list(analyses) == [q.question_id for q in survey.questions]


def test_aggregate_full_survey(engine, survey, responses):
    analyses = engine.aggregate(survey.questions, responses)

    assert {o.name: o.count for o in analyses["q_choice"].options} == {"A": 2, "B": 1}
    assert {o.name: o.count for o in analyses["q_multi"].options} == {"X": 1, "Y": 2, "Z": 1}
    assert analyses["q_rating"].ratings == {4: 2, 5: 1}
    assert analyses["q_rating"].average == 4.33
    assert analyses["q_nps"].ratings == {9: 1, 6: 1, 10: 1}
    assert analyses["q_text"].sentiment == {"positive": 1, "neutral": 1, "negative": 1}
    assert analyses["q_chat"].responses == ["delivery was slow", "love the app"]


def test_single_choice_scenario(engine):
    questions = [Question("q", "Pick", QuestionType.SINGLE_CHOICE, ("A", "B"))]
    analyses = engine.aggregate(questions, make_responses("q", ["A", "B", "A"]))
    assert [(o.name, o.count) for o in analyses["q"].options] == [("A", 2), ("B", 1)]


def test_aggregate_is_idempotent(engine, survey, responses):
    assert engine.aggregate(survey.questions, responses) == engine.aggregate(survey.questions, responses)


def test_incremental_fold_matches_full_recompute(engine, survey, responses):
    new = make_response("r4", {"q_choice": "B", "q_rating": 1, "q_text": "bad price", "q_multi": ["X"]})

    running = engine.aggregate(survey.questions, responses)
    engine.fold_response(running, new)

    assert running == engine.aggregate(survey.questions, responses + [new])


def test_folding_one_at_a_time_matches_batch(engine, survey, responses):
    running = engine.initialize(survey.questions)
    for r in responses:
        engine.fold_response(running, r)
    assert running == engine.aggregate(survey.questions, responses)


def test_aggregate_allocates_a_fresh_map(engine, survey, responses):
    first = engine.aggregate(survey.questions, responses)
    before = copy.deepcopy(first)
    engine.aggregate(survey.questions, responses + responses)
    assert first == before


def test_unknown_and_missing_question_ids_are_skipped(engine, survey):
    response = Response(
        response_id="r",
        answers=(
            Answer("nope", "A"),
            Answer(None, "A"),
            Answer("q_choice", "A"),
        ),
    )
    analyses = engine.aggregate(survey.questions, [response])
    assert engine.fold_response(engine.initialize(survey.questions), response) == 2
    assert analyses["q_choice"].options[0].count == 1


def test_mismatched_payloads_do_not_abort_the_pass(engine, survey):
    bad = make_response("bad", {"q_choice": ["A"], "q_rating": "five", "q_text": 42})
    good = make_response("good", {"q_choice": "B", "q_rating": 3, "q_text": "good"})
    analyses = engine.aggregate(survey.questions, [bad, good])

    assert {o.name: o.count for o in analyses["q_choice"].options} == {"A": 0, "B": 1}
    assert analyses["q_rating"].ratings == {3: 1}
    assert analyses["q_text"].responses == ["good"]


def test_duplicate_answers_accumulate(engine, survey):
    response = Response("r", answers=(Answer("q_choice", "A"), Answer("q_choice", "A")))
    analyses = engine.aggregate(survey.questions, [response])
    assert analyses["q_choice"].options[0].count == 2


def test_choice_counts_conserved(engine):
    questions = [Question("q", "Pick", QuestionType.SINGLE_CHOICE, ("A", "B", "C"))]
    payloads = ["A", "C", "stale", "B", "A", "", "C", "C"]
    analyses = engine.aggregate(questions, make_responses("q", payloads))
    valid = sum(1 for p in payloads if p in ("A", "B", "C"))
    assert sum(o.count for o in analyses["q"].options) == valid


def test_no_survey_loaded_returns_empty_map(engine, responses):
    assert engine.aggregate(None, responses) == {}


def test_zero_responses_keeps_seeded_analyses(engine, survey):
    analyses = engine.aggregate(survey.questions, [])
    assert analyses["q_rating"].average == 0
    assert all(o.count == 0 for o in analyses["q_choice"].options)


def test_module_level_aggregate(classifier, survey, responses):
    assert aggregate(survey.questions, responses, classifier) == SurveyAggregationEngine(classifier).aggregate(
        survey.questions, responses
    )


def test_analysis_to_dict_shapes(engine, survey, responses):
    analyses = engine.aggregate(survey.questions, responses)

    assert analyses["q_choice"].to_dict() == {
        "questionText": "Which plan?",
        "type": "single_choice",
        "options": [{"name": "A", "count": 2}, {"name": "B", "count": 1}],
    }
    assert analyses["q_rating"].to_dict()["ratings"] == {"4": 2, "5": 1}
    assert analyses["q_text"].to_dict()["sentiment"] == {"positive": 1, "neutral": 1, "negative": 1}
    assert analyses["q_chat"].to_dict()["themes"] == {"delivery": 1, "app": 1}
