# survey_insights/analysis/aggregator.py
from __future__ import annotations

import math
from typing import Any, List

import numpy as np

from survey_insights.analysis.classifier import TextClassifier
from survey_insights.analysis.models import (
    Answer,
    ChoiceAnalysis,
    OptionCount,
    Question,
    QuestionAnalysis,
    QuestionType,
    RatingAnalysis,
    TextAnalysis,
    unhandled_analysis,
)
from survey_insights.app.errors import AnswerPayloadError
from survey_insights.app.logging import get_logger


logger = get_logger(__name__)


def init_analysis(question: Question) -> QuestionAnalysis:
    # Seed an empty analysis shaped for the question type.
    if question.type.is_choice:
        return ChoiceAnalysis(
            question_id=question.question_id,
            question_text=question.text,
            question_type=question.type,
            options=[OptionCount(name=label) for label in question.options],
        )
    if question.type.is_scored:
        return RatingAnalysis(
            question_id=question.question_id,
            question_text=question.text,
            question_type=question.type,
        )
    if question.type.is_text:
        return TextAnalysis(
            question_id=question.question_id,
            question_text=question.text,
            question_type=question.type,
        )
    raise TypeError(f"Unhandled question type: {question.type!r}")


# -------------------------
# Payload coercion (raises AnswerPayloadError; fold turns it into a skip)
# -------------------------

def parse_score(payload: Any) -> int:
    """Parse a rating/nps payload as an integer; ints, integral floats and numeric strings are accepted."""
    if isinstance(payload, bool):
        raise AnswerPayloadError("boolean is not a score")
    if isinstance(payload, int):
        return payload
    if isinstance(payload, float):
        if math.isfinite(payload) and payload.is_integer():
            return int(payload)
        raise AnswerPayloadError(f"non-integral score {payload!r}")
    if isinstance(payload, str):
        try:
            return int(payload.strip())
        except ValueError as e:
            raise AnswerPayloadError(f"score {payload!r} is not an integer") from e
    raise AnswerPayloadError(f"score payload of type {type(payload).__name__}")


def selected_labels(question_type: QuestionType, payload: Any) -> List[str]:
    if isinstance(payload, str):
        return [payload]
    if question_type is QuestionType.MULTI_CHOICE and isinstance(payload, (list, tuple, set, frozenset)):
        if not all(isinstance(label, str) for label in payload):
            raise AnswerPayloadError("multi-choice selection contains non-string labels")
        return list(payload)
    raise AnswerPayloadError(f"{question_type.value} payload of type {type(payload).__name__}")


def text_payload(payload: Any) -> str:
    if not isinstance(payload, str):
        raise AnswerPayloadError(f"text payload of type {type(payload).__name__}")
    return payload


def rating_average(ratings: dict) -> float:
    # Weighted mean of the histogram, 0 when empty.
    if not ratings:
        return 0.0
    scores = np.fromiter(ratings.keys(), dtype=float)
    counts = np.fromiter(ratings.values(), dtype=float)
    if counts.sum() <= 0:
        return 0.0
    return round(float(np.average(scores, weights=counts)), 2)


# -------------------------
# Fold
# -------------------------

class QuestionAggregator:
    """
    Folds answers into per-question analyses.

    The classifier is injected once and reused for every text answer. `fold` mutates the
    analysis in place and returns whether the answer was counted; mismatched payloads are
    skipped, never raised.
    """

    def __init__(self, classifier: TextClassifier):
        self.classifier = classifier

    def fold(self, analysis: QuestionAnalysis, answer: Answer) -> bool:
        try:
            if isinstance(analysis, ChoiceAnalysis):
                self._fold_choice(analysis, answer.payload)
            elif isinstance(analysis, RatingAnalysis):
                self._fold_rating(analysis, answer.payload)
            elif isinstance(analysis, TextAnalysis):
                self._fold_text(analysis, answer.payload)
            else:
                unhandled_analysis(analysis)
        except AnswerPayloadError as e:
            logger.debug(
                "answer skipped",
                extra={"question_id": analysis.question_id, "reason": str(e)},
            )
            return False
        return True

    def _fold_choice(self, analysis: ChoiceAnalysis, payload: Any) -> None:
        by_name = {opt.name: opt for opt in analysis.options}
        for label in selected_labels(analysis.question_type, payload):
            # Labels missing from the option list (stale options) are ignored.
            opt = by_name.get(label)
            if opt is not None:
                opt.count += 1

    def _fold_rating(self, analysis: RatingAnalysis, payload: Any) -> None:
        score = parse_score(payload)
        analysis.ratings[score] = analysis.ratings.get(score, 0) + 1
        analysis.average = rating_average(analysis.ratings)

    def _fold_text(self, analysis: TextAnalysis, payload: Any) -> None:
        text = text_payload(payload)
        result = self.classifier.classify(text)
        analysis.responses.append(text)
        analysis.sentiment[result.sentiment] = analysis.sentiment.get(result.sentiment, 0) + 1
        for theme in result.themes:
            analysis.themes[theme] = analysis.themes.get(theme, 0) + 1
