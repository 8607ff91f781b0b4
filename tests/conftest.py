from __future__ import annotations

from typing import Any, Dict, Iterable

import pytest

from survey_insights.analysis.classifier import Classification
from survey_insights.analysis.models import Answer, Question, QuestionType, Response, Survey


POSITIVE_WORDS = {"good", "great", "love", "excellent", "fast"}
NEGATIVE_WORDS = {"bad", "slow", "terrible", "broken", "expensive"}
TOPICS = ("price", "support", "delivery", "app")


class KeywordClassifier:
    """Deterministic stand-in for the TextBlob classifier."""

    fallback_theme = "general"

    def __init__(self) -> None:
        self.calls = 0

    def classify(self, text: Any) -> Classification:
        self.calls += 1
        if not isinstance(text, str):
            return Classification(sentiment="neutral", themes=(self.fallback_theme,))
        words = set(text.lower().replace(",", " ").replace(".", " ").split())
        pos = len(words & POSITIVE_WORDS)
        neg = len(words & NEGATIVE_WORDS)
        if pos > neg:
            sentiment = "positive"
        elif neg > pos:
            sentiment = "negative"
        else:
            sentiment = "neutral"
        themes = tuple(t for t in TOPICS if t in words) or (self.fallback_theme,)
        return Classification(sentiment=sentiment, themes=themes)


def make_response(response_id: str, answers: Dict[str, Any], survey_id: str = None) -> Response:
    return Response(
        response_id=response_id,
        answers=tuple(Answer(question_id=qid, payload=payload) for qid, payload in answers.items()),
        survey_id=survey_id,
    )


def make_responses(question_id: str, payloads: Iterable[Any]) -> list:
    return [make_response(f"r{i}", {question_id: p}) for i, p in enumerate(payloads)]


@pytest.fixture
def classifier() -> KeywordClassifier:
    return KeywordClassifier()


@pytest.fixture
def survey() -> Survey:
    return Survey(
        survey_id="s1",
        title="Customer feedback",
        questions=(
            Question("q_choice", "Which plan?", QuestionType.SINGLE_CHOICE, ("A", "B")),
            Question("q_multi", "Which features?", QuestionType.MULTI_CHOICE, ("X", "Y", "Z")),
            Question("q_rating", "Rate us", QuestionType.RATING),
            Question("q_nps", "Would you recommend us?", QuestionType.NPS),
            Question("q_text", "Anything else?", QuestionType.OPEN_ENDED),
            Question("q_chat", "Tell us more", QuestionType.CONVERSATIONAL),
        ),
    )


@pytest.fixture
def responses() -> list:
    return [
        make_response("r1", {
            "q_choice": "A", "q_multi": ["X", "Y"], "q_rating": 4, "q_nps": 9,
            "q_text": "great support", "q_chat": "delivery was slow",
        }),
        make_response("r2", {
            "q_choice": "B", "q_multi": ["Y"], "q_rating": "5", "q_nps": 6,
            "q_text": "price is expensive", "q_chat": "love the app",
        }),
        make_response("r3", {
            "q_choice": "A", "q_multi": "Z", "q_rating": 4, "q_nps": 10,
            "q_text": "nothing to add",
        }),
    ]
