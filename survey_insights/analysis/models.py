# survey_insights/analysis/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

from survey_insights.app.errors import SurveyDefinitionError
from survey_insights.app.logging import get_logger


logger = get_logger(__name__)

Sentiment = Literal["positive", "neutral", "negative"]

# Fixed bucket order; also the tie-break order for the dominant sentiment.
SENTIMENT_BUCKETS: Tuple[Sentiment, ...] = ("positive", "neutral", "negative")


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    RATING = "rating"
    NPS = "nps"
    OPEN_ENDED = "open_ended"
    CONVERSATIONAL = "conversational"

    @property
    def is_choice(self) -> bool:
        return self in (QuestionType.SINGLE_CHOICE, QuestionType.MULTI_CHOICE)

    @property
    def is_scored(self) -> bool:
        return self in (QuestionType.RATING, QuestionType.NPS)

    @property
    def is_text(self) -> bool:
        return self in (QuestionType.OPEN_ENDED, QuestionType.CONVERSATIONAL)

    @staticmethod
    def parse(raw: Any) -> Optional["QuestionType"]:
        """Map a raw type string (including the survey builder's legacy names) to a QuestionType."""
        if isinstance(raw, QuestionType):
            return raw
        if not isinstance(raw, str):
            return None
        key = raw.strip().lower().replace("-", "_").replace(" ", "_")
        return _TYPE_ALIASES.get(key)


_TYPE_ALIASES: Dict[str, QuestionType] = {
    "single_choice": QuestionType.SINGLE_CHOICE,
    "multiple_choice": QuestionType.SINGLE_CHOICE,
    "radio": QuestionType.SINGLE_CHOICE,
    "multi_choice": QuestionType.MULTI_CHOICE,
    "checkbox": QuestionType.MULTI_CHOICE,
    "rating": QuestionType.RATING,
    "nps": QuestionType.NPS,
    "open_ended": QuestionType.OPEN_ENDED,
    "text": QuestionType.OPEN_ENDED,
    "conversational": QuestionType.CONVERSATIONAL,
}


def _first_key(d: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


# -------------------------
# Survey definition + submissions (immutable)
# -------------------------

@dataclass(frozen=True)
class Question:
    question_id: str
    text: str
    type: QuestionType
    options: Tuple[str, ...] = ()

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> Optional["Question"]:
        """
        Build a Question from a REST payload.

        Returns None for question types this engine does not analyse (sliders, rankings, uploads).
        Raises SurveyDefinitionError when the payload is structurally unusable.
        """
        if not isinstance(d, Mapping):
            raise SurveyDefinitionError(f"Question must be a mapping, got {type(d).__name__}")

        qid = _first_key(d, "_id", "id", "question_id", "questionId")
        if qid is None or str(qid).strip() == "":
            raise SurveyDefinitionError("Question is missing an id.")

        raw_type = _first_key(d, "questionType", "question_type", "type")
        q_type = QuestionType.parse(raw_type)
        if q_type is None:
            logger.debug("unsupported question type", extra={"question_id": str(qid), "question_type": str(raw_type)})
            return None

        options: List[str] = []
        if q_type.is_choice:
            for opt in d.get("options") or []:
                label = _first_key(opt, "text", "label", "name") if isinstance(opt, Mapping) else opt
                if label is None:
                    continue
                label = str(label)
                if label in options:
                    raise SurveyDefinitionError(f"Duplicate option label {label!r} in question {qid}.")
                options.append(label)

        return Question(
            question_id=str(qid),
            text=str(_first_key(d, "questionText", "question_text", "text", default="")),
            type=q_type,
            options=tuple(options),
        )


@dataclass(frozen=True)
class Survey:
    survey_id: str
    title: str
    questions: Tuple[Question, ...] = ()

    def __post_init__(self) -> None:
        seen = set()
        for q in self.questions:
            if q.question_id in seen:
                raise SurveyDefinitionError(f"Duplicate question id {q.question_id!r}.")
            seen.add(q.question_id)

    def nps_question(self) -> Optional[Question]:
        for q in self.questions:
            if q.type is QuestionType.NPS:
                return q
        return None

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Survey":
        if not isinstance(d, Mapping):
            raise SurveyDefinitionError(f"Survey must be a mapping, got {type(d).__name__}")
        questions = []
        for raw in d.get("questions") or []:
            q = Question.from_dict(raw)
            if q is not None:
                questions.append(q)
        return Survey(
            survey_id=str(_first_key(d, "_id", "id", "survey_id", default="")),
            title=str(d.get("title") or ""),
            questions=tuple(questions),
        )


@dataclass(frozen=True)
class Answer:
    # payload shape depends on the target question type; validated at fold time
    question_id: Optional[str]
    payload: Any = None

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Answer":
        if not isinstance(d, Mapping):
            return Answer(question_id=None, payload=d)
        qid = _first_key(d, "questionId", "question_id")
        payload = _first_key(d, "answerText", "answer", "payload", "value")
        if isinstance(payload, list):
            payload = tuple(payload)
        return Answer(question_id=None if qid is None else str(qid), payload=payload)


@dataclass(frozen=True)
class Response:
    response_id: str
    answers: Tuple[Answer, ...] = ()
    respondent_ref: Optional[str] = None
    survey_id: Optional[str] = None

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Response":
        if not isinstance(d, Mapping):
            return Response(response_id="")
        respondent = _first_key(d, "respondent", "respondentRef", "respondent_ref")
        survey_id = _first_key(d, "surveyId", "survey_id")
        return Response(
            response_id=str(_first_key(d, "_id", "id", "response_id", default="")),
            answers=tuple(Answer.from_dict(a) for a in (d.get("answers") or [])),
            respondent_ref=None if respondent is None else str(respondent),
            survey_id=None if survey_id is None else str(survey_id),
        )


# -------------------------
# Per-question analysis (closed sum type, mutated additively by the aggregator)
# -------------------------

@dataclass
class OptionCount:
    name: str
    count: int = 0


@dataclass
class ChoiceAnalysis:
    question_id: str
    question_text: str
    question_type: QuestionType
    options: List[OptionCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionText": self.question_text,
            "type": self.question_type.value,
            "options": [{"name": o.name, "count": o.count} for o in self.options],
        }


@dataclass
class RatingAnalysis:
    question_id: str
    question_text: str
    question_type: QuestionType
    ratings: Dict[int, int] = field(default_factory=dict)
    average: float = 0.0

    @property
    def total(self) -> int:
        return sum(self.ratings.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionText": self.question_text,
            "type": self.question_type.value,
            "ratings": {str(k): v for k, v in sorted(self.ratings.items())},
            "average": self.average,
        }


def _empty_sentiment() -> Dict[str, int]:
    return {bucket: 0 for bucket in SENTIMENT_BUCKETS}


@dataclass
class TextAnalysis:
    question_id: str
    question_text: str
    question_type: QuestionType
    responses: List[str] = field(default_factory=list)
    sentiment: Dict[str, int] = field(default_factory=_empty_sentiment)
    themes: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionText": self.question_text,
            "type": self.question_type.value,
            "responses": list(self.responses),
            "sentiment": dict(self.sentiment),
            "themes": dict(self.themes),
        }


QuestionAnalysis = Union[ChoiceAnalysis, RatingAnalysis, TextAnalysis]
AnalysisMap = Dict[str, QuestionAnalysis]


def unhandled_analysis(analysis: Any) -> None:
    # Reached only when a new variant is added without updating a consumer.
    raise TypeError(f"Unhandled analysis variant: {type(analysis).__name__}")
