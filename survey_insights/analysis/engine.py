# survey_insights/analysis/engine.py
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from survey_insights.analysis.aggregator import QuestionAggregator, init_analysis
from survey_insights.analysis.classifier import TextClassifier
from survey_insights.analysis.models import AnalysisMap, Question, Response
from survey_insights.app.logging import get_logger


logger = get_logger(__name__)


class SurveyAggregationEngine:
    """
    Builds the per-question analysis map for a survey.

    Every `aggregate` call allocates a fresh map, so concurrent calls never share state.
    `fold_response` adds one new response to an existing map; folding responses one at a
    time yields the same map as aggregating them all at once.
    """

    def __init__(self, classifier: TextClassifier):
        self.classifier = classifier
        self.aggregator = QuestionAggregator(classifier)

    def initialize(self, questions: Iterable[Question]) -> AnalysisMap:
        return {q.question_id: init_analysis(q) for q in questions}

    def aggregate(self, questions: Optional[Sequence[Question]], responses: Iterable[Response]) -> AnalysisMap:
        if questions is None:
            # No survey loaded yet.
            return {}

        analyses = self.initialize(questions)
        snapshot = list(responses)
        skipped = 0
        for response in snapshot:
            skipped += self.fold_response(analyses, response)

        logger.info(
            "aggregated survey responses",
            extra={"responses": len(snapshot), "questions": len(analyses), "skipped_answers": skipped},
        )
        return analyses

    def fold_response(self, analyses: AnalysisMap, response: Response) -> int:
        """Fold every answer of one response into `analyses`; returns the number of skipped answers."""
        skipped = 0
        for answer in response.answers:
            analysis = analyses.get(answer.question_id) if answer.question_id is not None else None
            if analysis is None:
                logger.debug(
                    "answer skipped",
                    extra={"question_id": answer.question_id, "reason": "unknown question"},
                )
                skipped += 1
                continue
            if not self.aggregator.fold(analysis, answer):
                skipped += 1
        return skipped


def aggregate(
    questions: Optional[Sequence[Question]],
    responses: Iterable[Response],
    classifier: TextClassifier,
) -> AnalysisMap:
    return SurveyAggregationEngine(classifier).aggregate(questions, responses)
