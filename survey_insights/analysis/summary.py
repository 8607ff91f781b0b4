# survey_insights/analysis/summary.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from survey_insights.analysis.classifier import TextClassifier
from survey_insights.analysis.engine import SurveyAggregationEngine
from survey_insights.analysis.models import (
    SENTIMENT_BUCKETS,
    AnalysisMap,
    ChoiceAnalysis,
    RatingAnalysis,
    Response,
    Sentiment,
    Survey,
    TextAnalysis,
    unhandled_analysis,
)
from survey_insights.analysis.nps import compute_nps_breakdown


NO_THEMES_PHRASE = "no recurring themes yet"
NO_FOCUS_PHRASE = "general feedback"
DEFAULT_TOP_THEMES = 3


@dataclass(frozen=True)
class ExecutiveSummary:
    response_count: int
    nps_score: Optional[int]
    # Qualifying NPS answers behind nps_score; 0 means the score carries no data.
    nps_respondents: int
    sentiment: Dict[str, int]
    dominant_sentiment: Sentiment
    themes: Tuple[str, ...] = ()
    insights: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "responseCount": self.response_count,
            "npsScore": self.nps_score,
            "npsRespondents": self.nps_respondents,
            "sentiment": dict(self.sentiment),
            "dominantSentiment": self.dominant_sentiment,
            "themes": list(self.themes),
            "insights": self.insights,
        }


def total_sentiment(analyses: Mapping[str, Any]) -> Dict[str, int]:
    totals = {bucket: 0 for bucket in SENTIMENT_BUCKETS}
    for analysis in analyses.values():
        if isinstance(analysis, TextAnalysis):
            for bucket in SENTIMENT_BUCKETS:
                totals[bucket] += analysis.sentiment.get(bucket, 0)
        elif isinstance(analysis, (ChoiceAnalysis, RatingAnalysis)):
            continue
        else:
            unhandled_analysis(analysis)
    return totals


def dominant_sentiment(sentiment: Mapping[str, int]) -> Sentiment:
    # Ties go to the earliest bucket in positive, neutral, negative order.
    best = SENTIMENT_BUCKETS[0]
    for bucket in SENTIMENT_BUCKETS[1:]:
        if sentiment.get(bucket, 0) > sentiment.get(best, 0):
            best = bucket
    return best


def rank_themes(analyses: Mapping[str, Any], limit: int = DEFAULT_TOP_THEMES) -> List[str]:
    """Merge theme counts across text questions and return the `limit` most frequent."""
    merged: Dict[str, int] = {}
    for analysis in analyses.values():
        if isinstance(analysis, TextAnalysis):
            for theme, count in analysis.themes.items():
                merged[theme] = merged.get(theme, 0) + count
    # sorted() is stable, so equal counts keep first-seen order.
    ranked = sorted(merged.items(), key=lambda kv: kv[1], reverse=True)
    return [theme for theme, _ in ranked[:limit]]


def render_insights(
    response_count: int,
    nps_score: Optional[int],
    dominant: Sentiment,
    themes: Sequence[str],
) -> str:
    nps_phrase = f"Net Promoter Score of {nps_score}" if nps_score else "varied response"
    theme_phrase = ", ".join(themes) if themes else NO_THEMES_PHRASE
    focus = themes[0] if themes else NO_FOCUS_PHRASE
    return (
        f"Based on {response_count} responses, the survey shows a {nps_phrase}. "
        f"Sentiment is predominantly {dominant}. "
        f"Key themes include {theme_phrase}. "
        f"Focus on addressing {focus} to improve satisfaction."
    )


def build_summary(
    survey: Survey,
    responses: Sequence[Response],
    analyses: AnalysisMap,
    top_themes: int = DEFAULT_TOP_THEMES,
) -> ExecutiveSummary:
    # Assemble a summary from an analysis map already computed for `responses`.
    nps_question = survey.nps_question()
    nps_score: Optional[int] = None
    nps_respondents = 0
    if nps_question is not None:
        breakdown = compute_nps_breakdown(responses, nps_question.question_id)
        nps_score = breakdown.score
        nps_respondents = breakdown.total

    sentiment = total_sentiment(analyses)
    dominant = dominant_sentiment(sentiment)
    themes = rank_themes(analyses, limit=top_themes)

    return ExecutiveSummary(
        response_count=len(responses),
        nps_score=nps_score,
        nps_respondents=nps_respondents,
        sentiment=sentiment,
        dominant_sentiment=dominant,
        themes=tuple(themes),
        insights=render_insights(len(responses), nps_score, dominant, themes),
    )


def summarize(
    survey: Optional[Survey],
    responses: Sequence[Response],
    classifier: TextClassifier,
    top_themes: int = DEFAULT_TOP_THEMES,
) -> Optional[ExecutiveSummary]:
    """
    Re-aggregate `responses` from scratch and build the executive summary.

    Returns None when no survey is loaded yet.
    """
    if survey is None:
        return None
    snapshot = list(responses)
    analyses = SurveyAggregationEngine(classifier).aggregate(survey.questions, snapshot)
    return build_summary(survey, snapshot, analyses, top_themes=top_themes)
