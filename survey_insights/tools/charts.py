# survey_insights/tools/charts.py
from __future__ import annotations

from typing import Any, Dict, List

from survey_insights.analysis.models import (
    ChoiceAnalysis,
    QuestionAnalysis,
    RatingAnalysis,
    TextAnalysis,
    unhandled_analysis,
)


def chart_series(analysis: QuestionAnalysis) -> List[Dict[str, Any]]:
    """
    Flattens one question analysis into the {name, count} pairs a chart widget plots.

    Args:
        analysis: A choice, rating/nps or text analysis.

    Returns:
        List[Dict]: options in survey order, rating buckets by ascending score, or
        sentiment buckets in positive/neutral/negative order.
    """
    if isinstance(analysis, ChoiceAnalysis):
        return [{"name": o.name, "count": o.count} for o in analysis.options]
    if isinstance(analysis, RatingAnalysis):
        return [{"name": str(score), "count": count} for score, count in sorted(analysis.ratings.items())]
    if isinstance(analysis, TextAnalysis):
        return [{"name": bucket, "count": count} for bucket, count in analysis.sentiment.items()]
    unhandled_analysis(analysis)
    return []


def theme_series(analysis: TextAnalysis, limit: int = 10) -> List[Dict[str, Any]]:
    # Most frequent themes first; ties keep first-seen order.
    ranked = sorted(analysis.themes.items(), key=lambda kv: kv[1], reverse=True)
    return [{"name": theme, "count": count} for theme, count in ranked[:limit]]
