# survey_insights/tools/export.py
from __future__ import annotations

from typing import Any, List, Mapping

import pandas as pd

from survey_insights.analysis.models import (
    ChoiceAnalysis,
    QuestionAnalysis,
    RatingAnalysis,
    TextAnalysis,
    unhandled_analysis,
)


EXPORT_COLUMNS = ["Question", "Type", "Response", "Count"]


def export_rows(analyses: Mapping[str, QuestionAnalysis], include_header: bool = True) -> List[List[Any]]:
    """
    Tabular rows for spreadsheet/CSV/PDF writers.

    One row per choice option, per rating bucket, and per raw text answer (count 1).
    """
    rows: List[List[Any]] = [list(EXPORT_COLUMNS)] if include_header else []
    for analysis in analyses.values():
        q_text = analysis.question_text
        q_type = analysis.question_type.value
        if isinstance(analysis, ChoiceAnalysis):
            rows.extend([q_text, q_type, o.name, o.count] for o in analysis.options)
        elif isinstance(analysis, RatingAnalysis):
            rows.extend([q_text, q_type, str(score), count] for score, count in sorted(analysis.ratings.items()))
        elif isinstance(analysis, TextAnalysis):
            rows.extend([q_text, q_type, text, 1] for text in analysis.responses)
        else:
            unhandled_analysis(analysis)
    return rows


def to_dataframe(analyses: Mapping[str, QuestionAnalysis]) -> pd.DataFrame:
    df = pd.DataFrame(export_rows(analyses, include_header=False), columns=EXPORT_COLUMNS)
    df["Count"] = df["Count"].astype(int)
    return df
