# survey_insights/workflows/factory.py
from __future__ import annotations

from typing import Optional

from survey_insights.analysis.classifier import TextBlobClassifier, TextClassifier
from survey_insights.app.config import Settings, load_settings
from survey_insights.app.logging import setup_logging
from survey_insights.workflows.session import LiveAnalysisSession


def build_session(
    settings: Optional[Settings] = None,
    classifier: Optional[TextClassifier] = None,
    configure_logging: bool = True,
) -> LiveAnalysisSession:
    # --- 1. Configuration (once per process) ---
    settings = settings or load_settings()
    if configure_logging:
        setup_logging(settings.log_level, json_logs=settings.log_json)

    # --- 2. Shared classifier, injected everywhere it is used ---
    classifier = classifier or TextBlobClassifier.from_settings(settings)

    return LiveAnalysisSession(classifier, settings)
