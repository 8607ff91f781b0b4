# survey_insights/analysis/classifier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Protocol, Tuple

from textblob import TextBlob
from textblob.exceptions import MissingCorpusError

from survey_insights.analysis.models import Sentiment
from survey_insights.app.config import Settings
from survey_insights.app.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class Classification:
    sentiment: Sentiment
    themes: Tuple[str, ...]


class TextClassifier(Protocol):
    def classify(self, text: Any) -> Classification:
        ...


def label_polarity(score: float, positive_threshold: float = 0.1, negative_threshold: float = -0.1) -> Sentiment:
    # Scores inside the dead-zone stay neutral.
    if score > positive_threshold:
        return "positive"
    if score < negative_threshold:
        return "negative"
    return "neutral"


def unique_themes(candidates: Iterable[str], limit: int) -> List[str]:
    """Normalise candidate topics and keep the first `limit` distinct ones, in order of appearance."""
    out: List[str] = []
    for c in candidates:
        theme = " ".join(str(c).split()).lower()
        if not theme or theme in out:
            continue
        out.append(theme)
        if len(out) >= limit:
            break
    return out


class TextBlobClassifier:
    """
    Sentiment + theme tagging for free-text answers, backed by TextBlob.

    Polarity comes from TextBlob's pattern analyzer (range -1..1) and is bucketed with the
    configured dead-zone. Themes are the noun phrases TextBlob extracts; text with no
    detectable topic gets the single fallback theme.

    Never raises on bad input: non-strings, empty text, or missing NLTK corpora degrade to
    neutral sentiment and/or the fallback theme.
    """

    def __init__(
        self,
        positive_threshold: float = 0.1,
        negative_threshold: float = -0.1,
        fallback_theme: str = "general",
        max_themes: int = 5,
    ):
        self.positive_threshold = positive_threshold
        self.negative_threshold = negative_threshold
        self.fallback_theme = fallback_theme
        self.max_themes = max_themes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextBlobClassifier":
        return cls(
            positive_threshold=settings.positive_threshold,
            negative_threshold=settings.negative_threshold,
            fallback_theme=settings.fallback_theme,
            max_themes=settings.max_themes_per_answer,
        )

    def classify(self, text: Any) -> Classification:
        if not isinstance(text, str) or not text.strip():
            return Classification(sentiment="neutral", themes=(self.fallback_theme,))

        blob = TextBlob(text)
        sentiment = label_polarity(
            float(blob.sentiment.polarity),
            positive_threshold=self.positive_threshold,
            negative_threshold=self.negative_threshold,
        )
        themes = self._themes(blob)
        return Classification(sentiment=sentiment, themes=tuple(themes or [self.fallback_theme]))

    def _themes(self, blob: TextBlob) -> List[str]:
        try:
            phrases = list(blob.noun_phrases)
        except (MissingCorpusError, LookupError):
            # Noun-phrase extraction needs the NLTK corpora (python -m textblob.download_corpora).
            logger.warning("textblob corpora missing; using fallback theme")
            return []
        return unique_themes(phrases, self.max_themes)
