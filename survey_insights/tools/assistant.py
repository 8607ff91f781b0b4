# survey_insights/tools/assistant.py
from typing import Any, Callable, Dict, List, Optional

from langchain_core.tools import BaseTool, tool

from survey_insights.analysis.classifier import TextClassifier
from survey_insights.analysis.summary import ExecutiveSummary


NO_INSIGHTS = "No insights available."
ASK_FOR_TOPIC = "Please specify a topic or question about the survey."


def message_topics(message: Any, classifier: TextClassifier, fallback_theme: str = "general") -> List[str]:
    # The fallback theme means the classifier found nothing to talk about.
    themes = list(classifier.classify(message).themes)
    return [t for t in themes if t != fallback_theme]


def assistant_reply(
    message: Any,
    summary: Optional[ExecutiveSummary],
    classifier: TextClassifier,
    fallback_theme: str = "general",
) -> str:
    """Canned answer for the survey chat widget: echo the topics found and the summary insights."""
    topics = message_topics(message, classifier, fallback_theme=fallback_theme)
    if not topics:
        return ASK_FOR_TOPIC
    insights = summary.insights if summary is not None and summary.insights else NO_INSIGHTS
    return f"I found insights related to {', '.join(topics)}. {insights}"


def build_assistant_tools(
    classifier: TextClassifier,
    summary_provider: Callable[[], Optional[ExecutiveSummary]],
    fallback_theme: str = "general",
) -> List[BaseTool]:
    """
    Exposes the classifier and the current executive summary as LangChain tools.

    Args:
        classifier: Shared text classifier.
        summary_provider: Returns the latest summary (None while no survey is loaded).
        fallback_theme: Theme the classifier uses when it finds no topic.

    Returns:
        List[BaseTool]: classify_feedback, survey_summary, ask_survey_assistant.
    """

    @tool
    def classify_feedback(text: str) -> Dict[str, Any]:
        """Classify a piece of survey feedback. Returns its sentiment (positive/neutral/negative) and themes."""
        result = classifier.classify(text)
        return {"sentiment": result.sentiment, "themes": list(result.themes)}

    @tool
    def survey_summary() -> Dict[str, Any]:
        """Return the executive summary of the loaded survey: response count, NPS, sentiment, top themes, insights."""
        summary = summary_provider()
        if summary is None:
            return {"error": "No survey is loaded."}
        return summary.to_dict()

    @tool
    def ask_survey_assistant(message: str) -> str:
        """Answer a free-text question about the survey using the topics it mentions and the summary insights."""
        return assistant_reply(message, summary_provider(), classifier, fallback_theme=fallback_theme)

    return [classify_feedback, survey_summary, ask_survey_assistant]
