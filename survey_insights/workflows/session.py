# survey_insights/workflows/session.py
from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from survey_insights.analysis.classifier import TextClassifier
from survey_insights.analysis.engine import SurveyAggregationEngine
from survey_insights.analysis.models import AnalysisMap, Response, Survey
from survey_insights.analysis.summary import ExecutiveSummary, build_summary
from survey_insights.app.config import Settings
from survey_insights.app.logging import get_logger, survey_context


logger = get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class LiveAnalysisSession:
    """
    Owns the analysis map for one survey while responses keep arriving.

    The session is the single writer: `load` and `apply` hold the lock while they mutate,
    and readers get deep copies. `apply` folds only the new response, which leaves the map
    equal to a full re-aggregation over every response seen so far.

    Loads are serialised. While a load aggregates its snapshot, `apply` parks new responses
    in a pending buffer; the load folds them into the fresh map before swapping it in, so a
    response accepted mid-reload is never lost. Readers keep seeing the previous map until
    the swap.
    """

    def __init__(self, classifier: TextClassifier, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.engine = SurveyAggregationEngine(classifier)
        self._lock = threading.Lock()
        self._load_lock = threading.Lock()
        self._survey: Optional[Survey] = None
        self._responses: List[Response] = []
        self._analyses: AnalysisMap = {}
        # Set only while a load is aggregating.
        self._loading: Optional[Survey] = None
        self._pending: Optional[List[Response]] = None
        self.updated_at: Optional[str] = None

    @property
    def survey(self) -> Optional[Survey]:
        return self._survey

    @property
    def responses(self) -> Tuple[Response, ...]:
        with self._lock:
            return tuple(self._responses)

    def load(self, survey: Survey, responses: Iterable[Response] = ()) -> None:
        snapshot = list(responses)
        with self._load_lock, survey_context(survey.survey_id):
            with self._lock:
                self._loading = survey
                self._pending = []
            try:
                analyses = self.engine.aggregate(survey.questions, snapshot)
                with self._lock:
                    seen = {r.response_id for r in snapshot if r.response_id}
                    for response in self._pending:
                        if response.response_id and response.response_id in seen:
                            continue
                        seen.add(response.response_id)
                        snapshot.append(response)
                        self.engine.fold_response(analyses, response)
                    self._survey = survey
                    self._responses = snapshot
                    self._analyses = analyses
                    self._touch()
            finally:
                with self._lock:
                    self._loading = None
                    self._pending = None

    def apply(self, response: Response) -> bool:
        """Fold one newly submitted response. Returns False when it was not accepted."""
        with self._lock:
            target = self._loading or self._survey
            if target is None:
                logger.warning("response received before survey was loaded", extra={"response_id": response.response_id})
                return False
            if response.survey_id is not None and response.survey_id != target.survey_id:
                return False
            with survey_context(target.survey_id):
                if self._pending is not None:
                    self._pending.append(response)
                    logger.debug("response queued behind reload", extra={"response_id": response.response_id})
                    return True
                self._responses.append(response)
                skipped = self.engine.fold_response(self._analyses, response)
                self._touch()
                logger.debug(
                    "response folded",
                    extra={"response_id": response.response_id, "skipped_answers": skipped},
                )
        return True

    def analysis(self) -> AnalysisMap:
        with self._lock:
            return copy.deepcopy(self._analyses)

    def summary(self) -> Optional[ExecutiveSummary]:
        with self._lock:
            if self._survey is None:
                return None
            survey = self._survey
            responses = list(self._responses)
            analyses = copy.deepcopy(self._analyses)
        return build_summary(survey, responses, analyses, top_themes=self.settings.top_themes)

    def _touch(self) -> None:
        self.updated_at = _now()
