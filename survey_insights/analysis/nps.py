# survey_insights/analysis/nps.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from survey_insights.analysis.aggregator import parse_score
from survey_insights.analysis.models import Response
from survey_insights.app.errors import AnswerPayloadError


PROMOTER_MIN = 9
DETRACTOR_MAX = 6
NPS_SCALE = range(0, 11)


@dataclass(frozen=True)
class NPSBreakdown:
    promoters: int = 0
    passives: int = 0
    detractors: int = 0

    @property
    def total(self) -> int:
        return self.promoters + self.passives + self.detractors

    @property
    def score(self) -> int:
        # 0 both for "no data" and a true zero; check `total` to tell them apart.
        if self.total == 0:
            return 0
        return _round_half_up((self.promoters - self.detractors) / self.total * 100)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def compute_nps_breakdown(responses: Iterable[Response], nps_question_id: Optional[str]) -> NPSBreakdown:
    """
    Band the first answer per response that targets `nps_question_id`.

    Answers that are not integers on the 0-10 scale do not qualify and are left out of the total.
    """
    promoters = passives = detractors = 0
    if nps_question_id is None:
        return NPSBreakdown()

    for response in responses:
        answer = next((a for a in response.answers if a.question_id == nps_question_id), None)
        if answer is None:
            continue
        try:
            score = parse_score(answer.payload)
        except AnswerPayloadError:
            continue
        if score not in NPS_SCALE:
            continue
        if score >= PROMOTER_MIN:
            promoters += 1
        elif score <= DETRACTOR_MAX:
            detractors += 1
        else:
            passives += 1

    return NPSBreakdown(promoters=promoters, passives=passives, detractors=detractors)


def compute_nps(responses: Iterable[Response], nps_question_id: Optional[str]) -> int:
    return compute_nps_breakdown(responses, nps_question_id).score
