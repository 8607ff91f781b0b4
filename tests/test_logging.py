"""
Tests for the logging setup: JSON formatting and survey_id propagation.
"""

from __future__ import annotations

import json
import logging

from survey_insights.app.logging import (
    JsonFormatter,
    SurveyIdFilter,
    setup_logging,
    survey_context,
)


def _record(msg="aggregated", **extra):
    record = logging.LogRecord(
        name="survey_insights.analysis.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def _stamp(record):
    SurveyIdFilter().filter(record)
    return record.survey_id


def test_json_formatter_fields():
    record = _record(responses=3, question_id="q1")
    with survey_context("s1"):
        SurveyIdFilter().filter(record)

    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "aggregated"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "survey_insights.analysis.engine"
    assert payload["survey_id"] == "s1"
    assert payload["responses"] == 3
    assert payload["question_id"] == "q1"
    assert payload["ts"].endswith("Z")
    assert "lineno" not in payload


def test_non_serializable_extras_are_stringified():
    record = _record(obj=object())
    payload = json.loads(JsonFormatter().format(record))
    assert payload["obj"].startswith("<object object")


def test_survey_context_is_scoped_and_nests():
    assert _stamp(_record()) is None
    with survey_context("outer"):
        with survey_context("inner"):
            assert _stamp(_record()) == "inner"
        assert _stamp(_record()) == "outer"
    assert _stamp(_record()) is None


def test_survey_context_resets_on_error():
    try:
        with survey_context("boom"):
            raise RuntimeError("fail")
    except RuntimeError:
        pass
    assert _stamp(_record()) is None


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("debug", json_logs=False)
        setup_logging("warning", json_logs=True)
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
