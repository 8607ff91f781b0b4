from __future__ import annotations


class AppError(Exception):
    # Base class for domain errors (intended, meaningful failures).
    pass


class SurveyDefinitionError(AppError):
    # Raised when a raw survey payload cannot be turned into a Survey (missing ids, duplicates, wrong shape).
    pass


class AnswerPayloadError(AppError):
    # Raised when an answer payload does not fit its question type or a score is not an integer.
    # The aggregator catches it and skips the answer.
    pass
