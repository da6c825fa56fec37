"""Error taxonomy for schedule parsing, normalization, CSV import and rules."""

from __future__ import annotations


class ScheduleError(ValueError):
    """Base class for all errors raised by shift_core."""


class ParseError(ScheduleError):
    """Raised when no employee rows can be recovered from schedule text."""


class FormatError(ScheduleError):
    """Raised when a single time token or day name is malformed."""


class ValidationError(ScheduleError):
    """A CSV row failed validation.

    Collected per row by the staff importer rather than raised, except for
    file-level problems (missing header, no data rows).
    """

    def __init__(self, message: str, *, row: int | None = None):
        self.row = row
        self.message = message
        super().__init__(f"Row {row}: {message}" if row is not None else message)


class RuleEvaluationError(ScheduleError):
    """Raised while decoding a malformed condition or action object.

    The rule engine catches it and treats the rule as never matching, so it
    never escapes ``evaluate``.
    """
