# etl/errors.py
# -----------------------------------------------------------------------------
# Error types raised by the earned-value pipeline and its import/store layers.
# Every error carries a short machine-readable `code` next to the message.
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional, Union


class EarnedValueError(Exception):
    """Base class for errors raised while building earned-value curves."""

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.code = code or self.__class__.__name__


class InvalidRangeError(EarnedValueError, ValueError):
    """Raised when a date range ends before it starts."""


class DivisionByZeroError(EarnedValueError, ZeroDivisionError):
    """Raised when there is no total effort to normalize against."""


class BucketNotFoundError(EarnedValueError, LookupError):
    """
    Raised when a record points at a week bucket outside the generated range.

    `task_id` is None for timesheet entries; `field` names the column that
    held the offending bucket (planned_finish, actual_finish or timesheet).
    """

    def __init__(self, task_id: Union[int, str, None], bucket: int, field: str):
        who = "timesheet entry" if task_id is None else f"task {task_id}"
        super().__init__(
            f"{who}: {field} week {bucket} is outside the project week range",
            code="BUCKET_NOT_FOUND",
        )
        self.task_id = task_id
        self.bucket = bucket
        self.field = field


class ProjectDataError(EarnedValueError):
    """Raised when the task store holds nothing usable for a computation."""


class ProjectImportError(EarnedValueError, ValueError):
    """Raised when an MS Project or timesheet export cannot be parsed."""
