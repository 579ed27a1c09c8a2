"""Failure kinds reported by the course service.

Each kind maps to exactly one HTTP status in the courses router.
"""

from __future__ import annotations

from typing import Iterable


class CourseError(Exception):
    """Base class for course service failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CourseError):
    """Missing or malformed input; nothing was written."""

    status_code = 400

    @classmethod
    def missing(cls, fields: Iterable[str]) -> "ValidationError":
        return cls("missing required fields: " + ", ".join(fields))


class ConflictError(CourseError):
    """A course with the same code already exists; nothing was written."""

    status_code = 409

    def __init__(self, code: str) -> None:
        super().__init__(f"course {code} already exists")
        self.code = code


class NotFoundError(CourseError):
    status_code = 404

    def __init__(self, code: str) -> None:
        super().__init__(f"course {code} not found")
        self.code = code


class PartialFailure(CourseError):
    """The record write and the index write did not complete as one unit.

    The caller must not assume the record is (or is not) visible through
    the listing endpoint.
    """

    status_code = 500

    def __init__(self, action: str, code: str, *, applied: int = 0) -> None:
        super().__init__(f"{action} of course {code} did not complete")
        self.action = action
        self.code = code
        self.applied = applied


__all__ = [
    "ConflictError",
    "CourseError",
    "NotFoundError",
    "PartialFailure",
    "ValidationError",
]
