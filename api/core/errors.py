"""
Error taxonomy shared by the persistence adapter and the student service.

`main.py` maps these onto HTTP responses.
"""

from __future__ import annotations


class StudentsError(RuntimeError):
    pass


class ValidationError(StudentsError):
    """A required field is missing or a value is malformed."""


class NotFoundError(StudentsError):
    pass


class StorageError(StudentsError):
    """Any driver-level failure. Carries the driver message verbatim."""


class ConstraintError(StorageError):
    """Unique / foreign-key / NOT NULL violation reported by the database."""
