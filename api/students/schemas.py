"""
Pydantic schemas for student endpoints.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Gender = Literal["Male", "Female", "Other"]

DEFAULT_GENDER: Gender = "Male"


class StudentFields(BaseModel):
    """
    The five mutable student fields as sent by create/update.

    Everything is optional here; required-field checks happen in the
    service so direct callers and HTTP callers get the same errors.
    Unknown keys (e.g. `id`, `marks` echoed back by an edit form) are ignored.
    """

    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    dob: date | None = None
    gender: Gender | None = None

    @field_validator("first_name", "last_name", "email", "dob", "gender", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

