"""
Student record business logic.

The service is a stateless pass-through over SQL: it validates payloads,
normalizes pagination and turns repository results into response dicts.
Consistency is left to Postgres; there is no cache and no retry.
"""

from __future__ import annotations

import logging
import math
import os
from typing import Any, Mapping

import pydantic

from core.errors import NotFoundError, ValidationError

from . import repository, schemas

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGE_SIZE = 100

# Column types: students.id is int4, LIMIT/OFFSET are int8.
MAX_STUDENT_ID = 2**31 - 1
MAX_OFFSET = 2**63 - 1

REQUIRED_FIELDS = ("first_name", "email", "dob")

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def default_page_size() -> int:
    size = _env_int("STUDENTS_PAGE_SIZE", DEFAULT_PAGE_SIZE)
    return size if size > 0 else DEFAULT_PAGE_SIZE


def max_page_size() -> int:
    size = _env_int("STUDENTS_MAX_PAGE_SIZE", DEFAULT_MAX_PAGE_SIZE)
    return size if size > 0 else DEFAULT_MAX_PAGE_SIZE


def normalize_positive_int(value: Any, default: int) -> int:
    """
    Absent, non-integer and non-positive values all fall back to `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return number if number > 0 else default


def parse_student_id(value: Any) -> int | None:
    """
    Ids that are not integers or fall outside the id column cannot match a row.
    """
    number = normalize_positive_int(value, 0)
    if number <= 0 or number > MAX_STUDENT_ID:
        return None
    return number


def total_pages(total: int, limit: int) -> int:
    # An empty table still reports one (empty) page.
    if total <= 0:
        return 1
    return math.ceil(total / limit)


def _describe(error: pydantic.ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"{field}: {first.get('msg', 'invalid value')}"


def validate_fields(fields: schemas.StudentFields | Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Check a create/update payload and return the five column values.

    Raises `ValidationError` before any statement is issued.
    """
    if isinstance(fields, schemas.StudentFields):
        model = fields
    else:
        try:
            model = schemas.StudentFields.model_validate(dict(fields or {}))
        except pydantic.ValidationError as e:
            raise ValidationError(_describe(e)) from e

    missing = [name for name in REQUIRED_FIELDS if getattr(model, name) is None]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    email = str(model.email)
    local, _, domain = email.partition("@")
    if not local or not domain:
        raise ValidationError("email: must be a valid email address")

    return {
        "first_name": model.first_name,
        "last_name": model.last_name,
        "email": email,
        "dob": model.dob,
        "gender": model.gender or schemas.DEFAULT_GENDER,
    }


async def create_student(fields: schemas.StudentFields | Mapping[str, Any] | None) -> dict[str, Any]:
    values = validate_fields(fields)
    result = await repository.insert_student(**values)
    logger.info("student_created id=%s", result.generated_id)
    return {"id": result.generated_id, **values}


async def list_students(page: Any = None, limit: Any = None) -> dict[str, Any]:
    """
    One page of students plus pagination metadata.

    Count and window are two separate reads; a concurrent insert/delete
    between them can make `total` disagree with the returned page.
    """
    page = normalize_positive_int(page, DEFAULT_PAGE)
    limit = min(normalize_positive_int(limit, default_page_size()), max_page_size())
    # Pages past the last representable offset are just empty pages.
    page = min(page, MAX_OFFSET // limit + 1)
    offset = (page - 1) * limit

    total = await repository.count_students()
    rows = await repository.list_students(limit=limit, offset=offset)
    return {
        "data": rows,
        "metadata": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages(total, limit),
        },
    }


async def get_student(student_id: Any) -> dict[str, Any]:
    student_id = parse_student_id(student_id)
    if student_id is None:
        raise NotFoundError("Student not found")

    student = await repository.get_student(student_id)
    if student is None:
        raise NotFoundError("Student not found")

    marks = await repository.list_marks_for_student(student_id)
    return {**student, "marks": marks}


async def update_student(
    student_id: Any,
    fields: schemas.StudentFields | Mapping[str, Any] | None,
) -> int:
    """
    Replace all mutable fields. Returns rows affected; 0 for an unknown id.
    """
    values = validate_fields(fields)
    student_id = parse_student_id(student_id)
    if student_id is None:
        return 0
    result = await repository.update_student(student_id, **values)
    logger.info("student_updated id=%s rows=%s", student_id, result.rows_affected)
    return result.rows_affected


async def delete_student(student_id: Any) -> int:
    student_id = parse_student_id(student_id)
    if student_id is None:
        return 0
    result = await repository.delete_student(student_id)
    logger.info("student_deleted id=%s rows=%s", student_id, result.rows_affected)
    return result.rows_affected
