"""
Student CRUD API endpoints.

Path ids are taken as raw strings; the service treats anything that is not
a valid student id as a row that does not exist (404 / 0 rows).
"""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from . import schemas, service

router = APIRouter(prefix="/api/students")


@router.get("", include_in_schema=False)
@router.get("/")
async def list_students(
    page: str | None = Query(default=None, max_length=20),
    limit: str | None = Query(default=None, max_length=20),
) -> dict:
    """
    One page of students. Junk or non-positive values fall back to defaults.
    """
    return await service.list_students(page=page, limit=limit)


@router.get("/{student_id}")
async def get_student(student_id: str) -> dict:
    return await service.get_student(student_id)


@router.post("", status_code=status.HTTP_201_CREATED, include_in_schema=False)
@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_student(request: schemas.StudentFields) -> dict:
    return await service.create_student(request)


@router.put("/{student_id}")
async def update_student(student_id: str, request: schemas.StudentFields) -> dict:
    updated = await service.update_student(student_id, request)
    return {"updated": updated}


@router.delete("/{student_id}")
async def delete_student(student_id: str) -> dict:
    deleted = await service.delete_student(student_id)
    return {"deleted": deleted}
