"""
Student persistence (raw SQL).
"""

from __future__ import annotations

from datetime import date

from core import db


STUDENT_COLUMNS = "id, first_name, last_name, email, dob, gender, created_at, updated_at"


async def insert_student(
    *,
    first_name: str,
    last_name: str | None,
    email: str,
    dob: date,
    gender: str,
) -> db.MutationResult:
    return await db.run(
        """
        INSERT INTO students (first_name, last_name, email, dob, gender)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING id
        """,
        first_name,
        last_name,
        email,
        dob,
        gender,
        returning_id=True,
    )


async def count_students() -> int:
    row = await db.fetch_one("SELECT COUNT(*) AS total FROM students")
    if row is None:
        return 0
    return int(row["total"])


async def list_students(*, limit: int, offset: int) -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {STUDENT_COLUMNS}
        FROM students
        ORDER BY id ASC
        LIMIT $1 OFFSET $2
        """,
        limit,
        offset,
    )


async def get_student(student_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {STUDENT_COLUMNS}
        FROM students
        WHERE id = $1
        """,
        student_id,
    )


async def list_marks_for_student(student_id: int) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT m.subject_id, s.subject_name, m.marks_obtained
        FROM marks m
        JOIN subjects s ON s.subject_id = m.subject_id
        WHERE m.student_id = $1
        ORDER BY m.subject_id ASC, m.id ASC
        """,
        student_id,
    )


async def update_student(
    student_id: int,
    *,
    first_name: str,
    last_name: str | None,
    email: str,
    dob: date,
    gender: str,
) -> db.MutationResult:
    return await db.run(
        """
        UPDATE students
        SET first_name = $1,
            last_name = $2,
            email = $3,
            dob = $4,
            gender = $5,
            updated_at = now()
        WHERE id = $6
        """,
        first_name,
        last_name,
        email,
        dob,
        gender,
        student_id,
    )


async def delete_student(student_id: int) -> db.MutationResult:
    # marks rows go with it via ON DELETE CASCADE
    return await db.run("DELETE FROM students WHERE id = $1", student_id)
