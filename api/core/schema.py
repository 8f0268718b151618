"""
Idempotent table setup, run once per process on startup.
"""

from __future__ import annotations

import logging
import os

from . import db

logger = logging.getLogger(__name__)

STATEMENTS: tuple[tuple[str, str], ...] = (
    (
        "students",
        """
        CREATE TABLE IF NOT EXISTS students (
            id SERIAL PRIMARY KEY,
            first_name VARCHAR(255) NOT NULL,
            last_name VARCHAR(255),
            email VARCHAR(255) NOT NULL UNIQUE,
            dob DATE,
            gender VARCHAR(10) CHECK (gender IN ('Male', 'Female', 'Other')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """,
    ),
    (
        "subjects",
        """
        CREATE TABLE IF NOT EXISTS subjects (
            subject_id SERIAL PRIMARY KEY,
            subject_name VARCHAR(255) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """,
    ),
    (
        "marks",
        """
        CREATE TABLE IF NOT EXISTS marks (
            id SERIAL PRIMARY KEY,
            student_id INTEGER NOT NULL REFERENCES students(id) ON DELETE CASCADE,
            subject_id INTEGER NOT NULL REFERENCES subjects(subject_id) ON DELETE CASCADE,
            marks_obtained INTEGER,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """,
    ),
    (
        "marks_student_id_idx",
        "CREATE INDEX IF NOT EXISTS marks_student_id_idx ON marks (student_id)",
    ),
)


def install_enabled() -> bool:
    raw = os.environ.get("DB_INSTALL_SCHEMA", "").strip().lower()
    return raw not in {"0", "false", "no", "off"}


async def install_schema() -> None:
    for name, sql in STATEMENTS:
        try:
            await db.execute(sql)
        except Exception:
            logger.exception("schema_install_failed object=%s", name)
            raise
        logger.info("schema_ready object=%s", name)
