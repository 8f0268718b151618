"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Every statement runs on its own pooled connection and autocommits. Driver
errors are re-raised as `ConstraintError` / `StorageError`.
"""

from __future__ import annotations

import asyncio
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

import asyncpg

from .errors import ConstraintError, StorageError

DEFAULT_POOL_MAX_SIZE = 10
DEFAULT_COMMAND_TIMEOUT_S = 30.0

_pool: asyncpg.Pool | None = None


@dataclass(frozen=True)
class MutationResult:
    generated_id: int | None
    rows_affected: int


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    """
    `DATABASE_URL` wins; otherwise the DSN is built from DB_HOST/DB_PORT/...
    """
    url = os.environ.get("DATABASE_URL", "").strip()
    if url:
        return _sanitize_database_url(url)

    host = os.environ.get("DB_HOST", "").strip() or "localhost"
    port = _env_int("DB_PORT", 5432)
    user = os.environ.get("DB_USER", "").strip() or "postgres"
    password = os.environ.get("DB_PASSWORD", "")
    name = os.environ.get("DB_NAME", "").strip() or "student_db"

    auth = quote(user, safe="")
    if password:
        auth = f"{auth}:{quote(password, safe='')}"
    return f"postgresql://{auth}@{host}:{port}/{name}"


def pool_max_size() -> int:
    size = _env_int("DB_POOL_MAX_SIZE", DEFAULT_POOL_MAX_SIZE)
    return size if size > 0 else DEFAULT_POOL_MAX_SIZE


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    with _storage_errors():
        _pool = await asyncpg.create_pool(
            dsn=database_url(),
            min_size=1,
            max_size=pool_max_size(),
            command_timeout=_env_float("DB_COMMAND_TIMEOUT_S", DEFAULT_COMMAND_TIMEOUT_S),
        )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


@contextmanager
def _storage_errors() -> Iterator[None]:
    try:
        yield
    except asyncpg.IntegrityConstraintViolationError as e:
        raise ConstraintError(str(e)) from e
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
        raise StorageError(str(e) or e.__class__.__name__) from e


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def _rows_from_status(status: str) -> int:
    # Command tags look like "UPDATE 3", "DELETE 0", "INSERT 0 1".
    last = (status or "").rsplit(" ", 1)[-1]
    try:
        return int(last)
    except ValueError:
        return 0


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    with _storage_errors():
        row = await pool().fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    with _storage_errors():
        rows = await pool().fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def run(sql: str, *args: Any, returning_id: bool = False) -> MutationResult:
    """
    Run an INSERT/UPDATE/DELETE and report the generated id and row count.

    With `returning_id=True` the statement must end in `RETURNING <id>`;
    the first column of the returned row becomes `generated_id`.
    """
    with _storage_errors():
        if returning_id:
            row = await pool().fetchrow(sql, *args)
            if row is None:
                return MutationResult(generated_id=None, rows_affected=0)
            return MutationResult(generated_id=int(row[0]), rows_affected=1)
        status = await pool().execute(sql, *args)
    return MutationResult(generated_id=None, rows_affected=_rows_from_status(status))


async def execute(sql: str, *args: Any) -> None:
    """
    Run a statement (DDL). No result returned.
    """
    with _storage_errors():
        await pool().execute(sql, *args)
