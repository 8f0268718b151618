"""
HTTP client for the student records API.

Used endpoints (relative to the `/api/students` base):
- GET    /?page=P&limit=L  -> {"data": [...], "metadata": {...}}
- GET    /{id}             -> student + "marks"
- POST   /                 -> created student (201)
- PUT    /{id}             -> {"updated": n}
- DELETE /{id}             -> {"deleted": n}
"""

from __future__ import annotations

import os
from typing import Any, Mapping

import httpx

DEFAULT_BASE_URL = "http://localhost:3001/api/students"


# API failures are explicit and separable from other runtime errors.
class StudentsApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def api_base_url() -> str:
    return os.environ.get("STUDENTS_API_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise StudentsApiError("Students API base URL is empty.")
    return base_url.rstrip("/")


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    # Avoid dumping huge bodies; include a small snippet.
    return resp.text[:500]


class StudentsClient:
    """
    Thin async wrapper over the REST contract. One request per call.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = _normalize_base_url(base_url if base_url is not None else api_base_url())
        self.timeout_s = timeout_s
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_s,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                raise StudentsApiError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            raise StudentsApiError(
                f"{method} {path} failed: {resp.status_code} {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp.json()

    async def list_students(self, page: int = 1, limit: int | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page}
        if limit is not None:
            params["limit"] = limit
        return await self._request("GET", "/", params=params)

    async def get_student(self, student_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/{student_id}")

    async def create_student(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/", json=dict(fields))

    async def update_student(self, student_id: int, fields: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/{student_id}", json=dict(fields))

    async def delete_student(self, student_id: int) -> dict[str, Any]:
        return await self._request("DELETE", f"/{student_id}")
