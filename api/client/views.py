"""
Client-side view state for the student dashboard.

These classes hold what the browser UI keeps in component state: the
current page of students, the form being edited, and the refresh signal
that ties them together. Rendering is left to whatever front end uses them.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Awaitable, Callable

from .api import StudentsApiError, StudentsClient

PAGE_SIZE = 10

REQUIRED_FORM_FIELDS = ("first_name", "email", "dob")

logger = logging.getLogger(__name__)

_UNSET = object()


def empty_form() -> dict[str, Any]:
    return {
        "first_name": "",
        "last_name": "",
        "email": "",
        "dob": "",
        "gender": "Male",
    }


class StudentListView:
    """
    One page of students at a time, with previous/next and delete.
    """

    def __init__(self, client: StudentsClient, *, page_size: int = PAGE_SIZE) -> None:
        self.client = client
        self.page_size = page_size
        self.current_page = 1
        self.students: list[dict[str, Any]] = []
        self.metadata: dict[str, Any] = {"total": 0}
        self._last_signal: Any = _UNSET

    @property
    def total_pages(self) -> int:
        total = int(self.metadata.get("total") or 0)
        return math.ceil(total / self.page_size) or 1

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    async def fetch(self, page: int = 1) -> None:
        try:
            body = await self.client.list_students(page=page, limit=self.page_size)
        except StudentsApiError:
            logger.exception("fetch_students_failed page=%s", page)
            self.students = []
            self.metadata = {"total": 0}
            return
        self.students = list(body.get("data") or [])
        self.metadata = body.get("metadata") or {"total": 0}
        self.current_page = page

    async def refresh(self, signal: Any = None) -> None:
        """
        Refetch the current page when `signal` differs from the last one seen.

        The first call always fetches (mount).
        """
        if self._last_signal is not _UNSET and signal == self._last_signal:
            return
        self._last_signal = signal
        await self.fetch(self.current_page)

    async def go_to_page(self, page: int) -> None:
        if page < 1 or page > self.total_pages:
            return
        await self.fetch(page)

    async def previous(self) -> None:
        await self.go_to_page(self.current_page - 1)

    async def next(self) -> None:
        await self.go_to_page(self.current_page + 1)

    async def delete(self, student: dict[str, Any]) -> bool:
        try:
            await self.client.delete_student(int(student["id"]))
        except StudentsApiError:
            logger.exception("delete_student_failed id=%s", student.get("id"))
            return False

        # Deleting the last row of a later page would leave an empty page.
        if len(self.students) == 1 and self.current_page > 1:
            await self.fetch(self.current_page - 1)
        else:
            await self.fetch(self.current_page)
        return True

    def rows(self) -> list[tuple[str, str, str, str, str]]:
        return [
            (
                str(s.get("first_name") or ""),
                str(s.get("last_name") or ""),
                str(s.get("email") or ""),
                str(s.get("dob") or ""),
                str(s.get("gender") or ""),
            )
            for s in self.students
        ]


class StudentForm:
    """
    Create/edit form. Edit mode is on when the loaded fields carry an `id`.
    """

    def __init__(
        self,
        client: StudentsClient,
        *,
        on_save: Callable[[], Awaitable[None] | None] | None = None,
    ) -> None:
        self.client = client
        self.on_save = on_save
        self.fields: dict[str, Any] = empty_form()

    @property
    def is_edit(self) -> bool:
        return self.fields.get("id") is not None

    @property
    def title(self) -> str:
        return "Edit Student" if self.is_edit else "Create Student"

    def load(self, student: dict[str, Any] | None) -> None:
        self.fields = dict(student) if student else empty_form()

    def reset(self) -> None:
        self.fields = empty_form()

    def set_field(self, name: str, value: Any) -> None:
        self.fields[name] = value

    def missing_required(self) -> list[str]:
        return [
            name
            for name in REQUIRED_FORM_FIELDS
            if not str(self.fields.get(name) or "").strip()
        ]

    def _payload(self) -> dict[str, Any]:
        return {name: self.fields.get(name) for name in empty_form()}

    async def submit(self) -> bool:
        if self.missing_required():
            return False

        try:
            if self.is_edit:
                await self.client.update_student(int(self.fields["id"]), self._payload())
            else:
                await self.client.create_student(self._payload())
        except StudentsApiError:
            logger.exception("submit_student_failed id=%s", self.fields.get("id"))
            return False

        self.reset()
        if self.on_save is not None:
            result = self.on_save()
            if result is not None:
                await result
        return True


class Dashboard:
    """
    Ties the list and the form together through a refresh counter.
    """

    def __init__(self, client: StudentsClient) -> None:
        self.list_view = StudentListView(client)
        self.form = StudentForm(client, on_save=self.handle_save)
        self.selected: dict[str, Any] | None = None
        self.form_open = False
        self.refresh_signal = 0

    async def mount(self) -> None:
        await self.list_view.refresh(self.refresh_signal)

    def open_add_form(self) -> None:
        self.selected = None
        self.form.load(None)
        self.form_open = True

    def select_student(self, student: dict[str, Any]) -> None:
        self.selected = student
        self.form.load(student)
        self.form_open = True

    def close_form(self) -> None:
        self.form_open = False

    async def handle_save(self) -> None:
        self.selected = None
        self.form_open = False
        self.refresh_signal += 1
        await self.list_view.refresh(self.refresh_signal)
