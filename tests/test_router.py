from unittest import mock

from fastapi.testclient import TestClient

from core import db, schema
from core.errors import StorageError
from main import app
from students import repository

from .base import BaseTestCase, seed_students, student_payload


class TestStudentRoutes(BaseTestCase):
    def test_root_and_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})
        self.assertIn("message", self.client.get("/").json())

    def test_create_returns_201_with_id(self):
        response = self.client.post("/api/students/", json=student_payload())
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["id"], 1)
        self.assertEqual(body["email"], "student1@example.com")
        self.assertEqual(body["dob"], "2001-02-03")

    def test_create_ignores_echoed_extra_keys(self):
        payload = student_payload(id=77, marks=[], created_at="2024-01-01T00:00:00Z")
        response = self.client.post("/api/students/", json=payload)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["id"], 1)

    def test_create_missing_fields_is_400(self):
        response = self.client.post("/api/students/", json={"last_name": "Solo"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Missing required field", response.json()["error"])
        self.assertEqual(self.fake.statements, 0)

    def test_create_bad_gender_is_400(self):
        response = self.client.post("/api/students/", json=student_payload(gender="Robot"))
        self.assertEqual(response.status_code, 400)
        self.assertIn("gender", response.json()["error"])

    def test_duplicate_email_surfaces_driver_message_as_500(self):
        self.client.post("/api/students/", json=student_payload())
        response = self.client.post("/api/students/", json=student_payload(2, email="student1@example.com"))
        self.assertEqual(response.status_code, 500)
        self.assertIn("duplicate key", response.json()["error"])

    def test_list_paginates(self):
        seed_students(self.fake, 11)

        response = self.client.get("/api/students/", params={"page": 1})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["data"]), 10)
        self.assertEqual(body["metadata"], {"total": 11, "page": 1, "limit": 10, "totalPages": 2})

        body = self.client.get("/api/students/?page=2").json()
        self.assertEqual(len(body["data"]), 1)
        self.assertEqual(body["data"][0]["dob"], "2000-01-01")

    def test_list_with_junk_page_uses_defaults(self):
        seed_students(self.fake, 2)
        body = self.client.get("/api/students/?page=banana&limit=-4").json()
        self.assertEqual(body["metadata"]["page"], 1)
        self.assertEqual(body["metadata"]["limit"], 10)

    def test_list_storage_error_is_500(self):
        with mock.patch.object(
            repository,
            "count_students",
            new_callable=mock.AsyncMock,
            side_effect=StorageError("connection refused"),
        ):
            response = self.client.get("/api/students/")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "connection refused"})

    def test_get_includes_marks(self):
        self.client.post("/api/students/", json=student_payload())
        self.fake.add_subject(1, "Chemistry")
        self.fake.add_mark(1, 1, 64)

        response = self.client.get("/api/students/1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json()["marks"],
            [{"subject_id": 1, "subject_name": "Chemistry", "marks_obtained": 64}],
        )

    def test_get_unknown_is_404(self):
        response = self.client.get("/api/students/9")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Student not found"})

    def test_update_and_delete_report_row_counts(self):
        self.client.post("/api/students/", json=student_payload())

        response = self.client.put("/api/students/1", json=student_payload(first_name="New"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"updated": 1})
        self.assertEqual(self.client.get("/api/students/1").json()["first_name"], "New")

        self.assertEqual(self.client.put("/api/students/5", json=student_payload(5)).json(), {"updated": 0})

        response = self.client.delete("/api/students/1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"deleted": 1})
        self.assertEqual(self.client.delete("/api/students/1").json(), {"deleted": 0})
        self.assertEqual(self.client.get("/api/students/1").status_code, 404)

    def test_cors_preflight(self):
        response = self.client.options(
            "/api/students/",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "PUT",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["access-control-allow-origin"], "*")

    def test_lifespan_opens_pool_and_installs_schema(self):
        with mock.patch.dict("os.environ", {"DB_INSTALL_SCHEMA": "1"}), \
                mock.patch.object(db, "init_pool", new_callable=mock.AsyncMock) as init_pool, \
                mock.patch.object(db, "close_pool", new_callable=mock.AsyncMock) as close_pool, \
                mock.patch.object(schema, "install_schema", new_callable=mock.AsyncMock) as install:
            with TestClient(app) as client:
                self.assertEqual(client.get("/health").status_code, 200)
        init_pool.assert_awaited_once()
        install.assert_awaited_once()
        close_pool.assert_awaited_once()

    def test_collection_routes_answer_without_trailing_slash(self):
        response = self.client.post("/api/students", json=student_payload(), follow_redirects=False)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["id"], 1)

        response = self.client.get("/api/students?page=1", follow_redirects=False)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["metadata"]["total"], 1)

    def test_huge_page_is_an_empty_page_not_an_error(self):
        seed_students(self.fake, 2)
        response = self.client.get("/api/students/?page=99999999999999999999")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"], [])
        limit, offset = self.fake.last_window
        self.assertLessEqual(offset, 2**63 - 1)

    def test_invalid_or_out_of_range_ids_are_not_found(self):
        self.client.post("/api/students/", json=student_payload())
        for raw in ("99999999999", "abc"):
            with self.subTest(raw=raw):
                response = self.client.get(f"/api/students/{raw}")
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.json(), {"error": "Student not found"})
                self.assertEqual(
                    self.client.put(f"/api/students/{raw}", json=student_payload(3)).json(),
                    {"updated": 0},
                )
                self.assertEqual(self.client.delete(f"/api/students/{raw}").json(), {"deleted": 0})
        self.assertEqual(len(self.fake.students), 1)
