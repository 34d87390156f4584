import unittest

from fastapi.testclient import TestClient

from hotel_backend.app import create_app
from hotel_backend.config import Settings, get_settings
from hotel_backend.dependencies import (
    get_mail_transport,
    get_media_adapter,
    get_rate_limiter,
    get_settings_store,
)
from hotel_backend.mailer import InMemoryMailTransport
from hotel_backend.media import InMemoryMediaStorage, MediaUploadAdapter
from hotel_backend.ratelimit import InMemoryRateLimiter
from hotel_backend.settings_store import InMemorySettingsStore

ADMIN_HEADERS = {"X-API-Key": "test-admin-key", "X-Admin-User": "userX"}

CONTACT_PAYLOAD = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "9876543210",
    "subject": "Booking question",
    "message": "I would like to ask about availability next week.",
}


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(
            environment="production",
            admin_api_key="test-admin-key",
            contact_admin_email="frontdesk@luxuryhotel.com",
        )
        self.transport = InMemoryMailTransport()
        self.store = InMemorySettingsStore()
        self.limiter = InMemoryRateLimiter(limit=5, window_seconds=900)
        self.storage = InMemoryMediaStorage()

        app = create_app()
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_mail_transport] = lambda: self.transport
        app.dependency_overrides[get_settings_store] = lambda: self.store
        app.dependency_overrides[get_rate_limiter] = lambda: self.limiter
        app.dependency_overrides[get_media_adapter] = lambda: MediaUploadAdapter(
            self.storage
        )
        self.client = TestClient(app)

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "environment": "production"})

    def test_contact_success_sends_both_emails(self):
        response = self.client.post("/api/contact", json=CONTACT_PAYLOAD)
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertIn("within 24 hours", payload["message"])
        self.assertEqual(
            [msg["To"] for msg in self.transport.sent],
            ["frontdesk@luxuryhotel.com", "jane@example.com"],
        )

    def test_contact_missing_fields(self):
        payload = dict(CONTACT_PAYLOAD)
        del payload["phone"]
        response = self.client.post("/api/contact", json=payload)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {
                "success": False,
                "message": "Please provide all required fields",
                "field": "phone",
            },
        )
        self.assertEqual(self.transport.sent, [])

    def test_contact_invalid_phone(self):
        response = self.client.post(
            "/api/contact", json={**CONTACT_PAYLOAD, "phone": "12345"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["message"], "Phone number must be at least 10 digits"
        )

    def test_contact_subject_with_line_break(self):
        response = self.client.post(
            "/api/contact", json={**CONTACT_PAYLOAD, "subject": "Booking\nquestion"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            self.transport.sent[0]["Subject"],
            "New Contact Form Submission: Booking question",
        )

    def test_contact_without_body(self):
        response = self.client.post("/api/contact")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {
                "success": False,
                "message": "Please provide all required fields",
                "field": "name",
            },
        )

    def test_contact_oversized_fields_reach_validator(self):
        cases = (
            ("message", "a" * 5001, "Message cannot exceed 1000 characters"),
            ("name", "J1" * 101, "Name can only contain letters and spaces"),
        )
        for field, value, reason in cases:
            with self.subTest(field=field):
                response = self.client.post(
                    "/api/contact", json={**CONTACT_PAYLOAD, field: value}
                )
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["message"], reason)
                self.assertEqual(response.json()["field"], field)
        self.assertEqual(self.transport.sent, [])

    def test_contact_malformed_body(self):
        response = self.client.post(
            "/api/contact", json={**CONTACT_PAYLOAD, "name": ["Jane"]}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(), {"success": False, "message": "Invalid request data"}
        )

    def test_contact_auth_failure(self):
        self.transport.fail_on = 0
        self.transport.fail_code = "EAUTH"
        response = self.client.post("/api/contact", json=CONTACT_PAYLOAD)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(),
            {
                "success": False,
                "message": "Email service authentication failed. Please contact support.",
            },
        )

    def test_contact_rate_limit(self):
        for _ in range(5):
            response = self.client.post("/api/contact", json=CONTACT_PAYLOAD)
            self.assertEqual(response.status_code, 200)
        response = self.client.post("/api/contact", json=CONTACT_PAYLOAD)
        self.assertEqual(response.status_code, 429)
        self.assertFalse(response.json()["success"])
        self.assertIn("Retry-After", response.headers)
        self.assertEqual(len(self.transport.sent), 10)

    def test_contact_rate_limit_relaxed_outside_production(self):
        self.settings = Settings(
            environment="development", relax_contact_rate_limit=True
        )
        for _ in range(7):
            response = self.client.post("/api/contact", json=CONTACT_PAYLOAD)
            self.assertEqual(response.status_code, 200)

    def test_relax_flag_ignored_in_production(self):
        self.settings = Settings(environment="production", relax_contact_rate_limit=True)
        codes = [
            self.client.post("/api/contact", json=CONTACT_PAYLOAD).status_code
            for _ in range(6)
        ]
        self.assertEqual(codes[-1], 429)

    def test_admin_settings_requires_key(self):
        self.assertEqual(self.client.get("/api/admin/settings").status_code, 403)
        response = self.client.get(
            "/api/admin/settings", headers={"X-API-Key": "wrong"}
        )
        self.assertEqual(response.status_code, 403)

    def test_admin_settings_refused_without_configured_key(self):
        self.settings = Settings(environment="production", admin_api_key=None)
        response = self.client.get("/api/admin/settings", headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 403)

    def test_get_settings_creates_default(self):
        response = self.client.get("/api/admin/settings", headers=ADMIN_HEADERS)
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["type"], "tax")
        self.assertEqual(data["gstPercentage"], 18)
        self.assertIsNone(data["updatedBy"])

    def test_update_settings_roundtrip(self):
        response = self.client.put(
            "/api/admin/settings", json={"gstPercentage": 25}, headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Settings updated successfully")

        data = self.client.get("/api/admin/settings", headers=ADMIN_HEADERS).json()["data"]
        self.assertEqual(data["gstPercentage"], 25)
        self.assertEqual(data["updatedBy"], "userX")

    def test_update_settings_rejects_invalid_values(self):
        for body in (
            {"gstPercentage": -1},
            {},
            {"gstPercentage": True},
            {"gstPercentage": "25"},
        ):
            with self.subTest(body=body):
                response = self.client.put(
                    "/api/admin/settings", json=body, headers=ADMIN_HEADERS
                )
                self.assertEqual(response.status_code, 400)
                self.assertEqual(
                    response.json()["message"], "Please provide a valid GST percentage"
                )
        self.assertEqual(self.store.get_settings().gst_percentage, 18)

    def test_media_upload_and_delete(self):
        response = self.client.post(
            "/api/admin/media/rooms/42",
            files={"file": ("room.png", b"\x89PNG fake image", "image/png")},
            headers=ADMIN_HEADERS,
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertTrue(data["publicId"].startswith("Restaurant/rooms/room-42-"))
        self.assertIn(data["publicId"], self.storage.stored_objects)

        response = self.client.delete(
            "/api/admin/media", params={"url": data["secureUrl"]}, headers=ADMIN_HEADERS
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.storage.stored_objects, {})

    def test_media_upload_rejects_non_image(self):
        response = self.client.post(
            "/api/admin/media/avatars/7",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=ADMIN_HEADERS,
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Only JPG, JPEG, and PNG", response.json()["message"])

    def test_media_delete_malformed_url(self):
        response = self.client.delete(
            "/api/admin/media",
            params={"url": "https://example.com/not-a-cloudinary-url.png"},
            headers=ADMIN_HEADERS,
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.json(), {"success": False, "message": "Invalid image URL"}
        )


if __name__ == "__main__":
    unittest.main()
