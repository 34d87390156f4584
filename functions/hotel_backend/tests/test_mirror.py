import unittest
from unittest.mock import MagicMock, patch

from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from hotel_backend.config import Settings
from hotel_backend.dependencies import get_document_mirror, reset_dependencies
from hotel_backend.mirror import (
    FirestoreDocumentMirror,
    InMemoryDocumentMirror,
    UserRecord,
)


def make_user(**overrides) -> UserRecord:
    data = {
        "id": "665f1c2ab1",
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "9876543210",
    }
    data.update(overrides)
    return UserRecord(**data)


class UserRecordTests(unittest.TestCase):
    def test_document_defaults(self):
        doc = make_user(avatar="https://cdn.test/a.png").to_document()
        self.assertEqual(doc["uid"], "665f1c2ab1")
        self.assertEqual(doc["role"], "customer")
        self.assertEqual(doc["authProvider"], "local")
        self.assertEqual(doc["photoURL"], "https://cdn.test/a.png")
        self.assertFalse(doc["isEmailVerified"])
        self.assertEqual(doc["loyaltyPoints"], 0)
        self.assertEqual(doc["loyaltyTier"], "Bronze")
        self.assertIsNone(doc["lastLogin"])

    def test_firebase_uid_preferred(self):
        self.assertEqual(make_user(firebase_uid="fb-1").uid, "fb-1")


class InMemoryDocumentMirrorTests(unittest.TestCase):
    def setUp(self):
        self.mirror = InMemoryDocumentMirror()

    def test_sync_and_get_user(self):
        self.assertTrue(self.mirror.sync_user(make_user()))
        doc = self.mirror.get_user("665f1c2ab1")
        self.assertEqual(doc["email"], "jane@example.com")
        self.assertIn("updatedAt", doc)

    def test_update_merges(self):
        self.mirror.sync_user(make_user())
        self.assertTrue(self.mirror.update_user("665f1c2ab1", {"loyaltyPoints": 120}))
        doc = self.mirror.get_user("665f1c2ab1")
        self.assertEqual(doc["loyaltyPoints"], 120)
        self.assertEqual(doc["name"], "Jane Doe")

    def test_update_unknown_user(self):
        self.assertFalse(self.mirror.update_user("missing", {"name": "x"}))
        self.assertIsNone(self.mirror.get_user("missing"))

    def test_delete_user_only_logs(self):
        self.mirror.sync_user(make_user())
        with self.assertLogs("hotel_backend.mirror", level="INFO"):
            self.assertTrue(self.mirror.delete_user("665f1c2ab1"))
        self.assertIsNotNone(self.mirror.get_user("665f1c2ab1"))

    def test_create_booking_writes_both_copies(self):
        booking_id = self.mirror.create_booking(
            {"userId": "665f1c2ab1", "roomId": "r1", "status": "pending"}
        )
        self.assertIsNotNone(booking_id)
        main = self.mirror.documents[f"bookings/{booking_id}"]
        self.assertEqual(main["bookingId"], booking_id)
        copy = self.mirror.documents[f"users/665f1c2ab1/bookings/{booking_id}"]
        self.assertEqual(copy["roomId"], "r1")
        self.assertEqual(copy["bookingId"], booking_id)

        self.assertTrue(self.mirror.update_booking_status(booking_id, "confirmed"))
        self.assertEqual(main["status"], "confirmed")

    def test_create_booking_requires_owner(self):
        self.assertIsNone(self.mirror.create_booking({"roomId": "r1"}))
        self.assertFalse(self.mirror.update_booking_status("missing", "confirmed"))


class FirestoreDocumentMirrorTests(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.mirror = FirestoreDocumentMirror(client=self.client)

    def test_sync_user_merges_with_server_timestamp(self):
        self.assertTrue(self.mirror.sync_user(make_user()))
        self.client.collection.assert_called_with("users")
        self.client.collection.return_value.document.assert_called_with("665f1c2ab1")
        doc_ref = self.client.collection.return_value.document.return_value
        args, kwargs = doc_ref.set.call_args
        self.assertEqual(kwargs, {"merge": True})
        self.assertEqual(args[0]["email"], "jane@example.com")
        self.assertIs(args[0]["updatedAt"], SERVER_TIMESTAMP)

    def test_sync_user_failure_returns_false(self):
        doc_ref = self.client.collection.return_value.document.return_value
        doc_ref.set.side_effect = google_exceptions.ServiceUnavailable("down")
        self.assertFalse(self.mirror.sync_user(make_user()))

    def test_update_user(self):
        self.assertTrue(self.mirror.update_user("u1", {"phone": "123"}))
        doc_ref = self.client.collection.return_value.document.return_value
        doc_ref.update.assert_called_once_with(
            {"phone": "123", "updatedAt": SERVER_TIMESTAMP}
        )

    def test_get_user(self):
        snapshot = MagicMock(exists=True)
        snapshot.to_dict.return_value = {"uid": "u1"}
        self.client.collection.return_value.document.return_value.get.return_value = snapshot
        self.assertEqual(self.mirror.get_user("u1"), {"uid": "u1"})

        snapshot.exists = False
        self.assertIsNone(self.mirror.get_user("u1"))

    def test_delete_user_does_not_touch_store(self):
        self.assertTrue(self.mirror.delete_user("u1"))
        self.client.collection.assert_not_called()

    def test_create_booking(self):
        booking_ref = MagicMock(id="b1")
        bookings = self.client.collection.return_value
        bookings.add.return_value = (None, booking_ref)

        booking_id = self.mirror.create_booking({"userId": "u1", "status": "pending"})

        self.assertEqual(booking_id, "b1")
        user_bookings = bookings.document.return_value.collection.return_value
        user_bookings.add.assert_called_once()
        self.assertEqual(user_bookings.add.call_args[0][0]["bookingId"], "b1")
        booking_ref.update.assert_called_once_with({"bookingId": "b1"})

    def test_create_booking_failure_returns_none(self):
        self.client.collection.return_value.add.side_effect = (
            google_exceptions.DeadlineExceeded("slow")
        )
        self.assertIsNone(self.mirror.create_booking({"userId": "u1"}))

    def test_update_booking_status(self):
        self.assertTrue(self.mirror.update_booking_status("b1", "cancelled"))
        self.client.collection.return_value.document.assert_called_with("b1")


class MirrorWiringTests(unittest.TestCase):
    def tearDown(self):
        reset_dependencies()

    def test_in_memory_mirror_without_project(self):
        settings = Settings(firebase_project_id=None)
        with patch("hotel_backend.dependencies.get_settings", return_value=settings):
            reset_dependencies()
            mirror = get_document_mirror()
        self.assertIsInstance(mirror, InMemoryDocumentMirror)
        self.assertIs(get_document_mirror(), mirror)


if __name__ == "__main__":
    unittest.main()
