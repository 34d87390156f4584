"""
One-way mirror of user and booking records into Firestore.

The primary database stays authoritative. Mirror writes are best effort:
failures are logged and reported to the caller as False/None.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
BOOKINGS_COLLECTION = "bookings"

FIREBASE_APP_NAME = "hotel-mirror"


@dataclass
class UserRecord:
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    firebase_uid: Optional[str] = None
    role: str = "customer"
    auth_provider: str = "local"
    photo_url: Optional[str] = None
    avatar: Optional[str] = None
    is_email_verified: bool = False
    loyalty_points: int = 0
    loyalty_tier: str = "Bronze"
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @property
    def uid(self) -> str:
        return self.firebase_uid or self.id

    def to_document(self) -> dict:
        """Firestore document body, without the server-side updatedAt stamp."""
        return {
            "uid": self.uid,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role or "customer",
            "authProvider": self.auth_provider or "local",
            "photoURL": self.photo_url or self.avatar,
            "isEmailVerified": bool(self.is_email_verified),
            "loyaltyPoints": self.loyalty_points or 0,
            "loyaltyTier": self.loyalty_tier or "Bronze",
            "createdAt": self.created_at or datetime.now(timezone.utc),
            "lastLogin": self.last_login,
        }


class DocumentMirror(Protocol):
    """Operations the application needs from the mirrored document store."""

    def sync_user(self, user: UserRecord) -> bool:
        ...

    def update_user(self, uid: str, updates: dict) -> bool:
        ...

    def get_user(self, uid: str) -> Optional[dict]:
        ...

    def delete_user(self, uid: str) -> bool:
        ...

    def create_booking(self, booking: dict) -> Optional[str]:
        ...

    def update_booking_status(self, booking_id: str, status: str) -> bool:
        ...


def _booking_owner(booking: dict) -> Optional[str]:
    owner = booking.get("userId")
    return str(owner) if owner else None


@dataclass
class InMemoryDocumentMirror:
    """Test double keeping documents in nested dicts keyed by path."""

    documents: Dict[str, dict] = field(default_factory=dict)

    def _merge(self, path: str, data: dict) -> None:
        existing = self.documents.setdefault(path, {})
        existing.update(copy.deepcopy(data))
        existing["updatedAt"] = datetime.now(timezone.utc)

    def sync_user(self, user: UserRecord) -> bool:
        self._merge(f"{USERS_COLLECTION}/{user.uid}", user.to_document())
        return True

    def update_user(self, uid: str, updates: dict) -> bool:
        path = f"{USERS_COLLECTION}/{uid}"
        if path not in self.documents:
            logger.error("Error updating user in mirror: %s not found", uid)
            return False
        self._merge(path, updates)
        return True

    def get_user(self, uid: str) -> Optional[dict]:
        doc = self.documents.get(f"{USERS_COLLECTION}/{uid}")
        return copy.deepcopy(doc) if doc is not None else None

    def delete_user(self, uid: str) -> bool:
        logger.info("User %s deletion from mirror is not implemented", uid)
        return True

    def create_booking(self, booking: dict) -> Optional[str]:
        owner = _booking_owner(booking)
        if not owner:
            logger.error("Error creating booking in mirror: missing userId")
            return None
        booking_id = uuid.uuid4().hex
        self._merge(f"{BOOKINGS_COLLECTION}/{booking_id}", booking)
        self._merge(
            f"{USERS_COLLECTION}/{owner}/{BOOKINGS_COLLECTION}/{booking_id}",
            {**booking, "bookingId": booking_id},
        )
        self._merge(f"{BOOKINGS_COLLECTION}/{booking_id}", {"bookingId": booking_id})
        return booking_id

    def update_booking_status(self, booking_id: str, status: str) -> bool:
        path = f"{BOOKINGS_COLLECTION}/{booking_id}"
        if path not in self.documents:
            logger.error("Error updating booking status in mirror: %s not found", booking_id)
            return False
        self._merge(path, {"status": status})
        return True

    def reset(self) -> None:
        self.documents.clear()


class FirestoreDocumentMirror:
    """Firestore-backed mirror using the Firebase Admin SDK."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[str] = None,
        client: Any = None,
    ):
        if client is not None:
            self.db = client
            return
        try:
            app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            cred = (
                credentials.Certificate(credentials_path)
                if credentials_path
                else credentials.ApplicationDefault()
            )
            options = {"projectId": project_id} if project_id else None
            app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)
        self.db = firestore.client(app)

    def sync_user(self, user: UserRecord) -> bool:
        try:
            doc_ref = self.db.collection(USERS_COLLECTION).document(user.uid)
            doc_ref.set(
                {**user.to_document(), "updatedAt": SERVER_TIMESTAMP}, merge=True
            )
        except google_exceptions.GoogleAPICallError:
            logger.exception("Error syncing user %s to Firestore", user.uid)
            return False
        logger.info("User %s synced to Firestore", user.email)
        return True

    def update_user(self, uid: str, updates: dict) -> bool:
        try:
            doc_ref = self.db.collection(USERS_COLLECTION).document(uid)
            doc_ref.update({**updates, "updatedAt": SERVER_TIMESTAMP})
        except google_exceptions.GoogleAPICallError:
            logger.exception("Error updating user %s in Firestore", uid)
            return False
        logger.info("User %s updated in Firestore", uid)
        return True

    def get_user(self, uid: str) -> Optional[dict]:
        try:
            snapshot = self.db.collection(USERS_COLLECTION).document(uid).get()
        except google_exceptions.GoogleAPICallError:
            logger.exception("Error getting user %s from Firestore", uid)
            return None
        return snapshot.to_dict() if snapshot.exists else None

    def delete_user(self, uid: str) -> bool:
        # TODO: decide whether user deletion should remove the mirrored
        # document and its bookings subcollection; until then this only logs.
        logger.info("User %s deletion from Firestore is not implemented", uid)
        return True

    def create_booking(self, booking: dict) -> Optional[str]:
        owner = _booking_owner(booking)
        if not owner:
            logger.error("Error creating booking in Firestore: missing userId")
            return None
        try:
            _, booking_ref = self.db.collection(BOOKINGS_COLLECTION).add(
                {
                    **booking,
                    "createdAt": SERVER_TIMESTAMP,
                    "updatedAt": SERVER_TIMESTAMP,
                }
            )
            booking_id = booking_ref.id
            (
                self.db.collection(USERS_COLLECTION)
                .document(owner)
                .collection(BOOKINGS_COLLECTION)
                .add(
                    {
                        **booking,
                        "bookingId": booking_id,
                        "createdAt": SERVER_TIMESTAMP,
                        "updatedAt": SERVER_TIMESTAMP,
                    }
                )
            )
            booking_ref.update({"bookingId": booking_id})
        except google_exceptions.GoogleAPICallError:
            logger.exception("Error creating booking in Firestore")
            return None
        logger.info("Booking %s created in Firestore", booking_id)
        return booking_id

    def update_booking_status(self, booking_id: str, status: str) -> bool:
        try:
            self.db.collection(BOOKINGS_COLLECTION).document(booking_id).update(
                {"status": status, "updatedAt": SERVER_TIMESTAMP}
            )
        except google_exceptions.GoogleAPICallError:
            logger.exception("Error updating booking %s status in Firestore", booking_id)
            return False
        logger.info("Booking %s status updated to %s", booking_id, status)
        return True
