"""
Media storage for room, menu and avatar images (Cloudinary and in-memory).
"""

from __future__ import annotations

import io
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from hotel_backend.errors import ApiError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png"}
MB = 1024 * 1024


@dataclass(frozen=True)
class MediaKind:
    folder: str
    prefix: str
    max_bytes: int


MEDIA_KINDS = {
    "rooms": MediaKind(folder="rooms", prefix="room", max_bytes=5 * MB),
    "menu": MediaKind(folder="menu", prefix="menu", max_bytes=5 * MB),
    "avatars": MediaKind(folder="avatars", prefix="avatar", max_bytes=2 * MB),
}

VERSION_SEGMENT = re.compile(r"v\d+")


class MediaUploadError(ApiError):
    status_code = 502
    message = "Image upload failed. Please try again later."


@dataclass(frozen=True)
class UploadResult:
    public_id: str
    secure_url: str
    resource_type: str = "image"
    format: Optional[str] = None
    bytes: Optional[int] = None

    def as_dict(self) -> dict:
        return {
            "publicId": self.public_id,
            "secureUrl": self.secure_url,
            "resourceType": self.resource_type,
            "format": self.format,
            "bytes": self.bytes,
        }


class MediaStorage(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload(
        self,
        data: bytes,
        folder: str,
        public_id: Optional[str] = None,
        resource_type: str = "auto",
    ) -> UploadResult:
        ...

    def destroy(self, public_id: str, resource_type: str = "image") -> dict:
        ...


@dataclass
class InMemoryMediaStorage:
    """Test double for media storage interactions."""

    cloud_name: str = "demo"
    stored_objects: dict = field(default_factory=dict)

    def upload(
        self,
        data: bytes,
        folder: str,
        public_id: Optional[str] = None,
        resource_type: str = "auto",
    ) -> UploadResult:
        name = public_id or f"upload-{len(self.stored_objects) + 1}"
        full_id = f"{folder}/{name}"
        self.stored_objects[full_id] = bytes(data)
        kind = "image" if resource_type == "auto" else resource_type
        return UploadResult(
            public_id=full_id,
            secure_url=(
                f"https://res.cloudinary.com/{self.cloud_name}/{kind}/upload/"
                f"v1700000000/{full_id}.png"
            ),
            resource_type=kind,
            format="png",
            bytes=len(data),
        )

    def destroy(self, public_id: str, resource_type: str = "image") -> dict:
        if self.stored_objects.pop(public_id, None) is None:
            return {"result": "not found"}
        return {"result": "ok"}


@dataclass
class CloudinaryMediaStorage:
    """Cloudinary-backed storage using the official SDK."""

    cloud_name: str
    api_key: str
    api_secret: str

    def __post_init__(self):
        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True,
        )

    def upload(
        self,
        data: bytes,
        folder: str,
        public_id: Optional[str] = None,
        resource_type: str = "auto",
    ) -> UploadResult:
        options = {"folder": folder, "resource_type": resource_type}
        if public_id:
            options["public_id"] = public_id
        try:
            result = cloudinary.uploader.upload(io.BytesIO(data), **options)
        except CloudinaryError as exc:
            logger.exception("Cloudinary upload failed folder=%s", folder)
            raise MediaUploadError() from exc
        logger.info("Uploaded to Cloudinary: %s", result.get("public_id"))
        return UploadResult(
            public_id=result["public_id"],
            secure_url=result["secure_url"],
            resource_type=result.get("resource_type", "image"),
            format=result.get("format"),
            bytes=result.get("bytes"),
        )

    def destroy(self, public_id: str, resource_type: str = "image") -> dict:
        try:
            return cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        except CloudinaryError as exc:
            logger.exception("Error deleting from Cloudinary: %s", public_id)
            raise MediaUploadError("Image deletion failed. Please try again later.") from exc


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """
    Extract the public id from a delivery URL such as
    https://res.cloudinary.com/<cloud>/image/upload/v123/Restaurant/rooms/x.jpg
    """
    if not url:
        return None
    parts = url.split("/")
    if "upload" not in parts:
        return None
    remainder = parts[parts.index("upload") + 1 :]
    if remainder and VERSION_SEGMENT.fullmatch(remainder[0]):
        remainder = remainder[1:]
    public_id = "/".join(remainder).split(".")[0]
    return public_id or None


def check_image_upload(
    content_type: Optional[str], size: int, max_bytes: int
) -> None:
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Invalid file type. Only JPG, JPEG, and PNG images are allowed.",
            field="file",
        )
    if size == 0:
        raise ValidationError("No file uploaded", field="file")
    if size > max_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {max_bytes // MB}MB.", field="file"
        )


class MediaUploadAdapter:
    """Applies folder and naming conventions on top of a MediaStorage."""

    def __init__(
        self,
        storage: MediaStorage,
        root_folder: str = "Restaurant",
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.root_folder = root_folder.strip("/")
        self.clock = clock

    def upload_image(
        self,
        kind: str,
        owner_id: str,
        data: bytes,
        content_type: Optional[str],
    ) -> UploadResult:
        media_kind = MEDIA_KINDS.get(kind)
        if media_kind is None:
            raise NotFoundError(f"Unknown media kind: {kind}")
        check_image_upload(content_type, len(data), media_kind.max_bytes)
        folder = f"{self.root_folder}/{media_kind.folder}"
        name = f"{media_kind.prefix}-{owner_id}-{int(self.clock() * 1000)}"
        return self.storage.upload(data, folder, public_id=name, resource_type="image")

    def upload_room_image(self, data: bytes, room_id: str, content_type: str = "image/jpeg") -> UploadResult:
        return self.upload_image("rooms", room_id, data, content_type)

    def upload_menu_image(self, data: bytes, item_id: str, content_type: str = "image/jpeg") -> UploadResult:
        return self.upload_image("menu", item_id, data, content_type)

    def upload_avatar(self, data: bytes, user_id: str, content_type: str = "image/jpeg") -> UploadResult:
        return self.upload_image("avatars", user_id, data, content_type)

    def delete_by_url(self, url: Optional[str], resource_type: str = "image") -> dict:
        public_id = public_id_from_url(url)
        if not public_id:
            raise NotFoundError("Invalid image URL")
        return self.storage.destroy(public_id, resource_type=resource_type)
