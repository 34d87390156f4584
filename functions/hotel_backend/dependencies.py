"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request

from hotel_backend.config import Settings, get_settings
from hotel_backend.contact import ContactRequestHandler
from hotel_backend.errors import RateLimitExceeded
from hotel_backend.mailer import InMemoryMailTransport, MailTransport, SmtpMailTransport
from hotel_backend.media import (
    CloudinaryMediaStorage,
    InMemoryMediaStorage,
    MediaUploadAdapter,
)
from hotel_backend.mirror import (
    DocumentMirror,
    FirestoreDocumentMirror,
    InMemoryDocumentMirror,
)
from hotel_backend.notifications import ContactNotifier
from hotel_backend.ratelimit import InMemoryRateLimiter, RateLimiter, RedisRateLimiter
from hotel_backend.settings_store import (
    InMemorySettingsStore,
    SettingsStore,
    SqlSettingsStore,
)

logger = logging.getLogger(__name__)

_mail_transport: MailTransport | None = None
_settings_store: SettingsStore | None = None
_document_mirror: DocumentMirror | None = None
_media_adapter: MediaUploadAdapter | None = None
_rate_limiter: RateLimiter | None = None


def get_mail_transport() -> MailTransport:
    global _mail_transport
    if _mail_transport:
        return _mail_transport

    settings = get_settings()
    host, port = settings.smtp_endpoint()
    if settings.use_in_memory_backends or not host:
        logger.warning("SMTP host not configured, using in-memory mail transport")
        _mail_transport = InMemoryMailTransport()
    else:
        _mail_transport = SmtpMailTransport(
            host=host,
            port=port,
            username=settings.email_user,
            password=(
                settings.email_pass.get_secret_value() if settings.email_pass else None
            ),
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout,
        )
    return _mail_transport


def get_contact_handler(
    transport: MailTransport = Depends(get_mail_transport),
    settings: Settings = Depends(get_settings),
) -> ContactRequestHandler:
    notifier = ContactNotifier.from_settings(transport, settings)
    return ContactRequestHandler(notifier)


def get_settings_store() -> SettingsStore:
    """
    Return a singleton settings store so the record persists across requests.
    """
    global _settings_store
    if _settings_store:
        return _settings_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _settings_store = InMemorySettingsStore(settings.default_gst_percentage)
    else:
        _settings_store = SqlSettingsStore(
            settings.database_url, settings.default_gst_percentage
        )
    return _settings_store


def get_document_mirror() -> DocumentMirror:
    global _document_mirror
    if _document_mirror:
        return _document_mirror

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.firebase_project_id:
        _document_mirror = InMemoryDocumentMirror()
    else:
        _document_mirror = FirestoreDocumentMirror(
            project_id=settings.firebase_project_id,
            credentials_path=settings.firebase_credentials_path,
        )
    return _document_mirror


def get_media_adapter() -> MediaUploadAdapter:
    global _media_adapter
    if _media_adapter:
        return _media_adapter

    settings = get_settings()
    if (
        settings.use_in_memory_backends
        or not settings.cloudinary_cloud_name
        or not settings.cloudinary_api_secret
    ):
        storage = InMemoryMediaStorage()
    else:
        storage = CloudinaryMediaStorage(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key or "",
            api_secret=settings.cloudinary_api_secret.get_secret_value(),
        )
    _media_adapter = MediaUploadAdapter(storage, settings.cloudinary_root_folder)
    return _media_adapter


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter:
        return _rate_limiter

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _rate_limiter = RedisRateLimiter(
            url=settings.redis_url,
            limit=settings.contact_rate_limit_max,
            window_seconds=settings.contact_rate_limit_window_seconds,
        )
    else:
        _rate_limiter = InMemoryRateLimiter(
            limit=settings.contact_rate_limit_max,
            window_seconds=settings.contact_rate_limit_window_seconds,
        )
    return _rate_limiter


def enforce_contact_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request once the source address exceeds its window quota."""
    if not settings.contact_rate_limit_enabled:
        return
    source = request.client.host if request.client else "unknown"
    status = limiter.hit(source)
    if not status.allowed:
        logger.warning("Contact rate limit exceeded source=%s", source)
        raise RateLimitExceeded(retry_after=status.reset_in)


def reset_dependencies() -> None:
    """Drop cached clients so the next request rebuilds them from settings."""
    global _mail_transport, _settings_store, _document_mirror
    global _media_adapter, _rate_limiter
    _mail_transport = None
    _settings_store = None
    _document_mirror = None
    _media_adapter = None
    _rate_limiter = None
