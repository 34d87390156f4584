"""
HTTP routes for the hotel backend API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse

from hotel_backend.config import Settings, get_settings
from hotel_backend.contact import ContactRequestHandler
from hotel_backend.dependencies import (
    enforce_contact_rate_limit,
    get_contact_handler,
    get_media_adapter,
    get_settings_store,
)
from hotel_backend.media import MediaUploadAdapter
from hotel_backend.schemas import (
    ContactRequest,
    ContactResponse,
    HealthResponse,
    MessageResponse,
    SettingsData,
    SettingsResponse,
    SettingsUpdateRequest,
    UploadData,
    UploadResponse,
)
from hotel_backend.security import AdminPrincipal, require_admin
from hotel_backend.settings_store import SettingsStore
from hotel_backend.validation import ContactSubmission

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings)):
    return HealthResponse(status="ok", environment=settings.environment)


@router.post(
    "/contact",
    response_model=ContactResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_contact_rate_limit)],
)
def send_contact_email(
    payload: Optional[ContactRequest] = None,
    handler: ContactRequestHandler = Depends(get_contact_handler),
):
    """
    Validate a contact form submission and email the operator and submitter.
    """
    payload = payload or ContactRequest()
    outcome = handler.handle(ContactSubmission(**payload.model_dump()))
    return JSONResponse(status_code=outcome.status_code, content=outcome.as_dict())


@admin_router.get("/settings", response_model=SettingsResponse, response_model_by_alias=True)
def get_tax_settings(store: SettingsStore = Depends(get_settings_store)):
    record = store.get_settings()
    return SettingsResponse(success=True, data=SettingsData(**record.as_dict()))


@admin_router.put("/settings", response_model=SettingsResponse, response_model_by_alias=True)
def update_tax_settings(
    payload: SettingsUpdateRequest,
    store: SettingsStore = Depends(get_settings_store),
    admin: AdminPrincipal = Depends(require_admin),
):
    record = store.update_settings(payload.gst_percentage, updated_by=admin.user_id)
    logger.info(
        "Tax settings updated gst=%s by=%s", record.gst_percentage, admin.user_id
    )
    return SettingsResponse(
        success=True,
        message="Settings updated successfully",
        data=SettingsData(**record.as_dict()),
    )


@admin_router.post(
    "/media/{kind}/{owner_id}",
    response_model=UploadResponse,
    response_model_by_alias=True,
)
async def upload_media(
    kind: str,
    owner_id: str,
    file: UploadFile = File(...),
    media: MediaUploadAdapter = Depends(get_media_adapter),
):
    data = await file.read()
    result = media.upload_image(kind, owner_id, data, file.content_type)
    return UploadResponse(
        success=True,
        message="Image uploaded successfully",
        data=UploadData(**result.as_dict()),
    )


@admin_router.delete("/media", response_model=MessageResponse)
def delete_media(
    url: str = Query(..., min_length=1),
    media: MediaUploadAdapter = Depends(get_media_adapter),
):
    result = media.delete_by_url(url)
    logger.info("Media deletion url=%s result=%s", url, result.get("result"))
    return MessageResponse(success=True, message="Image deleted successfully")


router.include_router(admin_router)
