"""
Pydantic schemas for the hotel backend API.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt


class ContactRequest(BaseModel):
    # Presence and length rules belong to the field validator.
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class ContactResponse(BaseModel):
    success: bool
    message: str
    field: Optional[str] = None


class SettingsData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    gst_percentage: float = Field(alias="gstPercentage")
    updated_by: Optional[str] = Field(default=None, alias="updatedBy")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


class SettingsResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: SettingsData


class SettingsUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gst_percentage: Optional[Union[StrictInt, StrictFloat]] = Field(
        default=None, alias="gstPercentage"
    )


class UploadData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    public_id: str = Field(alias="publicId")
    secure_url: str = Field(alias="secureUrl")
    resource_type: str = Field(alias="resourceType")
    format: Optional[str] = None
    bytes: Optional[int] = None


class UploadResponse(BaseModel):
    success: bool
    message: str
    data: UploadData


class MessageResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    environment: str
