"""
Settings store for the singleton tax configuration record.

SQLAlchemy-backed implementation plus an in-memory test implementation.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, Float, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from hotel_backend.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

SETTINGS_TYPES = ("tax", "general")
DEFAULT_SETTINGS_TYPE = "tax"
DEFAULT_GST_PERCENTAGE = 18.0


def _isoformat(timestamp: Optional[float]) -> Optional[str]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def check_gst_percentage(gst_percentage) -> float:
    if (
        gst_percentage is None
        or isinstance(gst_percentage, bool)
        or not isinstance(gst_percentage, (int, float))
        or gst_percentage < 0
    ):
        raise ValidationError(
            "Please provide a valid GST percentage", field="gstPercentage"
        )
    return float(gst_percentage)


def check_settings_type(settings_type: str) -> str:
    if settings_type not in SETTINGS_TYPES:
        raise ValidationError(
            f"Unknown settings type: {settings_type}", field="type"
        )
    return settings_type


class SettingsStore(Protocol):
    """Interface for settings persistence."""

    def get_settings(self, settings_type: str = DEFAULT_SETTINGS_TYPE) -> "SettingsRecord":
        ...

    def update_settings(
        self,
        gst_percentage: float,
        updated_by: Optional[str],
        settings_type: str = DEFAULT_SETTINGS_TYPE,
    ) -> "SettingsRecord":
        ...


@dataclass
class SettingsRecord:
    type: str
    gst_percentage: float
    updated_by: Optional[str] = None
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "type": self.type,
            "gstPercentage": self.gst_percentage,
            "updatedBy": self.updated_by,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }


class InMemorySettingsStore:
    """Simple in-memory settings store for development and tests."""

    def __init__(self, default_gst_percentage: float = DEFAULT_GST_PERCENTAGE):
        self.default_gst_percentage = default_gst_percentage
        self.records: Dict[str, SettingsRecord] = {}

    def get_settings(self, settings_type: str = DEFAULT_SETTINGS_TYPE) -> SettingsRecord:
        check_settings_type(settings_type)
        record = self.records.get(settings_type)
        if record is None:
            record = SettingsRecord(
                type=settings_type, gst_percentage=self.default_gst_percentage
            )
            self.records[settings_type] = record
        return record

    def update_settings(
        self,
        gst_percentage: float,
        updated_by: Optional[str],
        settings_type: str = DEFAULT_SETTINGS_TYPE,
    ) -> SettingsRecord:
        rate = check_gst_percentage(gst_percentage)
        record = self.get_settings(settings_type)
        record.gst_percentage = rate
        record.updated_by = updated_by
        record.updated_at = time.time()
        return record

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.records.clear()


class SqlSettingsStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(
        self,
        database_url: str,
        default_gst_percentage: float = DEFAULT_GST_PERCENTAGE,
    ):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlSettingsStore")
        self.default_gst_percentage = default_gst_percentage
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_record(self, row: "SettingsRow") -> SettingsRecord:
        return SettingsRecord(
            type=row.type,
            gst_percentage=row.gst_percentage,
            updated_by=row.updated_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _get_or_create(self, session: Session, settings_type: str) -> "SettingsRow":
        row = session.get(SettingsRow, settings_type)
        if row is None:
            now = time.time()
            row = SettingsRow(
                type=settings_type,
                gst_percentage=self.default_gst_percentage,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
        return row

    def get_settings(self, settings_type: str = DEFAULT_SETTINGS_TYPE) -> SettingsRecord:
        check_settings_type(settings_type)
        try:
            with self.Session() as session:
                row = self._get_or_create(session, settings_type)
                session.commit()
                return self._to_record(row)
        except SQLAlchemyError as exc:
            logger.exception("Error fetching settings type=%s", settings_type)
            raise StoreError("Error fetching settings") from exc

    def update_settings(
        self,
        gst_percentage: float,
        updated_by: Optional[str],
        settings_type: str = DEFAULT_SETTINGS_TYPE,
    ) -> SettingsRecord:
        rate = check_gst_percentage(gst_percentage)
        check_settings_type(settings_type)
        try:
            with self.Session() as session:
                row = self._get_or_create(session, settings_type)
                row.gst_percentage = rate
                row.updated_by = updated_by
                row.updated_at = time.time()
                session.commit()
                return self._to_record(row)
        except SQLAlchemyError as exc:
            logger.exception("Error updating settings type=%s", settings_type)
            raise StoreError("Error updating settings") from exc


Base = declarative_base()


class SettingsRow(Base):
    __tablename__ = "settings"

    type = Column(String, primary_key=True)
    gst_percentage = Column(Float, nullable=False, default=DEFAULT_GST_PERCENTAGE)
    updated_by = Column(String, nullable=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
