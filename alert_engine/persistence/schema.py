"""Database schema definition and ORM models.

Tables:
- owners: alert owners and their push preference
- alerts: saved searches; criteria stored as a JSON document
- alert_deliveries: one row per completed trigger cycle that found jobs

Timestamps are stored as ISO 8601 strings with a fixed-width microsecond
format, so string comparison orders them chronologically.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from alert_engine.domain.models import (
    Alert,
    AlertFrequency,
    Criteria,
    DeliveryChannel,
    DeliveryRecord,
    DeliveryStatus,
    Owner,
)
from alert_engine.logging import get_logger

logger = get_logger(__name__, component="database")

Base = declarative_base()

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class OwnerModel(Base):
    """ORM model for owners table."""

    __tablename__ = "owners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), nullable=False, unique=True)
    name = Column(String(255), nullable=True)
    push_enabled = Column(Boolean, nullable=False, default=False)
    created_at = Column(String(50), nullable=False)

    def to_domain(self) -> Owner:
        return Owner(
            id=self.id,
            email=self.email,
            name=self.name,
            push_enabled=bool(self.push_enabled),
        )


class AlertModel(Base):
    """ORM model for alerts table.

    last_triggered_at is only ever advanced; see AlertRepository.advance_last_triggered.
    """

    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    criteria = Column(Text, nullable=False)
    frequency = Column(String(20), nullable=False, default=AlertFrequency.DAILY.value)
    active = Column(Boolean, nullable=False, default=True)
    last_triggered_at = Column(String(50), nullable=True)
    total_notifications = Column(Integer, nullable=False, default=0)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_alerts_owner", "owner_id"),
        Index("idx_alerts_active", "active"),
        Index("idx_alerts_last_triggered", "last_triggered_at"),
    )

    def to_domain(self) -> Alert:
        """Convert ORM model to domain model.

        Returns:
            Alert: Domain model instance with criteria decoded from JSON
        """
        return Alert(
            id=self.id,
            owner_id=self.owner_id,
            name=self.name,
            description=self.description,
            criteria=Criteria.model_validate(json.loads(self.criteria)),
            frequency=AlertFrequency(self.frequency),
            active=bool(self.active),
            last_triggered_at=_parse_datetime(self.last_triggered_at),
            total_notifications=self.total_notifications or 0,
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )


class DeliveryModel(Base):
    """ORM model for alert_deliveries table."""

    __tablename__ = "alert_deliveries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    alert_id = Column(Integer, ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False)
    owner_id = Column(Integer, nullable=True)
    triggered_at = Column(String(50), nullable=False)
    jobs_found = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False)
    channel = Column(String(20), nullable=False)
    posting_ids = Column(Text, nullable=False, default="[]")
    error_message = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_deliveries_alert", "alert_id"),
        Index("idx_deliveries_triggered", "triggered_at"),
    )

    def to_domain(self) -> DeliveryRecord:
        return DeliveryRecord(
            id=self.id,
            alert_id=self.alert_id,
            owner_id=self.owner_id,
            triggered_at=_parse_datetime(self.triggered_at),
            jobs_found=self.jobs_found,
            status=DeliveryStatus(self.status),
            channel=DeliveryChannel(self.channel),
            posting_ids=json.loads(self.posting_ids or "[]"),
            error_message=self.error_message,
        )

    @classmethod
    def from_domain(cls, record: DeliveryRecord) -> "DeliveryModel":
        """Create ORM model from domain model. The id is assigned on insert."""
        return cls(
            alert_id=record.alert_id,
            owner_id=record.owner_id,
            triggered_at=_format_datetime(record.triggered_at),
            jobs_found=record.jobs_found,
            status=record.status.value,
            channel=record.channel.value,
            posting_ids=json.dumps(record.posting_ids),
            error_message=record.error_message,
        )


def _serialize_criteria(criteria: Criteria) -> str:
    return json.dumps(criteria.model_dump(), sort_keys=True)


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime as ISO 8601 string for database storage.

    Args:
        dt: Datetime object (naive values are treated as UTC)

    Returns:
        ISO 8601 formatted string with Z suffix, or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime(TIMESTAMP_FORMAT)


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back to a UTC datetime."""
    if not dt_str:
        return None

    dt_str = dt_str.rstrip("Z")
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent).

    Args:
        engine: SQLAlchemy engine instance
    """
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
