"""Alert store interface and its SQLAlchemy implementation.

The orchestrator depends only on AlertStore. SqlAlertStore also carries the
alert management operations (owners, alert CRUD, delivery history, stats).
Each method runs in its own short transaction.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, List, Mapping, Optional, Union

from alert_engine.domain.exceptions import CriteriaValidationError
from alert_engine.domain.models import (
    Alert,
    AlertFrequency,
    Criteria,
    DeliveryRecord,
    Owner,
    build_criteria,
    parse_frequency,
)
from alert_engine.logging import get_logger
from alert_engine.utils.timestamps import utc_now

from .database import Database
from .exceptions import RecordNotFoundError
from .repositories import AlertRepository, DeliveryRepository, OwnerRepository
from .schema import _serialize_criteria

logger = get_logger(__name__, component="store")

STATS_WINDOW = timedelta(days=30)

CriteriaInput = Union[Criteria, Mapping[str, Any], None]


@dataclass
class OwnerStats:
    """Alert and delivery totals for one owner (deliveries over the last 30 days)."""

    total_alerts: int
    active_alerts: int
    recent_deliveries: int
    total_jobs_found: int
    avg_jobs_per_delivery: int


class AlertStore(ABC):
    """Persistence operations the alert engine depends on."""

    @abstractmethod
    def list_active_alerts(self) -> List[Alert]:
        """Active alerts, never-triggered first, then oldest last_triggered_at first."""

    @abstractmethod
    def update_last_triggered(self, alert_id: int, timestamp: datetime) -> None:
        """Advance last_triggered_at; never moves it backwards."""

    @abstractmethod
    def record_delivery(self, record: DeliveryRecord) -> DeliveryRecord:
        """Persist the outcome of a completed trigger cycle."""

    @abstractmethod
    def get_alert(self, alert_id: int) -> Optional[Alert]:
        """Return the alert, or None if it doesn't exist."""

    @abstractmethod
    def get_owner(self, owner_id: int) -> Optional[Owner]:
        """Return the owner, or None if it doesn't exist."""


class SqlAlertStore(AlertStore):
    """AlertStore backed by a SQLAlchemy Database.

    Raises PersistenceError subclasses from every method on database failure.
    """

    def __init__(self, database: Database):
        self.database = database

    # Engine operations

    def list_active_alerts(self) -> List[Alert]:
        with self.database.session() as session:
            return AlertRepository(session).list_active()

    def update_last_triggered(self, alert_id: int, timestamp: datetime) -> None:
        with self.database.session() as session:
            advanced = AlertRepository(session).advance_last_triggered(alert_id, timestamp)

        if not advanced:
            logger.debug(
                f"Ignored older trigger timestamp for alert {alert_id}",
                extra={"event": "store.last_triggered.unchanged", "alert_id": alert_id},
            )

    def record_delivery(self, record: DeliveryRecord) -> DeliveryRecord:
        """Insert the record and bump the alert's total_notifications in one transaction."""
        with self.database.session() as session:
            saved = DeliveryRepository(session).add(record)
            AlertRepository(session).increment_notifications(record.alert_id)

        logger.debug(
            f"Recorded {record.status.value} delivery for alert {record.alert_id}",
            extra={
                "event": "store.delivery.recorded",
                "alert_id": record.alert_id,
                "delivery_status": record.status.value,
                "jobs_found": record.jobs_found,
            },
        )
        return saved

    def get_alert(self, alert_id: int) -> Optional[Alert]:
        with self.database.session() as session:
            return AlertRepository(session).get(alert_id)

    def get_owner(self, owner_id: int) -> Optional[Owner]:
        with self.database.session() as session:
            return OwnerRepository(session).get(owner_id)

    # Alert management

    def create_owner(
        self, email: str, name: Optional[str] = None, push_enabled: bool = False
    ) -> Owner:
        """Register an alert owner.

        Raises:
            DataIntegrityError: If the email is already registered
        """
        with self.database.session() as session:
            owner = OwnerRepository(session).create(email, name, push_enabled, utc_now())

        logger.info(
            f"Created owner {owner.id}",
            extra={"event": "store.owner.created", "owner_id": owner.id},
        )
        return owner

    def get_owner_by_email(self, email: str) -> Optional[Owner]:
        with self.database.session() as session:
            return OwnerRepository(session).get_by_email(email)

    def create_alert(
        self,
        owner_id: int,
        name: str,
        criteria: CriteriaInput = None,
        frequency: Union[AlertFrequency, str] = AlertFrequency.DAILY,
        description: Optional[str] = None,
    ) -> Alert:
        """Create an active alert for an existing owner.

        Args:
            owner_id: Owning user
            name: Display name (non-blank)
            criteria: Criteria or a raw mapping to validate
            frequency: AlertFrequency or its string value
            description: Optional note

        Returns:
            The stored alert, never triggered

        Raises:
            CriteriaValidationError: If criteria, frequency, or name is invalid
            RecordNotFoundError: If the owner doesn't exist
        """
        alert_name = _validate_name(name)
        parsed_criteria = _coerce_criteria(criteria)
        parsed_frequency = parse_frequency(frequency)

        with self.database.session() as session:
            if OwnerRepository(session).get(owner_id) is None:
                raise RecordNotFoundError(f"Owner {owner_id} not found")
            alert = AlertRepository(session).create(
                owner_id, alert_name, parsed_criteria, parsed_frequency, description, utc_now()
            )

        logger.info(
            f"Created alert {alert.id} '{alert.name}' ({alert.frequency.value})",
            extra={"event": "store.alert.created", "alert_id": alert.id, "owner_id": owner_id},
        )
        return alert

    def update_alert(
        self,
        alert_id: int,
        name: Optional[str] = None,
        criteria: CriteriaInput = None,
        frequency: Union[AlertFrequency, str, None] = None,
        description: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Alert:
        """Update the given fields of an alert; None leaves a field unchanged.

        last_triggered_at is not touched here.

        Raises:
            CriteriaValidationError: If a new value is invalid
            RecordNotFoundError: If the alert doesn't exist
        """
        values = {}
        if name is not None:
            values["name"] = _validate_name(name)
        if criteria is not None:
            values["criteria"] = _serialize_criteria(_coerce_criteria(criteria))
        if frequency is not None:
            values["frequency"] = parse_frequency(frequency).value
        if description is not None:
            values["description"] = description
        if active is not None:
            values["active"] = active

        with self.database.session() as session:
            alert = AlertRepository(session).update_fields(alert_id, utc_now(), **values)

        logger.info(
            f"Updated alert {alert_id}",
            extra={"event": "store.alert.updated", "alert_id": alert_id, "fields": sorted(values)},
        )
        return alert

    def set_active(self, alert_id: int, active: bool) -> Alert:
        """Pause or resume an alert."""
        return self.update_alert(alert_id, active=active)

    def delete_alert(self, alert_id: int) -> bool:
        """Delete an alert and its delivery history.

        Returns:
            True if an alert was deleted, False if it didn't exist
        """
        with self.database.session() as session:
            deleted = AlertRepository(session).delete(alert_id)

        if deleted:
            logger.info(
                f"Deleted alert {alert_id}",
                extra={"event": "store.alert.deleted", "alert_id": alert_id},
            )
        return deleted

    def list_owner_alerts(self, owner_id: int) -> List[Alert]:
        with self.database.session() as session:
            return AlertRepository(session).list_for_owner(owner_id)

    def list_deliveries(self, alert_id: int, limit: int = 20) -> List[DeliveryRecord]:
        with self.database.session() as session:
            return DeliveryRepository(session).list_for_alert(alert_id, limit)

    def owner_stats(self, owner_id: int, now: Optional[datetime] = None) -> OwnerStats:
        """Summarise an owner's alerts and their deliveries over the last 30 days."""
        since = (now or utc_now()) - STATS_WINDOW
        with self.database.session() as session:
            total_alerts, active_alerts = AlertRepository(session).count_for_owner(owner_id)
            deliveries, jobs, average = DeliveryRepository(session).totals_for_owner(
                owner_id, since
            )

        return OwnerStats(
            total_alerts=total_alerts,
            active_alerts=active_alerts,
            recent_deliveries=deliveries,
            total_jobs_found=jobs,
            avg_jobs_per_delivery=round(average),
        )


def _coerce_criteria(criteria: CriteriaInput) -> Criteria:
    if isinstance(criteria, Criteria):
        return criteria
    return build_criteria(criteria)


def _validate_name(name: str) -> str:
    stripped = (name or "").strip()
    if not stripped:
        raise CriteriaValidationError("Invalid alert", errors=["name: must not be blank"])
    return stripped
