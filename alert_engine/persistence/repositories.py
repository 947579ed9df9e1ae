"""Data access layer (repositories) for owners, alerts, and deliveries.

Repositories wrap a single session and return domain models rather than ORM
models. Transactions are owned by the caller (see Database.session).
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from alert_engine.domain.models import (
    Alert,
    AlertFrequency,
    Criteria,
    DeliveryRecord,
    Owner,
)
from alert_engine.logging import get_logger

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    AlertModel,
    DeliveryModel,
    OwnerModel,
    _format_datetime,
    _serialize_criteria,
)

logger = get_logger(__name__, component="database")


class OwnerRepository:
    """Repository for alert owners."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, owner_id: int) -> Optional[Owner]:
        try:
            owner_model = self.session.get(OwnerModel, owner_id)
            return owner_model.to_domain() if owner_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve owner: {e}") from e

    def get_by_email(self, email: str) -> Optional[Owner]:
        """Look up an owner by email (case-insensitive).

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(OwnerModel).where(OwnerModel.email == email.strip().lower())
            owner_model = self.session.execute(stmt).scalar_one_or_none()
            return owner_model.to_domain() if owner_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving owner by email: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve owner: {e}") from e

    def create(
        self, email: str, name: Optional[str], push_enabled: bool, created_at: datetime
    ) -> Owner:
        """Insert a new owner.

        Raises:
            DataIntegrityError: If the email is already registered
            PersistenceError: If database error occurs
        """
        try:
            owner_model = OwnerModel(
                email=email.strip().lower(),
                name=name,
                push_enabled=push_enabled,
                created_at=_format_datetime(created_at),
            )
            self.session.add(owner_model)
            self.session.flush()
            return owner_model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Owner with email {email} already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating owner: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create owner: {e}") from e


class AlertRepository:
    """Repository for saved alerts."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, alert_id: int) -> Optional[Alert]:
        try:
            alert_model = self.session.get(AlertModel, alert_id)
            return alert_model.to_domain() if alert_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve alert: {e}") from e

    def list_active(self) -> List[Alert]:
        """Active alerts, never-triggered first, then oldest last_triggered_at first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(AlertModel)
                .where(AlertModel.active.is_(True))
                .order_by(
                    AlertModel.last_triggered_at.is_(None).desc(),
                    AlertModel.last_triggered_at.asc(),
                    AlertModel.id.asc(),
                )
            )
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing active alerts: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list active alerts: {e}") from e

    def list_for_owner(self, owner_id: int) -> List[Alert]:
        """All alerts of one owner, newest first."""
        try:
            stmt = (
                select(AlertModel)
                .where(AlertModel.owner_id == owner_id)
                .order_by(AlertModel.created_at.desc(), AlertModel.id.desc())
            )
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing alerts for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list owner alerts: {e}") from e

    def create(
        self,
        owner_id: int,
        name: str,
        criteria: Criteria,
        frequency: AlertFrequency,
        description: Optional[str],
        created_at: datetime,
    ) -> Alert:
        """Insert a new active alert.

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If database error occurs
        """
        timestamp = _format_datetime(created_at)
        try:
            alert_model = AlertModel(
                owner_id=owner_id,
                name=name,
                description=description,
                criteria=_serialize_criteria(criteria),
                frequency=frequency.value,
                active=True,
                last_triggered_at=None,
                total_notifications=0,
                created_at=timestamp,
                updated_at=timestamp,
            )
            self.session.add(alert_model)
            self.session.flush()
            return alert_model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(f"Failed to create alert due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating alert: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create alert: {e}") from e

    def update_fields(self, alert_id: int, updated_at: datetime, **values) -> Alert:
        """Apply column updates to an alert and bump updated_at.

        Raises:
            RecordNotFoundError: If the alert doesn't exist
            PersistenceError: If database error occurs
        """
        try:
            alert_model = self.session.get(AlertModel, alert_id)
            if alert_model is None:
                raise RecordNotFoundError(f"Alert {alert_id} not found")

            for column, value in values.items():
                setattr(alert_model, column, value)
            alert_model.updated_at = _format_datetime(updated_at)

            self.session.flush()
            return alert_model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update alert: {e}") from e

    def delete(self, alert_id: int) -> bool:
        """Delete an alert and, through the foreign key, its deliveries."""
        try:
            result = self.session.execute(delete(AlertModel).where(AlertModel.id == alert_id))
            self.session.flush()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete alert: {e}") from e

    def advance_last_triggered(self, alert_id: int, timestamp: datetime) -> bool:
        """Move last_triggered_at forward; an older timestamp is ignored.

        Returns:
            True if the column changed, False if the stored value was already newer

        Raises:
            RecordNotFoundError: If the alert doesn't exist
            PersistenceError: If database error occurs
        """
        timestamp_str = _format_datetime(timestamp)
        try:
            stmt = (
                update(AlertModel)
                .where(
                    AlertModel.id == alert_id,
                    (AlertModel.last_triggered_at.is_(None))
                    | (AlertModel.last_triggered_at < timestamp_str),
                )
                .values(last_triggered_at=timestamp_str)
            )
            result = self.session.execute(stmt)
            self.session.flush()

            if result.rowcount > 0:
                return True

            if self.session.get(AlertModel, alert_id) is None:
                raise RecordNotFoundError(f"Alert {alert_id} not found")
            return False

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating last_triggered for alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update last_triggered: {e}") from e

    def increment_notifications(self, alert_id: int) -> None:
        try:
            stmt = (
                update(AlertModel)
                .where(AlertModel.id == alert_id)
                .values(total_notifications=AlertModel.total_notifications + 1)
            )
            result = self.session.execute(stmt)
            self.session.flush()
            if result.rowcount == 0:
                raise RecordNotFoundError(f"Alert {alert_id} not found")
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating notification count for alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update notification count: {e}") from e

    def count_for_owner(self, owner_id: int) -> Tuple[int, int]:
        """Return (total, active) alert counts for an owner."""
        try:
            stmt = select(
                func.count(AlertModel.id),
                func.coalesce(func.sum(case((AlertModel.active.is_(True), 1), else_=0)), 0),
            ).where(AlertModel.owner_id == owner_id)
            total, active = self.session.execute(stmt).one()
            return int(total or 0), int(active or 0)
        except SQLAlchemyError as e:
            logger.error(f"Error counting alerts for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count owner alerts: {e}") from e


class DeliveryRepository:
    """Repository for delivery records."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, record: DeliveryRecord) -> DeliveryRecord:
        """Insert a delivery record and return it with its assigned id.

        Raises:
            DataIntegrityError: If the alert doesn't exist
            PersistenceError: If database error occurs
        """
        try:
            delivery_model = DeliveryModel.from_domain(record)
            self.session.add(delivery_model)
            self.session.flush()
            return delivery_model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(
                f"Failed to record delivery for alert {record.alert_id}: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error recording delivery for alert {record.alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record delivery: {e}") from e

    def list_for_alert(self, alert_id: int, limit: int = 20) -> List[DeliveryRecord]:
        """Most recent deliveries of an alert, newest first."""
        try:
            stmt = (
                select(DeliveryModel)
                .where(DeliveryModel.alert_id == alert_id)
                .order_by(DeliveryModel.triggered_at.desc(), DeliveryModel.id.desc())
                .limit(limit)
            )
            return [m.to_domain() for m in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing deliveries for alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list deliveries: {e}") from e

    def totals_for_owner(self, owner_id: int, since: datetime) -> Tuple[int, int, float]:
        """Return (deliveries, jobs found, average jobs per delivery) since a cutoff."""
        try:
            stmt = (
                select(
                    func.count(DeliveryModel.id),
                    func.coalesce(func.sum(DeliveryModel.jobs_found), 0),
                    func.coalesce(func.avg(DeliveryModel.jobs_found), 0),
                )
                .join(AlertModel, AlertModel.id == DeliveryModel.alert_id)
                .where(
                    AlertModel.owner_id == owner_id,
                    DeliveryModel.triggered_at >= _format_datetime(since),
                )
            )
            count, jobs, average = self.session.execute(stmt).one()
            return int(count or 0), int(jobs or 0), float(average or 0)
        except SQLAlchemyError as e:
            logger.error(f"Error computing delivery totals for owner {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to compute delivery totals: {e}") from e
