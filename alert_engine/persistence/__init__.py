"""Persistence layer for owners, alerts, and delivery history.

Public API:
    - Database: engine + transactional session() context manager
    - AlertStore: interface the engine depends on
    - SqlAlertStore: SQLAlchemy implementation with alert management operations
    - OwnerStats: per-owner summary returned by SqlAlertStore.owner_stats

Example usage:
    >>> database = Database("sqlite:///./data/alerts.db")
    >>> store = SqlAlertStore(database)
    >>> owner = store.create_owner("ada@example.com", name="Ada")
    >>> store.create_alert(owner.id, "Python roles", {"keywords": ["python"]})
"""

from .database import Database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .store import AlertStore, OwnerStats, SqlAlertStore

__all__ = [
    "Database",
    "AlertStore",
    "SqlAlertStore",
    "OwnerStats",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
