"""Alert store exceptions.

Every store failure is a PersistenceError so the orchestrator can abort a
single alert's cycle with one except clause.
"""


class PersistenceError(Exception):
    """Base exception for alert store failures.

    Fatal to the cycle of the alert being processed; other alerts continue.
    """

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be opened or reached.

    Examples:
    - Empty or malformed DATABASE_URL
    - Database file directory not writable
    - Connection check (SELECT 1) fails
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an owner or alert that must exist is missing.

    Lookups that may legitimately miss (get_alert, get_owner) return None instead.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised on constraint violations.

    Examples:
    - Creating a second owner with the same email
    - Creating an alert for an owner that does not exist
    """

    pass
