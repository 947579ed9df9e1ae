"""Exceptions raised by the domain layer."""

from typing import List, Optional


class CriteriaValidationError(Exception):
    """Alert criteria or alert settings are structurally invalid.

    Raised when building criteria from user input (inverted or negative salary
    range, unknown frequency, malformed fields). Invalid input is never
    repaired silently; the caller receives the list of problems.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        """Initialize with a summary message and individual error lines.

        Args:
            message: Human-readable summary
            errors: Individual validation problems, one per field
        """
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:
        if not self.errors:
            return super().__str__()
        details = "; ".join(self.errors)
        return f"{super().__str__()}: {details}"
