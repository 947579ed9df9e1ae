"""Exceptions raised by job sources."""


class SourceFetchError(Exception):
    """Base exception for a failed fetch from a single job source.

    The aggregator catches these per source: the failing source contributes
    no postings and sibling sources are unaffected.
    """


class SourceHTTPError(SourceFetchError):
    """The source API answered with an HTTP error or the connection failed."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize with the HTTP status (0 for connection failures) and URL."""
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    @property
    def is_transient(self) -> bool:
        """Connection failures and 5xx responses are worth retrying next cycle."""
        return self.status_code == 0 or self.status_code >= 500


class SourceTimeoutError(SourceFetchError):
    """The source did not answer in time."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class SourceResponseError(SourceFetchError):
    """The source answered but the body could not be parsed or had an unexpected shape."""


class SourceConfigurationError(SourceFetchError):
    """A source was configured with an unsupported type or invalid settings."""
