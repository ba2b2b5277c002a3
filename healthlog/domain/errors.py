"""
Error taxonomy for the health log.

Remote failures are recovered close to where they happen (logged, defaulted
or ignored). Only ``InvalidBundleError`` is meant to reach the user.
"""


class HealthLogError(Exception):
    """Base exception for health log errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class RemoteFetchError(HealthLogError):
    """The document store answered a GET with a non-404 failure status."""

    def __init__(self, status_code: int, reason: str) -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(
            f"Failed to load data from document store: {reason or status_code}",
            details={"status_code": status_code},
        )


class RemoteSaveError(HealthLogError):
    """A PUT to the document store failed, by status or by transport."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, details={"status_code": status_code})


class InvalidBundleError(HealthLogError):
    """Imported data does not have the bundle shape."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        self.missing = missing or []
        super().__init__(message, details={"missing": self.missing})
