# water_chemistry/errors.py
from typing import Iterable, Optional


class WaterChemistryError(Exception):
    """Base class for every domain error raised by the service."""


class ValidationError(WaterChemistryError):
    pass


class NotFoundError(WaterChemistryError):
    pass


class ForbiddenError(WaterChemistryError):
    pass


AuthorizationError = ForbiddenError


class InsufficientDataError(WaterChemistryError):
    """
    Raised when pH, total ammonia or temperature is missing or unusable.
    Not fatal: callers branch on it and report "insufficient data".
    """

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__("Insufficient data: missing " + ", ".join(self.missing))


class StorageUnavailable(WaterChemistryError):
    """Record store failed or timed out. Retrying is the caller's decision."""

    retryable = True

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
