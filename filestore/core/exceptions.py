"""
Error taxonomy for the access engine.

Gate outcomes (NotFound, Blocked, GateUnsatisfied) are normal branches of a
redemption and are reported as RedemptionOutcome values; the exception classes
exist for callers that need to raise them (admin API, uploads). UpstreamUnavailable
and DeliveryFailed carry the failing call in ``detail`` for logging.
"""
from typing import Any


class FileStoreError(Exception):
    """Base error; detail holds structured context for logging."""

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class NotFound(FileStoreError):
    """Unknown or soft-deleted short code (or any other missing record)."""


class Blocked(FileStoreError):
    """Requester is banned."""


class GateUnsatisfied(FileStoreError):
    """Subscription or verification still pending; resolved by the user."""


class UpstreamUnavailable(FileStoreError):
    """An external dependency (membership lookup, shortener) failed."""


class ShortenerError(UpstreamUnavailable):
    """Shortener returned an error, a malformed body, or did not answer in time."""


class MembershipLookupError(UpstreamUnavailable):
    """Membership query for one gate channel failed."""


class DeliveryFailed(FileStoreError):
    """Transport could not send the file; nothing was mutated."""


class CodeCollision(FileStoreError):
    """Short code already reserved (possibly by a concurrent upload)."""
