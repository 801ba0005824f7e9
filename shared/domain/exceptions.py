"""
Allocation Errors

Typed, recoverable errors raised by the booking and custody engines.
Every error carries a machine readable ``code``, the HTTP status the API
renders it with, and a ``context`` dict (ids, requested window, ...) so a
caller can correct the input or retry.
"""

from __future__ import annotations

from typing import Any


class AllocationError(Exception):
    """Base class for every error surfaced by the allocation engines."""

    code = 'allocation_error'
    http_status = 400
    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {
            'detail': self.message,
            'code': self.code,
            'context': {key: _jsonable(value) for key, value in self.context.items()},
        }


class ValidationError(AllocationError):
    """Request is malformed (window order, duration, capacity)."""

    code = 'validation_error'
    http_status = 400


class NotFoundError(AllocationError):
    """Unknown resource, reservation, key, assignment or user id."""

    code = 'not_found'
    http_status = 404


class ConflictError(AllocationError):
    """An overlapping active reservation exists on the resource."""

    code = 'conflict'
    http_status = 409


class KeyUnavailableError(AllocationError):
    """The key is not free to be issued (or no usable assignment exists)."""

    code = 'key_unavailable'
    http_status = 409


class LimitExceededError(AllocationError):
    """User reached the per-resource daily reservation cap."""

    code = 'limit_exceeded'
    http_status = 429


class InvalidTransitionError(AllocationError):
    """State change not allowed by the transition table."""

    code = 'invalid_transition'
    http_status = 409


class ResourceUnavailableError(AllocationError):
    """Resource or key is inactive / not usable for the operation."""

    code = 'resource_unavailable'
    http_status = 409


class KeyOutstandingError(AllocationError):
    """A picked up key has not been returned yet."""

    code = 'key_outstanding'
    http_status = 409


class StorageError(AllocationError):
    """The durable store failed or timed out; the operation did not commit."""

    code = 'storage_error'
    http_status = 503
    retryable = True


def _jsonable(value: Any) -> Any:
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value
