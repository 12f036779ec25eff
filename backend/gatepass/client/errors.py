# Overview: Exception types raised by the gate pass client core.

"""
Client error taxonomy.

Fatal to the calling operation (carry a message fit for display):
- SequenceResolutionError: could not list passes to derive the next number
- CreationError: the server rejected or never received a new pass
- UpdateError: the server rejected an edit, or the pass is read-only

Contained (logged, never surfaced):
- CacheWriteError: local cache storage failed; the cache refetches instead
- RollbackError: compensating delete failed

ApiError is the transport-level failure the fatal errors wrap.
"""

from __future__ import annotations


class GatePassClientError(Exception):
    """Base class for client-side gate pass errors."""


class ApiError(GatePassClientError):
    """HTTP failure or an explicit {"success": false} body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SequenceResolutionError(GatePassClientError):
    pass


class CreationError(GatePassClientError):
    pass


class UpdateError(GatePassClientError):
    pass


class CacheWriteError(GatePassClientError):
    pass


class RollbackError(GatePassClientError):
    pass
