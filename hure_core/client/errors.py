# hure_core/client/errors.py
from __future__ import annotations

from typing import Any, Optional

NETWORK_FAILURE_MESSAGE = "Connection error. Please try again."


class HureClientError(Exception):
    """Base class for every failure the client surfaces."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HureClientError):
    """Input rejected locally; no request was sent."""


class BackendRejection(HureClientError):
    """Server answered non-2xx; `message` is its `error` text verbatim."""

    def __init__(self, status_code: int, message: str, body: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body or {}


class NetworkFailure(HureClientError):
    def __init__(self, message: str = NETWORK_FAILURE_MESSAGE):
        super().__init__(message)


class AuthExpiry(HureClientError):
    """401: stored credentials were cleared and the unauthorized hook fired."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
