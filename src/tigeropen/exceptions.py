"""Exception hierarchy for :mod:`tigeropen`.

Every local failure (encoding, parameter building, key loading, signing) is
raised before any network I/O takes place. ``stage`` records which step of
request construction failed and ``field`` the offending parameter path, so
callers can tell a local bug apart from a rejection by the gateway.
"""

from __future__ import annotations

__all__ = [
    "ApiError",
    "BuildError",
    "EncodeError",
    "PrivateKeyError",
    "SignError",
    "TigerOpenError",
    "TransportError",
]


class TigerOpenError(Exception):
    """Base error carrying the failing stage and field."""

    def __init__(
        self, message: str, *, stage: str | None = None, field: str | None = None
    ) -> None:
        self.message = message
        self.stage = stage
        self.field = field
        super().__init__(message)

    def __str__(self) -> str:
        parts = []
        if self.stage:
            parts.append(f"[{self.stage}]")
        if self.field:
            parts.append(f"{self.field}:")
        parts.append(self.message)
        return " ".join(parts)


class EncodeError(TigerOpenError, ValueError):
    """Raised when a value cannot be represented as a parameter value."""


class BuildError(TigerOpenError, ValueError):
    """Raised when a parameter set or client configuration is malformed."""


class PrivateKeyError(TigerOpenError, ValueError):
    """Raised when private key material cannot be parsed into an RSA key."""


class SignError(TigerOpenError, RuntimeError):
    """Raised when signature computation fails."""


class TransportError(TigerOpenError, RuntimeError):
    """Raised when the HTTP round trip fails or returns a non-200 status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        stage: str | None = "transport",
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message, stage=stage)


class ApiError(TigerOpenError, RuntimeError):
    """Raised when the gateway answers with a non-zero business code."""

    def __init__(
        self,
        message: str,
        *,
        code: int | str | None = None,
        result: object | None = None,
        stage: str | None = "response",
    ) -> None:
        self.code = code
        self.result = result
        super().__init__(message, stage=stage)
