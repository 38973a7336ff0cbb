"""Exceptions raised by the alerter."""

from __future__ import annotations


class MatrixAlerterError(Exception):
    """Base exception for alerter errors."""


class ConfigurationInvalidError(MatrixAlerterError):
    """Raised when a provider configuration fails validation."""


class RequestConstructionError(MatrixAlerterError):
    """Raised when the outbound request cannot be assembled."""


class DeliveryTransportError(MatrixAlerterError):
    """Raised when the transport fails before a response is received."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"transport error while sending alert: {cause}")
        self.cause = cause


class RemoteRejectedError(MatrixAlerterError):
    """Raised when the homeserver answers with an error status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(
            f"call to provider alert returned status code {status_code}: {body}"
        )
        self.status_code = status_code
        self.body = body
