"""Custom exception hierarchy for pybambu."""

from __future__ import annotations


class BambuError(Exception):
    """Base exception for all pybambu errors."""


class BambuConfigError(BambuError):
    """Invalid or missing configuration."""


class BambuTransportError(BambuError):
    """MQTT-level failure (connect, subscribe, publish, disconnect).

    Raised synchronously to the caller of the triggering operation and never
    retried internally. Callers typically reconnect.
    """

    def __init__(
        self,
        message: str,
        *,
        topic: str = "",
        reason_code: int | None = None,
    ) -> None:
        self.topic = topic
        self.reason_code = reason_code
        super().__init__(message)


class BambuDecodeError(BambuError):
    """Inbound report payload could not be parsed into a printer state."""

    def __init__(self, message: str, *, payload: bytes = b"") -> None:
        self.payload = payload
        super().__init__(message)


class BambuCommandError(BambuError, ValueError):
    """A command cannot be encoded (caller programming error).

    Raised before any network interaction takes place.
    """
