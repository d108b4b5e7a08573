"""Client configuration for pybambu."""

from __future__ import annotations

import dataclasses
import enum
import os
import uuid
from typing import Any

from pybambu.exceptions import BambuConfigError

DEFAULT_PORT = 8883
LOCAL_USERNAME = "bblp"
DEFAULT_NAMESPACE = "device"


class SequenceIdFormat(enum.StrEnum):
    """Wire representation of ``sequence_id`` in structured commands."""

    INT = "int"
    STR = "str"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _new_client_id() -> str:
    return f"pybambu-{uuid.uuid4().hex[:16]}"


@dataclasses.dataclass(frozen=True)
class PrinterClientConfig:
    """Client configuration.

    Parameters
    ----------
    host : str
        Printer hostname or IP address on the LAN.
    serial : str
        Printer serial number; used to build every MQTT topic.
    access_code : str
        LAN access code shown on the printer screen. Used as MQTT password.
    port : int
        MQTT-over-TLS port. Defaults to ``8883``.
    username : str
        MQTT username. The printer's local broker expects ``"bblp"``.
    client_id : str
        MQTT client identifier. A random one is generated by default.
    connection_timeout : int
        Seconds to wait for the broker CONNACK.
    keepalive : int
        MQTT keepalive in seconds.
    automatic_reconnect : bool
        Let the network loop reconnect on its own after a connection loss.
    namespace : str
        Topic namespace in front of the serial (``device/<serial>/...``).
    sequence_id_format : SequenceIdFormat
        Whether structured commands carry ``sequence_id`` as a number or
        as a decimal string.
    """

    host: str
    serial: str
    access_code: str = dataclasses.field(repr=False)
    port: int = DEFAULT_PORT
    username: str = LOCAL_USERNAME
    client_id: str = dataclasses.field(default_factory=_new_client_id)
    connection_timeout: int = 30
    keepalive: int = 60
    automatic_reconnect: bool = False
    namespace: str = DEFAULT_NAMESPACE
    sequence_id_format: SequenceIdFormat = SequenceIdFormat.INT

    def __post_init__(self) -> None:
        for name in ("host", "serial", "access_code"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise BambuConfigError(f"{name} must be a non-empty string")
        if not 0 < int(self.port) < 65536:
            raise BambuConfigError(f"port out of range: {self.port}")
        if self.namespace.startswith("/") or self.namespace.endswith("/"):
            raise BambuConfigError("namespace must not start or end with '/'")
        if not isinstance(self.sequence_id_format, SequenceIdFormat):
            try:
                object.__setattr__(self, "sequence_id_format", SequenceIdFormat(self.sequence_id_format))
            except ValueError as exc:
                raise BambuConfigError(f"Unknown sequence_id_format: {self.sequence_id_format!r}") from exc

    def __repr__(self) -> str:
        return (
            f"PrinterClientConfig(host={self.host!r}, port={self.port}, serial={self.serial!r}, "
            f"username={self.username!r}, client_id={self.client_id!r}, access_code=<SECRET>, "
            f"connection_timeout={self.connection_timeout}, keepalive={self.keepalive}, "
            f"automatic_reconnect={self.automatic_reconnect})"
        )

    @property
    def topic_prefix(self) -> str:
        """``<namespace>/<serial>``; every command topic starts with it."""
        return f"{self.namespace}/{self.serial}"

    @property
    def report_topic(self) -> str:
        return f"{self.topic_prefix}/report"

    @classmethod
    def from_env(cls, **overrides: Any) -> PrinterClientConfig:
        """Create configuration from environment variables.

        Reads ``BAMBU_HOST``, ``BAMBU_SERIAL``, ``BAMBU_ACCESS_CODE`` and the
        optional ``BAMBU_*`` tuning variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        PrinterClientConfig
            Populated configuration.

        Raises
        ------
        BambuConfigError
            When a required value is missing or a numeric value is malformed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "BAMBU_HOST": "host",
            "BAMBU_SERIAL": "serial",
            "BAMBU_ACCESS_CODE": "access_code",
            "BAMBU_USERNAME": "username",
            "BAMBU_CLIENT_ID": "client_id",
            "BAMBU_NAMESPACE": "namespace",
            "BAMBU_SEQUENCE_ID_FORMAT": "sequence_id_format",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # numeric values, handled separately
        _ENV_INT_MAP = {
            "BAMBU_PORT": "port",
            "BAMBU_CONNECTION_TIMEOUT": "connection_timeout",
            "BAMBU_KEEPALIVE": "keepalive",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = int(val)
            except ValueError as exc:
                raise BambuConfigError(f"{env_key} must be an integer, got {val!r}") from exc

        if "automatic_reconnect" not in overrides:
            config_kwargs["automatic_reconnect"] = _env_bool(env.get("BAMBU_AUTOMATIC_RECONNECT"), False)

        config_kwargs.update(overrides)

        missing = [name for name in ("host", "serial", "access_code") if not config_kwargs.get(name)]
        if missing:
            raise BambuConfigError(f"Missing required configuration: {', '.join(missing)}")

        return cls(**config_kwargs)
