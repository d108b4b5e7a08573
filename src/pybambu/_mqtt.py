"""Internal MQTT transport for the printer's local broker."""

from __future__ import annotations

import logging
import ssl
import threading
from collections.abc import Callable
from typing import Any, Protocol

import paho.mqtt.client as mqtt

from pybambu.config import PrinterClientConfig
from pybambu.exceptions import BambuTransportError


class ConnectionCallback(Protocol):
    """Optional hooks for connection lifecycle events."""

    def connect_complete(self, reconnect: bool) -> None:
        """Connection established; ``reconnect`` is ``False`` the first time."""

    def connection_lost(self, reason: str) -> None:
        """Connection dropped."""


def _insecure_tls_context() -> ssl.SSLContext:
    # The printer presents a self-signed certificate issued for its serial.
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class PrinterMqttTransport:
    """Threaded paho-mqtt transport bound to one printer.

    Subscribes to the printer's report topic on every (re)connect and hands
    each inbound message to ``on_message`` on the paho network thread.
    """

    def __init__(
        self,
        config: PrinterClientConfig,
        *,
        on_message: Callable[[str, bytes], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._on_message = on_message
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._callback: ConnectionCallback | None = None
        self._connected = threading.Event()
        self._connect_error: str | None = None
        self._connected_once = False

    def is_connected(self) -> bool:
        client = self._client
        return client is not None and client.is_connected()

    def connect(self, callback: ConnectionCallback | None = None) -> None:
        """Connect, subscribe to the report topic and start the network loop.

        Blocks until the broker acknowledged the connection or
        ``connection_timeout`` elapsed.

        Raises
        ------
        BambuTransportError
            Connection refused, timed out, or the report subscription failed.
        """
        self.close()
        config = self._config
        self._callback = callback
        self._connected.clear()
        self._connect_error = None
        self._connected_once = False
        self._logger.debug("Connecting to MQTT %s:%s client_id=%s", config.host, config.port, config.client_id)

        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        client.username_pw_set(config.username, config.access_code)
        client.tls_set_context(_insecure_tls_context())
        client.tls_insecure_set(True)
        client.connect_timeout = float(config.connection_timeout)

        client.on_connect = self._handle_connect
        client.on_message = self._handle_message
        client.on_disconnect = self._handle_disconnect

        try:
            client.connect(config.host, config.port, keepalive=config.keepalive)
        except (OSError, ValueError) as exc:
            raise BambuTransportError(f"Cannot connect to MQTT at {config.host}:{config.port}: {exc}") from exc
        client.loop_start()
        self._client = client

        if not self._connected.wait(config.connection_timeout):
            self._abort(client)
            raise BambuTransportError(
                f"Timed out after {config.connection_timeout}s waiting for MQTT at {config.host}:{config.port}"
            )
        if self._connect_error is not None:
            self._abort(client)
            raise BambuTransportError(self._connect_error, topic=config.report_topic)
        self._logger.debug("MQTT network loop started")

    def publish(self, topic: str, payload: bytes) -> None:
        """Publish with QoS 0.

        Raises
        ------
        BambuTransportError
            Not connected, or paho rejected the message.
        """
        client = self._client
        if client is None:
            raise BambuTransportError("Cannot publish: MQTT client is not connected", topic=topic)
        try:
            info = client.publish(topic, payload, qos=0)
        except ValueError as exc:
            raise BambuTransportError(f"Cannot publish to {topic}: {exc}", topic=topic) from exc
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise BambuTransportError(
                f"Cannot publish to {topic}: {mqtt.error_string(info.rc)}",
                topic=topic,
                reason_code=int(info.rc),
            )

    def close(self) -> None:
        """Disconnect and stop the network loop, if running."""
        client = self._client
        self._client = None
        self._callback = None
        if client is None:
            return
        try:
            if client.is_connected():
                self._logger.debug("MQTT disconnect requested")
                rc = client.disconnect()
                if rc != mqtt.MQTT_ERR_SUCCESS:
                    raise BambuTransportError(
                        f"Cannot disconnect from MQTT: {mqtt.error_string(rc)}", reason_code=int(rc)
                    )
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def _abort(self, client: mqtt.Client) -> None:
        self._client = None
        try:
            client.disconnect()
        finally:
            client.loop_stop()

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------

    def _handle_connect(
        self,
        c: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if reason_code.is_failure:
            self._logger.warning("MQTT connect failed: %s", reason_code)
            if not self._connected.is_set():
                self._connect_error = f"MQTT connection refused: {reason_code}"
                self._connected.set()
            return

        topic = self._config.report_topic
        self._logger.debug("MQTT connected reason=%s, subscribing topic=%s", reason_code, topic)
        result, _mid = c.subscribe(topic, qos=0)
        if result != mqtt.MQTT_ERR_SUCCESS:
            self._logger.warning("MQTT subscribe to %s failed: %s", topic, mqtt.error_string(result))
            if not self._connected.is_set():
                self._connect_error = f"Cannot subscribe to {topic}: {mqtt.error_string(result)}"
                self._connected.set()
            return

        reconnect = self._connected_once
        self._connected_once = True
        self._connected.set()
        callback = self._callback
        if callback is not None:
            try:
                callback.connect_complete(reconnect)
            except Exception:
                self._logger.warning("connect_complete callback failed", exc_info=True)

    def _handle_message(self, _c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        try:
            self._on_message(msg.topic, bytes(msg.payload))
        except Exception:
            self._logger.warning("Inbound message handler failed for topic=%s", msg.topic, exc_info=True)

    def _handle_disconnect(
        self,
        c: mqtt.Client,
        _userdata: Any,
        _disconnect_flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        self._logger.debug("MQTT disconnected: %s", reason_code)
        callback = self._callback
        if callback is not None:
            try:
                callback.connection_lost(str(reason_code))
            except Exception:
                self._logger.warning("connection_lost callback failed", exc_info=True)
        if not self._config.automatic_reconnect and self._client is c:
            # paho's threaded loop reconnects on its own otherwise.
            c.loop_stop()
