"""High-level client for one printer's MQTT interface."""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType

from pybambu._mqtt import ConnectionCallback, PrinterMqttTransport
from pybambu._redact import redact_text
from pybambu.channel import Channel, Sequencer, Transport
from pybambu.config import PrinterClientConfig
from pybambu.dispatch import SubscriberRegistry
from pybambu.models.commands import Command, PushingCommand
from pybambu.watcher import PrinterWatcher

_logger = logging.getLogger(__name__)

MessageSubscriber = Callable[[str, bytes], object]
"""Called with ``(topic, payload)`` for every inbound message."""


class PrinterClient:
    """Client for a printer's local MQTT broker.

    Usage::

        config = PrinterClientConfig(host="192.168.1.50", serial="01S00A000000000", access_code="12345678")
        with PrinterClient(config) as client:
            watcher = client.watch()
            client.connect()
            client.request_full_state()
            client.send_command(PrintCommand.PAUSE)

    Commands may be sent from any thread. Inbound messages are delivered on
    the transport's network thread.
    """

    def __init__(
        self,
        config: PrinterClientConfig,
        *,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._logger = _logger.getChild(config.serial)
        self._subscribers: SubscriberRegistry[[str, bytes]] = SubscriberRegistry(
            "message subscribers", logger=self._logger
        )
        self._mqtt: PrinterMqttTransport | None = None
        if transport is None:
            self._mqtt = PrinterMqttTransport(config, on_message=self.handle_message, logger=self._logger)
            transport = self._mqtt
        self._transport = transport
        self._sequencer = Sequencer()
        self._channel = Channel(
            transport,
            config.serial,
            namespace=config.namespace,
            sequencer=self._sequencer,
            sequence_id_format=config.sequence_id_format,
            logger=self._logger,
        )
        self._watchers: list[PrinterWatcher] = []

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> PrinterClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def config(self) -> PrinterClientConfig:
        return self._config

    @property
    def channel(self) -> Channel:
        return self._channel

    def connect(self, callback: ConnectionCallback | None = None) -> None:
        """Connect to the broker and start receiving reports.

        Only available with the built-in MQTT transport; an injected transport
        is managed by its owner, who forwards messages to
        :meth:`handle_message`.
        """
        if self._mqtt is None:
            raise RuntimeError("connect() is only available with the built-in MQTT transport")
        self._mqtt.connect(callback)

    def is_connected(self) -> bool:
        return self._transport.is_connected()

    def close(self) -> None:
        """Drop all subscribers and disconnect."""
        self._subscribers.clear()
        for watcher in self._watchers:
            watcher.close()
        self._watchers.clear()
        if self._mqtt is not None:
            self._logger.debug("Closing MQTT %s:%s", self._config.host, self._config.port)
            self._mqtt.close()

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: MessageSubscriber) -> None:
        self._subscribers.subscribe(subscriber)

    def unsubscribe(self, subscriber: MessageSubscriber) -> bool:
        return self._subscribers.unsubscribe(subscriber)

    def watch(self, watcher: PrinterWatcher | None = None) -> PrinterWatcher:
        """Subscribe a :class:`PrinterWatcher` (a new one by default) and return it."""
        watcher = watcher or PrinterWatcher(logger=self._logger)
        self._subscribers.subscribe(watcher)
        self._watchers.append(watcher)
        return watcher

    def handle_message(self, topic: str, payload: bytes) -> None:
        """Fan one inbound message out to every message subscriber."""
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug("Message received topic=%s payload=%s", topic, redact_text(payload))
        self._subscribers.dispatch(topic, payload)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send_command(self, command: Command) -> int:
        """Send *command*; return the sequence id it was sent with."""
        return self._channel.send_command(command)

    def request_full_state(self) -> int:
        """Ask the printer to push its complete state (``pushall``)."""
        return self._channel.send_command(PushingCommand())
