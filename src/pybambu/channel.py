"""Outbound command channel.

Binds encoded commands to a sequence id and the printer's topic prefix and
hands the bytes to the transport. One call, one publish: no retries, no
queueing. Delivery is fire-and-forget (QoS 0) since the printer's local
broker was observed to stall on acknowledged publishes; confirmation has to
be inferred from later reports.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Protocol

from pybambu._redact import redact_for_log, redact_text
from pybambu.config import DEFAULT_NAMESPACE, SequenceIdFormat
from pybambu.models.commands import Command, RawCommand, encode_command

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Minimal outbound interface the channel needs."""

    def publish(self, topic: str, payload: bytes) -> None: ...

    def is_connected(self) -> bool: ...


class Sequencer:
    """Thread-safe monotonically increasing sequence id source."""

    def __init__(self, start: int = 1) -> None:
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def peek(self) -> int:
        """Value the next call to :meth:`next` will return."""
        with self._lock:
            return self._next


class Channel:
    """Encode and publish commands for one printer."""

    def __init__(
        self,
        transport: Transport,
        serial: str,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        sequencer: Sequencer | None = None,
        sequence_id_format: SequenceIdFormat = SequenceIdFormat.INT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._prefix = f"{namespace}/{serial}"
        self._sequencer = sequencer or Sequencer()
        self._sequence_id_format = sequence_id_format
        self._logger = logger or _logger

    @property
    def sequencer(self) -> Sequencer:
        return self._sequencer

    def topic_for(self, suffix: str) -> str:
        return f"{self._prefix}/{suffix}"

    def encode(self, command: Command, sequence_id: int) -> tuple[str, bytes]:
        """Return ``(topic, payload)`` for *command* bound to *sequence_id*."""
        if isinstance(command, RawCommand):
            return self.topic_for(command.topic), command.build_payload(sequence_id)

        message = encode_command(command)
        wire_id: int | str = sequence_id
        if self._sequence_id_format is SequenceIdFormat.STR:
            wire_id = str(sequence_id)
        payload = json.dumps(message.payload(wire_id), separators=(",", ":")).encode("utf-8")
        return self.topic_for(message.topic), payload

    def send_command(self, command: Command) -> int:
        """Publish *command* and return the sequence id it was sent with.

        Raises
        ------
        BambuCommandError
            The command cannot be encoded. Nothing is published.
        BambuTransportError
            The transport rejected the publish.
        """
        sequence_id = self._sequencer.next()
        topic, payload = self.encode(command, sequence_id)
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(
                "Sending command %s seq=%d topic=%s payload=%s",
                redact_for_log(command),
                sequence_id,
                topic,
                redact_text(payload),
            )
        self._transport.publish(topic, payload)
        return sequence_id
