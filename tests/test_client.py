from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any

import paho.mqtt.client as mqtt
import pytest

from pybambu.client import PrinterClient
from pybambu.config import PrinterClientConfig
from pybambu.exceptions import BambuTransportError
from pybambu.models.commands import PrintCommand, PrintSpeed, PrintSpeedCommand

SERIAL = "01S00A000000000"


def _config(**overrides: Any) -> PrinterClientConfig:
    values: dict[str, Any] = {"host": "192.168.1.50", "serial": SERIAL, "access_code": "12345678"}
    values.update(overrides)
    return PrinterClientConfig(**values)


class _RecordingTransport:
    def __init__(self) -> None:
        self.published: list[tuple[str, bytes]] = []
        self.connected = True

    def publish(self, topic: str, payload: bytes) -> None:
        self.published.append((topic, payload))

    def is_connected(self) -> bool:
        return self.connected


class _ReasonCode:
    def __init__(self, failure: bool = False) -> None:
        self.is_failure = failure

    def __str__(self) -> str:
        return "Not authorized" if self.is_failure else "Success"


class _FakePahoClient:
    """Stands in for ``paho.mqtt.client.Client``; completes the handshake on ``loop_start``."""

    instances: list[_FakePahoClient] = []
    refuse = False
    silent = False

    def __init__(self, *, callback_api_version: Any, client_id: str, protocol: int) -> None:
        self.callback_api_version = callback_api_version
        self.client_id = client_id
        self.protocol = protocol
        self.credentials: tuple[str, str] | None = None
        self.tls_insecure = False
        self.connected_to: tuple[str, int, int] | None = None
        self.subscriptions: list[tuple[str, int]] = []
        self.published: list[tuple[str, bytes, int]] = []
        self.loop_running = False
        self.connected = False
        self.on_connect: Any = None
        self.on_message: Any = None
        self.on_disconnect: Any = None
        _FakePahoClient.instances.append(self)

    def enable_logger(self, logger: Any) -> None:
        pass

    def username_pw_set(self, username: str, password: str) -> None:
        self.credentials = (username, password)

    def tls_set_context(self, context: Any) -> None:
        self.tls_context = context

    def tls_insecure_set(self, value: bool) -> None:
        self.tls_insecure = value

    def connect(self, host: str, port: int, keepalive: int) -> None:
        self.connected_to = (host, port, keepalive)

    def loop_start(self) -> None:
        self.loop_running = True
        if self.silent:
            return
        self.connected = not self.refuse
        self.on_connect(self, None, {}, _ReasonCode(self.refuse), None)

    def loop_stop(self) -> None:
        self.loop_running = False

    def subscribe(self, topic: str, qos: int) -> tuple[int, int]:
        self.subscriptions.append((topic, qos))
        return mqtt.MQTT_ERR_SUCCESS, 1

    def publish(self, topic: str, payload: bytes, qos: int) -> SimpleNamespace:
        self.published.append((topic, payload, qos))
        return SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS if self.connected else mqtt.MQTT_ERR_NO_CONN)

    def is_connected(self) -> bool:
        return self.connected

    def disconnect(self) -> int:
        self.connected = False
        self.on_disconnect(self, None, None, _ReasonCode(), None)
        return mqtt.MQTT_ERR_SUCCESS

    def deliver(self, topic: str, payload: bytes) -> None:
        self.on_message(self, None, SimpleNamespace(topic=topic, payload=payload))


@pytest.fixture
def fake_paho(monkeypatch: pytest.MonkeyPatch) -> type[_FakePahoClient]:
    _FakePahoClient.instances = []
    _FakePahoClient.refuse = False
    _FakePahoClient.silent = False
    monkeypatch.setattr("pybambu._mqtt.mqtt.Client", _FakePahoClient)
    return _FakePahoClient


class _Callback:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def connect_complete(self, reconnect: bool) -> None:
        self.events.append(("connect_complete", reconnect))

    def connection_lost(self, reason: str) -> None:
        self.events.append(("connection_lost", reason))


class TestInjectedTransport:
    def test_send_command_publishes_to_request_topic(self) -> None:
        transport = _RecordingTransport()
        client = PrinterClient(_config(), transport=transport)

        assert client.send_command(PrintCommand.PAUSE) == 1
        assert client.send_command(PrintSpeedCommand.preset(PrintSpeed.SPORT)) == 2

        topics = [topic for topic, _ in transport.published]
        assert topics == [f"device/{SERIAL}/request"] * 2
        assert json.loads(transport.published[1][1])["print"] == {
            "command": "print_speed",
            "param": "3",
            "sequence_id": 2,
        }

    def test_request_full_state_sends_pushall(self) -> None:
        transport = _RecordingTransport()
        client = PrinterClient(_config(), transport=transport)

        client.request_full_state()

        body = json.loads(transport.published[0][1])["pushing"]
        assert body == {"command": "pushall", "version": 1, "push_target": 1, "sequence_id": 1}

    def test_messages_reach_subscribers_and_watchers(self) -> None:
        client = PrinterClient(_config(), transport=_RecordingTransport())
        raw: list[tuple[str, bytes]] = []
        client.subscribe(lambda topic, payload: raw.append((topic, payload)))
        watcher = client.watch()

        client.handle_message(f"device/{SERIAL}/report", b'{"print": {"gcode_state": "RUNNING"}}')

        assert len(raw) == 1
        state = watcher.full_state
        assert state is not None and state.print_details is not None
        assert state.print_details.gcode_state == "RUNNING"

    def test_connect_requires_builtin_transport(self) -> None:
        client = PrinterClient(_config(), transport=_RecordingTransport())
        with pytest.raises(RuntimeError):
            client.connect()

    def test_is_connected_delegates_to_transport(self) -> None:
        transport = _RecordingTransport()
        client = PrinterClient(_config(), transport=transport)
        assert client.is_connected() is True
        transport.connected = False
        assert client.is_connected() is False

    def test_close_drops_subscribers(self) -> None:
        client = PrinterClient(_config(), transport=_RecordingTransport())
        raw: list[str] = []
        client.subscribe(lambda topic, payload: raw.append(topic))
        watcher = client.watch()
        states: list[object] = []
        watcher.subscribe(lambda delta, full: states.append(full))

        with client:
            pass
        client.handle_message(f"device/{SERIAL}/report", b'{"print": {"layer_num": 2}}')

        assert raw == []
        assert states == []

    def test_unsubscribe(self) -> None:
        client = PrinterClient(_config(), transport=_RecordingTransport())
        raw: list[str] = []

        def handler(topic: str, payload: bytes) -> None:
            raw.append(topic)

        client.subscribe(handler)
        assert client.unsubscribe(handler) is True
        client.handle_message("device/x/report", b"{}")
        assert raw == []


class TestMqttTransport:
    def test_connect_subscribes_to_report_topic(self, fake_paho: type[_FakePahoClient]) -> None:
        callback = _Callback()
        client = PrinterClient(_config(keepalive=30))

        client.connect(callback)

        paho = fake_paho.instances[-1]
        assert paho.callback_api_version is mqtt.CallbackAPIVersion.VERSION2
        assert paho.protocol == mqtt.MQTTv311
        assert paho.credentials == ("bblp", "12345678")
        assert paho.tls_insecure is True
        assert paho.connected_to == ("192.168.1.50", 8883, 30)
        assert paho.subscriptions == [(f"device/{SERIAL}/report", 0)]
        assert callback.events == [("connect_complete", False)]
        assert client.is_connected()

    def test_publish_uses_qos_zero(self, fake_paho: type[_FakePahoClient]) -> None:
        client = PrinterClient(_config())
        client.connect()

        client.send_command(PrintCommand.RESUME)

        topic, payload, qos = fake_paho.instances[-1].published[0]
        assert topic == f"device/{SERIAL}/request"
        assert qos == 0
        assert json.loads(payload)["print"]["command"] == "resume"

    def test_inbound_messages_are_dispatched(self, fake_paho: type[_FakePahoClient]) -> None:
        client = PrinterClient(_config())
        watcher = client.watch()
        client.connect()

        fake_paho.instances[-1].deliver(f"device/{SERIAL}/report", b'{"print": {"mc_percent": 55}}')

        state = watcher.full_state
        assert state is not None and state.print_details is not None
        assert state.print_details.mc_percent == 55

    def test_close_disconnects(self, fake_paho: type[_FakePahoClient]) -> None:
        callback = _Callback()
        client = PrinterClient(_config())
        client.connect(callback)
        paho = fake_paho.instances[-1]

        client.close()

        assert not paho.loop_running
        assert not client.is_connected()
        assert callback.events == [("connect_complete", False)]

    def test_publish_before_connect_fails(self, fake_paho: type[_FakePahoClient]) -> None:
        client = PrinterClient(_config())
        with pytest.raises(BambuTransportError):
            client.send_command(PrintCommand.STOP)

    def test_refused_connection_raises(self, fake_paho: type[_FakePahoClient]) -> None:
        fake_paho.refuse = True
        client = PrinterClient(_config())

        with pytest.raises(BambuTransportError, match="refused"):
            client.connect()

        assert not fake_paho.instances[-1].loop_running
        assert not client.is_connected()

    def test_connect_timeout_raises(self, fake_paho: type[_FakePahoClient]) -> None:
        fake_paho.silent = True
        client = PrinterClient(_config(connection_timeout=0))

        with pytest.raises(BambuTransportError, match="Timed out"):
            client.connect()

        assert not fake_paho.instances[-1].loop_running

    def test_connection_lost_is_reported(self, fake_paho: type[_FakePahoClient]) -> None:
        callback = _Callback()
        client = PrinterClient(_config())
        client.connect(callback)
        paho = fake_paho.instances[-1]

        paho.connected = False
        paho.on_disconnect(paho, None, None, _ReasonCode(True), None)

        assert callback.events[-1] == ("connection_lost", "Not authorized")
        assert not paho.loop_running
