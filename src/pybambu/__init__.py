"""pybambu - Python client for the Bambu Lab printer MQTT interface."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pybambu")
except PackageNotFoundError:
    __version__ = "0+local"
from pybambu._mqtt import ConnectionCallback
from pybambu.channel import Channel, Sequencer, Transport
from pybambu.client import PrinterClient
from pybambu.config import PrinterClientConfig, SequenceIdFormat
from pybambu.dispatch import SubscriberRegistry
from pybambu.exceptions import (
    BambuCommandError,
    BambuConfigError,
    BambuDecodeError,
    BambuError,
    BambuTransportError,
)
from pybambu.models import (
    AmsControlCommand,
    AmsFilamentSettingCommand,
    AmsUserSettingCommand,
    ChangeFilamentCommand,
    Command,
    GCodeFileCommand,
    GCodeLineCommand,
    InfoCommand,
    IpCamRecordCommand,
    IpCamTimelapseCommand,
    LedControlCommand,
    LedMode,
    LedNode,
    PrintCommand,
    PrintDetails,
    PrinterState,
    PrintSpeed,
    PrintSpeedCommand,
    PushingCommand,
    RawCommand,
    RawStringCommand,
    SystemCommand,
    XCamControlCommand,
    XCamModule,
)
from pybambu.state import StateStore
from pybambu.watcher import PrinterWatcher

__all__ = [
    "__version__",
    "AmsControlCommand",
    "AmsFilamentSettingCommand",
    "AmsUserSettingCommand",
    "BambuCommandError",
    "BambuConfigError",
    "BambuDecodeError",
    "BambuError",
    "BambuTransportError",
    "ChangeFilamentCommand",
    "Channel",
    "Command",
    "ConnectionCallback",
    "GCodeFileCommand",
    "GCodeLineCommand",
    "InfoCommand",
    "IpCamRecordCommand",
    "IpCamTimelapseCommand",
    "LedControlCommand",
    "LedMode",
    "LedNode",
    "PrintCommand",
    "PrintDetails",
    "PrintSpeed",
    "PrintSpeedCommand",
    "PrinterClient",
    "PrinterClientConfig",
    "PrinterState",
    "PrinterWatcher",
    "PushingCommand",
    "RawCommand",
    "RawStringCommand",
    "SequenceIdFormat",
    "Sequencer",
    "StateStore",
    "SubscriberRegistry",
    "SystemCommand",
    "Transport",
    "XCamControlCommand",
    "XCamModule",
]
