"""Command and report models for the printer MQTT protocol."""

from pybambu.models._base import BambuBaseModel
from pybambu.models.commands import (
    AmsControlCommand,
    AmsFilamentSettingCommand,
    AmsUserSettingCommand,
    ChangeFilamentCommand,
    Command,
    CommandMessage,
    CommandModel,
    GCodeFileCommand,
    GCodeLineCommand,
    InfoCommand,
    IpCamRecordCommand,
    IpCamTimelapseCommand,
    LedControlCommand,
    LedMode,
    LedNode,
    PayloadSection,
    PrintCommand,
    PrintSpeed,
    PrintSpeedCommand,
    PushingCommand,
    RawCommand,
    RawStringCommand,
    SystemCommand,
    XCamControlCommand,
    XCamModule,
    encode_command,
)
from pybambu.models.report import IpCam, Net, PrintDetails, PrinterState, UpgradeState, Upload, XCam

__all__ = [
    "AmsControlCommand",
    "AmsFilamentSettingCommand",
    "AmsUserSettingCommand",
    "BambuBaseModel",
    "ChangeFilamentCommand",
    "Command",
    "CommandMessage",
    "CommandModel",
    "GCodeFileCommand",
    "GCodeLineCommand",
    "InfoCommand",
    "IpCam",
    "IpCamRecordCommand",
    "IpCamTimelapseCommand",
    "LedControlCommand",
    "LedMode",
    "LedNode",
    "Net",
    "PayloadSection",
    "PrintCommand",
    "PrintDetails",
    "PrintSpeed",
    "PrintSpeedCommand",
    "PrinterState",
    "PushingCommand",
    "RawCommand",
    "RawStringCommand",
    "SystemCommand",
    "UpgradeState",
    "Upload",
    "XCam",
    "XCamControlCommand",
    "XCamModule",
    "encode_command",
]
