"""Printer command models and their wire encoding.

Every command the client can send is one member of the closed :data:`Command`
union. Structured commands are encoded by :func:`encode_command` into a
:class:`CommandMessage`: the topic suffix, the payload section the command
belongs to and the section body. The sequence id is added later by the
channel, see :meth:`CommandMessage.payload`.

Wire reference: https://github.com/Doridian/OpenBambuAPI/blob/main/mqtt.md
"""

from __future__ import annotations

import dataclasses
import enum
import re
from collections.abc import Callable
from typing import Any, Never, NoReturn, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pybambu.exceptions import BambuCommandError

REQUEST_TOPIC = "request"

_TRAY_COLOR_RE = re.compile(r"^[0-9A-Fa-f]{6}(?:[0-9A-Fa-f]{2})?$")

# ------------------------------------------------------------------
# Wire message
# ------------------------------------------------------------------


class PayloadSection(enum.StrEnum):
    """Top-level keys of a request payload; exactly one is populated."""

    INFO = "info"
    PUSHING = "pushing"
    PRINT = "print"
    CAMERA = "camera"
    XCAM = "xcam"
    SYSTEM = "system"


@dataclasses.dataclass(frozen=True)
class CommandMessage:
    """Encoded structured command, not yet bound to a sequence id."""

    section: PayloadSection
    body: dict[str, Any]
    topic: str = REQUEST_TOPIC

    def payload(self, sequence_id: int | str) -> dict[str, dict[str, Any] | None]:
        """Build the six-section request document.

        ``sequence_id`` is injected into the populated section only; all
        other sections are explicit ``null``.
        """
        document: dict[str, dict[str, Any] | None] = {section.value: None for section in PayloadSection}
        document[self.section.value] = {**self.body, "sequence_id": sequence_id}
        return document


# ------------------------------------------------------------------
# Enumerated commands and tokens
# ------------------------------------------------------------------


class InfoCommand(enum.StrEnum):
    GET_VERSION = "get_version"


class PrintCommand(enum.StrEnum):
    """Print job control.

    ``UNLOAD_FILAMENT``: some printers need ``GCodeFileCommand`` with
    ``/usr/etc/print/filament_unload.gcode`` instead.
    """

    STOP = "stop"
    PAUSE = "pause"
    RESUME = "resume"
    CALIBRATION = "calibration"
    UNLOAD_FILAMENT = "unload_filament"


class AmsControlCommand(enum.StrEnum):
    """Basic AMS control (``print.ams_control``)."""

    RESUME = "resume"
    RESET = "reset"
    PAUSE = "pause"


class SystemCommand(enum.StrEnum):
    GET_ACCESS_CODE = "get_access_code"


class PrintSpeed(enum.IntEnum):
    """Print speed presets understood by every printer."""

    SILENT = 1
    STANDARD = 2
    SPORT = 3
    LUDICROUS = 4


class LedNode(enum.StrEnum):
    CHAMBER_LIGHT = "chamber_light"
    WORK_LIGHT = "work_light"


class LedMode(enum.StrEnum):
    ON = "on"
    OFF = "off"
    FLASHING = "flashing"


class XCamModule(enum.StrEnum):
    FIRST_LAYER_INSPECTOR = "first_layer_inspector"
    SPAGHETTI_DETECTOR = "spaghetti_detector"


# ------------------------------------------------------------------
# Parametrised commands
# ------------------------------------------------------------------


class CommandModel(BaseModel):
    """Base class for parametrised command models."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )


class PushingCommand(CommandModel):
    """Ask the printer to report its complete status (``pushing.pushall``).

    X1 series printers already send the full object on every report; P1/A1
    series only send changed values. Avoid sending this more often than every
    5 minutes on a P1P, it makes the printer lag.
    """

    version: int = 1
    push_target: int = 1


class ChangeFilamentCommand(CommandModel):
    """Perform a filament change using the AMS."""

    target: int = Field(ge=0)
    """Id of the filament tray."""
    current_temperature: int = Field(ge=0)
    """Old print temperature."""
    target_temperature: int = Field(ge=0)
    """New print temperature."""


class AmsUserSettingCommand(CommandModel):
    """Change the AMS settings of the given unit."""

    ams_id: int = Field(ge=0)
    startup_read_option: bool
    tray_read_option: bool


class AmsFilamentSettingCommand(CommandModel):
    """Change the setting of one filament tray in one AMS."""

    ams_id: int = Field(ge=0)
    tray_id: int = Field(ge=0)
    tray_info_idx: str
    """Setting id of the filament profile (e.g. ``"GFA00"``)."""
    tray_color: str
    """``RRGGBBAA``; ``RRGGBB`` input gets an ``FF`` alpha."""
    nozzle_temp_min: int = Field(ge=0)
    nozzle_temp_max: int = Field(ge=0)
    tray_type: str
    """Filament type, such as ``"PLA"`` or ``"ABS"``."""

    @field_validator("tray_color")
    @classmethod
    def _normalize_color(cls, value: str) -> str:
        color = value.lstrip("#")
        if not _TRAY_COLOR_RE.match(color):
            raise ValueError("tray_color must be RRGGBB or RRGGBBAA hex")
        color = color.upper()
        return color if len(color) == 8 else f"{color}FF"

    @model_validator(mode="after")
    def _validate_temperatures(self) -> AmsFilamentSettingCommand:
        if self.nozzle_temp_min > self.nozzle_temp_max:
            raise ValueError("nozzle_temp_min must not exceed nozzle_temp_max")
        return self


class PrintSpeedCommand(CommandModel):
    """Set the print speed level.

    The four :class:`PrintSpeed` presets are what the printer UI offers.
    Other levels are passed through as-is.
    """

    level: int = Field(ge=1)
    name: str = ""

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("name"):
            return data
        level = data.get("level")
        try:
            preset = PrintSpeed(int(level))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return {**data, "name": f"Unknown({level})"}
        return {**data, "name": preset.name.capitalize()}

    @property
    def is_preset(self) -> bool:
        return self.level in {speed.value for speed in PrintSpeed}

    @classmethod
    def preset(cls, speed: PrintSpeed) -> PrintSpeedCommand:
        return cls(level=int(speed))

    @classmethod
    def from_level(cls, level: int) -> PrintSpeedCommand:
        return cls(level=level)

    @classmethod
    def from_name(cls, name: str) -> PrintSpeedCommand:
        """Look a preset up by name, case-insensitively."""
        wanted = name.strip().upper()
        for speed in PrintSpeed:
            if speed.name == wanted:
                return cls.preset(speed)
        raise ValueError(f"Unknown print speed name: {name!r}")


class GCodeFileCommand(CommandModel):
    """Print a gcode file; takes an absolute path on the printer's filesystem."""

    filename: str = Field(min_length=1)


class GCodeLineCommand(CommandModel):
    """Send raw gcode to the printer."""

    lines: tuple[str, ...] = Field(min_length=1)
    user_id: str = ""

    def gcode(self) -> str:
        # The firmware expects a literal backslash-n between lines.
        return "\\n".join(self.lines)


class LedControlCommand(CommandModel):
    """Control one of the printer LEDs.

    Timing fields only apply to :attr:`LedMode.FLASHING` and are sent as ``0``
    for the other modes.
    """

    led_node: LedNode
    led_mode: LedMode
    led_on_time: int | None = Field(default=None, ge=0)
    """LED on time in ms."""
    led_off_time: int | None = Field(default=None, ge=0)
    """LED off time in ms."""
    loop_times: int | None = Field(default=None, ge=0)
    """How many times to loop."""
    interval_time: int | None = Field(default=None, ge=0)
    """Looping interval."""

    @classmethod
    def on(cls, led_node: LedNode) -> LedControlCommand:
        return cls(led_node=led_node, led_mode=LedMode.ON)

    @classmethod
    def off(cls, led_node: LedNode) -> LedControlCommand:
        return cls(led_node=led_node, led_mode=LedMode.OFF)

    @classmethod
    def flashing(
        cls,
        led_node: LedNode,
        led_on_time: int,
        led_off_time: int,
        loop_times: int,
        interval_time: int,
    ) -> LedControlCommand:
        return cls(
            led_node=led_node,
            led_mode=LedMode.FLASHING,
            led_on_time=led_on_time,
            led_off_time=led_off_time,
            loop_times=loop_times,
            interval_time=interval_time,
        )


class IpCamRecordCommand(CommandModel):
    """Turn recording of prints on or off."""

    enable: bool


class IpCamTimelapseCommand(CommandModel):
    """Turn timelapse creation on or off."""

    enable: bool


class XCamControlCommand(CommandModel):
    """Configure an XCam (AI camera / Micro LIDAR) module."""

    module: XCamModule
    control: bool
    """Enable the module."""
    print_halt: bool
    """Halt the print when the module detects an error."""


# ------------------------------------------------------------------
# Raw escape hatch
# ------------------------------------------------------------------


class RawCommand(CommandModel):
    """Caller-built payload published verbatim.

    ``topic`` is appended to ``<namespace>/<serial>/`` and must not start with
    a slash. ``build`` receives the sequence id and returns the payload
    bytes; embedding the id is up to the caller.
    """

    topic: str = Field(min_length=1)
    build: Callable[[int], Any]

    @field_validator("topic")
    @classmethod
    def _validate_topic(cls, value: str) -> str:
        if value.startswith("/"):
            raise ValueError("topic must not start with '/'")
        return value

    def build_payload(self, sequence_id: int) -> bytes:
        payload = self.build(sequence_id)
        if not isinstance(payload, (bytes, bytearray)):
            raise BambuCommandError(
                f"{type(self).__name__} for topic {self.topic!r} returned {type(payload).__name__}, expected bytes"
            )
        return bytes(payload)


class RawStringCommand(RawCommand):
    """Like :class:`RawCommand`, but ``build`` returns text (sent as UTF-8)."""

    def build_payload(self, sequence_id: int) -> bytes:
        payload = self.build(sequence_id)
        if not isinstance(payload, str):
            raise BambuCommandError(
                f"{type(self).__name__} for topic {self.topic!r} returned {type(payload).__name__}, expected str"
            )
        return payload.encode("utf-8")


Command: TypeAlias = (
    InfoCommand
    | PushingCommand
    | PrintCommand
    | ChangeFilamentCommand
    | AmsUserSettingCommand
    | AmsFilamentSettingCommand
    | AmsControlCommand
    | PrintSpeedCommand
    | GCodeFileCommand
    | GCodeLineCommand
    | LedControlCommand
    | SystemCommand
    | IpCamRecordCommand
    | IpCamTimelapseCommand
    | XCamControlCommand
    | RawCommand
)
StructuredCommand: TypeAlias = (
    InfoCommand
    | PushingCommand
    | PrintCommand
    | ChangeFilamentCommand
    | AmsUserSettingCommand
    | AmsFilamentSettingCommand
    | AmsControlCommand
    | PrintSpeedCommand
    | GCodeFileCommand
    | GCodeLineCommand
    | LedControlCommand
    | SystemCommand
    | IpCamRecordCommand
    | IpCamTimelapseCommand
    | XCamControlCommand
)

# ------------------------------------------------------------------
# Encoding
# ------------------------------------------------------------------


def _unencodable(command: Never) -> NoReturn:
    # Type checkers flag any call site that can still reach this.
    raise BambuCommandError(f"Cannot encode {command!r}: not a structured printer command")


def _enable_token(enable: bool) -> str:
    return "enable" if enable else "disable"


def _led_body(command: LedControlCommand) -> dict[str, Any]:
    flashing = command.led_mode is LedMode.FLASHING

    def timing(value: int | None) -> int:
        return (value or 0) if flashing else 0

    return {
        "command": "ledctrl",
        "led_node": command.led_node.value,
        "led_mode": command.led_mode.value,
        "led_on_time": timing(command.led_on_time),
        "led_off_time": timing(command.led_off_time),
        "loop_times": timing(command.loop_times),
        "interval_time": timing(command.interval_time),
    }


def encode_command(command: StructuredCommand) -> CommandMessage:
    """Encode a structured command into its section and body.

    Raises
    ------
    BambuCommandError
        ``command`` is not a structured command (raw commands included;
        they are handled by the channel).
    """
    match command:
        case InfoCommand():
            return CommandMessage(PayloadSection.INFO, {"command": command.value})
        case PushingCommand():
            return CommandMessage(
                PayloadSection.PUSHING,
                {"command": "pushall", "version": command.version, "push_target": command.push_target},
            )
        case PrintCommand():
            return CommandMessage(PayloadSection.PRINT, {"command": command.value, "param": ""})
        case ChangeFilamentCommand():
            return CommandMessage(
                PayloadSection.PRINT,
                {
                    "command": "ams_change_filament",
                    "target": command.target,
                    "curr_temp": command.current_temperature,
                    "tar_temp": command.target_temperature,
                },
            )
        case AmsUserSettingCommand():
            return CommandMessage(
                PayloadSection.PRINT,
                {
                    "command": "ams_user_setting",
                    "ams_id": command.ams_id,
                    "startup_read_option": command.startup_read_option,
                    "tray_read_option": command.tray_read_option,
                },
            )
        case AmsFilamentSettingCommand():
            return CommandMessage(
                PayloadSection.PRINT,
                {
                    "command": "ams_filament_setting",
                    "ams_id": command.ams_id,
                    "tray_id": command.tray_id,
                    "tray_info_idx": command.tray_info_idx,
                    "tray_color": command.tray_color,
                    "nozzle_temp_min": command.nozzle_temp_min,
                    "nozzle_temp_max": command.nozzle_temp_max,
                    "tray_type": command.tray_type,
                },
            )
        case AmsControlCommand():
            return CommandMessage(PayloadSection.PRINT, {"command": "ams_control", "param": command.value})
        case PrintSpeedCommand():
            return CommandMessage(PayloadSection.PRINT, {"command": "print_speed", "param": str(command.level)})
        case GCodeFileCommand():
            return CommandMessage(PayloadSection.PRINT, {"command": "gcode_file", "param": command.filename})
        case GCodeLineCommand():
            return CommandMessage(
                PayloadSection.PRINT,
                {"command": "gcode_line", "param": command.gcode(), "user_id": command.user_id},
            )
        case LedControlCommand():
            return CommandMessage(PayloadSection.SYSTEM, _led_body(command))
        case SystemCommand():
            return CommandMessage(PayloadSection.SYSTEM, {"command": command.value})
        case IpCamRecordCommand():
            return CommandMessage(
                PayloadSection.CAMERA,
                {"command": "ipcam_record_set", "control": _enable_token(command.enable)},
            )
        case IpCamTimelapseCommand():
            return CommandMessage(
                PayloadSection.CAMERA,
                {"command": "ipcam_timelapse", "control": _enable_token(command.enable)},
            )
        case XCamControlCommand():
            return CommandMessage(
                PayloadSection.XCAM,
                {
                    "command": "xcam_control_set",
                    "module_name": command.module.value,
                    "control": command.control,
                    "print_halt": command.print_halt,
                },
            )
        case _:
            _unencodable(command)
