"""Printer report (telemetry) models.

The printer publishes JSON documents on ``device/<serial>/report``. X1
series printers send the full object every time; P1/A1 series only send
the keys that changed since the previous report. Every field is therefore
optional and ``None`` means "not part of this report".

Field names follow the wire keys (they are already snake_case).
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import BeforeValidator, Field, ValidationError

from pybambu.exceptions import BambuDecodeError
from pybambu.models._base import BambuBaseModel


def _number_to_str(value: Any) -> Any:
    # Firmware versions disagree on whether ids/stages are numbers or strings.
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


ReportStr = Annotated[str | None, BeforeValidator(_number_to_str)]
"""Annotated type accepting both ``"2"`` and ``2`` from the wire."""


class UpgradeState(BambuBaseModel):
    """Firmware upgrade status."""

    sequence_id: int | None = None
    status: ReportStr = None
    message: ReportStr = None


class IpCam(BambuBaseModel):
    """Built-in camera settings."""

    ipcam_dev: ReportStr = None
    ipcam_record: ReportStr = None
    timelapse: ReportStr = None
    resolution: ReportStr = None
    tutk_server: ReportStr = None
    mode_bits: int | None = None


class XCam(BambuBaseModel):
    """AI camera (XCam) settings."""

    buildplate_marker_detector: bool | None = None


class Upload(BambuBaseModel):
    """Status of the last file upload to the printer."""

    status: ReportStr = None
    progress: int | None = None
    message: ReportStr = None


class Net(BambuBaseModel):
    """Network configuration as reported by the printer."""

    conf: int | None = None
    info: list[dict[str, Any]] | None = None


class PrintDetails(BambuBaseModel):
    """Content of the ``print`` section of a report."""

    upgrade_state: UpgradeState | None = None
    ipcam: IpCam | None = None
    xcam: XCam | None = None
    upload: Upload | None = None
    net: Net | None = None

    nozzle_temper: float | None = None
    nozzle_target_temper: float | None = None
    bed_temper: float | None = None
    bed_target_temper: float | None = None
    chamber_temper: float | None = None

    mc_print_stage: ReportStr = None
    mc_percent: int | None = None
    mc_remaining_time: int | None = None
    wifi_signal: ReportStr = None
    """Signal strength as sent by the printer, e.g. ``"-45dBm"``."""

    gcode_state: ReportStr = None
    """``IDLE``, ``PREPARE``, ``RUNNING``, ``PAUSE``, ``FINISH`` or ``FAILED``."""
    gcode_file: ReportStr = None
    subtask_name: ReportStr = None
    layer_num: int | None = None
    total_layer_num: int | None = None
    spd_lvl: int | None = None
    print_error: int | None = None

    command: ReportStr = None
    msg: int | None = None
    sequence_id: ReportStr = None


class PrinterState(BambuBaseModel):
    """A (partial or merged) printer report."""

    print_details: PrintDetails | None = Field(default=None, alias="print")

    @classmethod
    def from_json(cls, payload: bytes | str) -> PrinterState:
        """Decode one report message.

        Raises
        ------
        BambuDecodeError
            Payload is not JSON, not a JSON object, or does not fit the schema.
        """
        raw = payload if isinstance(payload, bytes) else payload.encode("utf-8")
        try:
            parsed = json.loads(raw)
        except ValueError as exc:
            raise BambuDecodeError(f"Report payload is not valid JSON: {exc}", payload=raw) from exc
        if not isinstance(parsed, dict):
            raise BambuDecodeError("Report payload is not a JSON object", payload=raw)
        try:
            return cls.model_validate(parsed)
        except ValidationError as exc:
            raise BambuDecodeError(f"Report payload does not match schema: {exc}", payload=raw) from exc

    def to_dict(self) -> dict[str, Any]:
        """Wire-shaped dict with unreported fields left out."""
        return self.model_dump(by_alias=True, exclude_none=True)
