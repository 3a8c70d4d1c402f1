"""Handlers for status, job information, axis data, system information and servo control."""

from __future__ import annotations

import struct

from motohses.handlers.base import CommandHandler
from motohses.message import InvalidServiceError, RequestMessage
from motohses.state import MockState

STATUS_SIZE = 8
JOB_INFO_SIZE = 64
JOB_NAME_FIELD = 32
JOB_LINE_NUMBER = 1000
AXIS_COUNT = 7
AXIS_NAME_FIELD = 8
TORQUE_STEP = 100
TIME_FIELD = 16
START_TIME = "1234567890"
ELAPSE_TIME = "987654321"
INFO_FIELD = 16
SOFTWARE_VERSION = "V1.0.0"
MODEL = "FS100"
PARAMETER_VERSION = "P1.0.0"

SERVICE_WRITE = 0x10
CONTROL_HOLD = 1
CONTROL_SERVO = 2

AXIS_NAMES = (
    "1st_axis",
    "2nd_axis",
    "3rd_axis",
    "4th_axis",
    "5th_axis",
    "6th_axis",
    "7th_axis",
)

_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


def _field(text: str, size: int) -> bytes:
    """Encode text into a zero-padded field, always leaving a terminating zero."""
    return text.encode("utf-8")[: size - 1].ljust(size, b"\x00")


class StatusHandler(CommandHandler):
    """Status reading (0x72): both status data words."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return state.status.to_bytes().ljust(STATUS_SIZE, b"\x00")


class ExecutingJobInfoHandler(CommandHandler):
    """Executing job information (0x73): job name, then the line number."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        name = _field(state.current_job or "", JOB_NAME_FIELD)
        line = _U32.pack(JOB_LINE_NUMBER)
        return (name + line).ljust(JOB_INFO_SIZE, b"\x00")


class AxisNameHandler(CommandHandler):
    """Axis configuration (0x74): seven 8-byte axis names."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return b"".join(_field(name, AXIS_NAME_FIELD) for name in AXIS_NAMES)


class TorqueHandler(CommandHandler):
    """Torque data (0x77): one signed 32-bit value per axis."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return b"".join(_I32.pack(axis * TORQUE_STEP) for axis in range(AXIS_COUNT))


class ManagementTimeHandler(CommandHandler):
    """Management time (0x88): start time and elapsed time as text."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return _field(START_TIME, TIME_FIELD) + _field(ELAPSE_TIME, TIME_FIELD)


class SystemInfoHandler(CommandHandler):
    """System information (0x89): software version, model and parameter version."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return b"".join(
            _field(text, INFO_FIELD) for text in (SOFTWARE_VERSION, MODEL, PARAMETER_VERSION)
        )


class TextDisplayHandler(CommandHandler):
    """Text display on the pendant (0x85); only writing is accepted."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        if message.service == SERVICE_WRITE:
            return b""
        raise InvalidServiceError(
            f"text display service 0x{message.service:02x} is not supported"
        )


class HoldServoHandler(CommandHandler):
    """HOLD (instance 1) and servo on/off (instance 2), command 0x83."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        if len(message.payload) >= _I32.size:
            (value,) = _I32.unpack_from(message.payload)
            if message.instance == CONTROL_HOLD:
                state.set_hold(value == 1)
            elif message.instance == CONTROL_SERVO:
                state.set_servo(value == 1)
        return b""