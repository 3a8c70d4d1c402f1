"""Handler for position error reading."""

from __future__ import annotations

import struct

from motohses.handlers.base import CommandHandler
from motohses.message import RequestMessage
from motohses.state import MockState

AXIS_COUNT = 7
ERROR_STEP = 10

_U32 = struct.Struct("<I")


class PositionErrorHandler(CommandHandler):
    """Position error reading (0x76): one unsigned 32-bit value per axis."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return b"".join(_U32.pack(axis * ERROR_STEP) for axis in range(AXIS_COUNT))