"""Handlers for I/O signals and registers."""

from __future__ import annotations

import struct

from motohses.handlers.base import CommandHandler
from motohses.message import InvalidServiceError, RequestMessage
from motohses.state import MockState

SERVICE_READ = 0x0E
SERVICE_WRITE = 0x10

_I32 = struct.Struct("<i")


def _payload_int(payload: bytes) -> int | None:
    if len(payload) < _I32.size:
        return None
    return _I32.unpack_from(payload)[0]


class IoHandler(CommandHandler):
    """I/O data reading and writing (0x78); the instance is the signal number."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        if message.service == SERVICE_READ:
            return bytes([1 if state.get_io_state(message.instance) else 0, 0, 0, 0])
        if message.service == SERVICE_WRITE:
            value = _payload_int(message.payload)
            if value is not None:
                state.set_io_state(message.instance, value != 0)
            return b""
        raise InvalidServiceError(f"I/O service 0x{message.service:02x} is not supported")


class RegisterHandler(CommandHandler):
    """Register reading and writing (0x79); the instance is the register number."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        if message.service == SERVICE_READ:
            return _I32.pack(state.get_register(message.instance))
        if message.service == SERVICE_WRITE:
            value = _payload_int(message.payload)
            if value is not None:
                state.set_register(message.instance, value)
            return b""
        raise InvalidServiceError(f"register service 0x{message.service:02x} is not supported")