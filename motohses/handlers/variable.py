"""Handlers for byte, integer, double, real and string variables."""

from __future__ import annotations

from typing import Callable

from motohses.handlers.base import CommandHandler
from motohses.message import InvalidServiceError, RequestMessage
from motohses.state import MockState

SERVICE_READ = 0x0E
SERVICE_WRITE = 0x10

_EMPTY = bytes(4)


def _dispatch(
    message: RequestMessage,
    state: MockState,
    *,
    kind: str,
    min_write: int,
    read: Callable[[bytes | None], bytes],
) -> bytes:
    """Serve a read or write of the variable named by the message's instance."""
    index = message.instance & 0xFF
    if message.service == SERVICE_READ:
        return read(state.get_variable(index))
    if message.service == SERVICE_WRITE:
        if len(message.payload) >= min_write:
            state.set_variable(index, message.payload)
        return b""
    raise InvalidServiceError(f"{kind} service 0x{message.service:02x} is not supported")


def _read_byte(value: bytes | None) -> bytes:
    if not value:
        return _EMPTY
    return value[:1] + bytes(3)


def _read_integer(value: bytes | None) -> bytes:
    if value is None or len(value) < 2:
        return _EMPTY
    return value[:2] + bytes(2)


def _read_double(value: bytes | None) -> bytes:
    if value is None or len(value) < 4:
        return _EMPTY
    return value[:4]


def _read_real(value: bytes | None) -> bytes:
    if value is None:
        return _EMPTY
    return value[:4].ljust(4, b"\x00")


def _read_string(value: bytes | None) -> bytes:
    if value is None:
        return bytes(16)
    return value


class ByteVarHandler(CommandHandler):
    """Byte variables (0x7a): byte 0 holds the value, bytes 1-3 are reserved."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return _dispatch(message, state, kind="byte variable", min_write=1, read=_read_byte)


class IntegerVarHandler(CommandHandler):
    """Integer variables (0x7b): bytes 0-1 hold the value, bytes 2-3 are reserved."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return _dispatch(
            message, state, kind="integer variable", min_write=4, read=_read_integer
        )


class DoubleVarHandler(CommandHandler):
    """Double variables (0x7c): four bytes are read, eight are needed to write."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return _dispatch(
            message, state, kind="double variable", min_write=8, read=_read_double
        )


class RealVarHandler(CommandHandler):
    """Real variables (0x7d): four bytes, short values padded with zeros."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return _dispatch(message, state, kind="real variable", min_write=4, read=_read_real)


class StringVarHandler(CommandHandler):
    """String variables (0x7e): stored bytes are returned as they are."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        return _dispatch(
            message, state, kind="string variable", min_write=1, read=_read_string
        )