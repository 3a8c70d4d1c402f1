"""Handler for the file control port."""

from __future__ import annotations

import logging

from motohses.handlers.base import CommandHandler
from motohses.message import InvalidServiceError, RequestMessage
from motohses.state import MockState

log = logging.getLogger(__name__)

SERVICE_LIST_FIXED = 0x01
SERVICE_SEND = 0x02
SERVICE_RECEIVE = 0x03
SERVICE_DELETE = 0x04
SERVICE_DELETE_FILE = 0x09
SERVICE_SEND_FILE = 0x15
SERVICE_RECEIVE_FILE = 0x16
SERVICE_LIST_FILES = 0x32

_FIXED_LIST = b"TEST.JOB\x00"


def _split_payload(payload: bytes) -> tuple[str, bytes] | None:
    """Split ``name\\0content``; None when there is no terminator."""
    name, sep, content = payload.partition(b"\x00")
    if not sep:
        return None
    return name.decode("utf-8", errors="replace"), content


class FileControlHandler(CommandHandler):
    """List, send, receive and delete files held by the mock controller."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        service = message.service
        if service == SERVICE_LIST_FIXED:
            return _FIXED_LIST
        if service == SERVICE_LIST_FILES:
            listing = b"".join(
                name.encode("utf-8") + b"\x00" for name in state.get_file_list("*")
            )
            log.debug("file list requested, returning %r", listing)
            return listing
        if service in (SERVICE_SEND, SERVICE_SEND_FILE):
            return self._store(message.payload, state)
        if service in (SERVICE_RECEIVE, SERVICE_RECEIVE_FILE):
            return self._fetch(message.payload, state)
        if service in (SERVICE_DELETE, SERVICE_DELETE_FILE):
            return self._delete(message.payload, state)
        raise InvalidServiceError(f"file control service 0x{service:02x} is not supported")

    @staticmethod
    def _store(payload: bytes, state: MockState) -> bytes:
        parts = _split_payload(payload)
        if parts is not None:
            name, content = parts
            state.set_file(name, content)
            log.debug("file saved: %s (%d bytes)", name, len(content))
        return b""

    @staticmethod
    def _fetch(payload: bytes, state: MockState) -> bytes:
        parts = _split_payload(payload)
        if parts is None:
            return b""
        name = parts[0]
        content = state.get_file(name)
        if content is None:
            log.debug("file not found: %s", name)
            return b""
        log.debug("file requested: %s (%d bytes)", name, len(content))
        return name.encode("utf-8") + b"\x00" + content

    @staticmethod
    def _delete(payload: bytes, state: MockState) -> bytes:
        parts = _split_payload(payload)
        if parts is not None:
            deleted = state.delete_file(parts[0])
            log.debug("file deletion requested: %s (deleted: %s)", parts[0], deleted)
        return b""