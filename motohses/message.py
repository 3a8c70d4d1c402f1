"""Framing of HSES UDP request and response messages."""

from __future__ import annotations

import struct
from dataclasses import dataclass

MAGIC = b"YERC"
HEADER_SIZE = 0x20
RESERVED_MAGIC = 0x03
RESERVED_FILL = b"99999999"

ACK_REQUEST = 0x00
ACK_RESPONSE = 0x01

DIVISION_ROBOT = 0x01
DIVISION_FILE = 0x02

RESPONSE_SERVICE_FLAG = 0x80
LAST_BLOCK = 0x80000000

SERVICE_GET_ATTRIBUTE_ALL = 0x01
SERVICE_GET_ATTRIBUTE_SINGLE = 0x0E

# magic, header size, payload size, reserved, division, ack, request id,
# block number, reserved fill: 24 bytes
_HEADER = struct.Struct("<4sHHBBBBI8s")
# command, instance, attribute, service, padding: 8 bytes
_REQUEST_SUB = struct.Struct("<HHBBH")
# service, status, added status size, padding, added status, padding: 8 bytes
_RESPONSE_SUB = struct.Struct("<BBBBHH")

_MULTI_ATTRIBUTE_COMMANDS = frozenset({0x70, 0x71, 0x72, 0x75})


class ProtocolError(ValueError):
    """A message could not be encoded, decoded or handled."""


class InvalidCommandError(ProtocolError):
    """The command number is not supported."""


class InvalidServiceError(ProtocolError):
    """The service code is not supported for the command."""


@dataclass
class RequestMessage:
    """A request sent to the controller."""

    division: int
    ack: int
    request_id: int
    command: int
    instance: int
    attribute: int
    service: int
    payload: bytes = b""
    block_number: int = 0

    def __post_init__(self) -> None:
        self.payload = bytes(self.payload)

    def encode(self) -> bytes:
        """Return the wire form of this request."""
        header = _pack_header(
            len(self.payload), self.division, self.ack, self.request_id, self.block_number
        )
        try:
            sub = _REQUEST_SUB.pack(
                self.command, self.instance, self.attribute, self.service, 0
            )
        except struct.error as exc:
            raise ProtocolError(f"request field out of range: {exc}") from exc
        return header + sub + self.payload


@dataclass
class ResponseMessage:
    """A response sent back by the controller.

    ``service`` holds the wire value, i.e. the request service with
    ``RESPONSE_SERVICE_FLAG`` set.
    """

    division: int
    ack: int
    request_id: int
    service: int
    status: int
    added_status: int
    payload: bytes = b""
    added_status_size: int = 0
    block_number: int = LAST_BLOCK

    def __post_init__(self) -> None:
        self.payload = bytes(self.payload)

    def encode(self) -> bytes:
        """Return the wire form of this response."""
        header = _pack_header(
            len(self.payload), self.division, self.ack, self.request_id, self.block_number
        )
        try:
            sub = _RESPONSE_SUB.pack(
                self.service,
                self.status,
                self.added_status_size,
                0,
                self.added_status,
                0,
            )
        except struct.error as exc:
            raise ProtocolError(f"response field out of range: {exc}") from exc
        return header + sub + self.payload


def _pack_header(payload_size: int, division: int, ack: int, request_id: int, block: int) -> bytes:
    try:
        return _HEADER.pack(
            MAGIC,
            HEADER_SIZE,
            payload_size,
            RESERVED_MAGIC,
            division,
            ack,
            request_id,
            block,
            RESERVED_FILL,
        )
    except struct.error as exc:
        raise ProtocolError(f"header field out of range: {exc}") from exc


def _split_frame(data: bytes) -> tuple[tuple[int, int, int, int], bytes, bytes]:
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise ProtocolError(f"message too short: {len(data)} bytes")
    (magic, _size, payload_size, _reserved, division, ack, request_id, block, _fill) = (
        _HEADER.unpack_from(data)
    )
    if magic != MAGIC:
        raise ProtocolError(f"bad magic bytes: {magic!r}")
    end = HEADER_SIZE + payload_size
    if len(data) < end:
        raise ProtocolError(
            f"payload truncated: expected {payload_size} bytes, got {len(data) - HEADER_SIZE}"
        )
    return (division, ack, request_id, block), data[_HEADER.size:HEADER_SIZE], data[HEADER_SIZE:end]


def decode_request(data: bytes) -> RequestMessage:
    """Parse a request from its wire form."""
    (division, ack, request_id, block), sub, payload = _split_frame(data)
    command, instance, attribute, service, _pad = _REQUEST_SUB.unpack(sub)
    return RequestMessage(
        division=division,
        ack=ack,
        request_id=request_id,
        command=command,
        instance=instance,
        attribute=attribute,
        service=service,
        payload=payload,
        block_number=block,
    )


def decode_response(data: bytes) -> ResponseMessage:
    """Parse a response from its wire form."""
    (division, ack, request_id, block), sub, payload = _split_frame(data)
    service, status, added_size, _pad1, added_status, _pad2 = _RESPONSE_SUB.unpack(sub)
    return ResponseMessage(
        division=division,
        ack=ack,
        request_id=request_id,
        service=service,
        status=status,
        added_status=added_status,
        payload=payload,
        added_status_size=added_size,
        block_number=block,
    )


def service_for_command(command: int, attribute: int) -> int:
    """Pick the service code a client uses for a read command."""
    if command in _MULTI_ATTRIBUTE_COMMANDS and attribute == 0:
        return SERVICE_GET_ATTRIBUTE_ALL
    return SERVICE_GET_ATTRIBUTE_SINGLE