"""Asynchronous UDP client for the robot control port of an HSES controller."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import struct
from dataclasses import dataclass

from motohses.alarm import Alarm, parse_attribute
from motohses.message import (
    ACK_REQUEST,
    ACK_RESPONSE,
    DIVISION_ROBOT,
    HEADER_SIZE,
    MAGIC,
    ProtocolError,
    RequestMessage,
    service_for_command,
)
from motohses.state import Status

log = logging.getLogger(__name__)

COMMAND_ALARM_DATA = 0x70
COMMAND_ALARM_HISTORY = 0x71
COMMAND_STATUS = 0x72
COMMAND_BYTE_VAR = 0x7A
COMMAND_DOUBLE_VAR = 0x7C
COMMAND_REAL_VAR = 0x7D

SERVICE_SET_ATTRIBUTE_SINGLE = 0x10
VARIABLE_ATTRIBUTE = 1
STATUS_INSTANCE = 1

_INT = struct.Struct("<i")
_FLOAT = struct.Struct("<f")
_BYTE = struct.Struct("<B3x")

_ACK_OFFSET = 10
_REQUEST_ID_OFFSET = 11
_PAYLOAD_SIZE = struct.Struct("<H")
_PAYLOAD_SIZE_OFFSET = 6


@dataclass(frozen=True)
class ClientConfig:
    """Timing and buffering options; times are in seconds."""

    timeout: float = 0.3
    retry_count: int = 3
    retry_delay: float = 0.1
    buffer_size: int = 8192


class ClientError(Exception):
    """Base class of every error the client raises."""

    prefix = "Client error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}")


class ClientConnectionError(ClientError):
    """The socket could not be used."""

    prefix = "Connection error"


class ClientTimeoutError(ClientError):
    """No matching response arrived in time."""

    prefix = "Timeout error"


class ClientProtocolError(ClientError):
    """A request could not be encoded or a response could not be understood."""

    prefix = "Protocol error"


class ClientSystemError(ClientError):
    """A local problem such as an invalid address."""

    prefix = "System error"


class _Receiver(asyncio.DatagramProtocol):
    def __init__(self, queue: asyncio.Queue[bytes]) -> None:
        self._queue = queue

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        self._queue.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        log.debug("socket error: %s", exc)


def _parse_address(addr: str) -> tuple[str, int]:
    host, sep, port_text = addr.rpartition(":")
    if not sep:
        raise ClientSystemError(f"Invalid address: {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        ip = ipaddress.ip_address(host)
        port = int(port_text)
    except ValueError as exc:
        raise ClientSystemError(f"Invalid address: {exc}") from exc
    if not 0 <= port <= 0xFFFF:
        raise ClientSystemError(f"Invalid address: port {port} out of range")
    return str(ip), port


def _check_index(index: int) -> None:
    if not 0 <= index <= 0xFF:
        raise ValueError(f"variable index {index} out of range 0-255")


class HsesClient:
    """Sends commands to a controller and waits for the matching replies."""

    def __init__(
        self,
        transport: asyncio.DatagramTransport,
        queue: asyncio.Queue[bytes],
        remote_addr: tuple[str, int],
        config: ClientConfig,
    ) -> None:
        self._transport = transport
        self._queue = queue
        self.remote_addr = remote_addr
        self.config = config
        self._next_id = 1
        self._closed = False

    async def __aenter__(self) -> HsesClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the socket."""
        self._closed = True
        self._transport.close()

    def _take_request_id(self) -> int:
        request_id = self._next_id
        self._next_id = (request_id + 1) & 0xFF
        return request_id

    async def send_command(
        self, command: int, instance: int, attribute: int, payload: bytes
    ) -> bytes:
        """Send a read-style command with retries and return the reply payload."""
        service = service_for_command(command, attribute)
        return await self._request(command, instance, attribute, payload, service)

    async def _request(
        self, command: int, instance: int, attribute: int, payload: bytes, service: int
    ) -> bytes:
        last_error: ClientError | None = None
        for attempt in range(1, self.config.retry_count + 1):
            try:
                return await self._request_once(command, instance, attribute, payload, service)
            except ClientError as exc:
                last_error = exc
                if attempt < self.config.retry_count:
                    await asyncio.sleep(self.config.retry_delay)
        if last_error is None:
            raise ClientSystemError("Unknown error")
        raise last_error

    async def _request_once(
        self, command: int, instance: int, attribute: int, payload: bytes, service: int
    ) -> bytes:
        if self._closed:
            raise ClientConnectionError("client is closed")
        request_id = self._take_request_id()
        try:
            data = RequestMessage(
                division=DIVISION_ROBOT,
                ack=ACK_REQUEST,
                request_id=request_id,
                command=command,
                instance=instance,
                attribute=attribute,
                service=service,
                payload=payload,
            ).encode()
        except ProtocolError as exc:
            raise ClientProtocolError(str(exc)) from exc
        log.debug("sending message to %s:%d: %d bytes", *self.remote_addr, len(data))
        try:
            self._transport.sendto(data, self.remote_addr)
        except OSError as exc:
            raise ClientConnectionError(str(exc)) from exc
        return await self._wait_for_response(request_id)

    async def _wait_for_response(self, request_id: int) -> bytes:
        while True:
            try:
                data = await asyncio.wait_for(self._queue.get(), self.config.timeout)
            except asyncio.TimeoutError:
                raise ClientTimeoutError("Response timeout") from None
            data = data[: self.config.buffer_size]
            log.debug("received response: %d bytes", len(data))
            if len(data) < HEADER_SIZE or data[:4] != MAGIC:
                continue
            if data[_REQUEST_ID_OFFSET] != request_id or data[_ACK_OFFSET] != ACK_RESPONSE:
                continue
            (size,) = _PAYLOAD_SIZE.unpack_from(data, _PAYLOAD_SIZE_OFFSET)
            if len(data) < HEADER_SIZE + size:
                continue
            return data[HEADER_SIZE : HEADER_SIZE + size]

    async def _read_variable(self, command: int, index: int, layout: struct.Struct):
        _check_index(index)
        payload = await self.send_command(command, index, VARIABLE_ATTRIBUTE, b"")
        if len(payload) < layout.size:
            raise ClientProtocolError(
                f"variable reply needs {layout.size} bytes, got {len(payload)}"
            )
        return layout.unpack_from(payload)[0]

    async def _write_variable(
        self, command: int, index: int, layout: struct.Struct, value
    ) -> None:
        _check_index(index)
        try:
            payload = layout.pack(value)
        except struct.error as exc:
            raise ClientProtocolError(f"value out of range: {exc}") from exc
        await self._request(
            command, index, VARIABLE_ATTRIBUTE, payload, SERVICE_SET_ATTRIBUTE_SINGLE
        )

    async def read_int(self, index: int) -> int:
        """Read a 32-bit integer (D) variable."""
        return await self._read_variable(COMMAND_DOUBLE_VAR, index, _INT)

    async def write_int(self, index: int, value: int) -> None:
        """Write a 32-bit integer (D) variable."""
        await self._write_variable(COMMAND_DOUBLE_VAR, index, _INT, value)

    async def read_float(self, index: int) -> float:
        """Read a real (R) variable."""
        return await self._read_variable(COMMAND_REAL_VAR, index, _FLOAT)

    async def write_float(self, index: int, value: float) -> None:
        """Write a real (R) variable."""
        await self._write_variable(COMMAND_REAL_VAR, index, _FLOAT, value)

    async def read_byte(self, index: int) -> int:
        """Read a byte (B) variable."""
        return await self._read_variable(COMMAND_BYTE_VAR, index, _BYTE)

    async def write_byte(self, index: int, value: int) -> None:
        """Write a byte (B) variable."""
        await self._write_variable(COMMAND_BYTE_VAR, index, _BYTE, value)

    async def read_status(self) -> Status:
        """Read both status words in one request."""
        payload = await self.send_command(COMMAND_STATUS, STATUS_INSTANCE, 0, b"")
        try:
            return Status.from_bytes(payload)
        except ProtocolError as exc:
            raise ClientProtocolError(str(exc)) from exc

    async def is_running(self) -> bool:
        return (await self.read_status()).is_running()

    async def is_servo_on(self) -> bool:
        return (await self.read_status()).is_servo_on()

    async def has_alarm(self) -> bool:
        return (await self.read_status()).has_alarm()

    async def _read_alarm(self, command: int, instance: int, attribute: int) -> Alarm:
        payload = await self.send_command(command, instance, attribute, b"")
        try:
            return parse_attribute(payload, attribute)
        except ProtocolError as exc:
            raise ClientProtocolError(str(exc)) from exc

    async def read_alarm_data(self, instance: int, attribute: int) -> Alarm:
        """Read a current alarm; attribute 0 reads the complete record."""
        return await self._read_alarm(COMMAND_ALARM_DATA, instance, attribute)

    async def read_alarm_history(self, instance: int, attribute: int) -> Alarm:
        """Read an alarm history entry; attribute 0 reads the complete record."""
        return await self._read_alarm(COMMAND_ALARM_HISTORY, instance, attribute)


async def connect(addr: str, config: ClientConfig | None = None) -> HsesClient:
    """Open a client for a controller at ``host:port``."""
    remote = _parse_address(addr)
    config = config if config is not None else ClientConfig()
    bind_host = "::" if ipaddress.ip_address(remote[0]).version == 6 else "0.0.0.0"
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[bytes] = asyncio.Queue()
    try:
        transport, _ = await loop.create_datagram_endpoint(
            lambda: _Receiver(queue), local_addr=(bind_host, 0)
        )
    except OSError as exc:
        raise ClientConnectionError(str(exc)) from exc
    return HsesClient(transport, queue, remote, config)