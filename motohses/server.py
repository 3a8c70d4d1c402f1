"""A mock HSES controller answering UDP requests on a robot and a file port."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field

from motohses.alarm import Alarm
from motohses.handlers.registry import CommandHandlerRegistry
from motohses.message import (
    ACK_RESPONSE,
    HEADER_SIZE,
    RESPONSE_SERVICE_FLAG,
    InvalidCommandError,
    ProtocolError,
    RequestMessage,
    ResponseMessage,
    decode_request,
    decode_response,
)
from motohses.state import MockState, Status, StatusData1, StatusData2

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_ROBOT_PORT = 10040
DEFAULT_FILE_PORT = 10041
TEST_PORT_START = 49152
_PORT_LIMIT = 65535

STATUS_SUCCESS = 0x00
NO_ADDED_STATUS = 0x0000


def _config_status() -> Status:
    return Status(
        StatusData1(continuous=True, running=True, play=True),
        StatusData2(servo_on=True),
    )


def _config_variables() -> dict[int, bytes]:
    return {
        0: b"\x01\x00\x00\x00",
        1: b"\x64\x00\x00\x00",
        2: b"\x00\x00\x20\x41",
    }


def _config_io_states() -> dict[int, bool]:
    return {1: True, 1001: False}


@dataclass
class MockConfig:
    """Where a mock controller listens, and the values it describes."""

    host: str = DEFAULT_HOST
    robot_port: int = DEFAULT_ROBOT_PORT
    file_port: int = DEFAULT_FILE_PORT
    default_status: Status = field(default_factory=_config_status)
    variables: dict[int, bytes] = field(default_factory=_config_variables)
    io_states: dict[int, bool] = field(default_factory=_config_io_states)

    def robot_addr(self) -> tuple[str, int]:
        """Address of the robot control socket."""
        return (self.host, self.robot_port)

    def file_addr(self) -> tuple[str, int]:
        """Address of the file control socket."""
        return (self.host, self.file_port)


class _Endpoint(asyncio.DatagramProtocol):
    def __init__(self, server: MockServer, label: str) -> None:
        self._server = server
        self._label = label
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        reply = self._server._serve(data, addr, self._label)
        if reply and self.transport is not None:
            self.transport.sendto(reply, addr)

    def error_received(self, exc: Exception) -> None:
        log.warning("error on %s socket: %s", self._label, exc)


class MockServer:
    """Serves HSES requests from an in-memory ``MockState``."""

    def __init__(
        self,
        config: MockConfig | None = None,
        registry: CommandHandlerRegistry | None = None,
    ) -> None:
        self.config = config if config is not None else MockConfig()
        self.state = MockState()
        self.handlers = registry if registry is not None else CommandHandlerRegistry()
        self._robot: asyncio.DatagramTransport | None = None
        self._file: asyncio.DatagramTransport | None = None
        self._closed: asyncio.Event | None = None

    async def start(self) -> None:
        """Bind both sockets; raises ``OSError`` when either cannot be bound."""
        if self._robot is not None:
            return
        loop = asyncio.get_running_loop()
        robot, _ = await loop.create_datagram_endpoint(
            lambda: _Endpoint(self, "robot"), local_addr=self.config.robot_addr()
        )
        try:
            file_transport, _ = await loop.create_datagram_endpoint(
                lambda: _Endpoint(self, "file"), local_addr=self.config.file_addr()
            )
        except OSError:
            robot.close()
            raise
        self._robot = robot
        self._file = file_transport
        self._closed = asyncio.Event()
        log.info("mock server listening on %s:%d", *self.config.robot_addr())
        log.info("mock server listening on %s:%d", *self.config.file_addr())

    def local_addr(self) -> tuple[str, int]:
        """Bound address of the robot control socket."""
        if self._robot is None:
            raise RuntimeError("server is not started")
        host, port = self._robot.get_extra_info("sockname")[:2]
        return (host, port)

    async def run(self) -> None:
        """Serve until ``close`` is called."""
        await self.start()
        assert self._closed is not None
        await self._closed.wait()

    def close(self) -> None:
        """Close both sockets and let ``run`` return."""
        for transport in (self._robot, self._file):
            if transport is not None:
                transport.close()
        self._robot = None
        self._file = None
        if self._closed is not None:
            self._closed.set()

    async def __aenter__(self) -> MockServer:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def handle_message(self, message: RequestMessage) -> bytes:
        """Return the encoded response to a request.

        Unknown commands get a response with an empty payload; other
        protocol errors are raised.
        """
        try:
            payload = self.handlers.handle(message, self.state)
        except InvalidCommandError:
            payload = b""
        response = ResponseMessage(
            division=message.division,
            ack=ACK_RESPONSE,
            request_id=message.request_id,
            service=message.service | RESPONSE_SERVICE_FLAG,
            status=STATUS_SUCCESS,
            added_status=NO_ADDED_STATUS,
            payload=payload,
        )
        return response.encode()

    def _serve(self, data: bytes, src: tuple[str, int], label: str) -> bytes | None:
        if len(data) < HEADER_SIZE:
            log.debug("%s message too short: %d bytes", label, len(data))
            return None
        try:
            message = decode_request(data)
        except ProtocolError as exc:
            log.debug("failed to decode %s message: %s", label, exc)
            return None
        log.debug("received %s packet from %s: %r", label, src, message)
        try:
            reply = self.handle_message(message)
        except ProtocolError as exc:
            log.warning("error handling %s message: %s", label, exc)
            return None
        log.debug("sending %s response to %s: %r", label, src, decode_response(reply))
        return reply

    def add_test_alarm(self, alarm: Alarm) -> None:
        self.state.add_alarm(alarm)

    def set_variable(self, index: int, value: bytes) -> None:
        self.state.set_variable(index, value)

    def set_io_state(self, io_number: int, state: bool) -> None:
        self.state.set_io_state(io_number, state)

    def set_status(self, status: Status) -> None:
        self.state.status = status


class MockServerBuilder:
    """Fluent construction of a ``MockServer``."""

    def __init__(self) -> None:
        self.config = MockConfig()

    def host(self, host: str) -> MockServerBuilder:
        self.config.host = host
        return self

    def robot_port(self, port: int) -> MockServerBuilder:
        self.config.robot_port = port
        return self

    def file_port(self, port: int) -> MockServerBuilder:
        self.config.file_port = port
        return self

    def with_variable(self, index: int, value: bytes) -> MockServerBuilder:
        self.config.variables[index] = bytes(value)
        return self

    def with_io_state(self, io_number: int, state: bool) -> MockServerBuilder:
        self.config.io_states[io_number] = state
        return self

    def build(self) -> MockServer:
        return MockServer(self.config)


async def start_test_server() -> tuple[tuple[str, int], MockServer]:
    """Start a server on the first free pair of ports from 49152 up.

    Returns the robot address and the running server; the caller closes it.
    """
    port = TEST_PORT_START
    while port < _PORT_LIMIT:
        server = MockServer(MockConfig(DEFAULT_HOST, port, port + 1))
        try:
            await server.start()
        except OSError:
            port += 2
            continue
        return server.local_addr(), server
    raise OSError("could not find an available port")


def _port(text: str, label: str) -> int:
    try:
        value = int(text)
    except ValueError:
        value = -1
    if not 0 <= value <= _PORT_LIMIT:
        raise ValueError(f"Invalid {label} port: {text}")
    return value


def main(argv: list[str] | None = None) -> int:
    """Run a mock server: ``[host robot_port file_port]``."""
    parser = argparse.ArgumentParser(description="Mock HSES UDP server")
    parser.add_argument("args", nargs="*", help="host robot_port file_port")
    options = parser.parse_args(argv)
    if len(options.args) == 3:
        host, robot_text, file_text = options.args
        try:
            robot_port = _port(robot_text, "robot")
            file_port = _port(file_text, "file")
        except ValueError as exc:
            print(exc, file=sys.stderr)
            return 2
    else:
        host, robot_port, file_port = DEFAULT_HOST, DEFAULT_ROBOT_PORT, DEFAULT_FILE_PORT

    print("Starting HSES Mock Server:")
    print(f"  Host: {host}")
    print(f"  Robot Control Port: {robot_port}")
    print(f"  File Control Port: {file_port}")

    server = MockServer(MockConfig(host, robot_port, file_port))
    try:
        asyncio.run(server.run())
    except OSError as exc:
        print(f"Failed to start server: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())