import asyncio
from contextlib import asynccontextmanager

import pytest

from motohses.alarm import servo_error
from motohses.message import (
    InvalidServiceError,
    RequestMessage,
    decode_response,
)
from motohses.server import (
    MockConfig,
    MockServer,
    MockServerBuilder,
    main,
    start_test_server,
)
from motohses.state import Status


@asynccontextmanager
async def _running_server():
    addr, server = await start_test_server()
    try:
        yield addr, server
    finally:
        server.close()


async def _exchange(addr, *datagrams):
    loop = asyncio.get_running_loop()
    reply = loop.create_future()

    class _Receiver(asyncio.DatagramProtocol):
        def datagram_received(self, data, source):
            if not reply.done():
                reply.set_result(data)

    transport, _ = await loop.create_datagram_endpoint(_Receiver, remote_addr=addr)
    try:
        for data in datagrams:
            transport.sendto(data)
        return decode_response(await asyncio.wait_for(reply, 2.0))
    finally:
        transport.close()


def _request(request_id, command, instance, attribute, service, payload=b"", division=1):
    return RequestMessage(division, 0, request_id, command, instance, attribute, service, payload)


@pytest.mark.asyncio
async def test_mock_server_startup():
    async with _running_server() as (addr, _server):
        assert addr[0] == "127.0.0.1"
        assert addr[1] > 0


@pytest.mark.asyncio
async def test_status_command():
    async with _running_server() as (addr, _server):
        response = await _exchange(addr, _request(1, 0x72, 1, 1, 0x0E).encode())
        assert response.ack == 1
        assert response.service == 0x8E
        assert response.request_id == 1


@pytest.mark.asyncio
async def test_variable_read_command():
    async with _running_server() as (addr, _server):
        response = await _exchange(addr, _request(2, 0x7B, 0, 1, 0x0E).encode())
        assert response.ack == 1
        assert response.service == 0x8E
        assert len(response.payload) == 4


@pytest.mark.asyncio
async def test_io_read_command():
    async with _running_server() as (addr, _server):
        response = await _exchange(addr, _request(3, 0x78, 1, 1, 0x0E).encode())
        assert response.ack == 1
        assert response.service == 0x8E
        assert len(response.payload) == 4


@pytest.mark.asyncio
async def test_unknown_command():
    async with _running_server() as (addr, _server):
        response = await _exchange(addr, _request(4, 0x9999, 1, 1, 0x0E).encode())
        assert response.ack == 1
        assert response.service == 0x8E
        assert len(response.payload) == 0


@pytest.mark.asyncio
async def test_alarm_history_read_command():
    async with _running_server() as (addr, _server):
        response = await _exchange(addr, _request(5, 0x71, 1, 1, 0x0E).encode())
        assert response.ack == 1
        assert response.service == 0x8E
        assert len(response.payload) == 4


@pytest.mark.asyncio
async def test_alarm_history_read_command_monitor_alarm():
    async with _running_server() as (addr, _server):
        response = await _exchange(addr, _request(6, 0x71, 1001, 5, 0x0E).encode())
        assert response.ack == 1
        assert response.service == 0x8E
        assert len(response.payload) == 32


@pytest.mark.asyncio
async def test_alarm_history_read_command_invalid_instance():
    async with _running_server() as (addr, _server):
        response = await _exchange(addr, _request(7, 0x71, 5000, 1, 0x0E).encode())
        assert response.ack == 1
        assert response.service == 0x8E
        assert response.payload == bytes(4)


@pytest.mark.asyncio
async def test_short_datagram_is_ignored():
    async with _running_server() as (addr, _server):
        response = await _exchange(addr, b"YERC", _request(8, 0x7B, 1, 1, 0x0E).encode())
        assert response.request_id == 8
        assert response.payload == b"\x64\x00\x00\x00"


@pytest.mark.asyncio
async def test_file_port_lists_files():
    async with _running_server() as (_addr, server):
        request = _request(9, 0x00, 0, 0, 0x32, division=2)
        response = await _exchange(server.config.file_addr(), request.encode())
        assert response.division == 2
        assert response.payload == b"TEST.JOB\x00"


@pytest.mark.asyncio
async def test_run_returns_after_close():
    async with _running_server() as (_addr, server):
        task = asyncio.create_task(server.run())
        await asyncio.sleep(0)
        server.close()
        await asyncio.wait_for(task, 2.0)
        assert task.done() and task.exception() is None


def test_local_addr_before_start_raises():
    with pytest.raises(RuntimeError):
        MockServer().local_addr()


def test_handle_message_integer_variable():
    server = MockServer()
    response = decode_response(server.handle_message(_request(9, 0x7B, 0, 1, 0x0E)))
    assert response.division == 1
    assert response.ack == 1
    assert response.request_id == 9
    assert response.service == 0x8E
    assert response.status == 0
    assert response.added_status == 0
    assert response.payload == b"\x01\x00\x00\x00"


def test_handle_message_unknown_command_gives_empty_payload():
    server = MockServer()
    response = decode_response(server.handle_message(_request(1, 0x9999, 1, 1, 0x0E)))
    assert response.payload == b""


def test_handle_message_propagates_other_errors():
    server = MockServer()
    with pytest.raises(InvalidServiceError):
        server.handle_message(_request(1, 0x78, 1, 1, 0x01))


def test_set_status_changes_status_reply():
    server = MockServer()
    server.set_status(Status())
    response = decode_response(server.handle_message(_request(1, 0x72, 1, 0, 0x01)))
    assert response.payload == bytes(8)
    assert response.service == 0x81


def test_add_test_alarm_and_setters():
    server = MockServer()
    server.state.clear_alarms()
    server.add_test_alarm(servo_error())
    server.set_variable(10, b"\x42\x00\x00\x00")
    server.set_io_state(1001, True)
    assert server.state.alarms == [servo_error()]
    assert server.state.status.has_alarm() is True
    assert server.state.get_variable(10) == b"\x42\x00\x00\x00"
    assert server.state.get_io_state(1001) is True


def test_config_defaults_and_addresses():
    config = MockConfig()
    assert config.robot_addr() == ("127.0.0.1", 10040)
    assert config.file_addr() == ("127.0.0.1", 10041)
    assert config.variables[2] == b"\x00\x00\x20\x41"
    assert config.io_states == {1: True, 1001: False}
    assert config.default_status.has_alarm() is False


def test_builder_sets_config():
    server = (
        MockServerBuilder()
        .host("0.0.0.0")
        .robot_port(20000)
        .file_port(20001)
        .with_variable(5, b"\x07")
        .with_io_state(7, True)
        .build()
    )
    assert server.config.robot_addr() == ("0.0.0.0", 20000)
    assert server.config.file_addr() == ("0.0.0.0", 20001)
    assert server.config.variables[5] == b"\x07"
    assert server.config.io_states[7] is True


def test_main_rejects_invalid_robot_port(capsys):
    assert main(["127.0.0.1", "notaport", "10041"]) == 2
    assert "Invalid robot port: notaport" in capsys.readouterr().err


def test_main_rejects_out_of_range_file_port(capsys):
    assert main(["127.0.0.1", "10040", "70000"]) == 2
    assert "Invalid file port: 70000" in capsys.readouterr().err