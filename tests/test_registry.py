import struct

import pytest

from motohses.handlers.registry import CommandHandlerRegistry
from motohses.handlers.system import TorqueHandler
from motohses.message import InvalidCommandError, InvalidServiceError, RequestMessage
from motohses.state import MockState, Status


def make_message(command, instance=0, attribute=1, service=0x0E, payload=b"", division=1):
    return RequestMessage(
        division=division,
        ack=0,
        request_id=1,
        command=command,
        instance=instance,
        attribute=attribute,
        service=service,
        payload=payload,
    )


@pytest.fixture
def registry():
    return CommandHandlerRegistry()


def test_status_command(registry):
    state = MockState()
    data = registry.handle(make_message(0x72, instance=1), state)
    assert Status.from_bytes(data) == state.status


def test_integer_variable_read(registry):
    data = registry.handle(make_message(0x7B, instance=0), MockState())
    assert len(data) == 4
    assert data == b"\x01\x00\x00\x00"


def test_io_read(registry):
    data = registry.handle(make_message(0x78, instance=1), MockState())
    assert len(data) == 4
    assert data[0] == 1


def test_alarm_history_major_failure_code(registry):
    data = registry.handle(make_message(0x71, instance=1, attribute=1), MockState())
    assert len(data) == 4
    assert struct.unpack("<I", data)[0] == MockState().alarm_history.major_failure[0].code


def test_alarm_history_monitor_alarm_name(registry):
    data = registry.handle(make_message(0x71, instance=1001, attribute=5), MockState())
    assert len(data) == 32


def test_alarm_history_invalid_instance(registry):
    data = registry.handle(make_message(0x71, instance=5000, attribute=1), MockState())
    assert data == bytes(4)


def test_unknown_command_raises(registry):
    with pytest.raises(InvalidCommandError):
        registry.handle(make_message(0x9999, instance=1), MockState())


def test_handler_errors_propagate(registry):
    with pytest.raises(InvalidServiceError):
        registry.handle(make_message(0x85, service=0x0E), MockState())


def test_file_list_through_registry(registry):
    data = registry.handle(
        make_message(0x00, attribute=0, service=0x32, division=2), MockState()
    )
    assert data == b"TEST.JOB\x00"


def test_write_then_read_register(registry):
    state = MockState()
    registry.handle(
        make_message(0x79, instance=5, service=0x10, payload=struct.pack("<i", -7)), state
    )
    data = registry.handle(make_message(0x79, instance=5), state)
    assert struct.unpack("<i", data)[0] == -7


def test_custom_handler_mapping():
    registry = CommandHandlerRegistry({0x10: TorqueHandler()})
    state = MockState()
    assert registry.handle(make_message(0x10), state) == TorqueHandler().handle(
        make_message(0x77), state
    )
    with pytest.raises(InvalidCommandError):
        registry.handle(make_message(0x72), state)