import pytest

from motohses.handlers.file import FileControlHandler
from motohses.message import InvalidServiceError, ProtocolError, RequestMessage
from motohses.state import MockState


def request(service, payload=b""):
    return RequestMessage(2, 0, 1, 0x00, 0, 0, service, payload)


def test_fixed_file_list():
    assert FileControlHandler().handle(request(0x01), MockState()) == b"TEST.JOB\x00"


def test_file_list_from_state():
    state = MockState()
    assert FileControlHandler().handle(request(0x32), state) == b"TEST.JOB\x00"


def test_file_list_terminates_every_name():
    state = MockState()
    state.set_file("A.JOB", b"x")
    listing = FileControlHandler().handle(request(0x32), state)
    names = [name for name in listing.decode().split("\x00") if name]
    assert sorted(names) == sorted(state.files)
    assert listing.endswith(b"\x00")
    assert listing.count(b"\x00") == len(state.files)


@pytest.mark.parametrize("send, receive", [(0x15, 0x16), (0x02, 0x03)])
def test_send_then_receive_round_trip(send, receive):
    state = MockState()
    handler = FileControlHandler()
    assert handler.handle(request(send, b"NEW.JOB\x00hello"), state) == b""
    assert state.get_file("NEW.JOB") == b"hello"
    assert handler.handle(request(receive, b"NEW.JOB\x00"), state) == b"NEW.JOB\x00hello"


def test_receive_missing_file_gives_empty_reply():
    assert FileControlHandler().handle(request(0x16, b"NONE.JOB\x00"), MockState()) == b""


def test_send_without_terminator_stores_nothing():
    state = MockState()
    before = dict(state.files)
    FileControlHandler().handle(request(0x15, b"NOTERM"), state)
    assert state.files == before


@pytest.mark.parametrize("service", [0x09, 0x04])
def test_delete_removes_file(service):
    state = MockState()
    FileControlHandler().handle(request(service, b"TEST.JOB\x00"), state)
    assert state.get_file("TEST.JOB") is None
    assert FileControlHandler().handle(request(0x32), state) == b""


def test_unknown_service_raises():
    with pytest.raises(InvalidServiceError):
        FileControlHandler().handle(request(0x77), MockState())


def test_invalid_service_is_protocol_error():
    with pytest.raises(ProtocolError):
        FileControlHandler().handle(request(0x0E), MockState())