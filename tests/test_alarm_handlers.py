from motohses.alarm import COMPLETE_SIZE, NAME_SIZE, Alarm, parse_attribute
from motohses.handlers.alarm import AlarmDataHandler, AlarmInfoHandler, AlarmResetHandler
from motohses.message import RequestMessage
from motohses.state import MockState

EMPTY = bytes(4)


def request(command, instance, attribute, service, payload=b""):
    return RequestMessage(1, 0, 1, command, instance, attribute, service, payload)


def test_alarm_data_complete_record():
    state = MockState()
    reply = AlarmDataHandler().handle(request(0x70, 1, 0, 0x01), state)
    assert len(reply) == COMPLETE_SIZE
    assert Alarm.from_bytes(reply) == state.alarms[0]


def test_alarm_data_single_attribute():
    state = MockState()
    reply = AlarmDataHandler().handle(request(0x70, 2, 1, 0x0E), state)
    assert parse_attribute(reply, 1).code == state.alarms[1].code


def test_alarm_data_out_of_range_instances():
    state = MockState()
    handler = AlarmDataHandler()
    assert handler.handle(request(0x70, 0, 0, 0x01), state) == EMPTY
    assert handler.handle(request(0x70, len(state.alarms) + 1, 0, 0x01), state) == EMPTY


def test_alarm_data_unknown_service():
    assert AlarmDataHandler().handle(request(0x70, 1, 1, 0x33), MockState()) == EMPTY


def test_alarm_history_major_failure_code():
    state = MockState()
    reply = AlarmInfoHandler().handle(request(0x71, 1, 1, 0x0E), state)
    assert len(reply) == 4
    assert parse_attribute(reply, 1).code == state.alarm_history.major_failure[0].code


def test_alarm_history_monitor_alarm_name():
    state = MockState()
    reply = AlarmInfoHandler().handle(request(0x71, 1001, 5, 0x0E), state)
    assert len(reply) == NAME_SIZE
    assert parse_attribute(reply, 5).name == state.alarm_history.monitor_alarm[0].name


def test_alarm_history_complete_record():
    state = MockState()
    reply = AlarmInfoHandler().handle(request(0x71, 1002, 0, 0x01), state)
    assert Alarm.from_bytes(reply) == state.alarm_history.monitor_alarm[1]


def test_alarm_history_invalid_instance():
    assert AlarmInfoHandler().handle(request(0x71, 5000, 1, 0x0E), MockState()) == EMPTY


def test_alarm_history_empty_slot():
    state = MockState()
    missing = len(state.alarm_history.major_failure) + 1
    assert AlarmInfoHandler().handle(request(0x71, missing, 1, 0x0E), state) == EMPTY


def test_reset_clears_alarms():
    state = MockState()
    reply = AlarmResetHandler().handle(request(0x82, 1, 1, 0x10), state)
    assert reply == b""
    assert state.alarms == []
    assert not state.status.has_alarm()


def test_cancel_clears_error_only():
    state = MockState()
    state.status.data2.error = True
    count = len(state.alarms)
    AlarmResetHandler().handle(request(0x82, 2, 1, 0x10), state)
    assert not state.status.has_error()
    assert len(state.alarms) == count


def test_other_reset_type_changes_nothing():
    state = MockState()
    state.status.data2.error = True
    count = len(state.alarms)
    AlarmResetHandler().handle(request(0x82, 7, 1, 0x10), state)
    assert state.status.has_error()
    assert len(state.alarms) == count