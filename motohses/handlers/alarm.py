"""Handlers for alarm reading, alarm history and alarm reset."""

from __future__ import annotations

from motohses.alarm import (
    Alarm,
    alarm_category,
    alarm_index,
    attribute_data,
    is_valid_history_instance,
)
from motohses.handlers.base import CommandHandler
from motohses.message import (
    SERVICE_GET_ATTRIBUTE_ALL,
    SERVICE_GET_ATTRIBUTE_SINGLE,
    RequestMessage,
)
from motohses.state import MockState

_EMPTY = bytes(4)

RESET_ALARM = 1
CANCEL_ERROR = 2


def _alarm_reply(alarm: Alarm, service: int, attribute: int) -> bytes:
    if service == SERVICE_GET_ATTRIBUTE_ALL:
        return alarm.to_bytes()
    if service == SERVICE_GET_ATTRIBUTE_SINGLE:
        return attribute_data(alarm, attribute)
    return _EMPTY


class AlarmDataHandler(CommandHandler):
    """Current alarm reading (0x70); instances 1-4 address active alarms."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        instance = message.instance
        if not 1 <= instance <= len(state.alarms):
            return _EMPTY
        return _alarm_reply(state.alarms[instance - 1], message.service, message.attribute)


class AlarmInfoHandler(CommandHandler):
    """Alarm history reading (0x71)."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        instance = message.instance
        if not is_valid_history_instance(instance):
            return _EMPTY
        alarm = state.alarm_history.get_alarm(alarm_category(instance), alarm_index(instance))
        if alarm is None:
            return _EMPTY
        return _alarm_reply(alarm, message.service, message.attribute)


class AlarmResetHandler(CommandHandler):
    """Alarm reset (instance 1) or error cancel (instance 2), command 0x82."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        if message.instance == RESET_ALARM:
            state.clear_alarms()
        elif message.instance == CANCEL_ERROR:
            state.status.data2.error = False
        return b""