"""Alarm records, alarm history addressing and attribute encoding."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

from motohses.message import ProtocolError

COMPLETE_SIZE = 60
TIME_SIZE = 16
NAME_SIZE = 32

_NUMBERS = struct.Struct("<III")
_U32 = struct.Struct("<I")
_EMPTY_ATTRIBUTE = b"\x00" * 4


class AlarmAttribute(enum.IntEnum):
    """Attribute numbers of an alarm record."""

    ALL = 0
    CODE = 1
    DATA = 2
    TYPE = 3
    TIME = 4
    NAME = 5


class AlarmCategory(enum.Enum):
    """Sections of the alarm history, each addressed by an instance range."""

    MAJOR_FAILURE = 1
    MONITOR_ALARM = 1001
    USER_ALARM_SYSTEM = 2001
    USER_ALARM_USER = 3001
    OFFLINE_ALARM = 4001
    INVALID = 0


HISTORY_SECTION_SIZE = 100


@dataclass
class Alarm:
    """A single alarm record."""

    code: int = 0
    data: int = 0
    alarm_type: int = 0
    time: str = ""
    name: str = ""
    sub_code_info: str = ""
    sub_code_data: str = ""
    sub_code_reverse: str = ""

    def to_bytes(self) -> bytes:
        """Return the 60-byte complete record."""
        try:
            numbers = _NUMBERS.pack(self.code, self.data, self.alarm_type)
        except struct.error as exc:
            raise ProtocolError(f"alarm field out of range: {exc}") from exc
        return numbers + _fixed_text(self.time, TIME_SIZE) + _fixed_text(self.name, NAME_SIZE)

    @classmethod
    def from_bytes(cls, data: bytes) -> Alarm:
        """Parse a complete record."""
        data = bytes(data)
        if len(data) < COMPLETE_SIZE:
            raise ProtocolError(
                f"alarm record needs {COMPLETE_SIZE} bytes, got {len(data)}"
            )
        code, value, alarm_type = _NUMBERS.unpack_from(data)
        time_start = _NUMBERS.size
        name_start = time_start + TIME_SIZE
        return cls(
            code=code,
            data=value,
            alarm_type=alarm_type,
            time=_text(data[time_start:name_start]),
            name=_text(data[name_start:name_start + NAME_SIZE]),
        )


def _fixed_text(text: str, size: int) -> bytes:
    return text.encode("utf-8")[:size].ljust(size, b"\x00")


def _text(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def alarm_category(instance: int) -> AlarmCategory:
    """Return the history section an instance number belongs to."""
    for category in AlarmCategory:
        if category is AlarmCategory.INVALID:
            continue
        if category.value <= instance < category.value + HISTORY_SECTION_SIZE:
            return category
    return AlarmCategory.INVALID


def is_valid_history_instance(instance: int) -> bool:
    """Tell whether an instance number addresses the alarm history."""
    return alarm_category(instance) is not AlarmCategory.INVALID


def alarm_index(instance: int) -> int:
    """Return the zero-based position of an instance within its section."""
    category = alarm_category(instance)
    if category is AlarmCategory.INVALID:
        raise ValueError(f"instance {instance} is not an alarm history instance")
    return instance - category.value


def attribute_data(alarm: Alarm, attribute: int) -> bytes:
    """Encode one attribute of an alarm as the controller sends it."""
    if attribute == AlarmAttribute.CODE:
        return _U32.pack(alarm.code)
    if attribute == AlarmAttribute.DATA:
        return _U32.pack(alarm.data)
    if attribute == AlarmAttribute.TYPE:
        return _U32.pack(alarm.alarm_type)
    if attribute == AlarmAttribute.TIME:
        return _fixed_text(alarm.time, TIME_SIZE)
    if attribute == AlarmAttribute.NAME:
        return _fixed_text(alarm.name, NAME_SIZE)
    return _EMPTY_ATTRIBUTE


def _leading_text(data: bytes, default_end: int) -> str:
    end = data.find(b"\x00")
    if end < 0:
        end = default_end
    return data[:end].decode("utf-8", errors="replace")


_NUMERIC_FIELDS = {
    AlarmAttribute.CODE: "code",
    AlarmAttribute.DATA: "data",
    AlarmAttribute.TYPE: "alarm_type",
}


def parse_attribute(data: bytes, attribute: int) -> Alarm:
    """Build an alarm from a reply to an attribute read.

    Attribute 0 expects the complete record; a reply too short for a single
    attribute, or an unknown attribute, gives an empty alarm.
    """
    data = bytes(data)
    if attribute == AlarmAttribute.ALL:
        return Alarm.from_bytes(data)
    if attribute in _NUMERIC_FIELDS:
        if len(data) < _U32.size:
            return Alarm()
        (value,) = _U32.unpack_from(data)
        return Alarm(**{_NUMERIC_FIELDS[AlarmAttribute(attribute)]: value})
    if attribute == AlarmAttribute.TIME:
        if len(data) < TIME_SIZE:
            return Alarm()
        return Alarm(time=_leading_text(data, TIME_SIZE))
    if attribute == AlarmAttribute.NAME:
        if len(data) < NAME_SIZE:
            return Alarm()
        return Alarm(name=_leading_text(data, NAME_SIZE))
    return Alarm()


def servo_error() -> Alarm:
    """Sample alarm used to populate a mock controller."""
    return Alarm(code=1001, data=1, alarm_type=1, time="2024/01/01 12:00", name="Servo Error")


def emergency_stop() -> Alarm:
    """Sample alarm used to populate a mock controller."""
    return Alarm(code=1002, data=2, alarm_type=1, time="2024/01/01 12:05", name="Emergency Stop")


def safety_error() -> Alarm:
    """Sample alarm used to populate a mock controller."""
    return Alarm(code=1003, data=3, alarm_type=2, time="2024/01/01 12:10", name="Safety Error")


def communication_error() -> Alarm:
    """Sample alarm used to populate a mock controller."""
    return Alarm(
        code=1004, data=4, alarm_type=2, time="2024/01/01 12:15", name="Communication Error"
    )