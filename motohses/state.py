"""Robot status records and the state held by the mock controller."""

from __future__ import annotations

import struct
from dataclasses import asdict, dataclass, field
from typing import ClassVar

from motohses import alarm as alarms
from motohses.alarm import Alarm, AlarmCategory, HISTORY_SECTION_SIZE
from motohses.message import ProtocolError

_STATUS = struct.Struct("<II")


def _pack_flags(record, bits: dict[str, int]) -> int:
    return sum(1 << bits[name] for name, on in asdict(record).items() if on)


@dataclass
class StatusData1:
    """Operating mode flags (status data 1)."""

    step: bool = False
    one_cycle: bool = False
    continuous: bool = False
    running: bool = False
    speed_limited: bool = False
    teach: bool = False
    play: bool = False
    remote: bool = False

    BITS: ClassVar[dict[str, int]] = {
        "step": 0,
        "one_cycle": 1,
        "continuous": 2,
        "running": 3,
        "speed_limited": 4,
        "teach": 5,
        "play": 6,
        "remote": 7,
    }

    def to_int(self) -> int:
        return _pack_flags(self, self.BITS)

    @classmethod
    def from_int(cls, value: int) -> StatusData1:
        return cls(**{name: bool(value >> bit & 1) for name, bit in cls.BITS.items()})


@dataclass
class StatusData2:
    """Hold, alarm and servo flags (status data 2)."""

    teach_pendant_hold: bool = False
    external_hold: bool = False
    command_hold: bool = False
    alarm: bool = False
    error: bool = False
    servo_on: bool = False

    BITS: ClassVar[dict[str, int]] = {
        "teach_pendant_hold": 1,
        "external_hold": 2,
        "command_hold": 3,
        "alarm": 4,
        "error": 5,
        "servo_on": 6,
    }

    def to_int(self) -> int:
        return _pack_flags(self, self.BITS)

    @classmethod
    def from_int(cls, value: int) -> StatusData2:
        return cls(**{name: bool(value >> bit & 1) for name, bit in cls.BITS.items()})


@dataclass
class Status:
    """Complete robot status."""

    data1: StatusData1 = field(default_factory=StatusData1)
    data2: StatusData2 = field(default_factory=StatusData2)

    def is_running(self) -> bool:
        return self.data1.running

    def is_servo_on(self) -> bool:
        return self.data2.servo_on

    def has_alarm(self) -> bool:
        return self.data2.alarm

    def has_error(self) -> bool:
        return self.data2.error

    def is_play_mode(self) -> bool:
        return self.data1.play

    def is_teach_mode(self) -> bool:
        return self.data1.teach

    def is_remote_mode(self) -> bool:
        return self.data1.remote

    def to_bytes(self) -> bytes:
        """Return both data words, 8 bytes."""
        return _STATUS.pack(self.data1.to_int(), self.data2.to_int())

    @classmethod
    def from_bytes(cls, data: bytes) -> Status:
        data = bytes(data)
        if len(data) < _STATUS.size:
            raise ProtocolError(f"status needs {_STATUS.size} bytes, got {len(data)}")
        word1, word2 = _STATUS.unpack_from(data)
        return cls(StatusData1.from_int(word1), StatusData2.from_int(word2))


@dataclass
class AlarmHistory:
    """Alarm history, one bounded list per category."""

    major_failure: list[Alarm] = field(default_factory=list)
    monitor_alarm: list[Alarm] = field(default_factory=list)
    user_alarm_system: list[Alarm] = field(default_factory=list)
    user_alarm_user: list[Alarm] = field(default_factory=list)
    offline_alarm: list[Alarm] = field(default_factory=list)

    def _section(self, category: AlarmCategory) -> list[Alarm] | None:
        return {
            AlarmCategory.MAJOR_FAILURE: self.major_failure,
            AlarmCategory.MONITOR_ALARM: self.monitor_alarm,
            AlarmCategory.USER_ALARM_SYSTEM: self.user_alarm_system,
            AlarmCategory.USER_ALARM_USER: self.user_alarm_user,
            AlarmCategory.OFFLINE_ALARM: self.offline_alarm,
        }.get(category)

    def get_alarm(self, category: AlarmCategory, index: int) -> Alarm | None:
        """Return the alarm at a zero-based index, or None."""
        section = self._section(category)
        if section is None or not 0 <= index < len(section):
            return None
        return section[index]

    def add_alarm(self, category: AlarmCategory, alarm: Alarm) -> None:
        """Append an alarm unless its section is full or the category is invalid."""
        section = self._section(category)
        if section is not None and len(section) < HISTORY_SECTION_SIZE:
            section.append(alarm)

    def clear_all(self) -> None:
        for section in (
            self.major_failure,
            self.monitor_alarm,
            self.user_alarm_system,
            self.user_alarm_user,
            self.offline_alarm,
        ):
            section.clear()


def _default_status() -> Status:
    return Status(
        StatusData1(continuous=True, running=True, play=True),
        StatusData2(alarm=True, servo_on=True),
    )


def _default_variables() -> dict[int, bytes]:
    return {
        0: b"\x01\x00\x00\x00",
        1: b"\x64\x00\x00\x00",
        2: b"\x00\x00\x20\x41",
    }


def _default_io_states() -> dict[int, bool]:
    return {1: True, 1001: False}


def _default_registers() -> dict[int, int]:
    return {0: 0, 1: 100}


def _default_alarms() -> list[Alarm]:
    return [
        alarms.servo_error(),
        alarms.emergency_stop(),
        alarms.safety_error(),
        alarms.communication_error(),
    ]


def _default_history() -> AlarmHistory:
    history = AlarmHistory()
    for entry in (alarms.servo_error(), alarms.emergency_stop(), alarms.safety_error()):
        history.add_alarm(AlarmCategory.MAJOR_FAILURE, entry)
    for entry in (alarms.communication_error(), alarms.servo_error()):
        history.add_alarm(AlarmCategory.MONITOR_ALARM, entry)
    return history


def _default_files() -> dict[str, bytes]:
    return {
        "TEST.JOB": (
            b"/JOB\r\n//NAME TEST.JOB\r\n//POS\r\n///NPOS 0,0,0,0,0,0\r\n//INST\r\n"
            b"///DATE 2022/12/23 15:58\r\n///ATTR SC,RW\r\n///GROUP1 RB1\r\nNOP\r\nEND\r\n"
        )
    }


@dataclass
class MockState:
    """Everything a mock controller remembers between requests."""

    status: Status = field(default_factory=_default_status)
    variables: dict[int, bytes] = field(default_factory=_default_variables)
    io_states: dict[int, bool] = field(default_factory=_default_io_states)
    registers: dict[int, int] = field(default_factory=_default_registers)
    alarms: list[Alarm] = field(default_factory=_default_alarms)
    alarm_history: AlarmHistory = field(default_factory=_default_history)
    current_job: str | None = "TEST.JOB"
    servo_on: bool = True
    hold_state: bool = False
    files: dict[str, bytes] = field(default_factory=_default_files)

    def get_variable(self, index: int) -> bytes | None:
        return self.variables.get(index)

    def set_variable(self, index: int, value: bytes) -> None:
        self.variables[index] = bytes(value)

    def get_io_state(self, io_number: int) -> bool:
        return self.io_states.get(io_number, False)

    def set_io_state(self, io_number: int, state: bool) -> None:
        self.io_states[io_number] = state

    def get_register(self, reg_number: int) -> int:
        return self.registers.get(reg_number, 0)

    def set_register(self, reg_number: int, value: int) -> None:
        self.registers[reg_number] = value

    def add_alarm(self, alarm: Alarm) -> None:
        self.alarms.append(alarm)
        self.status.data2.alarm = True

    def clear_alarms(self) -> None:
        self.alarms.clear()
        self.status.data2.alarm = False

    def set_servo(self, on: bool) -> None:
        self.servo_on = on
        self.status.data2.servo_on = on

    def set_hold(self, hold: bool) -> None:
        self.hold_state = hold
        self.status.data2.command_hold = hold

    def set_running(self, running: bool) -> None:
        self.status.data1.running = running

    def set_current_job(self, job: str | None) -> None:
        self.current_job = job

    def get_file_list(self, pattern: str) -> list[str]:
        """Return stored file names containing the pattern without its '*'s."""
        needle = pattern.strip("*")
        return [name for name in self.files if needle in name]

    def get_file(self, filename: str) -> bytes | None:
        return self.files.get(filename)

    def set_file(self, filename: str, content: bytes) -> None:
        self.files[filename] = bytes(content)

    def delete_file(self, filename: str) -> bool:
        """Remove a file; tell whether it existed."""
        return self.files.pop(filename, None) is not None