"""Dispatch of requests to the command handler registered for their command."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from motohses.handlers.alarm import AlarmDataHandler, AlarmInfoHandler, AlarmResetHandler
from motohses.handlers.base import CommandHandler
from motohses.handlers.file import FileControlHandler
from motohses.handlers.io import IoHandler, RegisterHandler
from motohses.handlers.job import JobSelectHandler, JobStartHandler, SelectCycleHandler
from motohses.handlers.position import PositionErrorHandler
from motohses.handlers.system import (
    AxisNameHandler,
    ExecutingJobInfoHandler,
    HoldServoHandler,
    ManagementTimeHandler,
    StatusHandler,
    SystemInfoHandler,
    TextDisplayHandler,
    TorqueHandler,
)
from motohses.handlers.variable import (
    ByteVarHandler,
    DoubleVarHandler,
    IntegerVarHandler,
    RealVarHandler,
    StringVarHandler,
)
from motohses.message import InvalidCommandError, RequestMessage
from motohses.state import MockState

log = logging.getLogger(__name__)


def _default_handlers() -> dict[int, CommandHandler]:
    return {
        # file control
        0x00: FileControlHandler(),
        # alarms
        0x70: AlarmDataHandler(),
        0x71: AlarmInfoHandler(),
        0x82: AlarmResetHandler(),
        # system information
        0x72: StatusHandler(),
        0x73: ExecutingJobInfoHandler(),
        0x74: AxisNameHandler(),
        0x77: TorqueHandler(),
        0x85: TextDisplayHandler(),
        0x88: ManagementTimeHandler(),
        0x89: SystemInfoHandler(),
        # position
        0x76: PositionErrorHandler(),
        # I/O and registers
        0x78: IoHandler(),
        0x79: RegisterHandler(),
        # variables
        0x7A: ByteVarHandler(),
        0x7B: IntegerVarHandler(),
        0x7C: DoubleVarHandler(),
        0x7D: RealVarHandler(),
        0x7E: StringVarHandler(),
        # job control
        0x83: HoldServoHandler(),
        0x84: SelectCycleHandler(),
        0x86: JobStartHandler(),
        0x87: JobSelectHandler(),
    }


class CommandHandlerRegistry:
    """Maps command numbers to handlers."""

    def __init__(self, handlers: Mapping[int, CommandHandler] | None = None) -> None:
        self.handlers: dict[int, CommandHandler] = (
            dict(handlers) if handlers is not None else _default_handlers()
        )

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        """Run the handler for the message's command.

        Raises ``InvalidCommandError`` when no handler is registered.
        """
        handler = self.handlers.get(message.command)
        if handler is None:
            log.warning("unknown command: 0x%04x", message.command)
            raise InvalidCommandError(f"unknown command 0x{message.command:04x}")
        return handler.handle(message, state)