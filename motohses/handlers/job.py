"""Handlers for job start, job selection and cycle selection."""

from __future__ import annotations

from motohses.handlers.base import CommandHandler
from motohses.message import InvalidServiceError, RequestMessage
from motohses.state import MockState

SELECT_EXECUTION_JOB = 1
SELECTED_JOB_NAME = "SELECTED.JOB"
SERVICE_SET_SINGLE = 0x10


class JobStartHandler(CommandHandler):
    """Job start (0x86): the robot starts running."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        state.set_running(True)
        return b""


class JobSelectHandler(CommandHandler):
    """Job select (0x87); instance 1 selects the execution job."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        if message.instance == SELECT_EXECUTION_JOB and len(message.payload) >= 4:
            state.set_current_job(SELECTED_JOB_NAME)
        return b""


class SelectCycleHandler(CommandHandler):
    """Cycle selection (0x84); acknowledged without changing state."""

    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        if message.service == SERVICE_SET_SINGLE:
            return b""
        raise InvalidServiceError(
            f"cycle selection service 0x{message.service:02x} is not supported"
        )