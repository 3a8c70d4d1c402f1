"""The interface every mock command handler implements."""

from __future__ import annotations

import abc

from motohses.message import RequestMessage
from motohses.state import MockState


class CommandHandler(abc.ABC):
    """Turns one request into a reply payload, updating the mock state.

    Implementations raise ``ProtocolError`` (or a subclass) when the
    request cannot be served.
    """

    @abc.abstractmethod
    def handle(self, message: RequestMessage, state: MockState) -> bytes:
        """Return the payload of the reply to ``message``."""