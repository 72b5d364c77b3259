"""
Voice transport capability and the events it delivers.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class TransportEventKind(str, Enum):
    CONNECT = "connect"
    MESSAGE = "message"
    DISCONNECT = "disconnect"
    ERROR = "error"


@dataclass(frozen=True)
class TransportEvent:
    """One item on the transport's inbound event stream."""
    kind: TransportEventKind
    source: Optional[str] = None
    text: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def connect(cls) -> "TransportEvent":
        return cls(TransportEventKind.CONNECT)

    @classmethod
    def message(cls, source: str, text: str) -> "TransportEvent":
        return cls(TransportEventKind.MESSAGE, source=source, text=text)

    @classmethod
    def disconnect(cls) -> "TransportEvent":
        return cls(TransportEventKind.DISCONNECT)

    @classmethod
    def failure(cls, error: BaseException) -> "TransportEvent":
        return cls(TransportEventKind.ERROR, error=error)


EventSink = Callable[[TransportEvent], None]


class VoiceTransport(ABC):
    """
    Real-time voice conversation with a remote interviewing agent.

    Implementations deliver events by calling the sink passed to ``bind``.
    The sink is safe to call from any thread.
    """

    def __init__(self):
        self._sink: Optional[EventSink] = None

    def bind(self, sink: EventSink) -> None:
        self._sink = sink

    def emit(self, event: TransportEvent) -> None:
        if self._sink is not None:
            self._sink(event)

    @abstractmethod
    async def open_session(self, agent_id: str) -> None:
        """Open a conversation with ``agent_id``. Raises on failure."""

    @abstractmethod
    async def close_session(self) -> None:
        """Ask the remote side to end the conversation."""
