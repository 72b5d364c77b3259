"""
Event-driven architecture for the interview system.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview session events."""
    SESSION_CONNECTED = "session_connected"
    TURN_APPENDED = "turn_appended"
    SESSION_DISCONNECTED = "session_disconnected"
    FEEDBACK_REQUESTED = "feedback_requested"
    FEEDBACK_READY = "feedback_ready"
    FEEDBACK_FAILED = "feedback_failed"
    CONNECTION_FAILED = "connection_failed"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionConnectedEvent(InterviewEvent):
    """Event fired when the transport reports the session is live."""
    def __init__(self, session_id: str, timestamp: float, agent_id: str):
        super().__init__(
            event_type=EventType.SESSION_CONNECTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"agent_id": agent_id}
        )


@dataclass
class TurnAppendedEvent(InterviewEvent):
    """Event fired when a turn is added to the transcript."""
    def __init__(self, session_id: str, timestamp: float, turn_idx: int,
                 speaker: str, text: str):
        super().__init__(
            event_type=EventType.TURN_APPENDED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "turn_idx": turn_idx,
                "speaker": speaker,
                "text": text
            }
        )


@dataclass
class SessionDisconnectedEvent(InterviewEvent):
    """Event fired when the session ends, for whatever reason."""
    def __init__(self, session_id: str, timestamp: float, reason: str, turn_count: int):
        super().__init__(
            event_type=EventType.SESSION_DISCONNECTED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "reason": reason,
                "turn_count": turn_count
            }
        )


@dataclass
class FeedbackRequestedEvent(InterviewEvent):
    """Event fired when the feedback pipeline is started."""
    def __init__(self, session_id: str, timestamp: float, turn_count: int):
        super().__init__(
            event_type=EventType.FEEDBACK_REQUESTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_count": turn_count}
        )


@dataclass
class FeedbackReadyEvent(InterviewEvent):
    """Event fired when the performance review is available."""
    def __init__(self, session_id: str, timestamp: float, feedback: str):
        super().__init__(
            event_type=EventType.FEEDBACK_READY,
            session_id=session_id,
            timestamp=timestamp,
            data={"length": len(feedback)}
        )


@dataclass
class FeedbackFailedEvent(InterviewEvent):
    """Event fired when the performance review could not be generated."""
    def __init__(self, session_id: str, timestamp: float, message: str):
        super().__init__(
            event_type=EventType.FEEDBACK_FAILED,
            session_id=session_id,
            timestamp=timestamp,
            data={"message": message}
        )


@dataclass
class ConnectionFailedEvent(InterviewEvent):
    """Event fired when a session could not be started."""
    def __init__(self, session_id: str, timestamp: float, error_type: str, error_message: str):
        super().__init__(
            event_type=EventType.CONNECTION_FAILED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message
            }
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error occurs."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview system communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        Handler failures are logged and never reach the emitter.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: InterviewEvent) -> None:
        self.logger.info(f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}")


class SessionMetrics:
    """Collects metrics from interview events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.SESSION_CONNECTED:
            self.sessions_connected += 1
        elif event.event_type == EventType.SESSION_DISCONNECTED:
            self.sessions_disconnected += 1
        elif event.event_type == EventType.TURN_APPENDED:
            self.total_turns += 1
        elif event.event_type == EventType.FEEDBACK_REQUESTED:
            self.feedback_requested += 1
        elif event.event_type == EventType.FEEDBACK_READY:
            self.feedback_ready += 1
        elif event.event_type == EventType.FEEDBACK_FAILED:
            self.feedback_failed += 1
        elif event.event_type == EventType.CONNECTION_FAILED:
            self.connection_failures += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "sessions_connected": self.sessions_connected,
            "sessions_disconnected": self.sessions_disconnected,
            "total_turns": self.total_turns,
            "feedback_requested": self.feedback_requested,
            "feedback_ready": self.feedback_ready,
            "feedback_failed": self.feedback_failed,
            "connection_failures": self.connection_failures,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.sessions_connected = 0
        self.sessions_disconnected = 0
        self.total_turns = 0
        self.feedback_requested = 0
        self.feedback_ready = 0
        self.feedback_failed = 0
        self.connection_failures = 0
        self.errors_occurred = 0
