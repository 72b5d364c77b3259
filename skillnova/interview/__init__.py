"""Interview system components.

This module contains the business logic for running a voice interview session:
the lifecycle state machine, the transcript, the feedback pipeline and the
controller that composes them.
"""

# Controller
from .controller import SessionController, InterviewSession

# Data models
from .models import Speaker, Turn, SessionState, FeedbackStatus, FeedbackResult

# Components
from .state import SessionStateMachine
from .transcript import TranscriptStore
from .feedback import FeedbackPipeline
from .prompts import InterviewPrompts, PromptFormatter

# Transport capability
from .transport import VoiceTransport, TransportEvent, TransportEventKind

# Errors
from .errors import (
    InterviewError, ConfigurationError, SessionConnectionError,
    MicrophoneUnavailableError, TransportError, GenerationError,
    InvalidTransitionError
)

# Event system
from .events import (
    InterviewEventBus, EventLogger, SessionMetrics,
    EventType, InterviewEvent, SessionConnectedEvent, TurnAppendedEvent,
    SessionDisconnectedEvent, FeedbackRequestedEvent, FeedbackReadyEvent,
    FeedbackFailedEvent, ConnectionFailedEvent, ErrorOccurredEvent
)

__all__ = [
    # Controller
    "SessionController", "InterviewSession",

    # Data models
    "Speaker", "Turn", "SessionState", "FeedbackStatus", "FeedbackResult",

    # Components
    "SessionStateMachine", "TranscriptStore", "FeedbackPipeline",
    "InterviewPrompts", "PromptFormatter",

    # Transport
    "VoiceTransport", "TransportEvent", "TransportEventKind",

    # Errors
    "InterviewError", "ConfigurationError", "SessionConnectionError",
    "MicrophoneUnavailableError", "TransportError", "GenerationError",
    "InvalidTransitionError",

    # Events
    "InterviewEventBus", "EventLogger", "SessionMetrics",
    "EventType", "InterviewEvent", "SessionConnectedEvent", "TurnAppendedEvent",
    "SessionDisconnectedEvent", "FeedbackRequestedEvent", "FeedbackReadyEvent",
    "FeedbackFailedEvent", "ConnectionFailedEvent", "ErrorOccurredEvent",
]
