"""
Exception types for the interview session controller.
"""


class InterviewError(Exception):
    """Base class for all interview session errors."""


class ConfigurationError(InterviewError, ValueError):
    """Required configuration (agent identifier, API credential) is missing."""


class SessionConnectionError(InterviewError):
    """The microphone could not be acquired or the transport failed to open."""


class MicrophoneUnavailableError(SessionConnectionError):
    """No usable audio input device, or permission to use it was denied."""


class TransportError(InterviewError):
    """The voice transport failed while a session was live."""


class GenerationError(InterviewError):
    """The text-generation backend failed or returned an unusable response."""


class InvalidTransitionError(InterviewError):
    """A session state transition that the lifecycle does not allow."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid transition: {current.value} -> {requested.value}")
