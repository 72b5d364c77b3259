"""
Data models for the interview system.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


GENERIC_FEEDBACK_ERROR = "Error generating feedback."

CANDIDATE_SOURCES = frozenset({"user", "candidate"})


class Speaker(str, Enum):
    """Side of the conversation a turn came from."""
    INTERVIEWER = "Interviewer"
    CANDIDATE = "Candidate"

    @classmethod
    def from_source(cls, source: Optional[str]) -> "Speaker":
        """
        Map a transport source tag to a speaker.

        Anything that is not recognisably the candidate is attributed to the
        interviewer so every turn has exactly one of the two speakers.
        """
        if isinstance(source, Speaker):
            return source
        if source and str(source).strip().lower() in CANDIDATE_SOURCES:
            return cls.CANDIDATE
        return cls.INTERVIEWER


class SessionState(str, Enum):
    """Lifecycle of one interview session."""
    IDLE = "idle"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class FeedbackStatus(str, Enum):
    """Progress of the post-session performance review."""
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class Turn:
    """Represents a single utterance in the interview."""
    speaker: Speaker
    text: str

    def format_line(self) -> str:
        return f"{self.speaker.value}: {self.text}"


@dataclass(frozen=True)
class FeedbackResult:
    """Outcome of the feedback pipeline for one completed session."""
    status: FeedbackStatus
    text: Optional[str] = None

    @classmethod
    def pending(cls) -> "FeedbackResult":
        return cls(FeedbackStatus.PENDING)

    @classmethod
    def ready(cls, text: str) -> "FeedbackResult":
        return cls(FeedbackStatus.READY, text)

    @classmethod
    def failed(cls, message: str = GENERIC_FEEDBACK_ERROR) -> "FeedbackResult":
        return cls(FeedbackStatus.FAILED, message)

    @property
    def is_terminal(self) -> bool:
        return self.status is not FeedbackStatus.PENDING
