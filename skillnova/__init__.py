"""
SkillNova Voice: spoken technical interview practice with AI feedback.

Runs a real-time voice interview with a remote interviewing agent, keeps the
turn-by-turn transcript, and asks an LLM for a performance review once the
conversation ends.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.controller import SessionController
from .interview.models import Turn, FeedbackResult, SessionState

__all__ = ["SessionController", "Turn", "FeedbackResult", "SessionState"]
