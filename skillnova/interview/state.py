"""
Session lifecycle state machine.

One instance governs one interview session:

    IDLE -> CONNECTED -> DISCONNECTED

DISCONNECTED is terminal. A new interview gets a new instance.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

from .errors import InvalidTransitionError
from .models import SessionState

logger = logging.getLogger("session_state")


VALID_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.CONNECTED}),
    SessionState.CONNECTED: frozenset({SessionState.DISCONNECTED}),
    SessionState.DISCONNECTED: frozenset(),
}


@dataclass
class SessionStateMachine:
    """Tracks the lifecycle of a single session and rejects illegal moves."""
    session_id: str = "unknown"
    state: SessionState = SessionState.IDLE
    connected_at: Optional[float] = None
    disconnected_at: Optional[float] = None
    disconnect_reason: Optional[str] = None
    history: list = field(default_factory=list)

    def can_transition(self, new_state: SessionState) -> bool:
        return new_state in VALID_TRANSITIONS[self.state]

    def transition_to(self, new_state: SessionState, reason: Optional[str] = None) -> SessionState:
        """
        Move to ``new_state``.

        Args:
            new_state: Target state
            reason: Free-form note recorded with the transition

        Returns:
            The previous state

        Raises:
            InvalidTransitionError: If the lifecycle does not allow the move
        """
        if not self.can_transition(new_state):
            raise InvalidTransitionError(self.state, new_state)

        old_state = self.state
        self.state = new_state
        now = time.time()
        if new_state is SessionState.CONNECTED:
            self.connected_at = now
        elif new_state is SessionState.DISCONNECTED:
            self.disconnected_at = now
            self.disconnect_reason = reason
        self.history.append((old_state, new_state, now))

        logger.info(
            f"[FSM] Session {self.session_id}: {old_state.value} -> {new_state.value}"
            + (f" ({reason})" if reason else "")
        )
        return old_state

    @property
    def is_idle(self) -> bool:
        return self.state is SessionState.IDLE

    @property
    def is_connected(self) -> bool:
        return self.state is SessionState.CONNECTED

    @property
    def is_disconnected(self) -> bool:
        return self.state is SessionState.DISCONNECTED

    @property
    def duration_seconds(self) -> Optional[float]:
        """Connected time, once the session has ended."""
        if self.connected_at is None or self.disconnected_at is None:
            return None
        return self.disconnected_at - self.connected_at
