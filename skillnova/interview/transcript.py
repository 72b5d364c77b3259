"""
Append-only transcript of the live interview.
"""
import logging
from typing import List, Optional, Tuple

from .models import Speaker, Turn

logger = logging.getLogger("transcript")


class TranscriptStore:
    """Ordered log of turns for exactly one session."""

    def __init__(self):
        self._turns: List[Turn] = []
        self._open = False

    def reset(self) -> None:
        """Clear all turns and start accepting appends."""
        self._turns = []
        self._open = True

    def close(self) -> None:
        """Stop accepting appends; existing turns stay readable."""
        self._open = False

    def append(self, turn: Turn) -> bool:
        """
        Add a turn to the end of the transcript.

        Returns:
            True if the turn was recorded, False if the store is not open
        """
        if not self._open:
            logger.warning("Dropping turn outside a live session: %r", turn)
            return False
        self._turns.append(turn)
        return True

    def append_message(self, source: Optional[str], text: Optional[str]) -> Optional[Turn]:
        """Attribute a raw transport message and append its text as received. Empty messages are skipped."""
        if not text:
            logger.debug("Skipping empty message from %s", source)
            return None
        turn = Turn(speaker=Speaker.from_source(source), text=text)
        return turn if self.append(turn) else None

    def snapshot(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def is_open(self) -> bool:
        return self._open

    def __len__(self) -> int:
        return len(self._turns)

    def __bool__(self) -> bool:
        return bool(self._turns)
