"""
Testing infrastructure with mock capabilities for the interview system.
"""
import asyncio
from typing import List, Optional, Sequence, Tuple

from .errors import GenerationError, MicrophoneUnavailableError
from .models import Speaker, Turn
from .transport import TransportEvent, VoiceTransport


class MockTransport(VoiceTransport):
    """
    Scriptable voice transport.

    By default ``open_session`` emits CONNECT and ``close_session`` emits
    DISCONNECT, like a well-behaved remote agent. Either can be turned off to
    script events by hand with ``emit``.
    """

    def __init__(self,
                 auto_connect: bool = True,
                 auto_disconnect: bool = True,
                 open_error: Optional[BaseException] = None,
                 close_error: Optional[BaseException] = None):
        super().__init__()
        self.auto_connect = auto_connect
        self.auto_disconnect = auto_disconnect
        self.open_error = open_error
        self.close_error = close_error
        self.open_calls: List[str] = []
        self.close_calls = 0

    async def open_session(self, agent_id: str) -> None:
        self.open_calls.append(agent_id)
        if self.open_error is not None:
            raise self.open_error
        if self.auto_connect:
            self.emit(TransportEvent.connect())

    async def close_session(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error
        if self.auto_disconnect:
            self.emit(TransportEvent.disconnect())

    def say(self, source: str, text: str) -> None:
        self.emit(TransportEvent.message(source, text))

    def hang_up(self) -> None:
        """Remote side ends the conversation."""
        self.emit(TransportEvent.disconnect())

    def fail(self, error: BaseException) -> None:
        self.emit(TransportEvent.failure(error))


class MockLLMClient:
    """Mock generation client that records every prompt."""

    def __init__(self, mock_responses: Optional[List[str]] = None,
                 default_response: str = "**Technical Accuracy**\nSolid.\n**Verdict:** Hire"):
        self.mock_responses = list(mock_responses or [])
        self.default_response = default_response
        self.current_response_idx = 0
        self.request_history: List[str] = []

    def generate_content(self, prompt: str, **kwargs) -> str:
        self.request_history.append(prompt)
        if self.current_response_idx < len(self.mock_responses):
            response = self.mock_responses[self.current_response_idx]
            self.current_response_idx += 1
            return response
        return self.default_response

    @property
    def call_count(self) -> int:
        return len(self.request_history)


class FailingLLMClient(MockLLMClient):
    """Generation client whose every call fails."""

    def __init__(self, error: Optional[BaseException] = None):
        super().__init__()
        self.error = error or GenerationError("Gemini REST error 429: quota exceeded")

    def generate_content(self, prompt: str, **kwargs) -> str:
        self.request_history.append(prompt)
        raise self.error


class BlockingLLMClient(MockLLMClient):
    """Async generation client that waits until ``release`` is called."""

    def __init__(self, response: str = "**Verdict:** No Hire"):
        super().__init__(default_response=response)
        self._released = asyncio.Event()

    async def generate_content(self, prompt: str, **kwargs) -> str:
        self.request_history.append(prompt)
        await self._released.wait()
        return self.default_response

    def release(self) -> None:
        self._released.set()


class MockMicrophone:
    """Callable microphone probe; optionally denies access."""

    def __init__(self, deny: bool = False):
        self.deny = deny
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1
        if self.deny:
            raise MicrophoneUnavailableError("Microphone access denied")


def create_test_transcript() -> List[Turn]:
    """Create test conversation data."""
    return [
        Turn(Speaker.INTERVIEWER, "Tell me about yourself"),
        Turn(Speaker.CANDIDATE, "I build backend systems"),
        Turn(Speaker.INTERVIEWER, "How would you design a rate limiter?"),
        Turn(Speaker.CANDIDATE, "A token bucket per client, stored in Redis with a TTL."),
    ]


def scripted_conversation() -> Sequence[Tuple[str, str]]:
    """Raw (source, text) messages as the transport reports them."""
    return [
        ("ai", "Tell me about yourself"),
        ("user", "I build backend systems"),
        ("ai", "How would you design a rate limiter?"),
        ("user", "A token bucket per client, stored in Redis with a TTL."),
    ]