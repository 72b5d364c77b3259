"""
ElevenLabs Conversational AI transport.

Wraps the SDK's ``Conversation`` so its callbacks (which fire on the SDK's
websocket thread) become ``TransportEvent`` items for the session controller.
"""
import asyncio
import logging
import threading
from typing import Callable, List, Optional

from elevenlabs.client import ElevenLabs
from elevenlabs.conversational_ai.conversation import Conversation

from ...interview.errors import SessionConnectionError, TransportError
from ...interview.transport import TransportEvent, VoiceTransport

logger = logging.getLogger("transport")


def _default_audio_interface():
    """Create the SDK's PyAudio-backed audio interface (imported lazily)."""
    from elevenlabs.conversational_ai.default_audio_interface import DefaultAudioInterface
    return DefaultAudioInterface()


class ElevenLabsTransport(VoiceTransport):
    """Voice transport backed by an ElevenLabs conversational agent."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 audio_interface_factory: Optional[Callable[[], object]] = None,
                 client: Optional[ElevenLabs] = None):
        super().__init__()
        self.api_key = api_key
        self._audio_interface_factory = audio_interface_factory or _default_audio_interface
        self._client = client
        self._conversation: Optional[Conversation] = None
        self._watcher: Optional[threading.Thread] = None

        # Messages can arrive before start_session() returns; hold them until CONNECT is out
        self._lock = threading.Lock()
        self._live = False
        self._held: List[TransportEvent] = []

    def _get_client(self) -> ElevenLabs:
        if self._client is None:
            self._client = ElevenLabs(api_key=self.api_key) if self.api_key else ElevenLabs()
        return self._client

    def _build_conversation(self, agent_id: str) -> Conversation:
        return Conversation(
            self._get_client(),
            agent_id,
            requires_auth=bool(self.api_key),
            audio_interface=self._audio_interface_factory(),
            callback_agent_response=lambda text: self._deliver(TransportEvent.message("ai", text)),
            callback_user_transcript=lambda text: self._deliver(TransportEvent.message("user", text)),
        )

    def _deliver(self, event: TransportEvent) -> None:
        with self._lock:
            if not self._live:
                self._held.append(event)
                return
        self.emit(event)

    async def open_session(self, agent_id: str) -> None:
        if not agent_id:
            raise SessionConnectionError("Missing Agent ID")
        if self._conversation is not None:
            raise SessionConnectionError("A conversation is already open")

        with self._lock:
            self._live = False
            self._held = []

        try:
            conversation = self._build_conversation(agent_id)
            await asyncio.to_thread(conversation.start_session)
        except Exception as e:
            raise SessionConnectionError(f"Could not start conversation with agent {agent_id}: {e}") from e

        self._conversation = conversation
        logger.info("Conversation started with agent %s", agent_id)

        with self._lock:
            self.emit(TransportEvent.connect())
            for event in self._held:
                self.emit(event)
            self._held = []
            self._live = True

        self._watcher = threading.Thread(
            target=self._watch, args=(conversation,), name="elevenlabs-session", daemon=True
        )
        self._watcher.start()

    async def close_session(self) -> None:
        conversation = self._conversation
        if conversation is None:
            logger.debug("close_session() with no open conversation")
            return
        await asyncio.to_thread(conversation.end_session)
        logger.info("Conversation end requested")

    def _watch(self, conversation: Conversation) -> None:
        """Block until the SDK session thread exits, then report the disconnect."""
        try:
            conversation_id = conversation.wait_for_session_end()
            logger.info("Conversation ended (id=%s)", conversation_id)
        except Exception as e:
            logger.error("Conversation failed: %s", e)
            self.emit(TransportEvent.failure(TransportError(str(e))))
        finally:
            with self._lock:
                self._live = False
            if self._conversation is conversation:
                self._conversation = None
            self.emit(TransportEvent.disconnect())
