"""
Interview session controller.

Composes the session state machine, the transcript store and the feedback
pipeline. Transport events are queued and consumed by a single task, so every
state change happens in arrival order on the event loop.
"""
import asyncio
import logging
import time
import uuid
from typing import Callable, Optional, Tuple

from .errors import (
    ConfigurationError, InterviewError, SessionConnectionError, TransportError
)
from .events import (
    InterviewEventBus, EventLogger, SessionMetrics,
    SessionConnectedEvent, TurnAppendedEvent, SessionDisconnectedEvent,
    FeedbackRequestedEvent, FeedbackReadyEvent, FeedbackFailedEvent,
    ConnectionFailedEvent, ErrorOccurredEvent
)
from .feedback import FeedbackPipeline
from .models import FeedbackResult, FeedbackStatus, SessionState, Turn
from .state import SessionStateMachine
from .transcript import TranscriptStore
from .transport import TransportEvent, TransportEventKind, VoiceTransport

logger = logging.getLogger("controller")


class InterviewSession:
    """State, transcript and feedback belonging to one interview."""

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.state_machine = SessionStateMachine(session_id=self.session_id)
        self.transcript = TranscriptStore()
        self.feedback: Optional[FeedbackResult] = None
        self.feedback_task: Optional[asyncio.Task] = None
        self.ended = asyncio.Event()
        self._feedback_claimed = False

    def claim_feedback(self) -> bool:
        """One-shot latch: True for the first caller only."""
        if self._feedback_claimed:
            return False
        self._feedback_claimed = True
        return True

    @property
    def state(self) -> SessionState:
        return self.state_machine.state


class SessionController:
    """
    Drives one live interview at a time.

    The transport, the feedback pipeline and the microphone probe are
    injected so tests can substitute doubles for each of them.
    """

    def __init__(self,
                 config,
                 transport: VoiceTransport,
                 feedback_pipeline: FeedbackPipeline,
                 microphone: Optional[Callable[[], None]] = None,
                 event_bus: Optional[InterviewEventBus] = None):
        self.config = config
        self.transport = transport
        self.feedback_pipeline = feedback_pipeline
        self.microphone = microphone

        # Initialize event system
        self.event_bus = event_bus or InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        self.last_error: Optional[InterviewError] = None
        self._session = InterviewSession()
        # Set from start() until the transport reports connect or failure
        self._connecting = False
        self._stopping = False

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._pump_task: Optional[asyncio.Task] = None

        self.transport.bind(self._enqueue)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def session(self) -> InterviewSession:
        return self._session

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def transcript(self) -> Tuple[Turn, ...]:
        return self._session.transcript.snapshot()

    @property
    def feedback(self) -> Optional[FeedbackResult]:
        return self._session.feedback

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Begin a new interview.

        Returns:
            True if the transport open was requested successfully. The session
            becomes CONNECTED only when the transport reports the connection.
        """
        self._ensure_pump()

        if self._connecting or self._session.state_machine.is_connected:
            logger.info("start() ignored: session %s is %s", self.session_id,
                        "connecting" if self._connecting else self.state.value)
            return False

        if self._session.state_machine.is_disconnected:
            self._session = InterviewSession()
            logger.info("Created new session %s", self.session_id)

        self.last_error = None

        try:
            self.config.validate()
        except ConfigurationError as e:
            self._record_connection_failure(e)
            return False

        self._connecting = True
        try:
            if self.microphone is not None:
                await asyncio.to_thread(self.microphone)
            await self.transport.open_session(self.config.agent_id)
        except SessionConnectionError as e:
            self._connecting = False
            self._record_connection_failure(e)
            return False
        except Exception as e:
            self._connecting = False
            self._record_connection_failure(SessionConnectionError(f"Connection failed: {e}"))
            return False
        except BaseException:
            self._connecting = False
            raise

        logger.info("Session %s: open requested for agent %s", self.session_id, self.config.agent_id)
        return True

    async def stop(self) -> bool:
        """
        Ask the transport to end the interview.

        The session becomes DISCONNECTED when the transport's disconnect
        event is processed, not when this call returns.
        """
        if self._stopping or not self._session.state_machine.is_connected:
            logger.info("stop() ignored: session %s is %s", self.session_id, self.state.value)
            return False

        self._stopping = True
        try:
            await self.transport.close_session()
        except Exception as e:
            logger.error("Transport close failed: %s", e)
            self._enqueue(TransportEvent.failure(e))
            return False
        finally:
            self._stopping = False
        return True

    async def drain(self) -> None:
        """Wait until every queued transport event has been handled."""
        if self._queue is not None:
            await self._queue.join()

    async def wait_until_disconnected(self) -> None:
        await self._session.ended.wait()

    async def wait_for_feedback(self) -> Optional[FeedbackResult]:
        """Wait for the current session's feedback, if any is being generated."""
        await self.drain()
        task = self._session.feedback_task
        if task is not None:
            await task
        return self._session.feedback

    async def aclose(self) -> None:
        """Stop consuming transport events."""
        if self._pump_task is not None:
            self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass
            self._pump_task = None

    # ------------------------------------------------------------------
    # Transport event handlers
    # ------------------------------------------------------------------

    def on_open(self) -> None:
        session = self._session
        if not session.state_machine.can_transition(SessionState.CONNECTED):
            logger.warning("Ignoring connect for session %s in state %s",
                           session.session_id, session.state.value)
            return

        self._connecting = False
        session.transcript.reset()
        session.feedback = None
        session.state_machine.transition_to(SessionState.CONNECTED)
        self.event_bus.emit(SessionConnectedEvent(
            session.session_id, time.time(), self.config.agent_id
        ))

    def on_turn(self, source: Optional[str], text: Optional[str]) -> Optional[Turn]:
        session = self._session
        if not session.state_machine.is_connected:
            logger.warning("Ignoring message for session %s in state %s",
                           session.session_id, session.state.value)
            return None

        turn = session.transcript.append_message(source, text)
        if turn is not None:
            self.event_bus.emit(TurnAppendedEvent(
                session.session_id, time.time(), len(session.transcript),
                turn.speaker.value, turn.text
            ))
        return turn

    def on_close(self, reason: str = "transport closed") -> None:
        session = self._session
        if not session.state_machine.is_connected:
            if self._connecting and session.state_machine.is_idle:
                self._connecting = False
                self._record_connection_failure(
                    SessionConnectionError("Connection closed before the session went live")
                )
                return
            logger.debug("Ignoring disconnect for session %s in state %s",
                         session.session_id, session.state.value)
            return

        session.state_machine.transition_to(SessionState.DISCONNECTED, reason)
        session.transcript.close()
        session.ended.set()
        self.event_bus.emit(SessionDisconnectedEvent(
            session.session_id, time.time(), reason, len(session.transcript)
        ))
        self._start_feedback(session)

    def on_transport_error(self, error: Optional[BaseException]) -> None:
        session = self._session
        message = str(error) if error is not None else "unknown transport error"

        if session.state_machine.is_connected:
            logger.error("Transport error during session %s: %s", session.session_id, message)
            self.last_error = TransportError(message)
            self.event_bus.emit(ErrorOccurredEvent(
                session.session_id, time.time(), type(error).__name__, message, "transport"
            ))
            self.on_close(reason=f"transport error: {message}")
        elif session.state_machine.is_idle and self._connecting:
            self._connecting = False
            self._record_connection_failure(SessionConnectionError(f"Connection failed: {message}"))
        else:
            logger.info("Ignoring transport error for session %s in state %s: %s",
                        session.session_id, session.state.value, message)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start_feedback(self, session: InterviewSession) -> None:
        if not session.claim_feedback():
            logger.warning("Feedback already claimed for session %s", session.session_id)
            return

        snapshot = session.transcript.snapshot()
        if not snapshot:
            logger.info("Session %s ended with an empty transcript; skipping feedback",
                        session.session_id)
            return

        session.feedback = FeedbackResult.pending()
        self.event_bus.emit(FeedbackRequestedEvent(session.session_id, time.time(), len(snapshot)))
        session.feedback_task = asyncio.get_running_loop().create_task(
            self._run_feedback(session, snapshot)
        )

    async def _run_feedback(self, session: InterviewSession, snapshot: Tuple[Turn, ...]) -> FeedbackResult:
        try:
            result = await self.feedback_pipeline.generate_feedback(snapshot)
        except Exception as e:
            logger.error("Feedback pipeline raised for session %s: %s", session.session_id, e)
            result = FeedbackResult.failed()

        session.feedback = result
        if result.status is FeedbackStatus.READY:
            self.event_bus.emit(FeedbackReadyEvent(session.session_id, time.time(), result.text))
        else:
            self.event_bus.emit(FeedbackFailedEvent(session.session_id, time.time(), result.text))
        return result

    def _record_connection_failure(self, error: InterviewError) -> None:
        logger.error("Could not start session %s: %s", self.session_id, error)
        self.last_error = error
        self.event_bus.emit(ConnectionFailedEvent(
            self.session_id, time.time(), type(error).__name__, str(error)
        ))

    def _ensure_pump(self) -> None:
        if self._pump_task is not None and not self._pump_task.done():
            return
        self._loop = asyncio.get_running_loop()
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._pump_task = self._loop.create_task(self._pump())

    def _enqueue(self, event: TransportEvent) -> None:
        """Event sink handed to the transport. Safe to call from any thread."""
        if self._loop is None or self._queue is None:
            logger.warning("Dropping %s event: controller not started", event.kind.value)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._queue.put_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    async def _pump(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self._dispatch(event)
            except Exception as e:
                logger.error("Failed to handle %s event: %s", event.kind.value, e)
                self.event_bus.emit(ErrorOccurredEvent(
                    self.session_id, time.time(), type(e).__name__, str(e), "controller"
                ))
            finally:
                self._queue.task_done()

    def _dispatch(self, event: TransportEvent) -> None:
        if event.kind is TransportEventKind.CONNECT:
            self.on_open()
        elif event.kind is TransportEventKind.MESSAGE:
            self.on_turn(event.source, event.text)
        elif event.kind is TransportEventKind.DISCONNECT:
            self.on_close()
        elif event.kind is TransportEventKind.ERROR:
            self.on_transport_error(event.error)
