"""
tests/test_controller.py — session lifecycle, transcript and feedback wiring.

Transport, microphone and generation backend are all in-process doubles.
Coroutines are driven with asyncio.run so no async test plugin is needed.
"""

from __future__ import annotations

import asyncio

import pytest

from skillnova.config import Config
from skillnova.interview import (
    ConfigurationError, FeedbackPipeline, FeedbackStatus, MicrophoneUnavailableError,
    SessionConnectionError, SessionController, SessionState, Speaker, TransportError,
    TransportEvent,
)
from skillnova.interview.models import GENERIC_FEEDBACK_ERROR
from skillnova.interview.testing import (
    BlockingLLMClient, FailingLLMClient, MockMicrophone, MockTransport,
    scripted_conversation,
)


async def _connect(controller: SessionController) -> None:
    assert await controller.start()
    await controller.drain()
    assert controller.state is SessionState.CONNECTED


# ──────────────────────────────────────────────────────────────
# Scenarios
# ──────────────────────────────────────────────────────────────

def test_two_turn_interview_produces_one_review(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.say("ai", "Tell me about yourself")
        transport.say("user", "I build backend systems")
        transport.hang_up()
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    result = asyncio.run(scenario())

    assert controller.state is SessionState.DISCONNECTED
    assert [(t.speaker, t.text) for t in controller.transcript] == [
        (Speaker.INTERVIEWER, "Tell me about yourself"),
        (Speaker.CANDIDATE, "I build backend systems"),
    ]
    assert llm.call_count == 1
    assert "Interviewer: Tell me about yourself\nCandidate: I build backend systems" in llm.request_history[0]
    assert result.status is FeedbackStatus.READY
    assert result.text == llm.default_response


def test_immediate_disconnect_skips_feedback(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.hang_up()
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    assert asyncio.run(scenario()) is None
    assert controller.state is SessionState.DISCONNECTED
    assert controller.feedback is None
    assert llm.call_count == 0


def test_missing_agent_id_blocks_start(transport, llm):
    controller = SessionController(
        Config(agent_id=None, gemini_api_key="key"), transport, FeedbackPipeline(llm)
    )

    async def scenario():
        started = await controller.start()
        await controller.drain()
        await controller.aclose()
        return started

    assert asyncio.run(scenario()) is False
    assert controller.state is SessionState.IDLE
    assert isinstance(controller.last_error, ConfigurationError)
    assert transport.open_calls == []
    assert controller.metrics.get_metrics()["connection_failures"] == 1


def test_missing_api_key_blocks_start(transport, llm):
    controller = SessionController(
        Config(agent_id="agent_1", gemini_api_key=None), transport, FeedbackPipeline(llm)
    )

    assert asyncio.run(controller.start()) is False
    assert isinstance(controller.last_error, ConfigurationError)
    assert transport.open_calls == []


# ──────────────────────────────────────────────────────────────
# Ordering and transcript ownership
# ──────────────────────────────────────────────────────────────

def test_transcript_keeps_arrival_order(controller, transport):
    messages = [("ai" if i % 2 == 0 else "user", f"message {i}") for i in range(50)]

    async def scenario():
        await _connect(controller)
        for source, text in messages:
            transport.say(source, text)
        transport.hang_up()
        await controller.wait_for_feedback()
        await controller.aclose()

    asyncio.run(scenario())

    assert [t.text for t in controller.transcript] == [text for _, text in messages]


def test_events_from_foreign_threads_are_ordered(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        for source, text in scripted_conversation():
            await asyncio.to_thread(transport.say, source, text)
        await asyncio.to_thread(transport.hang_up)
        await controller.wait_until_disconnected()
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    result = asyncio.run(scenario())

    assert [t.text for t in controller.transcript] == [text for _, text in scripted_conversation()]
    assert result.status is FeedbackStatus.READY
    assert llm.call_count == 1


def test_unknown_source_is_attributed_to_interviewer(controller, transport):
    async def scenario():
        await _connect(controller)
        transport.say("agent_tool", "Let's start with arrays")
        transport.say("USER", "Sure")
        await controller.drain()
        await controller.aclose()

    asyncio.run(scenario())

    assert [t.speaker for t in controller.transcript] == [Speaker.INTERVIEWER, Speaker.CANDIDATE]


def test_empty_messages_are_skipped(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.say("ai", "")
        transport.say("user", "")
        transport.hang_up()
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    assert asyncio.run(scenario()) is None
    assert controller.transcript == ()
    assert llm.call_count == 0


def test_messages_after_disconnect_are_ignored(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.say("ai", "First question")
        transport.hang_up()
        transport.say("user", "Late answer")
        await controller.wait_for_feedback()
        await controller.aclose()

    asyncio.run(scenario())

    assert [t.text for t in controller.transcript] == ["First question"]
    assert "Late answer" not in llm.request_history[0]


def test_messages_before_connect_are_ignored(config, llm):
    transport = MockTransport(auto_connect=False)
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await controller.start()
        transport.say("ai", "Too early")
        await controller.drain()
        assert controller.state is SessionState.IDLE
        transport.hang_up()
        await controller.drain()
        await controller.aclose()

    asyncio.run(scenario())

    assert controller.transcript == ()
    assert controller.state is SessionState.IDLE


# ──────────────────────────────────────────────────────────────
# Exactly-once feedback
# ──────────────────────────────────────────────────────────────

def test_duplicate_disconnect_generates_feedback_once(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.say("user", "Hello")
        transport.hang_up()
        transport.hang_up()
        transport.fail(TransportError("late socket error"))
        await controller.wait_for_feedback()
        await controller.aclose()

    asyncio.run(scenario())

    assert llm.call_count == 1
    assert controller.metrics.get_metrics()["feedback_requested"] == 1


def test_feedback_is_pending_until_backend_returns(config, transport):
    llm = BlockingLLMClient(response="**Verdict:** Hire")
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await _connect(controller)
        transport.say("user", "I shipped a payments service")
        transport.hang_up()
        await controller.drain()
        assert controller.feedback.status is FeedbackStatus.PENDING
        llm.release()
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    result = asyncio.run(scenario())

    assert result.status is FeedbackStatus.READY
    assert result.text == "**Verdict:** Hire"


def test_generation_failure_resolves_to_failed(config, transport):
    llm = FailingLLMClient()
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await _connect(controller)
        transport.say("user", "I like Go")
        transport.hang_up()
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    result = asyncio.run(scenario())

    assert result.status is FeedbackStatus.FAILED
    assert result.text == GENERIC_FEEDBACK_ERROR
    assert "429" not in result.text
    assert [t.text for t in controller.transcript] == ["I like Go"]
    assert controller.metrics.get_metrics()["feedback_failed"] == 1


def test_generation_timeout_resolves_to_failed(config, transport):
    llm = BlockingLLMClient()
    controller = SessionController(config, transport, FeedbackPipeline(llm, timeout=0.05))

    async def scenario():
        await _connect(controller)
        transport.say("user", "Hello")
        transport.hang_up()
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    assert asyncio.run(scenario()).status is FeedbackStatus.FAILED


# ──────────────────────────────────────────────────────────────
# start() / stop() guards
# ──────────────────────────────────────────────────────────────

def test_stop_when_not_connected_is_noop(controller, transport):
    async def scenario():
        assert await controller.stop() is False
        await _connect(controller)
        transport.hang_up()
        await controller.drain()
        assert await controller.stop() is False
        await controller.aclose()

    asyncio.run(scenario())

    assert transport.close_calls == 0


def test_start_when_connected_is_noop(controller, transport):
    async def scenario():
        await _connect(controller)
        assert await controller.start() is False
        await controller.drain()
        await controller.aclose()

    asyncio.run(scenario())

    assert transport.open_calls == ["agent_test_123"]
    assert controller.state is SessionState.CONNECTED


def test_back_to_back_start_opens_transport_once(controller, transport):
    async def scenario():
        first = await controller.start()
        second = await controller.start()
        await controller.drain()
        await controller.aclose()
        return first, second

    first, second = asyncio.run(scenario())

    assert (first, second) == (True, False)
    assert len(transport.open_calls) == 1
    assert controller.state is SessionState.CONNECTED
    assert controller.last_error is None
    assert controller.metrics.get_metrics()["connection_failures"] == 0


def test_start_is_noop_while_connect_is_pending(config, llm):
    transport = MockTransport(auto_connect=False)
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        assert await controller.start() is True
        await controller.drain()
        assert await controller.start() is False
        transport.emit(TransportEvent.connect())
        await controller.drain()
        await controller.aclose()

    asyncio.run(scenario())

    assert transport.open_calls == ["agent_test_123"]
    assert controller.state is SessionState.CONNECTED


def test_disconnect_before_connect_allows_retry(config, llm):
    transport = MockTransport(auto_connect=False)
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await controller.start()
        transport.hang_up()
        await controller.drain()
        assert isinstance(controller.last_error, SessionConnectionError)
        transport.auto_connect = True
        await _connect(controller)
        await controller.aclose()

    asyncio.run(scenario())

    assert len(transport.open_calls) == 2


def test_stop_waits_for_transport_disconnect(config, llm):
    transport = MockTransport(auto_disconnect=False)
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await _connect(controller)
        transport.say("user", "Done")
        assert await controller.stop() is True
        await controller.drain()
        assert controller.state is SessionState.CONNECTED
        transport.hang_up()
        await controller.wait_for_feedback()
        await controller.aclose()

    asyncio.run(scenario())

    assert transport.close_calls == 1
    assert controller.state is SessionState.DISCONNECTED
    assert llm.call_count == 1


def test_stop_requests_close(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.say("ai", "Any questions for me?")
        await controller.stop()
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    assert asyncio.run(scenario()).status is FeedbackStatus.READY
    assert transport.close_calls == 1
    assert controller.state is SessionState.DISCONNECTED


def test_failed_close_is_treated_as_disconnect(config, llm):
    transport = MockTransport(close_error=RuntimeError("socket already gone"))
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await _connect(controller)
        transport.say("user", "Bye")
        assert await controller.stop() is False
        await controller.wait_for_feedback()
        await controller.aclose()

    asyncio.run(scenario())

    assert controller.state is SessionState.DISCONNECTED
    assert isinstance(controller.last_error, TransportError)
    assert llm.call_count == 1


# ──────────────────────────────────────────────────────────────
# Connection failures
# ──────────────────────────────────────────────────────────────

def test_transport_open_failure_leaves_idle(config, llm):
    transport = MockTransport(open_error=RuntimeError("handshake failed"))
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        started = await controller.start()
        await controller.drain()
        await controller.aclose()
        return started

    assert asyncio.run(scenario()) is False
    assert controller.state is SessionState.IDLE
    assert isinstance(controller.last_error, SessionConnectionError)
    assert "handshake failed" in str(controller.last_error)


def test_microphone_denied_leaves_idle(config, transport, llm):
    microphone = MockMicrophone(deny=True)
    controller = SessionController(config, transport, FeedbackPipeline(llm), microphone=microphone)

    async def scenario():
        started = await controller.start()
        await controller.aclose()
        return started

    assert asyncio.run(scenario()) is False
    assert microphone.calls == 1
    assert transport.open_calls == []
    assert isinstance(controller.last_error, MicrophoneUnavailableError)
    assert controller.state is SessionState.IDLE


def test_start_can_be_retried_after_failure(config, llm):
    transport = MockTransport(open_error=RuntimeError("offline"))
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        assert await controller.start() is False
        transport.open_error = None
        await _connect(controller)
        await controller.aclose()

    asyncio.run(scenario())

    assert controller.last_error is None
    assert len(transport.open_calls) == 2


def test_transport_error_while_idle_is_connection_failure(config, llm):
    transport = MockTransport(auto_connect=False)
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await controller.start()
        transport.fail(RuntimeError("agent not found"))
        await controller.drain()
        await controller.aclose()

    asyncio.run(scenario())

    assert controller.state is SessionState.IDLE
    assert isinstance(controller.last_error, SessionConnectionError)


def test_transport_error_without_pending_connect_is_ignored(config, llm):
    transport = MockTransport(open_error=RuntimeError("offline"))
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        assert await controller.start() is False
        first_error = controller.last_error
        transport.fail(RuntimeError("stale socket error"))
        await controller.drain()
        await controller.aclose()
        return first_error

    first_error = asyncio.run(scenario())

    assert controller.state is SessionState.IDLE
    assert controller.last_error is first_error
    assert controller.metrics.get_metrics()["connection_failures"] == 1


def test_transport_error_mid_session_still_generates_feedback(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.say("ai", "Explain CAP theorem")
        transport.say("user", "Consistency, availability, partition tolerance")
        transport.fail(TransportError("websocket closed unexpectedly"))
        result = await controller.wait_for_feedback()
        await controller.aclose()
        return result

    result = asyncio.run(scenario())

    assert controller.state is SessionState.DISCONNECTED
    assert isinstance(controller.last_error, TransportError)
    assert result.status is FeedbackStatus.READY
    assert len(controller.transcript) == 2
    assert llm.call_count == 1


# ──────────────────────────────────────────────────────────────
# New sessions
# ──────────────────────────────────────────────────────────────

def test_new_session_resets_transcript_and_feedback(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.say("user", "First interview answer")
        transport.hang_up()
        first = await controller.wait_for_feedback()
        first_id = controller.session_id

        await _connect(controller)
        assert controller.session_id != first_id
        assert controller.transcript == ()
        assert controller.feedback is None

        transport.say("user", "Second interview answer")
        transport.hang_up()
        second = await controller.wait_for_feedback()
        await controller.aclose()
        return first, second

    first, second = asyncio.run(scenario())

    assert first.status is FeedbackStatus.READY
    assert second.status is FeedbackStatus.READY
    assert [t.text for t in controller.transcript] == ["Second interview answer"]
    assert llm.call_count == 2
    assert "First interview answer" not in llm.request_history[1]


def test_new_session_after_failed_feedback_starts_clean(config, transport):
    llm = FailingLLMClient()
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await _connect(controller)
        transport.say("user", "Answer")
        transport.hang_up()
        await controller.wait_for_feedback()
        assert controller.feedback.status is FeedbackStatus.FAILED
        await _connect(controller)
        await controller.aclose()

    asyncio.run(scenario())

    assert controller.feedback is None
    assert controller.transcript == ()


def test_late_feedback_does_not_leak_into_new_session(config, transport):
    llm = BlockingLLMClient(response="**Verdict:** Hire")
    controller = SessionController(config, transport, FeedbackPipeline(llm))

    async def scenario():
        await _connect(controller)
        transport.say("user", "Old answer")
        transport.hang_up()
        await controller.drain()
        old_session = controller.session

        await _connect(controller)
        llm.release()
        await old_session.feedback_task
        await controller.aclose()
        return old_session

    old_session = asyncio.run(scenario())

    assert old_session.feedback.status is FeedbackStatus.READY
    assert controller.feedback is None
    assert controller.state is SessionState.CONNECTED


def test_metrics_track_session_events(controller, transport):
    async def scenario():
        await _connect(controller)
        for source, text in scripted_conversation():
            transport.say(source, text)
        transport.hang_up()
        await controller.wait_for_feedback()
        await controller.aclose()

    asyncio.run(scenario())

    metrics = controller.metrics.get_metrics()
    assert metrics["sessions_connected"] == 1
    assert metrics["sessions_disconnected"] == 1
    assert metrics["total_turns"] == 4
    assert metrics["feedback_ready"] == 1


@pytest.mark.parametrize("source,expected", [
    ("user", Speaker.CANDIDATE),
    ("ai", Speaker.INTERVIEWER),
    (None, Speaker.INTERVIEWER),
])
def test_on_turn_attribution(controller, source, expected):
    controller.session.transcript.reset()
    controller.session.state_machine.transition_to(SessionState.CONNECTED)

    turn = controller.on_turn(source, "text")

    assert turn.speaker is expected


def test_whitespace_message_is_kept_verbatim(controller, transport, llm):
    async def scenario():
        await _connect(controller)
        transport.say("ai", "  Take your time.  ")
        transport.say("user", " ")
        transport.hang_up()
        await controller.wait_for_feedback()
        await controller.aclose()

    asyncio.run(scenario())

    assert [t.text for t in controller.transcript] == ["  Take your time.  ", " "]
    assert llm.call_count == 1
