#!/usr/bin/env python3
"""
Main entry point for the SkillNova interview system.
Allows running the package with: python -m skillnova
"""
import asyncio
import sys
from typing import Optional

from .config import get_config, Config, SUPPORTED_BACKENDS
from .interview import (
    SessionController, FeedbackPipeline, SessionState,
    ConfigurationError, SessionConnectionError
)
from .interview.report import display_transcript, display_feedback
from .infrastructure.llm import create_generation_client
from .infrastructure.voice import ElevenLabsTransport
from .infrastructure.audio.microphone import acquire_microphone
from .utils import setup_logging


class LineReader:
    """Reads stdin lines in a worker thread without ever losing a line."""

    def __init__(self):
        self._pending: Optional[asyncio.Future] = None

    def next_line(self) -> asyncio.Future:
        if self._pending is None:
            self._pending = asyncio.ensure_future(asyncio.to_thread(sys.stdin.readline))
        return self._pending

    async def read(self) -> str:
        line = await self.next_line()
        self._pending = None
        return line.strip()

    def consume(self) -> str:
        line = self._pending.result()
        self._pending = None
        return line.strip()


def apply_cli_overrides(config: Config, argv) -> Config:
    """Apply ``--model=``, ``--timeout=``, ``--backend=`` and ``--no-mic`` flags."""
    for arg in argv:
        if arg.startswith("--model="):
            config.model_name = arg.split("=", 1)[1]
        elif arg.startswith("--timeout="):
            try:
                config.feedback_timeout = float(arg.split("=", 1)[1])
            except ValueError:
                raise ConfigurationError("Invalid timeout value. Use --timeout=<seconds>")
        elif arg.startswith("--backend="):
            config.generation_backend = arg.split("=", 1)[1].strip().lower()
        elif arg in ("--no-mic", "--skip-mic-check"):
            config.require_microphone = False
    return config


def build_controller(config: Config) -> SessionController:
    """Wire real capabilities into a controller."""
    pipeline = FeedbackPipeline(
        create_generation_client(config),
        timeout=config.feedback_timeout,
        review_context=config.review_context,
    )
    return SessionController(
        config,
        transport=ElevenLabsTransport(api_key=config.elevenlabs_api_key),
        feedback_pipeline=pipeline,
        microphone=acquire_microphone if config.require_microphone else None,
    )


async def run_interview(controller: SessionController, reader: LineReader, model_name: str) -> bool:
    """
    Run one interview from start to report.

    Returns:
        False if the session could not be started
    """
    print("\n🎙️  Connecting to your interviewer...")
    started = await controller.start()
    await controller.drain()

    if not started or controller.state is not SessionState.CONNECTED:
        error = controller.last_error
        if isinstance(error, ConfigurationError):
            print(f"❌ Configuration Error: {error}")
        elif isinstance(error, SessionConnectionError) or error is None:
            print("❌ Connection failed.")
        else:
            print(f"❌ {error}")
        return False

    print("🔴 Live - the interview has started. Press Enter to end it.")

    stop_requested = reader.next_line()
    ended = asyncio.ensure_future(controller.wait_until_disconnected())
    await asyncio.wait({stop_requested, ended}, return_when=asyncio.FIRST_COMPLETED)

    if stop_requested.done():
        reader.consume()
        print("⏹️  Ending interview...")
        await controller.stop()
    await ended

    display_transcript(controller.transcript)

    if controller.feedback is not None:
        print("\n⏳ Generating performance review...")
    feedback = await controller.wait_for_feedback()
    display_feedback(feedback, model_name)
    return True


async def interview_loop(config: Config) -> None:
    controller = build_controller(config)
    reader = LineReader()
    try:
        while True:
            await run_interview(controller, reader, config.model_name)
            print("\n↩️  Start new session? [y/N] ", end="", flush=True)
            answer = await reader.read()
            if answer.lower() not in ("y", "yes"):
                break
    finally:
        await controller.aclose()
        metrics = controller.metrics.get_metrics()
        print(f"📈 Session metrics: {metrics}")


def main():
    """Command-line interface for the interview controller."""

    # Load configuration from .env / environment
    try:
        config = apply_cli_overrides(get_config(validate=False), sys.argv[1:])
        config.validate()
        log_file = setup_logging(config.log_file, config.log_level)
    except ConfigurationError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    print("SkillNova Voice - AI technical interviewer")
    print(f"🧠 Feedback model: {config.model_name} ({config.generation_backend})")
    print(f"   (Use --model=<name> or --backend={'|'.join(SUPPORTED_BACKENDS)})")
    if config.feedback_timeout is None:
        print("⏱️  Feedback timeout: none (use --timeout=<seconds> to set one)")
    else:
        print(f"⏱️  Feedback timeout: {config.feedback_timeout:.0f}s")
    print(f"📁 Detailed logs: {log_file}")

    try:
        asyncio.run(interview_loop(config))
    except KeyboardInterrupt:
        print("\n👋 Interrupted")


if __name__ == "__main__":
    main()
