"""Voice conversation transports."""

from .elevenlabs import ElevenLabsTransport

__all__ = ["ElevenLabsTransport"]
