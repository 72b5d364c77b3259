"""Infrastructure components for the SkillNova interview system.

This module contains the adapters that talk to the outside world: the
ElevenLabs voice transport, the Gemini feedback backends and the local
microphone probe.
"""

# LLM infrastructure
from .llm import GeminiRestClient, VertexRestClient, create_generation_client

# Voice infrastructure
from .voice import ElevenLabsTransport

__all__ = [
    # LLM clients
    "GeminiRestClient", "VertexRestClient", "create_generation_client",

    # Voice transport
    "ElevenLabsTransport"
]
