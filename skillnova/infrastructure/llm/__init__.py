"""LLM clients used to generate interview feedback."""

from .client import GeminiRestClient, VertexRestClient, create_generation_client

__all__ = ["GeminiRestClient", "VertexRestClient", "create_generation_client"]
