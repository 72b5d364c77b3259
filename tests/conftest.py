"""Shared fixtures for the interview session tests."""

from __future__ import annotations

import pytest

from skillnova.config import Config
from skillnova.interview import FeedbackPipeline, SessionController
from skillnova.interview.testing import MockLLMClient, MockTransport


@pytest.fixture
def config() -> Config:
    return Config(agent_id="agent_test_123", gemini_api_key="test-gemini-key")


@pytest.fixture
def transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def llm() -> MockLLMClient:
    return MockLLMClient()


@pytest.fixture
def controller(config, transport, llm) -> SessionController:
    return SessionController(config, transport, FeedbackPipeline(llm))
