"""
SkillNova Configuration System
==============================

This file contains ALL configuration for the SkillNova interview system.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)

Every user setting can be overridden by an environment variable of the same
name, or from a ``.env`` file in the working directory.
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .interview.errors import ConfigurationError


# =============================================================================
# USER SETTINGS - Edit these to customize the interview
# =============================================================================

# REQUIRED: the conversational agent that plays the interviewer
ELEVENLABS_AGENT_ID = None
ELEVENLABS_API_KEY = None  # Optional: only needed for private agents

# REQUIRED: credential for the feedback generator
# "gemini" uses GEMINI_API_KEY; "vertex" uses GOOGLE_CLOUD_PROJECT plus
# GOOGLE_APPLICATION_CREDENTIALS (or application default credentials)
GENERATION_BACKEND = "gemini"
GEMINI_API_KEY = None
GOOGLE_CLOUD_PROJECT = None
GOOGLE_APPLICATION_CREDENTIALS = None

# Feedback settings
MODEL_NAME = "gemini-2.5-flash"
# Seconds to wait for the review before giving up; None waits indefinitely
FEEDBACK_TIMEOUT_SECONDS = None
# Extra instructions appended to the review prompt (e.g. the target role)
REVIEW_CONTEXT = ""

# Audio
REQUIRE_MICROPHONE = True

# Logging
LOG_FILE = "./_sessions/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

SUPPORTED_BACKENDS = ("gemini", "vertex")

# LLM
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
VERTEX_LOCATION = "us-central1"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 2048
FEEDBACK_TEMPERATURE = 0.4

# Microphone probe
AUDIO_PROBE_RATE = 16000
AUDIO_PROBE_FRAMES = 1024


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    agent_id: Optional[str] = None
    elevenlabs_api_key: Optional[str] = None
    generation_backend: str = GENERATION_BACKEND
    gemini_api_key: Optional[str] = None
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    llm_timeout: int = LLM_TIMEOUT
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    feedback_timeout: Optional[float] = FEEDBACK_TIMEOUT_SECONDS
    review_context: str = REVIEW_CONTEXT
    require_microphone: bool = REQUIRE_MICROPHONE
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    def validate(self) -> None:
        """
        Check that the required settings are present.

        Raises:
            ConfigurationError: If the agent id or the generation credential is missing
        """
        if not self.agent_id or not self.agent_id.strip():
            raise ConfigurationError("Missing Agent ID: set ELEVENLABS_AGENT_ID")

        if self.generation_backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(
                f"Unknown GENERATION_BACKEND '{self.generation_backend}' "
                f"(expected one of: {', '.join(SUPPORTED_BACKENDS)})"
            )

        if self.generation_backend == "gemini" and not self.gemini_api_key:
            raise ConfigurationError("Missing API key: set GEMINI_API_KEY")
        if self.generation_backend == "vertex" and not self.google_cloud_project:
            raise ConfigurationError("Missing project: set GOOGLE_CLOUD_PROJECT for the vertex backend")


def _optional_float(name: str, value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got '{value}'")


def get_config(validate: bool = True) -> Config:
    """Load configuration from ``.env``, the environment and the defaults above."""
    load_dotenv()

    config = Config(
        agent_id=os.getenv("ELEVENLABS_AGENT_ID") or ELEVENLABS_AGENT_ID,
        elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY") or ELEVENLABS_API_KEY,
        generation_backend=(os.getenv("GENERATION_BACKEND") or GENERATION_BACKEND).strip().lower(),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or GEMINI_API_KEY,
        google_cloud_project=os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT,
        google_application_credentials=(
            os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
        ),
        model_name=os.getenv("MODEL_NAME") or MODEL_NAME,
        feedback_timeout=_optional_float(
            "FEEDBACK_TIMEOUT_SECONDS",
            os.getenv("FEEDBACK_TIMEOUT_SECONDS", FEEDBACK_TIMEOUT_SECONDS),
        ),
        review_context=os.getenv("REVIEW_CONTEXT") or REVIEW_CONTEXT,
        log_file=os.getenv("LOG_FILE") or LOG_FILE,
        log_level=os.getenv("LOG_LEVEL") or LOG_LEVEL,
    )

    if validate:
        config.validate()
    return config
