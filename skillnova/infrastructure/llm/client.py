"""
REST clients for Gemini models (Gemini Developer API and Vertex AI).
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List

import requests
import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import (
    GEMINI_BASE_URL, VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS,
    FEEDBACK_TEMPERATURE, Config
)
from ...interview.errors import ConfigurationError, GenerationError

logger = logging.getLogger("llm_client")


class GeminiRestClientBase(ABC):
    """Shared request building and response parsing for Gemini REST endpoints."""

    def __init__(self, model: str = MODEL_NAME, timeout: int = LLM_TIMEOUT,
                 max_output_tokens: int = MAX_OUTPUT_TOKENS):
        self.model = model
        self.timeout = timeout
        self.max_output_tokens = max_output_tokens

    @abstractmethod
    def _endpoint(self) -> str:
        """Full generateContent URL for this backend."""

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        """Request headers, including authentication."""

    def generate_content(
        self,
        prompt_text: str,
        temperature: float = FEEDBACK_TEMPERATURE,
        max_output_tokens: Optional[int] = None,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """
        Generate content for a single-turn prompt.

        Raises:
            GenerationError: On network failure, HTTP error status or a response without text
        """
        body: Dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt_text}],
                }
            ],
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens or self.max_output_tokens),
            },
        }

        if top_k is not None:
            body["generationConfig"]["topK"] = int(top_k)
        if top_p is not None:
            body["generationConfig"]["topP"] = float(top_p)
        if stop_sequences:
            body["generationConfig"]["stopSequences"] = list(stop_sequences)

        url = self._endpoint()
        logger.debug("POST %s (%d prompt chars)", url, len(prompt_text))
        try:
            resp = requests.post(url, headers=self._headers(), json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise GenerationError(f"Request to {self.model} failed: {e}") from e

        if resp.status_code >= 400:
            raise GenerationError(f"Gemini REST error {resp.status_code}: {resp.text}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise GenerationError(f"Response was not JSON: {resp.text[:200]}") from e

        return self._parse_response_text(payload)

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Extract the generated text.
        Joins every text part of the first candidate.
        """
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list):
                texts = [p["text"] for p in parts
                         if isinstance(p, dict) and isinstance(p.get("text"), str)]
                if texts:
                    return "".join(texts)
            finish_reason = cands[0].get("finishReason")
            if finish_reason:
                raise GenerationError(f"No text in response (finishReason={finish_reason})")

        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        feedback = resp_json.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise GenerationError(f"Prompt blocked: {feedback['blockReason']}")

        raise GenerationError("Malformed response: no candidates with text")


class GeminiRestClient(GeminiRestClientBase):
    """Client for the Gemini Developer API, authenticated with an API key."""

    def __init__(self,
                 api_key: str,
                 model: str = MODEL_NAME,
                 timeout: int = LLM_TIMEOUT,
                 max_output_tokens: int = MAX_OUTPUT_TOKENS,
                 base_url: str = GEMINI_BASE_URL):
        super().__init__(model=model, timeout=timeout, max_output_tokens=max_output_tokens)
        if not api_key:
            raise ConfigurationError("Missing API key for the Gemini backend")
        self.api_key = api_key
        self.base_url = base_url

    def _endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }


class VertexRestClient(GeminiRestClientBase):
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT,
                 max_output_tokens: int = MAX_OUTPUT_TOKENS):
        super().__init__(model=model, timeout=timeout, max_output_tokens=max_output_tokens)
        if not project:
            raise ConfigurationError("Missing project for the Vertex backend")
        self.project = project
        self.location = location
        self.credentials_json = credentials_json
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self.model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        self._token = None

    def _refresh_token(self):
        """Refresh the OAuth token for API calls."""
        if self.credentials_json:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_json,
                scopes=["https://www.googleapis.com/auth/cloud-platform"],
            )
        else:
            creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])

        auth_req = google.auth.transport.requests.Request()
        creds.refresh(auth_req)
        self._token = creds.token

    def _ensure_token(self):
        if not self._token:
            try:
                self._refresh_token()
            except (google.auth.exceptions.GoogleAuthError, OSError) as e:
                raise GenerationError(f"Could not obtain Vertex credentials: {e}") from e

    def _endpoint(self) -> str:
        return f"{self.base_url}/{self.model_resource}:generateContent"

    def _headers(self) -> Dict[str, str]:
        self._ensure_token()
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }


def create_generation_client(config: Config) -> GeminiRestClientBase:
    """Build the generation client selected by ``config.generation_backend``."""
    if config.generation_backend == "vertex":
        return VertexRestClient(
            project=config.google_cloud_project,
            location=config.vertex_location,
            model=config.model_name,
            credentials_json=config.google_application_credentials,
            timeout=config.llm_timeout,
            max_output_tokens=config.max_output_tokens,
        )
    return GeminiRestClient(
        api_key=config.gemini_api_key,
        model=config.model_name,
        timeout=config.llm_timeout,
        max_output_tokens=config.max_output_tokens,
    )
