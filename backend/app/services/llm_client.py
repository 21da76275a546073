"""
ResiliNet Triage - Generative Model Clients

Text-completion clients for the hosted language model that classifies
incident descriptions.

Architecture:
    - GenerativeModelClient protocol: prompt string in, completion text out
    - GeminiClient: Google Gemini `generateContent` over REST (httpx)
    - DummyGenerativeClient: keyword heuristic for development/testing

The classifier gateway receives one of these by injection; nothing in the
backend holds a process-wide client.
"""

from __future__ import annotations

import json
import logging
import re
from abc import abstractmethod
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from app.config import Settings
from app.core.exceptions import (
    ConfigurationError,
    ModelNotConfiguredError,
    ModelReplyParseError,
    ModelRequestError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol (Interface)
# =============================================================================

@runtime_checkable
class GenerativeModelClient(Protocol):
    """
    Protocol for generative text models.

    Implementations raise a ClassifierError subclass when no usable
    completion can be produced.
    """

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return the model's text completion for `prompt`."""
        ...

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Return model identifier for logs and health checks."""
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources."""
        ...


# =============================================================================
# Gemini Implementation
# =============================================================================

class GeminiClient:
    """
    Google Gemini client using the REST `generateContent` endpoint.

    POST {base_url}/models/{model}:generateContent
        headers: x-goog-api-key
        body:    {"contents": [{"parts": [{"text": prompt}]}]}

    The reply text is the concatenation of the first candidate's text parts.
    The HTTP client is created lazily and closed by aclose().
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def model_id(self) -> str:
        return f"gemini:{self._model}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def generate(self, prompt: str) -> str:
        if not self._api_key:
            raise ModelNotConfiguredError("GEMINI_API_KEY is not set")

        url = f"{self._base_url}/models/{self._model}:generateContent"
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }

        try:
            response = await self._get_client().post(
                url,
                json=payload,
                headers={"x-goog-api-key": self._api_key},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ModelRequestError(
                f"Gemini returned HTTP {e.response.status_code}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise ModelRequestError(f"Gemini request failed: {type(e).__name__}") from e
        except json.JSONDecodeError as e:
            raise ModelReplyParseError("Gemini response body is not JSON") from e

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise ModelReplyParseError("Gemini response has no candidate text") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text:
            raise ModelReplyParseError("Gemini candidate text is empty")
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# =============================================================================
# Dummy Implementation (Development/Testing)
# =============================================================================

class DummyGenerativeClient:
    """
    Keyword-based stand-in for the hosted model.

    Replies with fenced JSON shaped like a real completion so the gateway's
    parsing path is exercised. Categories and urgencies use the capitalized
    vocabulary the override rules compare against, so normalization is
    visible offline.

    WARNING: No triage validity. It exists to run the service without an
    API key.
    """

    # (keywords, category, urgency, resources), first match wins
    RULES = (
        (("gas leak", "fire", "smoke", "burning"), "Fire", "Critical", ["Fire Dept"]),
        (("trapped", "collapsed", "stranded", "flood"), "Rescue", "Critical", ["Rescue Team"]),
        (("bleeding", "insulin", "injured", "ambulance", "broken"), "Medical", "High", ["Ambulance"]),
        (("water", "food", "milk", "hungry"), "Food/Water", "High", ["Water", "Food Supplies"]),
        (("road", "bridge", "power", "tree fell"), "Infrastructure", "Medium", ["Utility Crew"]),
    )

    def __init__(self, reply: Optional[str] = None):
        """
        Args:
            reply: Fixed completion to return instead of the heuristic
        """
        self._reply = reply
        self.prompts: list[str] = []

    @property
    def model_id(self) -> str:
        return "dummy-classifier-v0.1.0"

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self._reply is not None:
            return self._reply

        text = _extract_input(prompt).lower()
        for keywords, category, urgency, resources in self.RULES:
            if any(k in text for k in keywords):
                break
        else:
            category, urgency, resources = "Other", "Low", []

        words = re.findall(r"[A-Za-z']+", _extract_input(prompt))
        body = {
            "urgency": urgency,
            "category": category,
            "summary": " ".join(words[:4]) or "Incident reported",
            "resources": resources,
        }
        return "```json\n" + json.dumps(body) + "\n```"

    async def aclose(self) -> None:
        pass


def _extract_input(prompt: str) -> str:
    match = re.search(r'INPUT:\s*"(.*)"\s*OUTPUT:', prompt, re.DOTALL)
    return match.group(1) if match else prompt


# =============================================================================
# Factory Function
# =============================================================================

def create_llm_client(settings: Settings) -> GenerativeModelClient:
    """
    Create the generative model client selected by `classifier_backend`.

    Raises:
        ConfigurationError: Unknown backend name
    """
    backend = settings.classifier_backend.lower()

    if backend == "gemini":
        if not settings.gemini_api_key:
            logger.warning(
                "GEMINI_API_KEY is not set; every analysis will use the fallback record"
            )
        logger.info("Using GeminiClient (model=%s)", settings.gemini_model)
        return GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout_seconds=settings.classifier_timeout_seconds,
        )

    if backend == "dummy":
        logger.info("Using DummyGenerativeClient (keyword heuristic)")
        return DummyGenerativeClient()

    raise ConfigurationError(
        f"Unsupported classifier backend: {backend!r}. Supported: 'gemini', 'dummy'.",
        details={"classifier_backend": backend},
    )
