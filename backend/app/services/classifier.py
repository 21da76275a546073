"""
ResiliNet Triage - Classifier Gateway

Turns a free-text incident description into a candidate AnalysisResult by
delegating to a generative model.

Flow:
    1. Embed the description in the fixed instruction template
    2. Ask the injected GenerativeModelClient for a completion (bounded by a timeout)
    3. Strip ``` fences, trim, parse JSON into an AnalysisResult
    4. On any collaborator failure, return AnalysisResult.fallback()

Collaborator failures never leave this module. There is a single attempt
per description; no retry, no backoff.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional

from app.core.exceptions import (
    ClassifierError,
    ModelReplyParseError,
    ModelTimeoutError,
)
from app.core.types import AnalysisResult

if TYPE_CHECKING:
    from app.services.llm_client import GenerativeModelClient

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = """
ROLE: You are ResiliNet-AI, an autonomous disaster triage engine.
OBJECTIVE: Analyze the help request and return structured JSON.

RULES:
1. OUTPUT FORMAT: strictly JSON. No Markdown.

2. URGENCY LEVELS (Lowercase):
   - "critical": Immediate threat to life (trapped, fire, heavy bleeding).
   - "high": Serious threat (broken bone, stranded, insulin needed).
   - "medium": Property/Quality of life (power out, food low).
   - "low": Info requests, spam, donations.

3. CATEGORIES (Lowercase, Exact Match):
   - "medical", "rescue", "fire", "food_water", "shelter", "infrastructure", "logistics", "other".

4. CONFIDENCE SCORE:
   - 0.0 to 1.0 (Float).
   - 1.0 = Explicit request ("I need an ambulance").
   - 0.5 = Vague request ("It is bad here").

5. MAPPING LOGIC:
   - "Gas leak" -> category: "fire", urgency: "critical"
   - "Insulin needed" -> category: "medical", urgency: "high"
   - "Tree fell on road" -> category: "infrastructure", urgency: "medium"
   - "Trapped in basement" -> category: "rescue", urgency: "critical"
   - "Baby needs milk" -> category: "food_water", urgency: "high"

JSON STRUCTURE:
{
  "urgency": "string",
  "category": "string",
  "summary": "string (max 5 words, active verbs)",
  "resources": ["string", "string"],
  "confidence": number
}
"""

CODE_FENCE_MARKERS = ("```json", "```")


def build_prompt(description: str) -> str:
    """Embed a description in the instruction template."""
    return f'\n{SYSTEM_INSTRUCTION}\n\nINPUT:\n"{description}"\n\nOUTPUT:\n'


def strip_code_fences(text: str) -> str:
    """Remove every ```json / ``` marker and surrounding whitespace."""
    for marker in CODE_FENCE_MARKERS:
        text = text.replace(marker, "")
    return text.strip()


def parse_reply(text: str) -> AnalysisResult:
    """
    Parse a model completion into a candidate AnalysisResult.

    `urgency` and `category` must be strings. `summary` defaults to "" and
    `resources` to []. A model-supplied `confidence` is ignored; the scorer
    computes its own.

    Raises:
        ModelReplyParseError: Not JSON, not an object, or wrong field types
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ModelReplyParseError(
            "Model reply is not valid JSON",
            details={"position": e.pos},
        ) from e

    if not isinstance(data, dict):
        raise ModelReplyParseError(
            f"Model reply is a JSON {type(data).__name__}, expected an object"
        )

    urgency = data.get("urgency")
    category = data.get("category")
    if not isinstance(urgency, str) or not isinstance(category, str):
        raise ModelReplyParseError(
            "Model reply is missing string urgency/category",
            details={"keys": sorted(data.keys())},
        )

    summary = data.get("summary", "")
    if summary is None:
        summary = ""
    if not isinstance(summary, str):
        raise ModelReplyParseError("Model reply summary is not a string")

    return AnalysisResult(
        urgency=urgency,
        category=category,
        summary=summary,
        resources=_parse_resources(data.get("resources")),
    )


def _parse_resources(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ModelReplyParseError("Model reply resources is not a list")
    return [str(item) for item in value]


@dataclass(frozen=True)
class ClassificationOutcome:
    """Candidate record plus whether it is the fallback."""
    result: AnalysisResult
    used_fallback: bool = False
    error_code: Optional[str] = None


class ClassifierGateway:
    """
    Relay between incident descriptions and the generative model.

    Attributes:
        client: Injected generative model client
        timeout_seconds: Upper bound on a single model call
    """

    def __init__(self, client: GenerativeModelClient, timeout_seconds: float = 10.0):
        self._client = client
        self._timeout = timeout_seconds

    @property
    def model_id(self) -> str:
        return self._client.model_id

    async def classify(self, description: str) -> AnalysisResult:
        """Classify `description`; returns the fallback record on failure."""
        outcome = await self.classify_with_outcome(description)
        return outcome.result

    async def classify_with_outcome(self, description: str) -> ClassificationOutcome:
        """Classify `description` and report whether the fallback was used."""
        prompt = build_prompt(description)
        try:
            try:
                reply = await asyncio.wait_for(
                    self._client.generate(prompt),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                raise ModelTimeoutError(
                    f"Model did not answer within {self._timeout:.1f}s"
                ) from e
            return ClassificationOutcome(result=parse_reply(reply))

        except ClassifierError as e:
            logger.warning(
                "AI service error (%s): %s; using fallback record",
                e.code,
                e.message,
            )
            return ClassificationOutcome(
                result=AnalysisResult.fallback(),
                used_fallback=True,
                error_code=e.code,
            )
        except Exception as e:
            logger.error(
                "AI service error (%s); using fallback record",
                type(e).__name__,
                exc_info=True,
            )
            return ClassificationOutcome(
                result=AnalysisResult.fallback(),
                used_fallback=True,
                error_code=ClassifierError.code,
            )

    async def aclose(self) -> None:
        await self._client.aclose()
