"""Copywriting client for campaign descriptions and mission ideas.

Wraps the Gemini ``generateContent`` REST endpoint with JSON-mode output.

Usage:
    config = CopywriterConfig(api_key="...", model_name="gemini-2.5-flash")
    client = CopywriterClient(config=config)

    text = await client.suggest_description("Han River Plogging", "plogging, river")
    missions = await client.suggest_missions("Han River Plogging")
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


DESCRIPTION_SYSTEM_INSTRUCTION = (
    "You are a professional copywriter for environmental NGOs and government "
    "agencies. Always return exactly one finished description."
)

DESCRIPTION_PROMPT = """Campaign title: "{title}"
Keywords: {keywords}

Write a description for the campaign above.

Rules:
- 2-3 concise sentences
- Write in {language}
- Markdown is allowed
- Do not offer alternatives or options (a single description only)
- Positive tone that invites participation"""

DESCRIPTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "description": {
            "type": "STRING",
            "description": "Campaign description (2-3 sentences, markdown)",
        }
    },
    "required": ["description"],
}

MISSIONS_PROMPT = """Suggest 3 gamified missions that fit the campaign "{title}".

Each mission must include:
1. title: mission title (short and clear, in {language})
2. successCriteria: concrete condition used to verify the submitted photo or text

Examples of success criteria:
- Photo proof: "A photo showing at least 3 pieces of collected litter"
- Text proof: "Describes an environmental activity in at least 50 characters"
- Location proof: "Within 100m of the designated location"

Respond with a JSON array.
Example: [{{"title": "Plogging check-in", "successCriteria": "A photo of a trash bag together with the collected litter"}}]"""


class CopywriterError(Exception):
    """Base exception for copywriting errors."""

    pass


@dataclass
class CopywriterConfig:
    """Configuration for the copywriting client.

    Attributes:
        api_key: Gemini API key
        model_name: Model used for generation
        base_url: REST base URL including the API version
        timeout: Request timeout in seconds
        temperature: Sampling temperature for descriptions
        language: Language the generated copy is written in
    """

    api_key: str
    model_name: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: float = 30.0
    temperature: float = 0.7
    language: str = "Korean"


@dataclass
class MissionSuggestion:
    """A suggested mission for a campaign."""

    title: str
    success_criteria: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "successCriteria": self.success_criteria}


class CopywriterClient:
    """Client for generating campaign copy."""

    def __init__(self, config: CopywriterConfig):
        self.config = config

    async def _generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        response_schema: Optional[dict] = None,
    ) -> str:
        """Call generateContent and return the concatenated response text.

        Raises:
            CopywriterError: On connection, HTTP, or response errors
        """
        generation_config: dict[str, Any] = {"responseMimeType": "application/json"}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if response_schema is not None:
            generation_config["responseSchema"] = response_schema

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        url = f"{self.config.base_url.rstrip('/')}/models/{self.config.model_name}:generateContent"
        start_time = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"x-goog-api-key": self.config.api_key},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise CopywriterError(f"Timeout error: {e}") from e
        except httpx.HTTPStatusError as e:
            raise CopywriterError(f"HTTP error: {e}") from e
        except httpx.HTTPError as e:
            raise CopywriterError(f"Connection error: {e}") from e

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            "copywriter request completed",
            extra={"model": self.config.model_name, "latency_ms": elapsed_ms},
        )

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise CopywriterError(f"Malformed response: {data}") from e

        return "".join(part.get("text", "") for part in parts)

    async def suggest_description(self, title: str, keywords: str) -> str:
        """Generate a 2-3 sentence campaign description."""
        text = await self._generate(
            DESCRIPTION_PROMPT.format(
                title=title, keywords=keywords, language=self.config.language
            ),
            system_instruction=DESCRIPTION_SYSTEM_INSTRUCTION,
            temperature=self.config.temperature,
            response_schema=DESCRIPTION_SCHEMA,
        )
        try:
            result = json.loads(text or "{}")
        except json.JSONDecodeError as e:
            raise CopywriterError(f"Description is not valid JSON: {e}") from e
        if not isinstance(result, dict):
            raise CopywriterError("Description response is not an object")
        return str(result.get("description") or "")

    async def suggest_missions(self, campaign_title: str) -> list[MissionSuggestion]:
        """Suggest three missions with verification criteria."""
        text = await self._generate(
            MISSIONS_PROMPT.format(title=campaign_title, language=self.config.language)
        )
        try:
            items = json.loads(text or "[]")
        except json.JSONDecodeError as e:
            raise CopywriterError(f"Missions are not valid JSON: {e}") from e
        if not isinstance(items, list):
            raise CopywriterError("Missions response is not a list")

        suggestions = []
        for item in items:
            if not isinstance(item, dict) or not item.get("title"):
                continue
            suggestions.append(
                MissionSuggestion(
                    title=str(item["title"]),
                    success_criteria=str(item.get("successCriteria") or ""),
                )
            )
        return suggestions
