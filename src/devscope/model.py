"""Gemini model client - schema-constrained JSON generation.

Sends one prompt plus an output schema, receives and parses the JSON
object the model produced. One attempt per call; no retries.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from .config import AI_API_URL, DEFAULT_MODEL
from .errors import AIUnavailable, RateLimited
from .logging import get_logger

logger = get_logger("model")


class GeminiClient:
    """Client for the Gemini ``generateContent`` REST endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = AI_API_URL,
    ):
        if not api_key:
            raise AIUnavailable(
                "No AI API key configured. Set GEMINI_API_KEY or pass --api-key."
            )
        self._client = client
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")

    async def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        system: str = "",
        temperature: float = 0.2,
    ) -> dict[str, Any]:
        """Generate and parse a JSON object conforming to ``schema``."""
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        try:
            resp = await self._client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                json=payload,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.TransportError as e:
            raise AIUnavailable(detail=f"Cannot reach model endpoint: {e}") from e

        if resp.status_code == 429:
            raise RateLimited(
                "AI provider quota exhausted. Try again later.",
                detail=resp.text[:200],
            )
        if resp.status_code != 200:
            logger.error("Model returned %s: %s", resp.status_code, resp.text[:200])
            raise AIUnavailable(detail=f"Model returned {resp.status_code}: {resp.text[:200]}")

        text = _response_text(resp)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise AIUnavailable(detail=f"Model returned invalid JSON: {text[:200]}") from e
        if not isinstance(data, dict):
            raise AIUnavailable(detail=f"Model returned {type(data).__name__}, expected object")
        return data


def _response_text(resp: httpx.Response) -> str:
    """Concatenate the text parts of the first candidate."""
    try:
        data = resp.json()
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
        raise AIUnavailable(detail=f"Unexpected model response: {e}") from e
