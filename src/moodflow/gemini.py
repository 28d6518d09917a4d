"""Generative-text boundary: prompt building and the Gemini call."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from google import genai
from google.genai import errors

from .config import GEMINI_API_KEY, GEMINI_MODEL, GEMINI_TIMEOUT_SECONDS
from .models import mood_emoji, mood_label

logger = logging.getLogger("moodflow.gemini")


class GenerationError(RuntimeError):
    """The text generator gave no usable answer."""


PROMPT_TEMPLATE = """\
User mood rating: {mood}
User note: "{note}"

Respond to the user with a single paragraph, following these steps:

1. A warm, supportive emotional reflection based on their mood and note.
2. Identify the likely emotion behind their experience (e.g., 'It sounds like you're feeling a bit of relief').
3. Give 1–2 small, actionable, practical tips they can try right now.

Tone must be friendly, kind, non-judgmental, and **do not mention AI or that you are a model.**
"""


def describe_mood(mood_value: int) -> str:
    label = mood_label(mood_value)
    if label == str(mood_value):
        return label
    return f"{label} ({mood_emoji(mood_value)})"


def build_prompt(mood_value: int, note: str) -> str:
    return PROMPT_TEMPLATE.format(mood=describe_mood(mood_value), note=note.strip() or "(no note)")


class GeminiClient:
    """Thin async wrapper over the google-genai SDK, bounded by ``timeout`` seconds."""

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        timeout: float = GEMINI_TIMEOUT_SECONDS,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    def _ensure_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise GenerationError("GEMINI_API_KEY is not set")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        client = self._ensure_client()
        try:
            result = await asyncio.wait_for(
                client.aio.models.generate_content(model=self.model, contents=prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(f"generate_content timed out after {self.timeout}s") from e
        except errors.APIError as e:
            logger.error("Gemini generate_content failed: code=%s message=%s", e.code, e.message)
            raise GenerationError(f"generate_content failed with code {e.code}") from e
        return (result.text or "").strip()
