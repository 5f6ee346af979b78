"""Asistente de fitness: un pedido sin estado al modelo de texto (Gemini)."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from fitelier.errors import ChatError

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.7
API_KEY_ENV_VARS: tuple[str, ...] = ("GOOGLE_GENERATIVE_AI_API_KEY", "GEMINI_API_KEY")

SYSTEM_PROMPT = """\
You are a helpful AI fitness assistant for Fitelier, a comprehensive fitness \
tracking application.

Your capabilities:
- Provide personalized workout recommendations based on user goals
- Create detailed workout plans with exercises, sets, and reps
- Suggest schedules for workouts
- Give fitness and nutrition advice
- Help users track their progress
- Motivate and encourage users on their fitness journey

When creating workout plans:
- Consider the user's fitness level (beginner, intermediate, advanced)
- Suggest appropriate exercises with proper form instructions
- Include warm-up and cool-down routines
- Provide realistic duration estimates (in minutes)
- Be specific with sets, reps, and rest periods

Available workout types:
- Strength Training (weight lifting, bodyweight exercises)
- Cardio (running, cycling, HIIT)
- Flexibility (stretching, yoga)

Available difficulty levels:
- Beginner (new to fitness)
- Intermediate (consistent exercise for 6+ months)
- Advanced (years of experience)

Be encouraging, motivating, and provide practical advice. Format your \
responses clearly with bullet points for lists, clear exercise names and \
specific instructions.
"""


@dataclass(frozen=True)
class ChatMessage:
    """One turn of the conversation shown in the assistant panel."""

    role: str
    content: str


@dataclass(frozen=True)
class ChatReply:
    """Assistant answer."""

    text: str


def build_prompt(history: Sequence[ChatMessage], latest_user_message: str) -> str:
    """Fold the conversation into a single prompt for the text endpoint."""
    lines = [
        f"{'User' if msg.role == 'user' else 'Assistant'}: {msg.content}"
        for msg in history
    ]
    prompt = SYSTEM_PROMPT
    if lines:
        prompt += "\nPrevious conversation:\n" + "\n".join(lines) + "\n"
    return f"{prompt}\n\nUser: {latest_user_message}"


def resolve_api_key(explicit: str | None = None) -> str | None:
    """Return the explicit key or the first one found in the environment."""
    if explicit:
        return explicit
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def classify_error(exc: Exception) -> str:
    """Map a provider exception to a chat error kind."""
    text = str(exc).lower()
    if isinstance(exc, genai_errors.APIError) and exc.code == 429:
        return "quota_exceeded"
    if "quota" in text or "resource_exhausted" in text:
        return "quota_exceeded"
    if isinstance(exc, ConnectionError | TimeoutError):
        return "network_error"
    if "network" in text or "connect" in text or "timed out" in text:
        return "network_error"
    if "api key" in text or "api_key" in text:
        return "not_configured"
    return "unknown"


class ChatProxy:
    """Stateless proxy to the hosted text-generation endpoint."""

    def __init__(
        self,
        client: Any | None = None,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        api_key: str | None = None,
    ) -> None:
        """Create the proxy.

        Args:
            client: Pre-built ``genai.Client`` (or compatible object). When
                omitted a client is created lazily from the API key.
            model: Model name.
            temperature: Sampling temperature.
            api_key: Explicit key; falls back to environment variables.
        """
        self._client = client
        self._model = model
        self._temperature = temperature
        self._api_key = api_key

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        key = resolve_api_key(self._api_key)
        if key is None:
            LOGGER.error("No API key configured (%s)", ", ".join(API_KEY_ENV_VARS))
            raise ChatError("not_configured", "missing API key")
        self._client = genai.Client(api_key=key)
        return self._client

    def reply(
        self, history: Sequence[ChatMessage], latest_user_message: str
    ) -> ChatReply:
        """Send the conversation and return the assistant text.

        Raises:
            ChatError: Typed failure (not_configured, quota_exceeded,
                network_error, unknown).
            ValueError: If the user message is blank.
        """
        if not latest_user_message.strip():
            raise ValueError("Message must not be empty")
        client = self._get_client()
        prompt = build_prompt(history, latest_user_message)
        try:
            response = client.models.generate_content(
                model=self._model,
                contents=prompt,
                config=types.GenerateContentConfig(temperature=self._temperature),
            )
        except Exception as exc:
            kind = classify_error(exc)
            LOGGER.warning("Chat request failed (%s): %s", kind, exc)
            raise ChatError(kind, str(exc)) from exc

        text = response.text
        if not text:
            raise ChatError("unknown", "empty response")
        return ChatReply(text=text)
