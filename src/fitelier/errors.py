"""Errores del dominio (agregación, calendario y asistente)."""

from __future__ import annotations

CHAT_ERROR_KINDS: tuple[str, ...] = (
    "not_configured",
    "quota_exceeded",
    "network_error",
    "unknown",
)

_CHAT_MESSAGES: dict[str, str] = {
    "not_configured": (
        "The AI service is not configured. Add GOOGLE_GENERATIVE_AI_API_KEY "
        "to your environment or .env file."
    ),
    "quota_exceeded": "API quota exceeded. Please try again later.",
    "network_error": "Network error. Please check your connection.",
    "unknown": "Sorry, I encountered an error. Please try again.",
}


class EmptySeriesError(ValueError):
    """A summary value was requested for a series without observations."""


class DivisionByZeroError(ZeroDivisionError):
    """Percent change requested against a zero baseline."""


class InvalidMonthError(ValueError):
    """A reference month could not be resolved to a year/month pair."""


class ChatError(RuntimeError):
    """Typed failure of the chat proxy.

    Attributes:
        kind: One of ``CHAT_ERROR_KINDS``.
        message: Human-readable text for the end user.
        detail: Provider error text, for logs.
    """

    def __init__(self, kind: str, detail: str = "") -> None:
        if kind not in CHAT_ERROR_KINDS:
            raise ValueError(f"Unknown chat error kind: {kind}")
        self.kind = kind
        self.message = _CHAT_MESSAGES[kind]
        self.detail = detail
        super().__init__(f"{kind}: {detail or self.message}")
