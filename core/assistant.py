"""
Assistant - Gemini generateContent client

Provides:
- GeminiClient: a thin synchronous wrapper over the REST endpoint
- ChatSession: multi-turn chat with a fixed system instruction
- Assistant: the operations the dashboard exposes (chat, help, analysis,
  predictions), each turning provider failures into a user-facing message
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

import httpx

from core.config import AssistantSettings
from core.models import CountryDataset, StockDataset
from core.prompts import (
    CHAT_GREETING,
    CHAT_SYSTEM_INSTRUCTION,
    correlation_prompt,
    help_prompt,
    index_prediction_prompt,
    stock_prediction_prompt,
)


logger = logging.getLogger(__name__)

CHAT_FALLBACK = "Sorry, I encountered an error. Please try again."
HELP_FALLBACK = "An error occurred while getting help. Please check your connection and try again."
ANALYSIS_FALLBACK = "An error occurred while analyzing the data. Please check the API key and try again."
PREDICTION_FALLBACK = "An error occurred while generating the stock prediction."


class AssistantError(Exception):
    """Raised when the provider cannot be reached or returns an unusable reply."""


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["user", "model"]
    text: str


@dataclass(frozen=True)
class AIResponse:
    text: str
    tokens_used: int
    model: str


def _content(role: str, text: str) -> Dict[str, Any]:
    return {"role": role, "parts": [{"text": text}]}


def _parse_response(data: Dict[str, Any]) -> Tuple[str, int]:
    """
    Parse a generateContent reply.

    Returns:
        Tuple of (text, tokens_used)
    """
    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason")
        raise AssistantError(f"No candidates in response (block reason: {reason or 'unknown'})")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts)
    if not text:
        raise AssistantError("Empty response text")
    tokens_used = int((data.get("usageMetadata") or {}).get("totalTokenCount", 0) or 0)
    return text, tokens_used


class GeminiClient:
    def __init__(self, settings: AssistantSettings, *, transport: Optional[httpx.BaseTransport] = None):
        if not settings.api_key:
            raise AssistantError("API key not set. Export GEMINI_API_KEY (or API_KEY).")
        self.settings = settings
        self._http = httpx.Client(
            base_url=settings.base_url,
            timeout=settings.timeout,
            headers={"x-goog-api-key": settings.api_key, "Content-Type": "application/json"},
            transport=transport,
        )

    def generate(
        self,
        prompt: str,
        *,
        system_instruction: Optional[str] = None,
        history: Sequence[ChatMessage] = (),
    ) -> AIResponse:
        payload: Dict[str, Any] = {
            "contents": [_content(m.role, m.text) for m in history] + [_content("user", prompt)],
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        path = f"/models/{self.settings.model}:generateContent"
        try:
            resp = self._http.post(path, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise AssistantError(f"Provider returned HTTP {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise AssistantError(f"Provider request failed: {exc}") from exc

        text, tokens_used = _parse_response(data)
        return AIResponse(text=text, tokens_used=tokens_used, model=self.settings.model)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GeminiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ChatSession:
    """Conversation history plus the system instruction it was started with."""

    def __init__(self, client: GeminiClient, system_instruction: str = CHAT_SYSTEM_INSTRUCTION):
        self.client = client
        self.system_instruction = system_instruction
        self._history: List[ChatMessage] = []
        self._lock = threading.Lock()

    @property
    def history(self) -> List[ChatMessage]:
        with self._lock:
            return list(self._history)

    def transcript(self) -> List[ChatMessage]:
        """History as shown to the user, greeting first."""
        return [ChatMessage(role="model", text=CHAT_GREETING)] + self.history

    def send(self, message: str) -> str:
        with self._lock:
            reply = self.client.generate(message, system_instruction=self.system_instruction, history=self._history)
            # Only completed turns are kept; a failed request leaves history untouched.
            self._history.extend([ChatMessage(role="user", text=message), ChatMessage(role="model", text=reply.text)])
        return reply.text

    def reset(self) -> None:
        with self._lock:
            self._history.clear()


class Assistant:
    def __init__(self, client: GeminiClient):
        self.client = client
        self.chat_session = ChatSession(client)

    @classmethod
    def from_settings(cls, settings: AssistantSettings) -> Optional["Assistant"]:
        if not settings.enabled:
            logger.warning("Assistant disabled: no API key configured")
            return None
        return cls(GeminiClient(settings))

    def _ask(self, prompt: str, fallback: str, what: str) -> str:
        try:
            return self.client.generate(prompt).text
        except AssistantError:
            logger.exception("%s failed", what)
            return fallback

    def start_chat(self) -> None:
        self.chat_session.reset()

    def chat(self, message: str) -> str:
        message = (message or "").strip()
        if not message:
            raise ValueError("message must not be empty")
        try:
            return self.chat_session.send(message)
        except AssistantError:
            logger.exception("chat failed")
            return CHAT_FALLBACK

    def get_help(self, query: str) -> str:
        query = (query or "").strip()
        if not query:
            raise ValueError("query must not be empty")
        return self._ask(help_prompt(query), HELP_FALLBACK, "help")

    def analyze_country(self, country: str, dataset: CountryDataset) -> str:
        return self._ask(correlation_prompt(country, dataset), ANALYSIS_FALLBACK, "correlation analysis")

    def predict_index(self, country: str, dataset: CountryDataset) -> str:
        return self._ask(index_prediction_prompt(country, dataset), PREDICTION_FALLBACK, "index prediction")

    def predict_stock(self, ticker: str, dataset: StockDataset, period_days: int) -> str:
        return self._ask(stock_prediction_prompt(ticker, dataset, period_days), PREDICTION_FALLBACK, "stock prediction")

    def close(self) -> None:
        self.client.close()
