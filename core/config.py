"""Environment-driven settings shared by the API and the Streamlit app."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple


APP_NAME = "PredX"
PREDICTION_PERIODS: Tuple[int, ...] = (30, 90, 180)
DEFAULT_PREDICTION_PERIOD = 30
DEFAULT_CHART_THEME = "night"
DEFAULT_CORS_ORIGINS: Tuple[str, ...] = ("http://localhost:3000", "http://127.0.0.1:3000")

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class AssistantSettings:
    api_key: str = ""
    model: str = DEFAULT_GEMINI_MODEL
    base_url: str = DEFAULT_GEMINI_BASE_URL
    timeout: float = 60.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class Settings:
    assistant: AssistantSettings = field(default_factory=AssistantSettings)
    seed: Optional[int] = None
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"


def _as_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Expected an integer, got {value!r}") from None


def _as_float(value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Expected a number, got {value!r}") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    assistant = AssistantSettings(
        # API_KEY is accepted as an alias.
        api_key=(env.get("GEMINI_API_KEY") or env.get("API_KEY") or "").strip(),
        model=(env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL).strip(),
        base_url=(env.get("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL).rstrip("/"),
        timeout=_as_float(env.get("AI_TIMEOUT_SECONDS"), 60.0),
    )
    origins = tuple(o.strip() for o in (env.get("PREDX_CORS_ORIGINS") or "").split(",") if o.strip())
    return Settings(
        assistant=assistant,
        seed=_as_int(env.get("PREDX_SEED")),
        cors_origins=origins or DEFAULT_CORS_ORIGINS,
        log_level=(env.get("PREDX_LOG_LEVEL") or "INFO").strip().upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
