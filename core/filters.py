from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.config import DEFAULT_CHART_THEME, DEFAULT_PREDICTION_PERIOD, PREDICTION_PERIODS


@dataclass(frozen=True)
class ViewSelection:
    country: Optional[str] = None
    ticker: Optional[str] = None
    prediction_period: int = DEFAULT_PREDICTION_PERIOD
    theme: str = DEFAULT_CHART_THEME


def _pick(value: object, options: List[str], *, case_insensitive: bool = False) -> Optional[str]:
    if not options:
        return None
    if value is None:
        return options[0]
    s = str(value).strip()
    if case_insensitive:
        lookup = {o.upper(): o for o in options}
        return lookup.get(s.upper(), options[0])
    return s if s in options else options[0]


def _as_period(value: object) -> int:
    try:
        period = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_PREDICTION_PERIOD
    return period if period in PREDICTION_PERIODS else DEFAULT_PREDICTION_PERIOD


def normalize_selection(
    raw: dict,
    *,
    available_countries: Optional[Iterable[str]] = None,
    available_tickers: Optional[Iterable[str]] = None,
    available_themes: Optional[Iterable[str]] = None,
) -> ViewSelection:
    """Coerce raw UI/query input to a valid selection, defaulting to the first option."""
    countries = list(available_countries or [])
    tickers = list(available_tickers or [])
    themes = list(available_themes or [DEFAULT_CHART_THEME])

    theme = str(raw.get("theme") or DEFAULT_CHART_THEME).strip().lower()
    if theme not in themes:
        theme = DEFAULT_CHART_THEME

    return ViewSelection(
        country=_pick(raw.get("country"), countries),
        ticker=_pick(raw.get("ticker"), tickers, case_insensitive=True),
        prediction_period=_as_period(raw.get("prediction_period", DEFAULT_PREDICTION_PERIOD)),
        theme=theme,
    )
