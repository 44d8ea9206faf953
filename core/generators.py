"""Synthetic daily series for the dashboard.

Two generators live here:

- ``generate_country_dataset``: seasonal COVID waves paired with a market index
  that dips around day 60 and recovers linearly afterwards.
- ``generate_single_stock_dataset``: a random walk with slight upward drift.

Both take an optional ``rng``: any object exposing ``uniform(low, high)``
(``numpy.random.Generator`` or ``random.Random``). Pass a seeded one to get
identical output across runs.
"""

from __future__ import annotations

import math
from datetime import date
from typing import List, Optional, Protocol, Union

import numpy as np
import pandas as pd

from core.formatting import round_half_up
from core.models import CountryDataset, CovidPoint, StockDataset, TimeSeriesPoint


NUM_DAYS = 365 * 2
COUNTRY_START_DATE = "2020-01-01"
STOCK_START_DATE = "2022-01-01"

YEARLY_WAVE_DAYS = 365
HALF_YEAR_WAVE_DAYS = 180
DEATH_RATE_BASE = 0.02
DEATH_RATE_SPREAD = 0.01

DIP_CENTER_DAY = 60
DIP_WIDTH_DAYS = 40
DIP_DEPTH = 0.4
RECOVERY_GAIN = 0.3

DAILY_TREND = 0.0005
NOISE_BIAS = 0.49
NOISE_SCALE = 20
MIN_QUOTE = 0.01


class RandomSource(Protocol):
    def uniform(self, low: float, high: float) -> float:
        ...


DateLike = Union[str, date, pd.Timestamp]


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {value!r}")


def _require_non_negative(name: str, value: float) -> None:
    _require_finite(name, value)
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value!r}")


def _require_positive(name: str, value: float) -> None:
    _require_finite(name, value)
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value!r}")


def _resolve_rng(rng: Optional[RandomSource]) -> RandomSource:
    return rng if rng is not None else np.random.default_rng()


def daily_dates(start_date: DateLike, num_days: int) -> List[str]:
    """Consecutive calendar days as YYYY-MM-DD strings."""
    if num_days < 1:
        raise ValueError(f"num_days must be >= 1, got {num_days!r}")
    return pd.date_range(start=pd.Timestamp(start_date), periods=num_days, freq="D").strftime("%Y-%m-%d").tolist()


def seasonal_waves(day: int) -> float:
    wave1 = math.sin((day / YEARLY_WAVE_DAYS) * math.pi * 2) * 0.5 + 0.5
    wave2 = math.sin((day / HALF_YEAR_WAVE_DAYS) * math.pi * 2) * 0.3 + 0.3
    return (wave1 + wave2) / 2


def dip_factor(day: int) -> float:
    return 1 - math.exp(-((day - DIP_CENTER_DAY) ** 2) / (2 * DIP_WIDTH_DAYS ** 2)) * DIP_DEPTH


def recovery_factor(day: int, num_days: int = NUM_DAYS) -> float:
    return 1 + (day / num_days) * RECOVERY_GAIN


def market_envelope(day: int, stock_base: float, num_days: int = NUM_DAYS) -> float:
    """Noise-free market value for ``day``."""
    return stock_base * dip_factor(day) * recovery_factor(day, num_days)


def generate_country_dataset(
    index_name: str,
    covid_scale: float,
    case_noise: float,
    stock_base: float,
    stock_volatility: float,
    *,
    rng: Optional[RandomSource] = None,
    num_days: int = NUM_DAYS,
    start_date: DateLike = COUNTRY_START_DATE,
) -> CountryDataset:
    _require_non_negative("covid_scale", covid_scale)
    _require_non_negative("case_noise", case_noise)
    _require_positive("stock_base", stock_base)
    _require_non_negative("stock_volatility", stock_volatility)
    dates = daily_dates(start_date, num_days)
    rng = _resolve_rng(rng)

    covid: List[CovidPoint] = []
    market: List[TimeSeriesPoint] = []
    last_value: Optional[float] = None
    for i, day in enumerate(dates):
        cases = max(0, math.floor(seasonal_waves(i) * covid_scale + float(rng.uniform(0, case_noise))))
        deaths = max(0, math.floor(cases * (DEATH_RATE_BASE + float(rng.uniform(0, DEATH_RATE_SPREAD)))))

        envelope = market_envelope(i, stock_base, num_days)
        value = envelope + float(rng.uniform(-stock_volatility / 2, stock_volatility / 2))
        # Same floor as the single-stock walk: a non-positive quote keeps yesterday's value.
        if value <= 0:
            value = last_value if last_value is not None else envelope
        last_value = value

        covid.append(CovidPoint(date=day, cases=cases, deaths=deaths))
        market.append(TimeSeriesPoint(date=day, value=max(round_half_up(value, 2), MIN_QUOTE)))

    return CountryDataset(index_name=index_name, covid_series=tuple(covid), market_series=tuple(market))


def generate_single_stock_dataset(
    name: str,
    base_price: float,
    volatility: float,
    *,
    rng: Optional[RandomSource] = None,
    num_days: int = NUM_DAYS,
    start_date: DateLike = STOCK_START_DATE,
) -> StockDataset:
    _require_positive("base_price", base_price)
    _require_non_negative("volatility", volatility)
    dates = daily_dates(start_date, num_days)
    rng = _resolve_rng(rng)

    history: List[TimeSeriesPoint] = []
    last_price = float(base_price)
    for day in dates:
        noise = float(rng.uniform(-NOISE_BIAS, 1 - NOISE_BIAS)) * volatility / NOISE_SCALE
        new_price = last_price * (1 + DAILY_TREND) + noise
        if new_price > 0:
            last_price = new_price
        history.append(TimeSeriesPoint(date=day, value=max(round_half_up(last_price, 2), MIN_QUOTE)))

    return StockDataset(name=name, price_history=tuple(history))
