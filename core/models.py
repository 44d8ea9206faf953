from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import pandas as pd


@dataclass(frozen=True)
class TimeSeriesPoint:
    date: str
    value: float


@dataclass(frozen=True)
class CovidPoint:
    date: str
    cases: int
    deaths: int


@dataclass(frozen=True)
class CountryDataset:
    """COVID series and the country's market index, aligned day by day."""

    index_name: str
    covid_series: Tuple[CovidPoint, ...]
    market_series: Tuple[TimeSeriesPoint, ...]

    def to_frame(self) -> pd.DataFrame:
        covid = pd.DataFrame([(p.date, p.cases, p.deaths) for p in self.covid_series], columns=["date", "cases", "deaths"])
        market = pd.DataFrame([(p.date, p.value) for p in self.market_series], columns=["date", "value"])
        return covid.merge(market, on="date", how="outer").sort_values("date").reset_index(drop=True)


@dataclass(frozen=True)
class StockDataset:
    name: str
    price_history: Tuple[TimeSeriesPoint, ...]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([(p.date, p.value) for p in self.price_history], columns=["date", "value"])


@dataclass(frozen=True)
class StockListing:
    ticker: str
    name: str
