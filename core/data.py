from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

import numpy as np

from core.generators import RandomSource, generate_country_dataset, generate_single_stock_dataset
from core.models import CountryDataset, StockDataset, StockListing


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CountryProfile:
    index_name: str
    covid_scale: float
    case_noise: float
    stock_base: float
    stock_volatility: float


@dataclass(frozen=True)
class StockProfile:
    name: str
    base_price: float
    volatility: float


COUNTRY_PROFILES: Dict[str, CountryProfile] = {
    "USA": CountryProfile("S&P 500", covid_scale=1500, case_noise=1000, stock_base=4500, stock_volatility=3000),
    "Germany": CountryProfile("DAX", covid_scale=800, case_noise=8000, stock_base=15000, stock_volatility=12000),
    "Japan": CountryProfile("Nikkei 225", covid_scale=500, case_noise=7000, stock_base=30000, stock_volatility=25000),
    "India": CountryProfile("NIFTY 50", covid_scale=2000, case_noise=1500, stock_base=18000, stock_volatility=4000),
}

STOCK_PROFILES: Dict[str, StockProfile] = {
    "AAPL": StockProfile("Apple Inc.", base_price=150, volatility=50),
    "GOOGL": StockProfile("Alphabet Inc.", base_price=2500, volatility=800),
    "MSFT": StockProfile("Microsoft Corp.", base_price=300, volatility=100),
}


@dataclass(frozen=True)
class DashboardCatalog:
    """Read-only lookup over the datasets generated for one session.

    Unknown keys return ``None`` rather than raising; callers decide how to
    surface a missing dataset.
    """

    countries: Mapping[str, CountryDataset] = field(default_factory=dict)
    stocks: Mapping[str, StockDataset] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "countries", MappingProxyType(dict(self.countries)))
        object.__setattr__(self, "stocks", MappingProxyType(dict(self.stocks)))

    def list_countries(self) -> List[str]:
        return list(self.countries.keys())

    def list_stocks(self) -> List[StockListing]:
        return [StockListing(ticker=ticker, name=ds.name) for ticker, ds in self.stocks.items()]

    def fetch_country_dataset(self, key: str) -> Optional[CountryDataset]:
        if key is None:
            return None
        return self.countries.get(str(key).strip())

    def fetch_stock_dataset(self, ticker: str) -> Optional[StockDataset]:
        if ticker is None:
            return None
        return self.stocks.get(str(ticker).strip().upper())


def build_catalog(
    rng: Optional[RandomSource] = None,
    *,
    seed: Optional[int] = None,
    country_profiles: Optional[Mapping[str, CountryProfile]] = None,
    stock_profiles: Optional[Mapping[str, StockProfile]] = None,
) -> DashboardCatalog:
    """Generate every dataset in the profile tables.

    ``rng`` wins over ``seed``; with neither, an unseeded numpy generator is used.
    """
    if rng is None:
        rng = np.random.default_rng(seed)
    country_profiles = COUNTRY_PROFILES if country_profiles is None else country_profiles
    stock_profiles = STOCK_PROFILES if stock_profiles is None else stock_profiles

    countries = {
        key: generate_country_dataset(
            p.index_name,
            p.covid_scale,
            p.case_noise,
            p.stock_base,
            p.stock_volatility,
            rng=rng,
        )
        for key, p in country_profiles.items()
    }
    stocks = {
        ticker.upper(): generate_single_stock_dataset(p.name, p.base_price, p.volatility, rng=rng)
        for ticker, p in stock_profiles.items()
    }
    logger.info("Built catalog with %d countries and %d stocks (seed=%s)", len(countries), len(stocks), seed)
    return DashboardCatalog(countries=countries, stocks=stocks)


@lru_cache(maxsize=4)
def load_catalog(seed: Optional[int] = None) -> DashboardCatalog:
    """Catalog for a UI session; cached so reruns reuse the same datasets."""
    return build_catalog(seed=seed)
