"""
Dataset catalog: unit tests
"""
import dataclasses

import numpy as np
import pytest

from core.data import (
    COUNTRY_PROFILES,
    STOCK_PROFILES,
    CountryProfile,
    DashboardCatalog,
    StockProfile,
    build_catalog,
    load_catalog,
)
from core.models import StockListing


class TestListing:
    def test_countries_in_catalog_order(self, catalog):
        assert catalog.list_countries() == ["USA", "Germany", "Japan", "India"]

    def test_stocks_in_catalog_order(self, catalog):
        assert catalog.list_stocks() == [
            StockListing(ticker="AAPL", name="Apple Inc."),
            StockListing(ticker="GOOGL", name="Alphabet Inc."),
            StockListing(ticker="MSFT", name="Microsoft Corp."),
        ]

    def test_empty_catalog(self):
        empty = DashboardCatalog()
        assert empty.list_countries() == []
        assert empty.list_stocks() == []


class TestLookup:
    def test_country_index_names(self, catalog):
        for key, profile in COUNTRY_PROFILES.items():
            ds = catalog.fetch_country_dataset(key)
            assert ds is not None
            assert ds.index_name == profile.index_name
            assert len(ds.covid_series) == len(ds.market_series) == 730

    def test_stock_names(self, catalog):
        for ticker, profile in STOCK_PROFILES.items():
            ds = catalog.fetch_stock_dataset(ticker)
            assert ds is not None
            assert ds.name == profile.name
            assert all(p.value > 0 for p in ds.price_history)

    def test_unknown_keys_return_none(self, catalog):
        assert catalog.fetch_country_dataset("Atlantis") is None
        assert catalog.fetch_stock_dataset("NOPE") is None
        assert catalog.fetch_country_dataset(None) is None
        assert catalog.fetch_stock_dataset(None) is None

    def test_ticker_lookup_ignores_case(self, catalog):
        assert catalog.fetch_stock_dataset(" aapl ") is catalog.fetch_stock_dataset("AAPL")

    def test_country_lookup_is_exact(self, catalog):
        assert catalog.fetch_country_dataset("usa") is None
        assert catalog.fetch_country_dataset(" USA ") is catalog.fetch_country_dataset("USA")


class TestImmutability:
    def test_mappings_are_read_only(self, catalog):
        with pytest.raises(TypeError):
            catalog.countries["France"] = catalog.fetch_country_dataset("USA")

    def test_fields_are_frozen(self, catalog):
        with pytest.raises(dataclasses.FrozenInstanceError):
            catalog.stocks = {}

    def test_source_dict_is_copied(self):
        source = {}
        cat = DashboardCatalog(countries=source)
        source["USA"] = None
        assert cat.list_countries() == []


class TestBuild:
    def test_seed_reproduces_catalog(self):
        a = build_catalog(seed=11)
        b = build_catalog(seed=11)
        assert a.fetch_country_dataset("Japan") == b.fetch_country_dataset("Japan")
        assert a.fetch_stock_dataset("MSFT") == b.fetch_stock_dataset("MSFT")

    def test_rng_overrides_seed(self):
        a = build_catalog(np.random.default_rng(3), seed=99)
        b = build_catalog(np.random.default_rng(3), seed=1)
        assert a.fetch_stock_dataset("AAPL") == b.fetch_stock_dataset("AAPL")

    def test_custom_profiles(self):
        cat = build_catalog(
            seed=1,
            country_profiles={"France": CountryProfile("CAC 40", 100, 10, 6000, 500)},
            stock_profiles={"nvda": StockProfile("NVIDIA Corp.", 200, 60)},
        )
        assert cat.list_countries() == ["France"]
        assert cat.list_stocks() == [StockListing(ticker="NVDA", name="NVIDIA Corp.")]

    def test_load_catalog_is_cached(self):
        assert load_catalog(123) is load_catalog(123)
