from __future__ import annotations

from typing import Any, Dict, List, Sequence

import pandas as pd

from core.data import DashboardCatalog


def _date_checks(dates: Sequence[str]) -> Dict[str, Any]:
    if not dates:
        return {"start": None, "end": None, "gaps": 0, "non_increasing": 0}
    parsed = pd.to_datetime(pd.Series(list(dates)), format="%Y-%m-%d")
    steps = parsed.diff().dropna().dt.days
    return {
        "start": dates[0],
        "end": dates[-1],
        "gaps": int((steps > 1).sum()),
        "non_increasing": int((steps < 1).sum()),
    }


def _country_rows(catalog: DashboardCatalog) -> List[Dict[str, Any]]:
    rows = []
    for key in catalog.list_countries():
        ds = catalog.fetch_country_dataset(key)
        if ds is None:
            continue
        covid_dates = [p.date for p in ds.covid_series]
        market_dates = [p.date for p in ds.market_series]
        rows.append(
            {
                "country": key,
                "index_name": ds.index_name,
                "covid_rows": len(ds.covid_series),
                "market_rows": len(ds.market_series),
                "aligned": covid_dates == market_dates,
                **_date_checks(covid_dates),
                "negative_cases": sum(1 for p in ds.covid_series if p.cases < 0),
                "negative_deaths": sum(1 for p in ds.covid_series if p.deaths < 0),
                "deaths_exceed_cases": sum(1 for p in ds.covid_series if p.deaths > p.cases),
                "non_positive_values": sum(1 for p in ds.market_series if p.value <= 0),
            }
        )
    return rows


def _stock_rows(catalog: DashboardCatalog) -> List[Dict[str, Any]]:
    rows = []
    for listing in catalog.list_stocks():
        ds = catalog.fetch_stock_dataset(listing.ticker)
        if ds is None:
            continue
        rows.append(
            {
                "ticker": listing.ticker,
                "name": ds.name,
                "rows": len(ds.price_history),
                **_date_checks([p.date for p in ds.price_history]),
                "non_positive_values": sum(1 for p in ds.price_history if p.value <= 0),
            }
        )
    return rows


def compute_debug(catalog: DashboardCatalog) -> Dict[str, Any]:
    countries = _country_rows(catalog)
    stocks = _stock_rows(catalog)
    issues = (
        sum(r["gaps"] + r["non_increasing"] + r["negative_cases"] + r["negative_deaths"] + r["non_positive_values"] for r in countries)
        + sum(0 if r["aligned"] else 1 for r in countries)
        + sum(r["gaps"] + r["non_increasing"] + r["non_positive_values"] for r in stocks)
    )
    return {
        "row_counts": {
            "countries": len(countries),
            "stocks": len(stocks),
            "covid_rows": sum(r["covid_rows"] for r in countries),
            "market_rows": sum(r["market_rows"] for r in countries),
            "price_rows": sum(r["rows"] for r in stocks),
        },
        # deaths > cases is reported but does not count as a broken invariant.
        "invariant_violations": int(issues),
        "countries": countries,
        "stocks": stocks,
    }
