from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from core.charts import stock_price_chart, to_vega_spec
from core.filters import ViewSelection
from core.models import StockDataset
from core.summary import summarize


def stock_label(dataset: StockDataset, ticker: str) -> str:
    return f"{dataset.name} ({ticker})"


def compute_stock_history(selection: ViewSelection, dataset: Optional[StockDataset]) -> Dict[str, Any]:
    ticker = selection.ticker or ""
    if dataset is None or not dataset.price_history:
        return {
            "selection": asdict(selection),
            "name": None,
            "ticker": ticker,
            "period": {},
            "kpis": {},
            "prediction_period": selection.prediction_period,
            "charts": {},
        }

    frame = dataset.to_frame()
    prices = summarize(frame["value"])
    return {
        "selection": asdict(selection),
        "name": dataset.name,
        "ticker": ticker,
        "period": {"start": dataset.price_history[0].date, "end": dataset.price_history[-1].date, "days": len(frame)},
        "kpis": {
            "high": prices.max,
            "low": prices.min,
            "average": prices.avg,
            "last_close": prices.last,
            "change_pct": prices.change_pct,
        },
        "prediction_period": selection.prediction_period,
        "charts": {"price_history": to_vega_spec(stock_price_chart(frame, stock_label(dataset, ticker), selection.theme))},
    }
