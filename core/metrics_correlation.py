from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from core.charts import covid_trends_chart, market_chart, to_vega_spec
from core.filters import ViewSelection
from core.formatting import round_half_up
from core.models import CountryDataset
from core.summary import pearson, summarize


def compute_correlation(selection: ViewSelection, dataset: Optional[CountryDataset]) -> Dict[str, Any]:
    if dataset is None or not dataset.covid_series:
        return {"selection": asdict(selection), "index_name": None, "period": {}, "kpis": {}, "charts": {}}

    frame = dataset.to_frame()
    cases = summarize(frame["cases"])
    index = summarize(frame["value"])
    correlation = pearson(frame["cases"], frame["value"])

    return {
        "selection": asdict(selection),
        "index_name": dataset.index_name,
        "period": {"start": dataset.covid_series[0].date, "end": dataset.covid_series[-1].date, "days": len(frame)},
        "kpis": {
            "peak_cases": int(cases.max) if cases.max is not None else None,
            "avg_cases": round_half_up(cases.avg, 0),
            "total_deaths": int(frame["deaths"].sum()),
            "index_high": index.max,
            "index_low": index.min,
            "index_last": index.last,
            "index_change_pct": index.change_pct,
            "cases_index_correlation": round_half_up(correlation, 4),
        },
        "charts": {
            "covid_trends": to_vega_spec(covid_trends_chart(frame, selection.theme)),
            "market_performance": to_vega_spec(market_chart(frame, dataset.index_name, selection.theme)),
        },
    }
