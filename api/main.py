from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import (
    AssistantReply,
    ChatReply,
    ChatRequest,
    CountryRequest,
    HelpRequest,
    MetaCountriesResponse,
    MetaStocksResponse,
    MetaThemesResponse,
    StockPredictionRequest,
)
from core.assistant import Assistant
from core.charts import available_themes
from core.config import DEFAULT_CHART_THEME, DEFAULT_PREDICTION_PERIOD, Settings, configure_logging, load_settings
from core.data import DashboardCatalog, build_catalog
from core.filters import ViewSelection, normalize_selection
from core.metrics_correlation import compute_correlation
from core.metrics_debug import compute_debug
from core.metrics_predictor import compute_stock_history


logger = logging.getLogger(__name__)
router = APIRouter()


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _not_found(kind: str, key: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": f"Unknown {kind}: {key}", "type": "NotFound"})


def _assistant_unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"error": "Assistant is not configured. Set GEMINI_API_KEY.", "type": "AssistantUnavailable"},
    )


def _catalog(request: Request) -> DashboardCatalog:
    return request.app.state.catalog


def _assistant(request: Request) -> Optional[Assistant]:
    return request.app.state.assistant


def _selection(catalog: DashboardCatalog, **raw: object) -> ViewSelection:
    return normalize_selection(
        raw,
        available_countries=catalog.list_countries(),
        available_tickers=[s.ticker for s in catalog.list_stocks()],
        available_themes=available_themes(),
    )


@router.get("/meta/countries", response_model=MetaCountriesResponse)
def meta_countries(request: Request):
    return MetaCountriesResponse(countries=_catalog(request).list_countries())


@router.get("/meta/stocks", response_model=MetaStocksResponse)
def meta_stocks(request: Request):
    listings = _catalog(request).list_stocks()
    return MetaStocksResponse(stocks=[{"ticker": s.ticker, "name": s.name} for s in listings])


@router.get("/meta/themes", response_model=MetaThemesResponse)
def meta_themes():
    return MetaThemesResponse(themes=available_themes())


@router.get("/countries/{country}")
def country_page(request: Request, country: str, theme: str = Query(default=DEFAULT_CHART_THEME)):
    try:
        catalog = _catalog(request)
        dataset = catalog.fetch_country_dataset(country)
        if dataset is None:
            return _not_found("country", country)
        selection = _selection(catalog, country=country, theme=theme)
        return _json(compute_correlation(selection, dataset))
    except Exception as exc:
        logger.exception("country_page failed")
        return _error(500, exc)


@router.get("/stocks/{ticker}")
def stock_page(
    request: Request,
    ticker: str,
    theme: str = Query(default=DEFAULT_CHART_THEME),
    prediction_period: int = Query(default=DEFAULT_PREDICTION_PERIOD),
):
    try:
        catalog = _catalog(request)
        dataset = catalog.fetch_stock_dataset(ticker)
        if dataset is None:
            return _not_found("ticker", ticker)
        selection = _selection(catalog, ticker=ticker, theme=theme, prediction_period=prediction_period)
        return _json(compute_stock_history(selection, dataset))
    except Exception as exc:
        logger.exception("stock_page failed")
        return _error(500, exc)


@router.get("/debug")
def debug(request: Request):
    try:
        return _json(compute_debug(_catalog(request)))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(500, exc)


@router.get("/export/countries/{country}")
def export_country(request: Request, country: str):
    dataset = _catalog(request).fetch_country_dataset(country)
    if dataset is None:
        return _not_found("country", country)
    csv_bytes = dataset.to_frame().to_csv(index=False).encode("utf-8")
    filename = f"{country.lower()}.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})


@router.get("/export/stocks/{ticker}")
def export_stock(request: Request, ticker: str):
    dataset = _catalog(request).fetch_stock_dataset(ticker)
    if dataset is None:
        return _not_found("ticker", ticker)
    csv_bytes = dataset.to_frame().to_csv(index=False).encode("utf-8")
    filename = f"{ticker.upper()}.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})


@router.post("/analysis/correlation", response_model=AssistantReply)
def analysis_correlation(request: Request, body: CountryRequest):
    assistant = _assistant(request)
    if assistant is None:
        return _assistant_unavailable()
    dataset = _catalog(request).fetch_country_dataset(body.country)
    if dataset is None:
        return _not_found("country", body.country)
    try:
        return AssistantReply(text=assistant.analyze_country(body.country, dataset))
    except Exception as exc:
        logger.exception("analysis_correlation failed")
        return _error(500, exc)


@router.post("/predictions/index", response_model=AssistantReply)
def predictions_index(request: Request, body: CountryRequest):
    assistant = _assistant(request)
    if assistant is None:
        return _assistant_unavailable()
    dataset = _catalog(request).fetch_country_dataset(body.country)
    if dataset is None:
        return _not_found("country", body.country)
    try:
        return AssistantReply(text=assistant.predict_index(body.country, dataset))
    except Exception as exc:
        logger.exception("predictions_index failed")
        return _error(500, exc)


@router.post("/predictions/stock", response_model=AssistantReply)
def predictions_stock(request: Request, body: StockPredictionRequest):
    assistant = _assistant(request)
    if assistant is None:
        return _assistant_unavailable()
    dataset = _catalog(request).fetch_stock_dataset(body.ticker)
    if dataset is None:
        return _not_found("ticker", body.ticker)
    try:
        return AssistantReply(text=assistant.predict_stock(body.ticker.upper(), dataset, body.period_days))
    except Exception as exc:
        logger.exception("predictions_stock failed")
        return _error(500, exc)


@router.post("/chat", response_model=ChatReply)
def chat(request: Request, body: ChatRequest):
    assistant = _assistant(request)
    if assistant is None:
        return _assistant_unavailable()
    try:
        text = assistant.chat(body.message)
    except ValueError as exc:
        return _error(422, exc)
    except Exception as exc:
        logger.exception("chat failed")
        return _error(500, exc)
    history = [{"role": m.role, "text": m.text} for m in assistant.chat_session.transcript()]
    return ChatReply(text=text, history=history)


@router.post("/chat/reset", response_model=ChatReply)
def chat_reset(request: Request):
    assistant = _assistant(request)
    if assistant is None:
        return _assistant_unavailable()
    assistant.start_chat()
    history = [{"role": m.role, "text": m.text} for m in assistant.chat_session.transcript()]
    return ChatReply(text=history[0]["text"], history=history)


@router.post("/help", response_model=AssistantReply)
def help_bot(request: Request, body: HelpRequest):
    assistant = _assistant(request)
    if assistant is None:
        return _assistant_unavailable()
    try:
        return AssistantReply(text=assistant.get_help(body.query))
    except ValueError as exc:
        return _error(422, exc)
    except Exception as exc:
        logger.exception("help failed")
        return _error(500, exc)


def create_app(
    catalog: Optional[DashboardCatalog] = None,
    assistant: Optional[Assistant] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the API around an explicit catalog and (optional) assistant.

    Missing pieces are built from ``settings`` (environment by default).
    """
    settings = settings or load_settings()
    app = FastAPI(title="PredX Dashboard API", version="0.1.0")
    app.state.catalog = catalog if catalog is not None else build_catalog(seed=settings.seed)
    app.state.assistant = assistant if assistant is not None else Assistant.from_settings(settings.assistant)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


_settings = load_settings()
configure_logging(_settings.log_level)
app = create_app(settings=_settings)
