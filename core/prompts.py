"""Prompt text sent to the assistant.

Series are summarized (high/low/average/last) before they go into a prompt so
requests stay small regardless of the series length.
"""

from __future__ import annotations

import textwrap

from core.config import APP_NAME, PREDICTION_PERIODS
from core.formatting import format_number
from core.models import CountryDataset, StockDataset
from core.summary import summarize


CHAT_SYSTEM_INSTRUCTION = "You are a helpful and friendly AI assistant. Keep your responses concise and informative."
CHAT_GREETING = "Hello! I am your AI assistant. How can I help you today?"


def _clean(text: str) -> str:
    return textwrap.dedent(text).strip()


def help_prompt(query: str) -> str:
    query = " ".join(query.split())
    return _clean(
        f"""
        You are a specialized help assistant for a web application called "{APP_NAME}".
        Your role is to provide clear, concise, and friendly help to users about the application's features. Do not go off-topic.

        {APP_NAME} has 3 main sections accessible from the sidebar:
        1.  **Correlation Analysis:** This page lets users select a country (USA, Germany, Japan, India) to see a visual comparison between its COVID-19 trends (cases and deaths) and its main stock market index performance over time. It also provides an AI-generated analysis of the correlation.
        2.  **Stock Predictor:** This page allows users to select a single stock (AAPL, GOOGL, MSFT) and view its historical price chart. Users can then select a future timeframe (30, 90, or 180 days) to get an AI-powered price forecast.
        3.  **AI Chatbot:** This is a general-purpose conversational chatbot for various questions and tasks, not specific to the application's data.

        Based on this information, answer the following user question: "{query}"
        """
    )


def correlation_prompt(country: str, dataset: CountryDataset) -> str:
    cases = summarize(p.cases for p in dataset.covid_series)
    index = summarize(p.value for p in dataset.market_series)
    start, end = dataset.covid_series[0].date, dataset.covid_series[-1].date
    return _clean(
        f"""
        You are an expert financial and health data analyst.
        Analyze the provided data summaries for {country} between {start} and {end}.
        The data covers COVID-19 daily cases and the daily closing value of the {dataset.index_name}.

        COVID-19 Data Summary:
        - Peak daily cases: {format_number(cases.max)}
        - Average daily cases: {format_number(cases.avg)}

        Stock Market ({dataset.index_name}) Summary:
        - Highest value: {format_number(index.max, 2)}
        - Lowest value: {format_number(index.min, 2)}

        Provide a concise, 2-3 sentence analysis on the potential correlation or notable patterns between COVID-19 trends and stock market performance. For example, did market dips coincide with surges in cases?
        """
    )


def index_prediction_prompt(country: str, dataset: CountryDataset) -> str:
    index = summarize(p.value for p in dataset.market_series)
    start, end = dataset.market_series[0].date, dataset.market_series[-1].date
    return _clean(
        f"""
        You are an expert financial analyst providing stock market predictions.
        Analyze the provided historical data for the {dataset.index_name} in {country} from {start} to {end}.

        Historical Data Summary:
        - Highest value: {format_number(index.max, 2)}
        - Lowest value: {format_number(index.min, 2)}
        - Average value: {format_number(index.avg, 2)}
        - Last closing value: {format_number(index.last, 2)}

        Based on this data, provide a concise, 2-3 sentence prediction for the stock market's likely performance over the next 30 days. Mention the overall trend (bullish, bearish, stable) and potential volatility. Do not give financial advice.
        """
    )


def stock_prediction_prompt(ticker: str, dataset: StockDataset, period_days: int) -> str:
    if period_days not in PREDICTION_PERIODS:
        raise ValueError(f"period_days must be one of {PREDICTION_PERIODS}, got {period_days!r}")
    prices = summarize(p.value for p in dataset.price_history)
    start, end = dataset.price_history[0].date, dataset.price_history[-1].date
    return _clean(
        f"""
        You are an expert financial analyst providing stock market predictions for a single stock.
        Analyze the provided historical data for {dataset.name} ({ticker}) from {start} to {end}.

        Historical Data Summary:
        - Highest price: {format_number(prices.max, 2)}
        - Lowest price: {format_number(prices.min, 2)}
        - Average price: {format_number(prices.avg, 2)}
        - Last closing price: {format_number(prices.last, 2)}

        Based on this historical performance, provide a concise, 2-3 sentence prediction for the stock's likely performance over the next {period_days} days. Mention the overall trend (bullish, bearish, stable) and potential volatility. This is not financial advice.
        """
    )
