from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field


class CountryRequest(BaseModel):
    country: str


class StockPredictionRequest(BaseModel):
    ticker: str
    period_days: Literal[30, 90, 180] = 30


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)


class HelpRequest(BaseModel):
    query: str = Field(min_length=1)


class AssistantReply(BaseModel):
    text: str


class ChatMessageModel(BaseModel):
    role: Literal["user", "model"]
    text: str


class ChatReply(BaseModel):
    text: str
    history: List[ChatMessageModel]


class StockListingModel(BaseModel):
    ticker: str
    name: str


class MetaStocksResponse(BaseModel):
    stocks: List[StockListingModel]


class MetaCountriesResponse(BaseModel):
    countries: List[str]


class MetaThemesResponse(BaseModel):
    themes: List[str]
