"""
HTTP API: endpoint tests

The app is built around a seeded catalog; assistant-backed routes use a
Gemini client wired to httpx.MockTransport.
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.assistant import Assistant, GeminiClient
from core.config import AssistantSettings, Settings
from core.data import build_catalog


def _gemini_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Mock reply."}]}}]})


@pytest.fixture(scope="module")
def api_catalog():
    return build_catalog(seed=3)


@pytest.fixture
def client(api_catalog):
    return TestClient(create_app(catalog=api_catalog, settings=Settings()))


@pytest.fixture
def ai_client(api_catalog):
    gemini = GeminiClient(AssistantSettings(api_key="k"), transport=httpx.MockTransport(_gemini_ok))
    app = create_app(catalog=api_catalog, assistant=Assistant(gemini), settings=Settings())
    return TestClient(app)


# ===================================================================
#  Meta
# ===================================================================

class TestMeta:
    def test_countries(self, client):
        resp = client.get("/meta/countries")
        assert resp.status_code == 200
        assert resp.json() == {"countries": ["USA", "Germany", "Japan", "India"]}

    def test_stocks(self, client):
        stocks = client.get("/meta/stocks").json()["stocks"]
        assert [s["ticker"] for s in stocks] == ["AAPL", "GOOGL", "MSFT"]
        assert stocks[0]["name"] == "Apple Inc."

    def test_themes(self, client):
        themes = client.get("/meta/themes").json()["themes"]
        assert "night" in themes
        assert "corporate" in themes


# ===================================================================
#  Page payloads
# ===================================================================

class TestPages:
    def test_country_page(self, client):
        resp = client.get("/countries/USA", params={"theme": "emerald"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["index_name"] == "S&P 500"
        assert data["selection"]["theme"] == "emerald"
        assert data["period"]["days"] == 730
        assert set(data["charts"]) == {"covid_trends", "market_performance"}
        assert -1.0 <= data["kpis"]["cases_index_correlation"] <= 1.0

    def test_unknown_country(self, client):
        resp = client.get("/countries/Atlantis")
        assert resp.status_code == 404
        assert resp.json()["type"] == "NotFound"

    def test_stock_page_lowercase_ticker(self, client):
        resp = client.get("/stocks/aapl", params={"prediction_period": 90})
        assert resp.status_code == 200
        data = resp.json()
        assert data["ticker"] == "AAPL"
        assert data["name"] == "Apple Inc."
        assert data["prediction_period"] == 90
        assert data["kpis"]["low"] <= data["kpis"]["average"] <= data["kpis"]["high"]

    def test_stock_page_invalid_period_defaults(self, client):
        data = client.get("/stocks/MSFT", params={"prediction_period": 45}).json()
        assert data["prediction_period"] == 30

    def test_unknown_stock(self, client):
        assert client.get("/stocks/TSLA").status_code == 404

    def test_debug(self, client):
        data = client.get("/debug").json()
        assert data["row_counts"]["countries"] == 4
        assert data["row_counts"]["price_rows"] == 3 * 730
        assert data["invariant_violations"] == 0


# ===================================================================
#  CSV export
# ===================================================================

class TestExport:
    def test_country_csv(self, client):
        resp = client.get("/export/countries/Japan")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.headers["content-disposition"] == "attachment; filename=japan.csv"
        lines = resp.text.strip().splitlines()
        assert lines[0] == "date,cases,deaths,value"
        assert len(lines) == 731

    def test_stock_csv(self, client):
        resp = client.get("/export/stocks/googl")
        assert resp.headers["content-disposition"] == "attachment; filename=GOOGL.csv"
        assert resp.text.splitlines()[0] == "date,value"

    def test_unknown_export(self, client):
        assert client.get("/export/stocks/NOPE").status_code == 404


# ===================================================================
#  Assistant routes
# ===================================================================

class TestAssistantRoutes:
    @pytest.mark.parametrize(
        "path,body",
        [
            ("/chat", {"message": "hi"}),
            ("/help", {"query": "how?"}),
            ("/analysis/correlation", {"country": "USA"}),
            ("/predictions/index", {"country": "USA"}),
            ("/predictions/stock", {"ticker": "AAPL", "period_days": 90}),
        ],
    )
    def test_unconfigured_returns_503(self, client, path, body):
        resp = client.post(path, json=body)
        assert resp.status_code == 503
        assert resp.json()["type"] == "AssistantUnavailable"

    def test_chat_history(self, ai_client):
        resp = ai_client.post("/chat", json={"message": "hello"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["text"] == "Mock reply."
        assert [m["role"] for m in data["history"]] == ["model", "user", "model"]

        reset = ai_client.post("/chat/reset").json()
        assert len(reset["history"]) == 1

    def test_blank_chat_rejected(self, ai_client):
        assert ai_client.post("/chat", json={"message": "   "}).status_code == 422
        assert ai_client.post("/chat", json={"message": ""}).status_code == 422

    def test_help(self, ai_client):
        assert ai_client.post("/help", json={"query": "where?"}).json() == {"text": "Mock reply."}

    def test_predictions(self, ai_client):
        assert ai_client.post("/predictions/stock", json={"ticker": "msft", "period_days": 180}).status_code == 200
        assert ai_client.post("/predictions/stock", json={"ticker": "MSFT", "period_days": 45}).status_code == 422
        assert ai_client.post("/predictions/stock", json={"ticker": "TSLA"}).status_code == 404
        assert ai_client.post("/analysis/correlation", json={"country": "Atlantis"}).status_code == 404
        assert ai_client.post("/predictions/index", json={"country": "India"}).json()["text"] == "Mock reply."
