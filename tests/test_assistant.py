"""
Gemini assistant client: unit tests

All traffic goes through httpx.MockTransport; nothing leaves the process.
"""
import json

import httpx
import pytest

from core.assistant import (
    ANALYSIS_FALLBACK,
    CHAT_FALLBACK,
    HELP_FALLBACK,
    PREDICTION_FALLBACK,
    Assistant,
    AssistantError,
    ChatMessage,
    ChatSession,
    GeminiClient,
)
from core.config import AssistantSettings
from core.prompts import CHAT_GREETING, CHAT_SYSTEM_INSTRUCTION

SETTINGS = AssistantSettings(api_key="test-key", model="gemini-test", base_url="https://gemini.example/v1beta", timeout=5.0)


def _reply(text, tokens=12):
    return {
        "candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}],
        "usageMetadata": {"totalTokenCount": tokens},
    }


class Recorder:
    """MockTransport handler that records request bodies and replays canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return httpx.Response(status, json=body)

    def body(self, i=-1):
        return json.loads(self.requests[i].content)


def _client(recorder):
    return GeminiClient(SETTINGS, transport=httpx.MockTransport(recorder))


class TestGeminiClient:
    def test_requires_api_key(self):
        with pytest.raises(AssistantError):
            GeminiClient(AssistantSettings(api_key=""))

    def test_generate_posts_prompt(self):
        rec = Recorder((200, _reply("hello there", tokens=40)))
        resp = _client(rec).generate("Hi", system_instruction="Be brief")
        assert resp.text == "hello there"
        assert resp.tokens_used == 40
        assert resp.model == "gemini-test"
        req = rec.requests[0]
        assert req.url.path == "/v1beta/models/gemini-test:generateContent"
        assert req.headers["x-goog-api-key"] == "test-key"
        assert rec.body() == {
            "contents": [{"role": "user", "parts": [{"text": "Hi"}]}],
            "systemInstruction": {"parts": [{"text": "Be brief"}]},
        }

    def test_joins_multiple_parts(self):
        body = {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}
        resp = _client(Recorder((200, body))).generate("x")
        assert resp.text == "ab"
        assert resp.tokens_used == 0

    def test_http_error_raises(self):
        with pytest.raises(AssistantError, match="HTTP 500"):
            _client(Recorder((500, {"error": "boom"}))).generate("x")

    def test_blocked_prompt_raises(self):
        body = {"promptFeedback": {"blockReason": "SAFETY"}}
        with pytest.raises(AssistantError, match="SAFETY"):
            _client(Recorder((200, body))).generate("x")

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        client = GeminiClient(SETTINGS, transport=httpx.MockTransport(handler))
        with pytest.raises(AssistantError):
            client.generate("x")


class TestChatSession:
    def test_history_is_sent_with_each_turn(self):
        rec = Recorder((200, _reply("first answer")), (200, _reply("second answer")))
        session = ChatSession(_client(rec))
        assert session.send("one") == "first answer"
        assert session.send("two") == "second answer"

        body = rec.body(1)
        assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
        assert body["contents"][-1]["parts"][0]["text"] == "two"
        assert body["systemInstruction"]["parts"][0]["text"] == CHAT_SYSTEM_INSTRUCTION

    def test_transcript_starts_with_greeting(self):
        session = ChatSession(_client(Recorder((200, _reply("ok")))))
        session.send("hi")
        assert session.transcript() == [
            ChatMessage("model", CHAT_GREETING),
            ChatMessage("user", "hi"),
            ChatMessage("model", "ok"),
        ]

    def test_failed_turn_leaves_history(self):
        session = ChatSession(_client(Recorder((503, {}))))
        with pytest.raises(AssistantError):
            session.send("hi")
        assert session.history == []

    def test_reset(self):
        session = ChatSession(_client(Recorder((200, _reply("ok")))))
        session.send("hi")
        session.reset()
        assert session.history == []


class TestAssistant:
    def test_from_settings_without_key(self):
        assert Assistant.from_settings(AssistantSettings()) is None

    def test_chat_fallback_on_error(self):
        assistant = Assistant(_client(Recorder((500, {}))))
        assert assistant.chat("hi") == CHAT_FALLBACK

    def test_chat_rejects_blank(self):
        assistant = Assistant(_client(Recorder((200, _reply("ok")))))
        with pytest.raises(ValueError):
            assistant.chat("   ")

    def test_start_chat_clears_history(self):
        assistant = Assistant(_client(Recorder((200, _reply("ok")))))
        assistant.chat("hi")
        assistant.start_chat()
        assert assistant.chat_session.history == []

    def test_help(self):
        rec = Recorder((200, _reply("Use the sidebar.")))
        assistant = Assistant(_client(rec))
        assert assistant.get_help("where is the chatbot?") == "Use the sidebar."
        sent = rec.body()["contents"][0]["parts"][0]["text"]
        assert "where is the chatbot?" in sent
        assert "systemInstruction" not in rec.body()

    def test_help_fallback(self):
        assert Assistant(_client(Recorder((500, {})))).get_help("q") == HELP_FALLBACK

    def test_analysis_and_prediction_fallbacks(self, catalog):
        assistant = Assistant(_client(Recorder((502, {}))))
        usa = catalog.fetch_country_dataset("USA")
        assert assistant.analyze_country("USA", usa) == ANALYSIS_FALLBACK
        assert assistant.predict_index("USA", usa) == PREDICTION_FALLBACK
        assert assistant.predict_stock("AAPL", catalog.fetch_stock_dataset("AAPL"), 90) == PREDICTION_FALLBACK

    def test_predict_stock_sends_period(self, catalog):
        rec = Recorder((200, _reply("Bullish.")))
        assistant = Assistant(_client(rec))
        assert assistant.predict_stock("MSFT", catalog.fetch_stock_dataset("MSFT"), 180) == "Bullish."
        assert "next 180 days" in rec.body()["contents"][0]["parts"][0]["text"]

    def test_predict_stock_bad_period_propagates(self, catalog):
        assistant = Assistant(_client(Recorder((200, _reply("x")))))
        with pytest.raises(ValueError):
            assistant.predict_stock("MSFT", catalog.fetch_stock_dataset("MSFT"), 45)
