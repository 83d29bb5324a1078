"""Tests for the HTTP API."""

from __future__ import annotations

from fastapi.testclient import TestClient

from umbrella_spam.analyzers import AnalyzerRegistry
from umbrella_spam.app import create_app
from umbrella_spam.deps import get_scorer
from umbrella_spam.engine import SpamScorer
from tests.conftest import LEGIT_BODY, SPAM_BODY, ContextRecordingAnalyzer, make_input

RAW_EMAIL = (
    "From: Alice <alice@example.com>\r\n"
    "To: bob@example.org\r\n"
    "Subject: Project meeting agenda\r\n"
    "Message-ID: <abc123@example.com>\r\n"
    "Date: Mon, 02 Jun 2025 12:00:00 +0000\r\n"
    "Received-SPF: pass\r\n"
    "\r\n"
    "Hi Bob,\r\n"
    "The agenda for the project meeting is attached.\r\n"
)


class TestServiceEndpoints:
    def test_index(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        body = resp.json()
        assert body["service"] == "umbrella-spam"
        assert "en" in body["languages"]
        assert body["endpoints"]["analyze"] == "POST /api/v1/analyze"
        assert body["max_batch_size"] == 5

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "service": "umbrella-spam"}

    def test_config(self, client):
        resp = client.get("/config")
        assert resp.json() == {
            "spam_threshold": 3.5,
            "probable_spam_threshold": 2.0,
            "enable_debug": False,
        }


class TestRequestContext:
    def test_request_id_generated(self, client):
        resp = client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 32

    def test_request_id_echoed(self, client):
        resp = client.post("/api/v1/check", json=make_input(), headers={"X-Request-ID": "req-42"})
        assert resp.headers["X-Request-ID"] == "req-42"

    def test_request_id_visible_during_analysis(self, settings):
        analyzer = ContextRecordingAnalyzer()
        registry = AnalyzerRegistry()
        registry.register(analyzer)
        app = create_app(settings)
        app.dependency_overrides[get_scorer] = lambda: SpamScorer(registry=registry)

        TestClient(app).post("/api/v1/analyze", json=make_input(), headers={"X-Request-ID": "req-7"})

        assert analyzer.seen[0]["request_id"] == "req-7"
        assert analyzer.seen[0]["path"] == "/api/v1/analyze"


class TestOpenApi:
    def test_error_schema_documented(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/api/v1/analyze"]["post"]["responses"]
        assert responses["500"]["content"]["application/json"]["schema"]["$ref"].endswith("ErrorResponse")


class TestAnalyze:
    def test_clean_email(self, client):
        resp = client.post("/api/v1/analyze", json=make_input())
        assert resp.status_code == 200
        body = resp.json()
        assert body["is_spam"] is False
        assert body["classification"] == "ham"
        assert len(body["analyzers"]) == 6
        assert body["debug"] is None

    def test_spam_email(self, client):
        resp = client.post("/api/v1/analyze", json=make_input(subject="", textBody=SPAM_BODY))
        body = resp.json()
        assert body["is_spam"] is True
        assert body["top_reasons"]

    def test_snake_case_and_legacy_keys(self, client):
        payload = {
            "from": "Alice <alice@example.com>",
            "subject": "Project meeting agenda",
            "message_id": "<abc123@example.com>",
            "text": LEGIT_BODY,
        }
        resp = client.post("/api/v1/analyze", json=payload)
        assert resp.status_code == 200
        assert resp.json()["analyzers"][1]["metadata"]["word_count"] > 0

    def test_config_override(self, client):
        resp = client.post("/api/v1/analyze", json={**make_input(), "config": {"spamThreshold": 0}})
        body = resp.json()
        assert body["threshold"] == 0.0
        assert body["is_spam"] is True
        assert client.get("/config").json()["spam_threshold"] == 3.5

    def test_debug_flag(self, client):
        resp = client.post("/api/v1/analyze", json={**make_input(), "debug": True})
        debug = resp.json()["debug"]
        assert debug["language_detected"] == "en"
        assert debug["text_stats"]["word_count"] > 0

    def test_unparseable_raw_field(self, client):
        resp = client.post("/api/v1/analyze", json={"raw": "just some words without any headers"})
        assert resp.status_code == 422
        assert resp.json()["error"] == "Invalid email"
        assert resp.json()["message"]

    def test_invalid_field_type(self, client):
        resp = client.post("/api/v1/analyze", json={"subject": 123})
        assert resp.status_code == 422

    def test_check(self, client):
        resp = client.post("/api/v1/check", json=make_input())
        assert resp.json() == {"is_spam": False}

    def test_score(self, client):
        resp = client.post("/api/v1/score", json=make_input())
        assert resp.json() == {"score": 0.0, "threshold": 3.5, "classification": "ham"}


class TestBatch:
    def test_mixed_batch(self, client):
        resp = client.post("/api/v1/batch", json={"emails": [make_input(), None]})
        assert resp.status_code == 200
        body = resp.json()
        assert body["summary"] == {"total": 2, "spam": 0, "ham": 1, "errors": 1}
        assert body["results"][1] == {
            "index": 1,
            "success": False,
            "result": None,
            "error": "Invalid email data",
        }

    def test_missing_emails(self, client):
        resp = client.post("/api/v1/batch", json={})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "emails array is required"

    def test_too_large(self, client):
        resp = client.post("/api/v1/batch", json={"emails": [make_input()] * 6})
        assert resp.status_code == 400
        assert "Maximum 5" in resp.json()["detail"]

    def test_config_override(self, client):
        resp = client.post(
            "/api/v1/batch",
            json={"emails": [make_input()], "config": {"spam_threshold": 0}},
        )
        assert resp.json()["summary"]["spam"] == 1


class TestAnalyzeRaw:
    def test_plain_text_body(self, client):
        resp = client.post(
            "/api/v1/analyze/raw", content=RAW_EMAIL, headers={"content-type": "text/plain"}
        )
        assert resp.status_code == 200
        assert resp.json()["classification"] in {"ham", "probable_ham"}

    def test_rfc822_body(self, client):
        resp = client.post(
            "/api/v1/analyze/raw", content=RAW_EMAIL, headers={"content-type": "message/rfc822"}
        )
        assert resp.status_code == 200

    def test_json_keys(self, client):
        for key in ("raw", "email", "message"):
            resp = client.post("/api/v1/analyze/raw", json={key: RAW_EMAIL})
            assert resp.status_code == 200

    def test_empty_body(self, client):
        resp = client.post("/api/v1/analyze/raw", content="", headers={"content-type": "text/plain"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Raw email content required"

    def test_json_without_content(self, client):
        resp = client.post("/api/v1/analyze/raw", json={"other": "x"})
        assert resp.status_code == 400

    def test_invalid_json(self, client):
        resp = client.post(
            "/api/v1/analyze/raw",
            content="{not json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400

    def test_unparseable_message(self, client):
        resp = client.post(
            "/api/v1/analyze/raw",
            content="just some words without any headers",
            headers={"content-type": "text/plain"},
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "Invalid email"
