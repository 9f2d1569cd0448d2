"""Tests for the HTTP chat endpoint."""

import pytest
from fastapi.testclient import TestClient

from phonebot.server import create_app, resolve_session_id
from tests.conftest import GENERATED_TEXT, make_payload


@pytest.fixture
def client(controller):
    with TestClient(create_app(controller)) as test_client:
        yield test_client


class TestSessionIdResolution:
    def test_header_wins(self):
        assert resolve_session_id("h", "q", "b") == "h"

    def test_query_before_body(self):
        assert resolve_session_id(None, "q", "b") == "q"

    def test_body_last(self):
        assert resolve_session_id(None, None, "b") == "b"

    def test_blank_values_skipped(self):
        assert resolve_session_id("  ", "", "b") == "b"
        assert resolve_session_id(None, None, None) is None


class TestChatEndpoint:
    def test_missing_session_id_is_400(self, client):
        response = client.post("/chatbot", json={"message": "xin chào"})
        assert response.status_code == 400
        assert response.json() == {"error": "Session ID is required"}

    def test_missing_session_id_checked_before_body(self, client):
        response = client.post("/chatbot", json={"message": ""})
        assert response.status_code == 400
        assert response.json() == {"error": "Session ID is required"}

    def test_missing_session_id_with_non_json_body(self, client):
        response = client.post("/chatbot", content=b"not json")
        assert response.status_code == 400

    def test_missing_message_is_rejected(self, client):
        response = client.post("/chatbot", json={}, headers={"session-id": "web-1"})
        assert response.status_code == 422

    def test_empty_message_is_rejected(self, client):
        response = client.post("/chatbot", json={"message": "", "sessionId": "web-1"})
        assert response.status_code == 422

    def test_text_reply_omits_empty_fields(self, client):
        response = client.post("/chatbot", json={"message": "xin chào", "sessionId": "web-1"})
        assert response.status_code == 200
        assert response.json() == {"text": GENERATED_TEXT, "showButtons": False}

    def test_session_from_header(self, client, controller):
        client.post("/chatbot", json={"message": "xin chào"}, headers={"session-id": "web-h"})
        assert controller.store.get("web-h") is not None

    def test_session_from_query(self, client, controller):
        client.post("/chatbot?sessionId=web-q", json={"message": "xin chào", "sessionId": "web-b"})
        assert controller.store.get("web-q") is not None
        assert controller.store.get("web-b") is None

    def test_listing_reply_shape(self, client, classifier):
        classifier.script["có sản phẩm nào của samsung không?"] = make_payload(
            "tim_kiem_theo_thuong_hieu", brand="Samsung"
        )
        response = client.post(
            "/chatbot",
            json={"message": "Có sản phẩm nào của Samsung không?", "sessionId": "web-1"},
        )
        body = response.json()
        assert body["products"][0] == {
            "name": "Galaxy S23",
            "brand": "Samsung",
            "price": 16_990_000,
            "imageUrl": "/images/galaxy-s23.jpg",
        }

    def test_detail_reply_has_image_and_buttons(self, client, classifier):
        classifier.script["thông tin iphone 14"] = make_payload(
            "thong_tin_san_pham", product_names=("iPhone 14",)
        )
        response = client.post(
            "/chatbot", json={"message": "Thông tin iPhone 14", "sessionId": "web-1"}
        )
        body = response.json()
        assert body["imageUrl"] == "/images/iphone-14.jpg"
        assert body["showButtons"] is True


class TestLifespan:
    def test_built_controller_closed_on_shutdown(self, monkeypatch, controller, classifier):
        monkeypatch.setattr("phonebot.server.build_controller", lambda config: controller)
        with TestClient(create_app()) as test_client:
            assert test_client.get("/health").status_code == 200
            assert not classifier.closed
        assert classifier.closed

    def test_injected_controller_left_open(self, controller, classifier):
        with TestClient(create_app(controller)):
            pass
        assert not classifier.closed


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
