"""Tests for environment settings."""

from fastapi.testclient import TestClient

from storefront.api import create_app
from storefront.service import Storefront
from storefront.settings import DEFAULT_ADMIN_TOKEN, Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("STOREFRONT_ADMIN_TOKEN", "STOREFRONT_LOG_LEVEL", "PING_MESSAGE"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.admin_token == DEFAULT_ADMIN_TOKEN
        assert settings.log_level == "INFO"
        assert settings.ping_message == "ping"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_ADMIN_TOKEN", "s3cret")
        monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "debug")
        monkeypatch.setenv("PING_MESSAGE", "pong")

        settings = Settings.from_env()

        assert settings.admin_token == "s3cret"
        assert settings.log_level == "DEBUG"
        assert settings.ping_message == "pong"

    def test_default_app_uses_env(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_ADMIN_TOKEN", "s3cret")
        monkeypatch.setenv("PING_MESSAGE", "pong")
        client = TestClient(create_app())

        assert client.get("/api/ping").json() == {"message": "pong"}
        assert client.get("/api/orders", headers={"X-Admin-Token": "s3cret"}).status_code == 200

    def test_default_storefront_is_seeded(self):
        store = Storefront.create_default()

        assert [p.id for p in store.products.list()] == ["1", "2", "3"]
        assert store.users.get("admin-master").role == "admin"
        assert store.orders.get("ORD-1001").status == "delivered"
