"""Unit tests for API authentication and middleware helpers"""
import pytest
from unittest.mock import MagicMock
from fastapi.security import HTTPAuthorizationCredentials

from src import config
from src.api.auth import verify_api_key
from src.api.middleware import client_key
from src.exceptions import AuthenticationError, ConfigurationError
from src.observability.metrics_middleware import PrometheusMiddleware


def bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestVerifyApiKey:
    """Test suite for verify_api_key"""

    @pytest.mark.asyncio
    async def test_valid_key(self, monkeypatch):
        monkeypatch.setattr(config, "API_KEYS", ["key_one", "key_two"])

        assert await verify_api_key(bearer("key_two")) == "key_two"

    @pytest.mark.asyncio
    async def test_invalid_key(self, monkeypatch):
        monkeypatch.setattr(config, "API_KEYS", ["key_one"])

        with pytest.raises(AuthenticationError):
            await verify_api_key(bearer("wrong"))

    @pytest.mark.asyncio
    async def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr(config, "API_KEYS", ["key_one"])

        with pytest.raises(AuthenticationError):
            await verify_api_key(None)

    @pytest.mark.asyncio
    async def test_no_keys_configured(self, monkeypatch):
        """Test every request is rejected when API_KEYS is empty"""
        monkeypatch.setattr(config, "API_KEYS", [])

        with pytest.raises(ConfigurationError):
            await verify_api_key(bearer("anything"))


class TestClientKey:
    """Test rate limit keys"""

    def test_keyed_by_api_key(self):
        request = MagicMock()
        request.headers = {"authorization": "Bearer abc123"}

        assert client_key(request) == "key:abc123"

    def test_falls_back_to_address(self):
        request = MagicMock()
        request.headers = {}
        request.client.host = "10.0.0.7"

        assert client_key(request) == "10.0.0.7"


class TestPathNormalization:
    """Test metric endpoint labels"""

    def test_uuid_segments_collapsed(self):
        middleware = PrometheusMiddleware(app=MagicMock())
        path = "/api/v1/users/6f1c2e1a-7d7c-4c55-9a53-4f0e7a4d2b10/habits/42/log"

        assert middleware._normalize_path(path) == "/api/v1/users/{uuid}/habits/{id}/log"

    def test_fixed_paths_unchanged(self):
        middleware = PrometheusMiddleware(app=MagicMock())

        assert middleware._normalize_path("/health") == "/health"
