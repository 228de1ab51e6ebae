"""Tests for settings validation and Firebase token verification."""

import pytest
from google.auth import exceptions as google_exceptions

from contesthub.config import Settings
from contesthub.core.exceptions import UnauthorizedError, UpstreamError
from contesthub.services.auth import identity
from contesthub.services.auth.identity import FirebaseIdentityProvider


@pytest.fixture
def clean_env(monkeypatch):
    for name in Settings.REQUIRED + ("DEBUG", "PAYMENT_CURRENCY"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_missing_required_values(self, clean_env) -> None:
        settings = Settings(mongodb_url="mongodb://localhost:27017")
        assert settings.missing() == ["FIREBASE_PROJECT_ID", "STRIPE_SECRET_KEY", "CLIENT_URL"]
        with pytest.raises(RuntimeError):
            settings.validate()

    def test_reads_environment(self, clean_env) -> None:
        clean_env.setenv("MONGODB_URL", "mongodb://db:27017")
        clean_env.setenv("FIREBASE_PROJECT_ID", "contesthub")
        clean_env.setenv("STRIPE_SECRET_KEY", "sk_live_x")
        clean_env.setenv("CLIENT_URL", "https://contesthub.example/")
        clean_env.setenv("PAYMENT_CURRENCY", "EUR")

        settings = Settings()
        settings.validate()

        assert settings.client_url == "https://contesthub.example"
        assert settings.payment_currency == "eur"
        assert settings.cors_origins[0] == "https://contesthub.example"

    def test_debug_allows_any_origin(self, clean_env) -> None:
        assert Settings(debug=True).cors_origins == ["*"]


class TestFirebaseIdentityProvider:
    async def test_returns_verified_email(self, monkeypatch) -> None:
        calls = []

        def fake_verify(token, request, audience=None):
            calls.append((token, audience))
            return {"email": "bob@example.com", "aud": audience}

        monkeypatch.setattr(identity.id_token, "verify_firebase_token", fake_verify)

        email = await FirebaseIdentityProvider("contesthub").verify("id-token")

        assert email == "bob@example.com"
        assert calls == [("id-token", "contesthub")]

    async def test_missing_token(self) -> None:
        with pytest.raises(UnauthorizedError):
            await FirebaseIdentityProvider("contesthub").verify(None)

    async def test_invalid_token(self, monkeypatch) -> None:
        def fake_verify(token, request, audience=None):
            raise ValueError("Token expired")

        monkeypatch.setattr(identity.id_token, "verify_firebase_token", fake_verify)

        with pytest.raises(UnauthorizedError):
            await FirebaseIdentityProvider("contesthub").verify("id-token")

    async def test_token_without_email(self, monkeypatch) -> None:
        monkeypatch.setattr(identity.id_token, "verify_firebase_token", lambda *a, **kw: {"sub": "123"})

        with pytest.raises(UnauthorizedError):
            await FirebaseIdentityProvider("contesthub").verify("id-token")

    async def test_certificate_fetch_failure(self, monkeypatch) -> None:
        def fake_verify(token, request, audience=None):
            raise google_exceptions.TransportError("certs unreachable")

        monkeypatch.setattr(identity.id_token, "verify_firebase_token", fake_verify)

        with pytest.raises(UpstreamError):
            await FirebaseIdentityProvider("contesthub").verify("id-token")
