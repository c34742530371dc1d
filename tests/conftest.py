import pytest
from fastapi.testclient import TestClient

from main import app
from findocs.core.config import settings
from findocs.core.rate_limit import rate_limit_store
from findocs.services.auth_service import auth_service


@pytest.fixture(autouse=True)
def isolate_app(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET_KEY", "test-secret-key-for-envelopes")
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(settings, "REVOKE_ON_LOGOUT", False)
    rate_limit_store.reset()
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}
    rate_limit_store.reset()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_oauth(monkeypatch):
    from tests.fakes import FakeGoogleOAuth

    oauth = FakeGoogleOAuth()
    monkeypatch.setattr(auth_service, "oauth", oauth)
    return oauth
