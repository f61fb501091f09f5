"""Shared fixtures for Whistle Service tests"""

import pytest
from fastapi.testclient import TestClient

from whistle_service.config.settings import Settings
from whistle_service.crypto import generate_key, load_key
from whistle_service.infrastructure.store import MemoryReportStore
from whistle_service.main import create_app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct horse battery staple"


@pytest.fixture
def settings():
    return Settings(
        environment="test",
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        jwt_secret="test-jwt-secret",
        login_failure_delay_seconds=0,
        email_enabled=False,
        _env_file=None
    )


@pytest.fixture
def store():
    return MemoryReportStore()


@pytest.fixture
def client(settings, store):
    app = create_app(settings=settings, store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    # Keep admin calls explicit: authenticate by header, not the cookie jar
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def key():
    return load_key(generate_key())
