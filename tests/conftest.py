import os

# Configure an in-memory store before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAINTENANCE_ENABLED"] = "false"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "secret"

import pytest
import requests
from fastapi.testclient import TestClient

from visitrack.core.database import Base, engine, SessionLocal
from visitrack.main import app
from visitrack.schemas import ClientSignals
from visitrack import models  # noqa: F401

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, json_error=False):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._json_error:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Geolocation lookups fail unless a test installs its own fake."""
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("network disabled in tests")
    monkeypatch.setattr("visitrack.core.geolocation.requests.get", refuse)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def admin_auth():
    return ("admin", "secret")


@pytest.fixture
def signals():
    return ClientSignals(
        user_agent=CHROME_UA,
        language="en-US",
        screen_width=1920,
        screen_height=1080,
        color_depth=24,
        timezone_offset=-330,
        platform="Win32",
        cookie_enabled=True,
        local_storage=True,
        session_storage=True,
        canvas_data_url="data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAASwAAACWCAYAAABkW7XS",
        path="/",
    )
