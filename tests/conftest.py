# tests/conftest.py
import pytest
import re
from datetime import datetime, timedelta, timezone
import os, sys
from pathlib import Path

# repo root = folder that contains both `app/` and `tests/`
REPO_ROOT = Path(__file__).resolve().parents[1]
APP_DIR = REPO_ROOT / "app"

# Make `from main import create_app` and `from routers...` work
sys.path.insert(0, str(APP_DIR))

# Make relative paths inside app/ (like "static") resolve correctly
os.chdir(APP_DIR)

from fastapi.testclient import TestClient
from passlib.context import CryptContext

from configs.config import Settings
from main import build_application, create_app
from methods.database.database import make_engine

# bcrypt at minimum cost keeps the suite fast; production uses 12 rounds
FAST_PWD_CONTEXT = CryptContext(schemes=["bcrypt"], bcrypt__rounds=4)

CSRF_RX = re.compile(r"name='csrf_token' value='([^']+)'")


class FakeClock:
    """Controllable UTC clock for the stores and the session manager."""
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 2, 23, 10, 23, 42, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def timestamp(self) -> float:
        return self.now.timestamp()

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def settings():
    return Settings(
        SECRET_KEY="test-secret-s6Ndh+pPbnzHbS*+9Pk8qGWhTzbpa@ge",
        DATABASE_URL="sqlite://",
        DEV=True,
        LOG_DIR="",
    )


@pytest.fixture()
def engine(settings):
    eng = make_engine(settings.DATABASE_URL, settings.DB_TIMEOUT_SECONDS)
    yield eng
    eng.dispose()


@pytest.fixture()
def application(settings, engine):
    application = build_application(settings, engine=engine)
    application.accounts.pwd_context = FAST_PWD_CONTEXT
    return application


@pytest.fixture()
def app(application):
    return create_app(application=application)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def clock():
    return FakeClock()


def extract_csrf_token(html: str) -> str:
    m = CSRF_RX.search(html)
    assert m, "no csrf_token field in page"
    return m.group(1)


def get_csrf(client, path: str = "/user/login") -> str:
    r = client.get(path)
    assert r.status_code == 200
    return extract_csrf_token(r.text)


def signup(client, name="Name", email="alice@example.com", password="pa55word-long"):
    token = get_csrf(client, "/user/signup")
    return client.post(
        "/user/signup",
        data={"name": name, "email": email, "password": password, "csrf_token": token},
        follow_redirects=False,
    )


def login(client, email="alice@example.com", password="pa55word-long"):
    token = get_csrf(client, "/user/login")
    return client.post(
        "/user/login",
        data={"email": email, "password": password, "csrf_token": token},
        follow_redirects=False,
    )


@pytest.fixture()
def logged_in_client(client):
    assert signup(client).status_code == 303
    assert login(client).status_code == 303
    return client
