import re
from dataclasses import replace

from fastapi.testclient import TestClient

from conftest import login, signup
from main import build_application, create_app

SECURE_HEADERS = {
    "x-xss-protection": "1; mode=block",
    "x-frame-options": "deny",
    "x-content-type-options": "nosniff",
    "referrer-policy": "same-origin",
}


def assert_secure_headers(r):
    for k, v in SECURE_HEADERS.items():
        assert r.headers.get(k) == v, k


def test_security_headers_on_pages_errors_and_static(client):
    assert_secure_headers(client.get("/"))
    assert_secure_headers(client.get("/snippet/999"))
    assert_secure_headers(client.post("/"))
    assert_secure_headers(client.get("/static/css/main.css"))


def test_session_cookie_flags(client):
    signup(client)
    r = login(client)
    cookies = [c for c in r.headers.get_list("set-cookie") if c.startswith("session=")]
    assert len(cookies) == 1
    lower = cookies[0].lower()
    assert "httponly" in lower
    assert "samesite=strict" in lower
    max_age = int(re.search(r"max-age=(\d+)", lower).group(1))
    assert 43000 < max_age <= 43200


def test_secure_cookies_outside_dev(settings, engine):
    prod = build_application(replace(settings, DEV=False), engine=engine)
    with TestClient(create_app(application=prod)) as client:
        r = client.get("/")
    assert "secure" in r.headers["set-cookie"].lower()


def test_security_headers_on_recovered_500(application):
    app = create_app(application=application)

    @app.get("/boom")
    def boom():
        raise RuntimeError("handler blew up")

    with TestClient(app) as client:
        r = client.get("/boom")
    assert r.status_code == 500
    assert_secure_headers(r)
    assert r.headers["connection"] == "close"
