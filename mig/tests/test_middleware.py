import base64
import re

import pytest
from starlette.testclient import TestClient

from mig import REQUEST_ID_HEADER, Context, HTTPError
from mig.middleware import BasicAuthConfig, basic_auth_with_config, request_id, request_logger
from mig.middleware.basic_auth import parse_basic_auth


class TestBasicAuth:
    @pytest.fixture
    def client(self, app):
        auth = basic_auth_with_config(
            BasicAuthConfig(
                is_allowed=lambda user, password: user == "mig" and password == "secret",
                realm="Test Realm",
            )
        )

        async def protected(c: Context) -> None:
            await c.raw(b"Welcome, authorized user")

        app.get("/protected", auth(protected))
        return TestClient(app)

    def test_valid_credentials(self, client):
        response = client.get("/protected", auth=("mig", "secret"))

        assert response.status_code == 200
        assert response.text == "Welcome, authorized user"
        assert "www-authenticate" not in response.headers

    @pytest.mark.parametrize(
        "credentials",
        [
            pytest.param(("mig", "wrong"), id="invalid-password"),
            pytest.param(("guest", "secret"), id="invalid-user"),
            pytest.param(None, id="no-credentials"),
        ],
    )
    def test_rejected_credentials(self, client, credentials):
        response = client.get("/protected", auth=credentials)

        assert response.status_code == 401
        assert response.text == "Unauthorized\n"
        assert response.headers["www-authenticate"] == 'Basic realm="Test Realm"'

    def test_default_realm_is_quoted(self, app):
        auth = basic_auth_with_config(BasicAuthConfig(is_allowed=lambda u, p: False))
        app.get("/", auth(lambda c: c.raw(b"never")))

        response = TestClient(app).get("/")

        assert response.headers["www-authenticate"] == 'Basic realm="restricted"'

    def test_missing_is_allowed_is_rejected_at_construction(self):
        with pytest.raises(ValueError):
            basic_auth_with_config(BasicAuthConfig(is_allowed=None))


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Basic " + base64.b64encode(b"user:pa:ss").decode(), ("user", "pa:ss")),
        ("basic " + base64.b64encode(b"user:").decode(), ("user", "")),
        ("Basic " + base64.b64encode(b"nocolon").decode(), None),
        ("Basic !!!notbase64", None),
        ("Bearer token", None),
        ("", None),
    ],
)
def test_parse_basic_auth(header, expected):
    assert parse_basic_auth(header) == expected


class TestRequestID:
    def test_generates_id(self, app):
        captured = {}
        app.use(request_id())

        @app.get("/")
        async def handler(c: Context) -> None:
            captured["id"] = c.request_id()
            await c.raw(b"OK")

        response = TestClient(app).get("/")

        header_id = response.headers[REQUEST_ID_HEADER]
        assert re.fullmatch(r"[0-9a-f]{16}", header_id)
        assert captured["id"] == header_id

    def test_prefers_incoming_header(self, app):
        app.use(request_id())
        app.get("/", lambda c: c.raw(b"OK"))

        response = TestClient(app).get("/", headers={REQUEST_ID_HEADER: "from-client"})

        assert response.headers[REQUEST_ID_HEADER] == "from-client"


class TestRequestLogger:
    def test_logs_one_line_per_request(self, app, logs):
        app.use(request_id(), request_logger())
        app.get("/hello", lambda c: c.string(201, "hi"))

        TestClient(app).get("/hello", headers={REQUEST_ID_HEADER: "log-me"})

        access = [r for r in logs.records if r["message"] == "request"]
        assert len(access) == 1
        record = access[0]
        assert record["method"] == "GET"
        assert record["path"] == "/hello"
        assert record["status"] == 201
        assert record["bytes"] == 2
        assert record["id"] == "log-me"
        assert record["latency_ms"] >= 0

    def test_logs_even_when_handler_raises(self, app, logs):
        app.use(request_logger())

        @app.get("/boom")
        async def handler(c: Context) -> None:
            raise HTTPError(418)

        response = TestClient(app).get("/boom")

        assert response.status_code == 418
        assert [r["message"] for r in logs.records].count("request") == 1
