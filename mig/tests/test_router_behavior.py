"""
Where: mig/tests/test_router_behavior.py
What: Checks the behaviour delegated to the starlette router.
Why: 404/405/HEAD/trailing slash semantics come from the mux and must survive integration.
"""

import pytest
from starlette.testclient import TestClient

from mig import Context, Mig, MigConfig


@pytest.fixture
def client(app):
    @app.get("/resource")
    async def get_resource(c: Context) -> None:
        await c.raw(b"GET OK")

    @app.put("/resource")
    async def put_resource(c: Context) -> None:
        await c.raw(b"PUT OK")

    @app.get("/admin/")
    async def admin(c: Context) -> None:
        await c.raw(b"ADMIN OK")

    return TestClient(app)


def test_head_request_to_get_route(client):
    response = client.head("/resource")

    assert response.status_code == 200
    assert response.content == b""


def test_method_not_allowed(client):
    response = client.post("/resource")

    assert response.status_code == 405
    allowed = {m.strip() for m in response.headers["allow"].split(",")}
    assert allowed == {"GET", "HEAD", "PUT"}


def test_catch_all_on_same_path_takes_other_methods(app):
    app.get("/mixed", lambda c: c.raw(b"GET"))
    app.any("/mixed", lambda c: c.raw(b"ANY"))
    client = TestClient(app)

    assert client.get("/mixed").text == "GET"
    assert client.post("/mixed").text == "ANY"
    assert client.delete("/mixed").text == "ANY"


def test_second_method_on_same_path(client):
    response = client.put("/resource")

    assert response.status_code == 200
    assert response.text == "PUT OK"


def test_trailing_slash_redirect(client):
    response = client.get("/admin", follow_redirects=False)

    assert response.status_code in (301, 307, 308)
    assert response.headers["location"].endswith("/admin/")


def test_not_found(client):
    response = client.get("/nope")

    assert response.status_code == 404


def test_redirect_slashes_can_be_disabled(logs):
    app = Mig(config=MigConfig(REDIRECT_SLASHES=False), logger=logs.logger)
    app.get("/admin/", lambda c: c.raw(b"ADMIN OK"))

    response = TestClient(app).get("/admin", follow_redirects=False)

    assert response.status_code == 404
