import pytest

from mig.mux import MethodDispatch, Mux, split_pattern


class Endpoint:
    async def __call__(self, scope, receive, send):
        pass


@pytest.mark.parametrize(
    "pattern,expected",
    [
        ("GET /users/{id}", ("GET", "/users/{id}")),
        ("post   /items", ("POST", "/items")),
        ("/any", (None, "/any")),
        ("  /trimmed  ", (None, "/trimmed")),
    ],
)
def test_split_pattern(pattern, expected):
    assert split_pattern(pattern) == expected


def test_register_adds_starlette_route():
    mux = Mux()
    mux.register("PUT /things", Endpoint())
    mux.register("/everything", Endpoint())

    put_route, any_route = mux.router.routes
    assert put_route.path == "/things"
    assert put_route.methods == {"PUT"}
    assert any_route.methods is None


def test_methods_on_one_path_share_a_route():
    mux = Mux()
    get_endpoint, put_endpoint = Endpoint(), Endpoint()
    mux.register("GET /things", get_endpoint)
    mux.register("PUT /things", put_endpoint)

    (route,) = mux.router.routes
    assert route.methods == {"GET", "HEAD", "PUT"}
    dispatch = route.app
    assert isinstance(dispatch, MethodDispatch)
    assert dispatch.lookup("GET") is get_endpoint
    assert dispatch.lookup("HEAD") is get_endpoint
    assert dispatch.lookup("PUT") is put_endpoint


def test_catch_all_opens_route_to_every_method():
    mux = Mux()
    get_endpoint, fallback = Endpoint(), Endpoint()
    mux.register("GET /things", get_endpoint)
    mux.register("/things", fallback)

    (route,) = mux.router.routes
    assert route.methods is None
    assert route.app.lookup("GET") is get_endpoint
    assert route.app.lookup("DELETE") is fallback


@pytest.mark.parametrize("pattern", ["GET /things", "/things"])
def test_duplicate_pattern_is_rejected(pattern):
    mux = Mux()
    mux.register(pattern, Endpoint())

    with pytest.raises(ValueError, match="conflicts"):
        mux.register(pattern, Endpoint())


def test_register_rejects_relative_path():
    with pytest.raises(ValueError):
        Mux().register("GET users", object())
