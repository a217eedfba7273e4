"""
Where: mig/core/context.py
What: Per-request Context handed to every handler and middleware.
Why: One object gives access to request data, response helpers and request-scoped state.
"""

import html
import io
import logging
import posixpath
from typing import TYPE_CHECKING, Any, Optional, Type, TypeVar, Union
from urllib.parse import quote, urlsplit

import pydantic_core
from pydantic import AliasChoices, AliasPath, BaseModel
from pydantic.fields import FieldInfo
from starlette.datastructures import QueryParams
from starlette.requests import Request

from ..exceptions import HTTPError, status_text
from . import request_context
from .logging_config import ScopedLogger
from .response import Response, ResponseSink

if TYPE_CHECKING:
    from ..app import Mig

# Name of the HTTP header used for the request ID.
REQUEST_ID_HEADER = "X-Request-ID"

M = TypeVar("M", bound=BaseModel)


class Context:
    """
    Context of one HTTP request: request data, response helpers and
    request-scoped values.

    WARNING: Contexts are pooled and reused. A Context is only valid while its
    handler chain runs. It MUST NOT be stored, or used from another request or
    a background task. Extract the values you need first.
    """

    def __init__(self, app: "Mig"):
        self.app = app
        self.request: Optional[Request] = None
        self.response = Response()
        self.logger: Union[logging.Logger, logging.LoggerAdapter] = app.logger
        self._query: Optional[QueryParams] = None

    def reset(self, request: Request, writer: ResponseSink) -> None:
        """Bind the context to a new request."""
        self.request = request
        self.response.reset(writer)
        self._query = None
        self.logger = self.app.logger  # Reset to base logger

    def clear(self) -> None:
        """Drop references to the finished request."""
        self.request = None
        self.response.reset(None)
        self._query = None
        self.logger = self.app.logger

    # --- request-scoped values ---

    def put(self, key: Any, value: Any) -> None:
        """Store a value for the rest of the current request."""
        request_context.put_value(key, value)

    def get(self, key: Any, default: Any = None) -> Any:
        return request_context.get_value(key, default)

    # --- request data ---

    def path_value(self, name: str) -> Any:
        """
        Return the path parameter ``name`` extracted by the router.

        For a route registered as "/users/{id}", ``path_value("id")`` returns
        the matching URL segment. Missing parameters give "".
        """
        return self.request.path_params.get(name, "")

    def _query_params(self) -> QueryParams:
        if self._query is None:
            self._query = QueryParams(self.request.scope.get("query_string", b""))
        return self._query

    def query_param(self, name: str, default: str = "") -> str:
        """
        Return the first value of query parameter ``name``.

        A missing parameter gives ``default``; a present but empty one
        (?foo=) gives "".
        """
        values = self._query_params().getlist(name)
        if values:
            return values[0]
        return default

    def has_query_param(self, name: str) -> bool:
        """Report whether the query parameter exists at all."""
        return name in self._query_params()

    async def bind_json(self, model: Type[M]) -> M:
        """
        Decode the JSON body into ``model``.

        Unknown fields, type mismatches, malformed JSON and an empty body all
        raise HTTPError(400) with the decode error as internal cause.
        """
        body = await self.request.body()
        try:
            target = model.model_validate_json(body, strict=True)
            _reject_unknown_fields(target, pydantic_core.from_json(body))
        except ValueError as exc:
            raise HTTPError(400, internal=exc) from exc
        return target

    # --- response helpers ---

    async def json(self, value: Any) -> None:
        """
        Send ``value`` as JSON with status 200.

        A value that cannot be serialized is a server bug: it surfaces as a
        500 error without touching the response.
        """
        try:
            body = pydantic_core.to_json(value)
        except ValueError as exc:
            raise HTTPError.coerce(exc) from exc
        self.response.headers["Content-Type"] = "application/json; charset=utf-8"
        await self.response.write_header(200)
        await self.response.write(body)

    async def view(self, name: str, data: Any = None) -> None:
        """Render template ``name`` with the app renderer and send it as HTML."""
        if self.app.renderer is None:
            raise RuntimeError("no renderer configured")
        buf = io.StringIO()
        self.app.renderer.render(buf, name, data)
        await self.html(buf.getvalue())

    async def html(self, markup: str) -> None:
        self.response.headers["Content-Type"] = "text/html; charset=utf-8"
        await self.raw(markup.encode("utf-8"))

    async def raw(self, data: bytes) -> None:
        """Send raw bytes without setting a content type."""
        await self.response.write(data)

    async def string(self, code: int, text: str) -> None:
        """Send a plain text response with a given status code."""
        self.response.headers["Content-Type"] = "text/plain; charset=utf-8"
        await self.response.write_header(code)
        await self.response.write(text.encode("utf-8"))

    async def no_content(self, code: int) -> None:
        await self.response.write_header(code)

    async def redirect(self, code: int, location: str) -> None:
        """Send a redirect to ``location``, resolved against the request path."""
        location = resolve_location(self.request.url.path, location)
        headers = self.response.headers
        had_content_type = "content-type" in headers
        method = self.request.method

        headers["Location"] = _escape_non_ascii(location)
        if not had_content_type and method in ("GET", "HEAD"):
            headers["Content-Type"] = "text/html; charset=utf-8"
        await self.response.write_header(code)

        # Shouldn't send the body for POST or HEAD; that leaves GET.
        if not had_content_type and method == "GET":
            body = f'<a href="{html.escape(location)}">{status_text(code)}</a>.\n'
            await self.response.write(body.encode("utf-8"))

    # --- request ID ---

    def set_request_id(self, request_id: str) -> None:
        """
        Attach ``request_id`` to the request, the response header and the
        context logger. The base logger is left untouched.
        """
        if not request_id:
            return
        request_context.put_value(request_context.REQUEST_ID_KEY, request_id)
        self.response.headers[REQUEST_ID_HEADER] = request_id
        if self.logger is not None:
            self.logger = ScopedLogger(self.logger, {"id": request_id})

    def request_id(self) -> str:
        """Return the request ID, or "" if none was set."""
        return request_context.get_request_id()


def _field_keys(name: str, field: FieldInfo) -> set:
    """JSON keys that populate model field ``name``."""
    keys = {name}
    if field.alias:
        keys.add(field.alias)
    alias = field.validation_alias
    choices = alias.choices if isinstance(alias, AliasChoices) else [alias]
    for choice in choices:
        if isinstance(choice, str):
            keys.add(choice)
        elif isinstance(choice, AliasPath) and choice.path and isinstance(choice.path[0], str):
            keys.add(choice.path[0])
    return keys


def _reject_unknown_fields(value: Any, raw: Any, prefix: str = "") -> None:
    """
    Walk the decoded JSON next to the validated value and raise ValueError on
    the first object key that no model field accepts, at any depth.
    """
    if isinstance(value, BaseModel):
        if not isinstance(raw, dict):
            return
        known = set()
        for name, field in type(value).model_fields.items():
            keys = _field_keys(name, field)
            known |= keys
            for key in keys & raw.keys():
                _reject_unknown_fields(getattr(value, name), raw[key], f"{prefix}{key}.")
        for key in raw:
            if key not in known:
                raise ValueError(f'json: unknown field "{prefix}{key}"')
    elif isinstance(value, (list, tuple)) and isinstance(raw, list):
        for item, raw_item in zip(value, raw):
            _reject_unknown_fields(item, raw_item, prefix)
    elif isinstance(value, dict) and isinstance(raw, dict):
        for key, item in value.items():
            if key in raw:
                _reject_unknown_fields(item, raw[key], f"{prefix}{key}.")


def resolve_location(request_path: str, location: str) -> str:
    """
    Make a scheme-less, host-less redirect target absolute.

    Relative targets resolve against the directory of ``request_path``. The
    result is cleaned; a trailing slash and the query string are kept.
    """
    parts = urlsplit(location)
    if parts.scheme or parts.netloc:
        return location

    old_path = request_path or "/"
    if not location.startswith("/"):
        old_dir = old_path[: old_path.rfind("/") + 1]
        location = old_dir + location

    query = ""
    if "?" in location:
        location, query = location.split("?", 1)
        query = "?" + query

    trailing = location.endswith("/")
    location = _clean_path(location)
    if trailing and not location.endswith("/"):
        location += "/"
    return location + query


def _clean_path(path: str) -> str:
    cleaned = posixpath.normpath(path)
    # normpath keeps a leading "//"
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _escape_non_ascii(value: str) -> str:
    return "".join(ch if ord(ch) < 0x80 else quote(ch, safe="") for ch in value)
