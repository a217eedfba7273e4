"""
HTTP Basic authentication middleware.
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..core.context import Context
from ..exceptions import HTTPError
from ..types import Handler, MiddlewareFunc


@dataclass
class BasicAuthConfig:
    is_allowed: Optional[Callable[[str, str], bool]] = None
    realm: str = ""


def parse_basic_auth(header: str) -> Optional[Tuple[str, str]]:
    """Return (user, password) from an Authorization header, or None."""
    prefix = "basic "
    if len(header) < len(prefix) or header[: len(prefix)].lower() != prefix:
        return None
    try:
        decoded = base64.b64decode(header[len(prefix) :], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


def quote_realm(realm: str) -> str:
    escaped = realm.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def basic_auth_with_config(cfg: BasicAuthConfig) -> MiddlewareFunc:
    """
    Middleware that lets a request through only when ``cfg.is_allowed``
    accepts its credentials. Otherwise it answers 401 with a
    WWW-Authenticate challenge for ``cfg.realm``.
    """
    if cfg.is_allowed is None:
        raise ValueError("basic auth middleware requires an is_allowed function")
    is_allowed = cfg.is_allowed
    realm = quote_realm(cfg.realm or "restricted")

    def middleware(next_handler: Handler) -> Handler:
        async def handler(c: Context) -> None:
            credentials = parse_basic_auth(c.request.headers.get("authorization", ""))
            if credentials is not None and is_allowed(*credentials):
                await next_handler(c)
                return

            c.response.headers["WWW-Authenticate"] = f"Basic realm={realm}"
            raise HTTPError(401)

        return handler

    return middleware
