"""
Request-scoped value storage.

Values live in an immutable chain held by a ContextVar, so each request (and
any task it spawns) sees only its own values. The engine binds a fresh, empty
chain when a request starts and restores the previous state when it ends.
"""

from contextvars import ContextVar, Token
from typing import Any, Optional


class ContextKey:
    """Opaque key token. Two keys are equal only if they are the same object."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"<ContextKey {self.name}>"


class Values:
    """One node of the copy-on-write key/value chain."""

    __slots__ = ("parent", "key", "value")

    def __init__(self, parent: Optional["Values"], key: Any, value: Any):
        self.parent = parent
        self.key = key
        self.value = value

    def lookup(self, key: Any, default: Any = None) -> Any:
        node: Optional[Values] = self
        while node is not None:
            if node.key == key:
                return node.value
            node = node.parent
        return default


# Key under which the request ID is stored.
REQUEST_ID_KEY = ContextKey("request_id")

_values_var: ContextVar[Optional[Values]] = ContextVar("mig_values", default=None)


def bind() -> Token:
    """Start an empty value chain for a new request."""
    return _values_var.set(None)


def unbind(token: Token) -> None:
    """Drop the request's values, restoring whatever was bound before."""
    _values_var.reset(token)


def put_value(key: Any, value: Any) -> None:
    _values_var.set(Values(_values_var.get(), key, value))


def get_value(key: Any, default: Any = None) -> Any:
    node = _values_var.get()
    if node is None:
        return default
    return node.lookup(key, default)


def get_request_id() -> str:
    """Get the current Request ID, or "" if none was set."""
    value = get_value(REQUEST_ID_KEY)
    if isinstance(value, str):
        return value
    return ""
