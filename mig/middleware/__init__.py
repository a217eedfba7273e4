"""
Stock middleware.
"""

from .basic_auth import BasicAuthConfig, basic_auth_with_config
from .request_id import request_id
from .request_logger import request_logger

__all__ = [
    "BasicAuthConfig",
    "basic_auth_with_config",
    "request_id",
    "request_logger",
]
