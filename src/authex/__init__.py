"""Authex: a pluggable users context.

Sits between an authentication caller and a user store, with default
authenticate/create/update/delete/get_by operations a host app can
override one at a time.
"""

from authex.config import Config, ConfigError
from authex.context import UserContext, UsersContext, users_context
from authex.result import Err, Ok

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ConfigError",
    "Err",
    "Ok",
    "UserContext",
    "UsersContext",
    "users_context",
]
