"""FuncHost Auth.

Resolves the authorization level (Anonymous, Function, System, Admin) of
requests made to a function host from its stored secrets.
"""
from .version import __version__
from .exceptions import AuthLevelError, FormatError, StoreUnavailable
from .levels import AuthorizationLevel
from .resolver import (
    extract_key_value,
    get_authorization_level,
    get_request_authorization_level,
)
from .middleware import auth_level_middleware, get_auth_level, level_required

__all__ = [
    "__version__",
    "AuthLevelError",
    "FormatError",
    "StoreUnavailable",
    "AuthorizationLevel",
    "extract_key_value",
    "get_authorization_level",
    "get_request_authorization_level",
    "auth_level_middleware",
    "get_auth_level",
    "level_required",
]
