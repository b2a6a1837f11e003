"""aiohttp integration for authorization-level resolution."""
import logging
from functools import wraps
from typing import Callable, Optional

from aiohttp import web

from .conf import AUTH_LEVEL_KEY, FUNCTION_NAME_PARAM, LOGGER_NAME
from .levels import AuthorizationLevel
from .resolver import get_request_authorization_level
from .vault.store import SecretStore

logger = logging.getLogger(LOGGER_NAME)

FunctionNameGetter = Callable[[web.Request], Optional[str]]


def default_function_name(request: web.Request) -> Optional[str]:
    """Target function from the ``function_name`` route parameter."""
    return request.match_info.get(FUNCTION_NAME_PARAM)


def auth_level_middleware(
    store: SecretStore,
    function_name_getter: Optional[FunctionNameGetter] = None,
):
    """Build a middleware that stores the resolved level on each request.

    The level is available to handlers as ``request[AUTH_LEVEL_KEY]``.
    Requests are never rejected here; see ``level_required``.
    """
    getter = function_name_getter or default_function_name

    @web.middleware
    async def middleware(request: web.Request, handler):
        request[AUTH_LEVEL_KEY] = await get_request_authorization_level(
            request, store, getter(request)
        )
        return await handler(request)

    return middleware


def get_auth_level(request: web.Request) -> AuthorizationLevel:
    return request.get(AUTH_LEVEL_KEY, AuthorizationLevel.ANONYMOUS)


def level_required(level: AuthorizationLevel):
    """Decorator for handlers that need at least ``level`` access."""
    def _decorator(handler):
        @wraps(handler)
        async def _wrapper(request: web.Request):
            granted = get_auth_level(request)
            if not granted.allows(level):
                logger.info(
                    "Rejected %s %s: requires %s, granted %s",
                    request.method, request.path, level, granted,
                )
                raise web.HTTPUnauthorized(
                    reason=f"{level!s} authorization level required"
                )
            return await handler(request)
        return _wrapper
    return _decorator
