"""
Authorization Level Resolver — Maps a caller's key to an access tier.

Resolution order (first match wins):
1. no key in the ``x-functions-key`` header or ``code`` query -> Anonymous
2. host master key -> Admin
3. any host system key -> System
4. any host-level function key -> Function
5. any secret of the target function -> Function
6. otherwise -> Anonymous

Keys are matched by value with a constant-time comparison. Store failures
propagate to the caller; they never degrade to Anonymous.

Security Note:
    Never log the candidate key or any secret value.
"""
import logging
from collections.abc import Iterable, Mapping
from typing import Optional

from aiohttp import web

from .conf import FUNCTIONS_KEY_HEADER, FUNCTIONS_KEY_QUERY, LOGGER_NAME
from .levels import AuthorizationLevel
from .vault.compare import secret_value_equals
from .vault.models import Key
from .vault.store import SecretStore

logger = logging.getLogger(LOGGER_NAME)


def extract_key_value(
    headers: Mapping[str, str], query: Mapping[str, str]
) -> Optional[str]:
    """Return the candidate key of a request.

    The header takes precedence over the query string whenever it is
    present, even when both are set and differ.

    Args:
        headers: Request headers (a case-insensitive mapping).
        query: Request query parameters.

    Returns:
        The candidate key, or None when neither source provides one.
    """
    if FUNCTIONS_KEY_HEADER in headers:
        value = headers[FUNCTIONS_KEY_HEADER]
    else:
        value = query.get(FUNCTIONS_KEY_QUERY)
    return value or None


def _has_matching_key(
    keys: Iterable[Key], key_value: str, key_name: Optional[str] = None
) -> bool:
    return any(
        secret_value_equals(key_value, k.value)
        and (key_name is None or k.name.lower() == key_name.lower())
        for k in keys
    )


def _has_matching_secret(
    secrets: Optional[Mapping[str, str]],
    key_value: str,
    key_name: Optional[str] = None,
) -> bool:
    if not secrets:
        return False
    return any(
        secret_value_equals(key_value, value)
        and (key_name is None or name.lower() == key_name.lower())
        for name, value in secrets.items()
    )


async def get_authorization_level(
    key_value: Optional[str],
    store: SecretStore,
    function_name: Optional[str] = None,
    key_name: Optional[str] = None,
) -> AuthorizationLevel:
    """Resolve the authorization level granted by a candidate key.

    Args:
        key_value: Candidate key supplied by the caller.
        store: Source of host and function secrets.
        function_name: Target function of the invocation, if any.
        key_name: When given, only keys with this name match (function tier).

    Returns:
        The highest AuthorizationLevel the key grants.

    Raises:
        StoreUnavailable: If the store cannot load its secrets.
        FormatError: If a stored secrets document is malformed.
    """
    if not key_value:
        return AuthorizationLevel.ANONYMOUS

    host = await store.get_host_secrets()
    master = host.master_key
    if master is not None and secret_value_equals(key_value, master.value):
        return AuthorizationLevel.ADMIN

    if _has_matching_key(host.system_keys, key_value):
        return AuthorizationLevel.SYSTEM

    if _has_matching_key(host.function_keys, key_value, key_name):
        return AuthorizationLevel.FUNCTION

    if function_name:
        secrets = await store.get_function_secrets(function_name)
        if _has_matching_secret(secrets, key_value, key_name):
            return AuthorizationLevel.FUNCTION

    return AuthorizationLevel.ANONYMOUS


async def get_request_authorization_level(
    request: web.Request,
    store: SecretStore,
    function_name: Optional[str] = None,
) -> AuthorizationLevel:
    """Resolve the authorization level of an aiohttp request."""
    key_value = extract_key_value(request.headers, request.query)
    level = await get_authorization_level(key_value, store, function_name)
    logger.debug(
        "Authorization level for %s %s (function=%s): %s",
        request.method, request.path, function_name, level,
    )
    return level
