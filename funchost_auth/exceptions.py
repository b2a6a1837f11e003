"""Exceptions raised while loading secrets or resolving access levels."""


class AuthLevelError(Exception):
    """Base error for the funchost_auth package."""


class FormatError(AuthLevelError, ValueError):
    """A secrets document is not valid JSON or has the wrong shape."""


class StoreUnavailable(AuthLevelError):
    """The secret store could not produce a snapshot."""
