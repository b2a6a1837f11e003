"""
Secrets Model — In-memory representation of host and function secrets.

``Key`` and ``HostSecrets`` are frozen: a loaded snapshot is shared by
every concurrent resolution and is replaced, never mutated.
"""
import secrets
from typing import Optional
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

# secret name -> secret value, for a single function
FunctionSecrets = Mapping[str, str]

MASTER_KEY_NAME = "_master"
DEFAULT_KEY_NAME = "default"


class Key(BaseModel):
    """A named secret.

    ``name`` is empty for keys read from the legacy single-key layout.
    ``is_encrypted`` and ``encryption_key_id`` are opaque markers for an
    external key provider; the value is stored and compared as given.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    value: str
    is_encrypted: bool = False
    encryption_key_id: Optional[str] = None

    def __repr__(self) -> str:
        # never echo the secret value
        return (
            f"Key(name={self.name!r}, is_encrypted={self.is_encrypted!r}, "
            f"encryption_key_id={self.encryption_key_id!r})"
        )

    __str__ = __repr__


class HostSecrets(BaseModel):
    """Host-level secrets: master key, system keys and shared function keys."""

    model_config = ConfigDict(frozen=True)

    master_key: Optional[Key] = None
    function_keys: tuple[Key, ...] = Field(default_factory=tuple)
    system_keys: tuple[Key, ...] = Field(default_factory=tuple)

    @property
    def empty(self) -> bool:
        return (
            self.master_key is None
            and not self.function_keys
            and not self.system_keys
        )


def generate_key_value() -> str:
    """Generate a random URL-safe key value.

    Values are safe to send in a header or a query string as-is.

    Returns:
        A 54-character URL-safe string (40 random bytes, unpadded).
    """
    return secrets.token_urlsafe(40)


def new_host_secrets() -> HostSecrets:
    """Create host secrets for a host that has none configured yet.

    Returns:
        HostSecrets with a fresh master key and one default function key.
    """
    return HostSecrets(
        master_key=Key(name=MASTER_KEY_NAME, value=generate_key_value()),
        function_keys=(Key(name=DEFAULT_KEY_NAME, value=generate_key_value()),),
    )
