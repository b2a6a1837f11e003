"""Shared fixtures for funchost_auth tests."""
import pytest

from funchost_auth.vault.models import HostSecrets, Key
from funchost_auth.vault.store import SecretStore

MASTER = "master-key-value"
SYSTEM = "system-key-value"
HOST_FUNCTION = "host-function-key-value"
FUNCTION = "function-key-value"


class FakeSecretStore(SecretStore):
    """In-memory store recording every lookup."""

    def __init__(self, host=None, functions=None, error=None):
        self.host = host if host is not None else HostSecrets()
        self.functions = functions or {}
        self.error = error
        self.calls = []

    async def get_host_secrets(self):
        self.calls.append(("host", None))
        if self.error is not None:
            raise self.error
        return self.host

    async def get_function_secrets(self, function_name):
        self.calls.append(("function", function_name))
        if self.error is not None:
            raise self.error
        return self.functions.get(function_name, {})


@pytest.fixture
def host_secrets():
    return HostSecrets(
        master_key=Key(name="_master", value=MASTER),
        system_keys=[Key(name="durable", value=SYSTEM)],
        function_keys=[Key(name="default", value=HOST_FUNCTION)],
    )


@pytest.fixture
def store(host_secrets):
    return FakeSecretStore(
        host=host_secrets,
        functions={"httptrigger": {"default": FUNCTION}},
    )


@pytest.fixture
def make_store():
    """Factory for stores with custom secrets or a failing backend."""
    return FakeSecretStore
