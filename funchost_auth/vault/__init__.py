"""Secrets Vault — Host and function secrets for authorization.

Security Note (Threat Model):
    Key values are held in process memory for the lifetime of a snapshot
    and compared in constant time. Encryption at rest is delegated to an
    external key provider: ``Key.is_encrypted`` and
    ``Key.encryption_key_id`` are carried through untouched.
"""

from .compare import secret_value_equals
from .config import SecretsConfig
from .models import (
    FunctionSecrets,
    HostSecrets,
    Key,
    generate_key_value,
    new_host_secrets,
)
from .serializer import (
    CURRENT_FORMAT_VERSION,
    SecretSerializer,
    SecretSerializerV0,
    SecretSerializerV1,
    detect_format_version,
    dump_function_secrets,
    dump_host_secrets,
    get_serializer,
    load_function_secrets,
    load_host_secrets,
)
from .store import FileSecretStore, SecretStore, SecretsSnapshot

__all__ = [
    "secret_value_equals",
    "SecretsConfig",
    "FunctionSecrets",
    "HostSecrets",
    "Key",
    "generate_key_value",
    "new_host_secrets",
    "CURRENT_FORMAT_VERSION",
    "SecretSerializer",
    "SecretSerializerV0",
    "SecretSerializerV1",
    "detect_format_version",
    "dump_function_secrets",
    "dump_host_secrets",
    "get_serializer",
    "load_function_secrets",
    "load_host_secrets",
    "FileSecretStore",
    "SecretStore",
    "SecretsSnapshot",
]
