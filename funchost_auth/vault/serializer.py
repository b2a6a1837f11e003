"""
Secrets Serializer — Versioned on-disk layouts for host and function secrets.

Supported layouts:
- Version 0 (legacy): flat, single-key documents
    function: {"key": "<value>"}
    host:     {"masterKey": "<value>", "functionKey": "<value>"}
- Version 1 (current): named keys, system keys, explicit marker
    function: {"version": 1, "keys": [<key>, ...]}
    host:     {"version": 1, "master": <key>|null,
               "functionKeys": [<key>, ...], "systemKeys": [<key>, ...]}
    key:      {"name": ..., "value": ..., "encrypted": ..., "encryptionKeyId": ...}

Documents are read in any supported version; they are always written
in ``CURRENT_FORMAT_VERSION``.

Security Note:
    Error messages name fields and types only, never field values.
"""
from typing import Any, Optional, Protocol, Union
from collections.abc import Sequence

import orjson

from ..exceptions import FormatError
from .models import HostSecrets, Key

VERSION_FIELD = "version"
CURRENT_FORMAT_VERSION = 1


class SecretSerializer(Protocol):
    """Contract shared by every format version."""

    supported_format_version: int

    def deserialize_function_secrets(self, doc: dict) -> list[Key]:
        ...

    def serialize_function_secrets(self, keys: Sequence[Key]) -> str:
        ...

    def deserialize_host_secrets(self, doc: dict) -> HostSecrets:
        ...

    def serialize_host_secrets(self, secrets: HostSecrets) -> str:
        ...


def _dumps(doc: dict) -> str:
    return orjson.dumps(doc, option=orjson.OPT_INDENT_2).decode("utf-8")


def _optional_str(doc: dict, field: str) -> Optional[str]:
    value = doc.get(field)
    if value is not None and not isinstance(value, str):
        raise FormatError(
            f"'{field}' must be a string, got {type(value).__name__}"
        )
    return value


def _required_str(doc: dict, field: str) -> str:
    if field not in doc:
        raise FormatError(f"Missing required field '{field}'")
    value = _optional_str(doc, field)
    if value is None:
        raise FormatError(f"'{field}' cannot be null")
    return value


# ---------------------------------------------------------------------------
# Version 0
# ---------------------------------------------------------------------------

class SecretSerializerV0:
    """Legacy layout: one unnamed value per document, no system keys."""

    supported_format_version = 0

    def deserialize_function_secrets(self, doc: dict) -> list[Key]:
        return [Key(name="", value=_required_str(doc, "key"))]

    def serialize_function_secrets(self, keys: Sequence[Key]) -> str:
        if not keys:
            raise ValueError(
                "Format version 0 requires exactly one function key"
            )
        return _dumps({"key": keys[0].value})

    def deserialize_host_secrets(self, doc: dict) -> HostSecrets:
        master = _optional_str(doc, "masterKey")
        function_key = _optional_str(doc, "functionKey")
        return HostSecrets(
            master_key=Key(name="", value=master) if master is not None else None,
            function_keys=(
                (Key(name="", value=function_key),)
                if function_key is not None else ()
            ),
        )

    def serialize_host_secrets(self, secrets: HostSecrets) -> str:
        doc: dict[str, str] = {}
        if secrets.master_key is not None:
            doc["masterKey"] = secrets.master_key.value
        if secrets.function_keys:
            doc["functionKey"] = secrets.function_keys[0].value
        return _dumps(doc)


# ---------------------------------------------------------------------------
# Version 1
# ---------------------------------------------------------------------------

def _key_from_doc(doc: Any, where: str) -> Key:
    if not isinstance(doc, dict):
        raise FormatError(
            f"{where} must be an object, got {type(doc).__name__}"
        )
    encrypted = doc.get("encrypted", False)
    if not isinstance(encrypted, bool):
        raise FormatError(f"{where}.encrypted must be a boolean")
    try:
        return Key(
            name=_required_str(doc, "name"),
            value=_required_str(doc, "value"),
            is_encrypted=encrypted,
            encryption_key_id=_optional_str(doc, "encryptionKeyId"),
        )
    except FormatError as err:
        raise FormatError(f"{where}: {err}") from err


def _key_to_doc(key: Key) -> dict[str, Any]:
    return {
        "name": key.name,
        "value": key.value,
        "encrypted": key.is_encrypted,
        "encryptionKeyId": key.encryption_key_id,
    }


def _check_unique_names(keys: Sequence[Key]) -> None:
    seen: set[str] = set()
    for key in keys:
        if key.name in seen:
            raise ValueError(f"Duplicate function key name: {key.name!r}")
        seen.add(key.name)


def _key_list(doc: dict, field: str) -> list[Key]:
    items = doc.get(field)
    if items is None:
        return []
    if not isinstance(items, list):
        raise FormatError(
            f"'{field}' must be an array, got {type(items).__name__}"
        )
    return [_key_from_doc(item, f"{field}[{idx}]") for idx, item in enumerate(items)]


class SecretSerializerV1:
    """Current layout: named keys with encryption metadata and system keys."""

    supported_format_version = 1

    def deserialize_function_secrets(self, doc: dict) -> list[Key]:
        if "keys" not in doc:
            raise FormatError("Missing required field 'keys'")
        keys = _key_list(doc, "keys")
        try:
            _check_unique_names(keys)
        except ValueError as err:
            raise FormatError(str(err)) from err
        return keys

    def serialize_function_secrets(self, keys: Sequence[Key]) -> str:
        _check_unique_names(keys)
        return _dumps({
            VERSION_FIELD: self.supported_format_version,
            "keys": [_key_to_doc(k) for k in keys],
        })

    def deserialize_host_secrets(self, doc: dict) -> HostSecrets:
        master = doc.get("master")
        return HostSecrets(
            master_key=_key_from_doc(master, "master") if master is not None else None,
            function_keys=tuple(_key_list(doc, "functionKeys")),
            system_keys=tuple(_key_list(doc, "systemKeys")),
        )

    def serialize_host_secrets(self, secrets: HostSecrets) -> str:
        master = secrets.master_key
        return _dumps({
            VERSION_FIELD: self.supported_format_version,
            "master": _key_to_doc(master) if master is not None else None,
            "functionKeys": [_key_to_doc(k) for k in secrets.function_keys],
            "systemKeys": [_key_to_doc(k) for k in secrets.system_keys],
        })


SERIALIZERS: dict[int, SecretSerializer] = {
    0: SecretSerializerV0(),
    1: SecretSerializerV1(),
}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def get_serializer(version: Optional[int] = None) -> SecretSerializer:
    """Return the serializer for a format version.

    Args:
        version: Format version; defaults to ``CURRENT_FORMAT_VERSION``.

    Raises:
        FormatError: If the version is not supported.
    """
    if version is None:
        version = CURRENT_FORMAT_VERSION
    try:
        return SERIALIZERS[version]
    except KeyError:
        raise FormatError(
            f"Unsupported secrets format version: {version}"
        ) from None


def detect_format_version(doc: dict) -> int:
    """Return the format version of a parsed secrets document.

    Documents without a version marker are version 0.

    Raises:
        FormatError: If the marker is not an integer or is unsupported.
    """
    if VERSION_FIELD not in doc:
        return 0
    version = doc[VERSION_FIELD]
    # bool is an int subclass
    if isinstance(version, bool) or not isinstance(version, int):
        raise FormatError(
            f"'{VERSION_FIELD}' must be an integer, got {type(version).__name__}"
        )
    if version not in SERIALIZERS:
        raise FormatError(f"Unsupported secrets format version: {version}")
    return version


def needs_upgrade(doc: dict) -> bool:
    """True when a parsed document is older than the current format."""
    return detect_format_version(doc) < CURRENT_FORMAT_VERSION


def parse_document(raw: Union[str, bytes]) -> dict:
    """Parse a raw secrets document into a JSON object.

    Raises:
        FormatError: If ``raw`` is not valid JSON or not a JSON object.
    """
    try:
        doc = orjson.loads(raw)
    except orjson.JSONDecodeError as err:
        raise FormatError(f"Invalid secrets document: {err}") from err
    if not isinstance(doc, dict):
        raise FormatError(
            f"Secrets document must be a JSON object, got {type(doc).__name__}"
        )
    return doc


def load_host_secrets(raw: Union[str, bytes]) -> HostSecrets:
    """Deserialize host secrets from any supported format version."""
    doc = parse_document(raw)
    return get_serializer(detect_format_version(doc)).deserialize_host_secrets(doc)


def load_function_secrets(raw: Union[str, bytes]) -> list[Key]:
    """Deserialize function secrets from any supported format version."""
    doc = parse_document(raw)
    return get_serializer(detect_format_version(doc)).deserialize_function_secrets(doc)


def dump_host_secrets(secrets: HostSecrets) -> str:
    """Serialize host secrets in the current format version."""
    return get_serializer().serialize_host_secrets(secrets)


def dump_function_secrets(keys: Sequence[Key]) -> str:
    """Serialize function secrets in the current format version."""
    return get_serializer().serialize_function_secrets(keys)
