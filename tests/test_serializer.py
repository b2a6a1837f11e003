"""
Tests for the versioned secrets serializers.

Tests cover:
- Version 0 (legacy) function and host layouts
- Version 1 layout with names, encryption metadata and system keys
- Version detection and dispatch (read-many, write-one)
- FormatError on malformed documents
"""
import orjson
import pytest

from funchost_auth.exceptions import FormatError
from funchost_auth.vault.models import HostSecrets, Key
from funchost_auth.vault.serializer import (
    CURRENT_FORMAT_VERSION,
    SecretSerializerV0,
    SecretSerializerV1,
    detect_format_version,
    dump_function_secrets,
    dump_host_secrets,
    get_serializer,
    load_function_secrets,
    load_host_secrets,
    needs_upgrade,
    parse_document,
)


@pytest.fixture
def v0():
    return SecretSerializerV0()


@pytest.fixture
def v1():
    return SecretSerializerV1()


# --- Version 0 ---

class TestSerializerV0:
    """Tests for the legacy flat layout."""

    def test_supported_format_version(self, v0):
        assert v0.supported_format_version == 0

    def test_serialize_function_secrets(self, v0):
        """Only the first key value is representable."""
        keys = [
            Key(name="", value="Value1", encryption_key_id="KeyId1"),
            Key(name="Key2", value="Value2", is_encrypted=True, encryption_key_id="KeyId2"),
        ]
        doc = orjson.loads(v0.serialize_function_secrets(keys))
        assert doc == {"key": "Value1"}

    def test_serialize_function_secrets_requires_a_key(self, v0):
        with pytest.raises(ValueError):
            v0.serialize_function_secrets([])

    def test_deserialize_function_secrets(self, v0):
        keys = v0.deserialize_function_secrets({"key": "TestValue"})
        assert keys == [Key(name="", value="TestValue", is_encrypted=False)]
        assert keys[0].encryption_key_id is None

    def test_deserialize_function_secrets_missing_key(self, v0):
        with pytest.raises(FormatError):
            v0.deserialize_function_secrets({})

    def test_deserialize_function_secrets_wrong_type(self, v0):
        with pytest.raises(FormatError):
            v0.deserialize_function_secrets({"key": 42})

    def test_deserialize_host_secrets(self, v0):
        secrets = v0.deserialize_host_secrets(
            {"masterKey": "master", "functionKey": "master"}
        )
        assert secrets.master_key == Key(name="", value="master")
        assert secrets.function_keys == (Key(name="", value="master"),)
        assert secrets.system_keys == ()

    def test_deserialize_host_secrets_without_master(self, v0):
        """A missing master key is valid state, not an error."""
        secrets = v0.deserialize_host_secrets({"functionKey": "fk"})
        assert secrets.master_key is None
        assert len(secrets.function_keys) == 1

    def test_deserialize_host_secrets_empty(self, v0):
        secrets = v0.deserialize_host_secrets({})
        assert secrets.empty is True

    def test_deserialize_host_secrets_numeric_master(self, v0):
        with pytest.raises(FormatError):
            v0.deserialize_host_secrets({"masterKey": 12345})

    def test_serialize_host_secrets(self, v0):
        secrets = HostSecrets(
            master_key=Key(name="master", value="mastervalue"),
            function_keys=[
                Key(name="", value="functionKeyValue", encryption_key_id="KeyId1"),
            ],
            system_keys=[Key(name="sys", value="systemValue")],
        )
        doc = orjson.loads(v0.serialize_host_secrets(secrets))
        assert doc == {"masterKey": "mastervalue", "functionKey": "functionKeyValue"}

    def test_serialize_host_secrets_omits_absent_fields(self, v0):
        doc = orjson.loads(v0.serialize_host_secrets(HostSecrets()))
        assert doc == {}

    def test_host_round_trip(self, v0):
        secrets = HostSecrets(
            master_key=Key(value="m"),
            function_keys=[Key(value="f")],
        )
        doc = orjson.loads(v0.serialize_host_secrets(secrets))
        assert v0.deserialize_host_secrets(doc) == secrets


# --- Version 1 ---

class TestSerializerV1:
    """Tests for the current layout."""

    def test_supported_format_version(self, v1):
        assert v1.supported_format_version == 1

    def test_serialize_function_secrets(self, v1):
        keys = [
            Key(name="default", value="v1"),
            Key(name="other", value="v2", is_encrypted=True, encryption_key_id="kid"),
        ]
        doc = orjson.loads(v1.serialize_function_secrets(keys))
        assert doc == {
            "version": 1,
            "keys": [
                {"name": "default", "value": "v1", "encrypted": False, "encryptionKeyId": None},
                {"name": "other", "value": "v2", "encrypted": True, "encryptionKeyId": "kid"},
            ],
        }

    def test_serialize_is_deterministic(self, v1):
        secrets = HostSecrets(
            master_key=Key(name="_master", value="m"),
            system_keys=[Key(name="a", value="s")],
        )
        assert v1.serialize_host_secrets(secrets) == v1.serialize_host_secrets(secrets)

    def test_deserialize_function_secrets_defaults(self, v1):
        keys = v1.deserialize_function_secrets(
            {"version": 1, "keys": [{"name": "default", "value": "abc"}]}
        )
        assert keys == [Key(name="default", value="abc")]

    def test_deserialize_function_secrets_requires_keys(self, v1):
        with pytest.raises(FormatError):
            v1.deserialize_function_secrets({"version": 1})

    def test_deserialize_function_secrets_requires_value(self, v1):
        with pytest.raises(FormatError):
            v1.deserialize_function_secrets(
                {"version": 1, "keys": [{"name": "default"}]}
            )

    def test_deserialize_function_secrets_rejects_non_list(self, v1):
        with pytest.raises(FormatError):
            v1.deserialize_function_secrets({"version": 1, "keys": {"name": "x"}})

    def test_deserialize_encrypted_flag_must_be_bool(self, v1):
        with pytest.raises(FormatError):
            v1.deserialize_function_secrets(
                {"version": 1, "keys": [{"name": "a", "value": "b", "encrypted": "yes"}]}
            )

    def test_duplicate_names_rejected_on_read(self, v1):
        with pytest.raises(FormatError, match="Duplicate"):
            v1.deserialize_function_secrets({
                "version": 1,
                "keys": [
                    {"name": "default", "value": "first"},
                    {"name": "default", "value": "second"},
                ],
            })

    def test_duplicate_names_rejected_on_write(self, v1):
        """Two unnamed keys would collapse into one on load."""
        with pytest.raises(ValueError):
            v1.serialize_function_secrets([Key(value="first"), Key(value="second")])

    def test_host_without_key_arrays(self, v1):
        secrets = v1.deserialize_host_secrets(
            {"version": 1, "master": {"name": "_master", "value": "m"}}
        )
        assert secrets.master_key == Key(name="_master", value="m")
        assert secrets.function_keys == ()
        assert secrets.system_keys == ()

    def test_host_master_absent(self, v1):
        secrets = v1.deserialize_host_secrets(
            {"version": 1, "systemKeys": [{"name": "durable", "value": "s"}]}
        )
        assert secrets.master_key is None
        assert secrets.system_keys == (Key(name="durable", value="s"),)

    @pytest.mark.parametrize("field", ["systemKeys", "functionKeys"])
    def test_host_key_arrays_must_be_arrays(self, v1, field):
        with pytest.raises(FormatError):
            v1.deserialize_host_secrets({"version": 1, field: "abc"})

    def test_host_master_must_be_object(self, v1):
        with pytest.raises(FormatError):
            v1.deserialize_host_secrets({"version": 1, "master": "abc"})

    def test_host_key_entries_must_be_objects(self, v1):
        with pytest.raises(FormatError):
            v1.deserialize_host_secrets({"version": 1, "systemKeys": ["abc"]})

    def test_host_round_trip(self, v1):
        secrets = HostSecrets(
            master_key=Key(name="_master", value="m", is_encrypted=True, encryption_key_id="kid"),
            function_keys=[Key(name="default", value="f1"), Key(name="second", value="f2")],
            system_keys=[Key(name="durable", value="s1")],
        )
        doc = orjson.loads(v1.serialize_host_secrets(secrets))
        assert v1.deserialize_host_secrets(doc) == secrets

    def test_host_without_master(self, v1):
        doc = orjson.loads(v1.serialize_host_secrets(HostSecrets()))
        assert doc["master"] is None
        secrets = v1.deserialize_host_secrets(doc)
        assert secrets.master_key is None
        assert secrets.function_keys == ()

    def test_host_fields_do_not_collide_with_v0(self, v1):
        doc = orjson.loads(v1.serialize_host_secrets(
            HostSecrets(master_key=Key(value="m"), function_keys=[Key(value="f")])
        ))
        assert "masterKey" not in doc
        assert "functionKey" not in doc


# --- Dispatch ---

class TestDispatch:
    """Tests for version detection and the load/dump helpers."""

    def test_no_marker_is_version_0(self):
        assert detect_format_version({"masterKey": "m"}) == 0

    def test_marker_detected(self):
        assert detect_format_version({"version": 1}) == 1

    def test_unknown_version(self):
        with pytest.raises(FormatError):
            detect_format_version({"version": 99})

    def test_boolean_marker_rejected(self):
        with pytest.raises(FormatError):
            detect_format_version({"version": True})

    def test_string_marker_rejected(self):
        with pytest.raises(FormatError):
            detect_format_version({"version": "1"})

    def test_get_serializer_defaults_to_current(self):
        assert get_serializer().supported_format_version == CURRENT_FORMAT_VERSION

    def test_get_serializer_unknown(self):
        with pytest.raises(FormatError):
            get_serializer(7)

    def test_load_v0_host_secrets(self):
        secrets = load_host_secrets('{"masterKey": "master", "functionKey": "fk"}')
        assert secrets.master_key.value == "master"
        assert secrets.function_keys[0].value == "fk"

    def test_load_v0_function_secrets(self):
        assert load_function_secrets(b'{"key": "TestValue"}') == [Key(value="TestValue")]

    def test_dump_upgrades_to_current_version(self):
        secrets = load_host_secrets('{"masterKey": "master", "functionKey": "fk"}')
        doc = orjson.loads(dump_host_secrets(secrets))
        assert doc["version"] == CURRENT_FORMAT_VERSION
        assert doc["master"]["value"] == "master"
        assert doc["functionKeys"][0]["value"] == "fk"
        assert load_host_secrets(dump_host_secrets(secrets)) == secrets

    def test_dump_function_secrets_current_version(self):
        doc = orjson.loads(dump_function_secrets([Key(value="TestValue")]))
        assert doc["version"] == CURRENT_FORMAT_VERSION
        assert doc["keys"][0]["name"] == ""

    def test_needs_upgrade(self):
        assert needs_upgrade({"key": "x"}) is True
        assert needs_upgrade({"version": CURRENT_FORMAT_VERSION, "keys": []}) is False

    def test_malformed_json(self):
        with pytest.raises(FormatError):
            load_host_secrets("{not json")

    def test_non_object_document(self):
        with pytest.raises(FormatError):
            parse_document("[1, 2, 3]")

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            load_function_secrets("")
