"""
Secret Store — Snapshot access to host and function secrets.

``FileSecretStore`` keeps one immutable ``SecretsSnapshot`` in memory:
- loaded on first access from ``<secrets_path>/<host_file_name>`` and
  ``<secrets_path>/<function>.json``
- replaced as a whole by ``refresh()`` and after every write
- dropped by ``teardown()``

Readers never lock; refreshes and writes are serialized by an
``asyncio.Lock``. Documents are read in any supported format version and
always written in the current one.

Security Note:
    Never log key values. Only log file names, function names and counts.
"""
import os
import asyncio
import contextlib
import functools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Optional, TypeVar, Union

from ..conf import LOGGER_NAME
from ..exceptions import FormatError, StoreUnavailable
from .config import DEFAULT_HOST_FILE, SecretsConfig
from .models import FunctionSecrets, HostSecrets, Key
from .serializer import (
    dump_function_secrets,
    dump_host_secrets,
    detect_format_version,
    get_serializer,
    load_function_secrets,
    load_host_secrets,
    needs_upgrade,
    parse_document,
)

logger = logging.getLogger(LOGGER_NAME)

T = TypeVar("T")

_EMPTY_SECRETS: FunctionSecrets = MappingProxyType({})


class SecretStore(ABC):
    """Source of secrets for authorization-level resolution."""

    @abstractmethod
    async def get_host_secrets(self) -> HostSecrets:
        """Return the current host secrets (empty when none configured)."""

    @abstractmethod
    async def get_function_secrets(self, function_name: str) -> FunctionSecrets:
        """Return secret name -> value for one function (empty if none)."""


@dataclass(frozen=True)
class SecretsSnapshot:
    """Host and function secrets loaded together in one refresh."""

    host: HostSecrets = field(default_factory=HostSecrets)
    functions: Mapping[str, FunctionSecrets] = field(
        default_factory=lambda: MappingProxyType({})
    )


class FileSecretStore(SecretStore):
    """Secret store backed by a directory of JSON documents."""

    def __init__(
        self,
        secrets_path: Union[str, Path],
        host_file_name: str = DEFAULT_HOST_FILE,
    ):
        self._path = Path(secrets_path)
        self._host_file = host_file_name
        self._snapshot: Optional[SecretsSnapshot] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: SecretsConfig) -> "FileSecretStore":
        return cls(config.secrets_path, host_file_name=config.host_file_name)

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _parse(self, entry: Path, loader: Callable[[bytes], T]) -> T:
        """Read and deserialize one document, naming the file on errors."""
        raw = entry.read_bytes()
        try:
            return loader(raw)
        except FormatError as err:
            raise FormatError(f"{entry.name}: {err}") from err

    def _function_name(self, entry: Path) -> str:
        return entry.stem.lower()

    def _read_snapshot(self) -> SecretsSnapshot:
        """Blocking load of every secrets document in the directory."""
        if not self._path.is_dir():
            logger.info("No secrets configured at %s", self._path)
            return SecretsSnapshot()
        host = HostSecrets()
        functions: dict[str, FunctionSecrets] = {}
        try:
            for entry in sorted(self._path.glob("*.json")):
                if entry.name == self._host_file:
                    host = self._parse(entry, load_host_secrets)
                else:
                    keys = self._parse(entry, load_function_secrets)
                    functions[self._function_name(entry)] = MappingProxyType(
                        {k.name: k.value for k in keys}
                    )
        except OSError as err:
            raise StoreUnavailable(
                f"Unable to read secrets from {self._path}: {err}"
            ) from err
        logger.info(
            "Secrets loaded from %s: master_key=%s, %d system key(s), "
            "%d host function key(s), %d function(s)",
            self._path,
            host.master_key is not None,
            len(host.system_keys),
            len(host.function_keys),
            len(functions),
        )
        return SecretsSnapshot(host=host, functions=MappingProxyType(functions))

    async def _reload(self) -> SecretsSnapshot:
        snapshot = await asyncio.to_thread(self._read_snapshot)
        self._snapshot = snapshot
        return snapshot

    async def snapshot(self) -> SecretsSnapshot:
        """Return the resident snapshot, loading it on first access."""
        snapshot = self._snapshot
        if snapshot is None:
            async with self._lock:
                snapshot = self._snapshot
                if snapshot is None:
                    snapshot = await self._reload()
        return snapshot

    async def refresh(self) -> SecretsSnapshot:
        """Reload every document and swap in the new snapshot."""
        async with self._lock:
            return await self._reload()

    async def teardown(self) -> None:
        """Drop the resident snapshot."""
        async with self._lock:
            self._snapshot = None
        logger.debug("Secret store at %s torn down", self._path)

    # ------------------------------------------------------------------
    # SecretStore API
    # ------------------------------------------------------------------

    async def get_host_secrets(self) -> HostSecrets:
        return (await self.snapshot()).host

    async def get_function_secrets(self, function_name: str) -> FunctionSecrets:
        functions = (await self.snapshot()).functions
        return functions.get(function_name.lower(), _EMPTY_SECRETS)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write(self, file_name: str, content: str) -> None:
        """Atomically replace one document."""
        target = self._path / file_name
        tmp = target.with_name(f".{file_name}.tmp")
        try:
            self._path.mkdir(parents=True, exist_ok=True)
            tmp.write_text(content, encoding="utf-8")
            os.replace(tmp, target)
        except OSError as err:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise StoreUnavailable(
                f"Unable to write secrets file {file_name}: {err}"
            ) from err

    def _function_file(self, function_name: str) -> str:
        name = function_name.lower()
        if not name or Path(name).name != name or name.startswith("."):
            raise ValueError(f"Invalid function name: {function_name!r}")
        file_name = f"{name}.json"
        if file_name == self._host_file:
            raise ValueError(
                f"Function name {function_name!r} collides with host secrets"
            )
        return file_name

    async def save_host_secrets(self, secrets: HostSecrets) -> None:
        """Persist host secrets in the current format version."""
        content = dump_host_secrets(secrets)
        async with self._lock:
            await asyncio.to_thread(self._write, self._host_file, content)
            await self._reload()
        logger.info("Host secrets saved to %s", self._host_file)

    async def save_function_secrets(
        self, function_name: str, keys: Sequence[Key]
    ) -> None:
        """Persist one function's secrets in the current format version.

        Raises:
            ValueError: If the function name is invalid or key names repeat.
        """
        file_name = self._function_file(function_name)
        content = dump_function_secrets(keys)
        async with self._lock:
            await asyncio.to_thread(self._write, file_name, content)
            await self._reload()
        logger.info(
            "Function secrets saved: function=%s keys=%d",
            function_name, len(keys),
        )

    def _upgraded_content(self, entry: Path, raw: bytes) -> Optional[str]:
        """Current-version content for an outdated document, else None."""
        doc = parse_document(raw)
        if not needs_upgrade(doc):
            return None
        serializer = get_serializer(detect_format_version(doc))
        if entry.name == self._host_file:
            return dump_host_secrets(serializer.deserialize_host_secrets(doc))
        return dump_function_secrets(
            serializer.deserialize_function_secrets(doc)
        )

    def _upgrade_documents(self) -> list[str]:
        upgraded: list[str] = []
        if not self._path.is_dir():
            return upgraded
        try:
            for entry in sorted(self._path.glob("*.json")):
                content = self._parse(
                    entry, functools.partial(self._upgraded_content, entry)
                )
                if content is None:
                    continue
                self._write(entry.name, content)
                upgraded.append(entry.name)
        except OSError as err:
            raise StoreUnavailable(
                f"Unable to read secrets from {self._path}: {err}"
            ) from err
        return upgraded

    async def upgrade(self) -> list[str]:
        """Rewrite every document older than the current format version.

        Returns:
            File names of the upgraded documents.
        """
        async with self._lock:
            upgraded = await asyncio.to_thread(self._upgrade_documents)
            if upgraded:
                await self._reload()
        if upgraded:
            logger.info(
                "Upgraded %d secrets document(s): %s",
                len(upgraded), ", ".join(upgraded),
            )
        return upgraded
