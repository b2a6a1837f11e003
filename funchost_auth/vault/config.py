"""
Secrets Configuration — Validated settings for the file-backed secret store.

Reads settings from environment variables:
    FUNCTIONS_SECRETS_PATH = <directory holding secrets documents>
    FUNCTIONS_HOST_SECRETS_FILE = <host secrets file name, default host.json>
"""
import os
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from ..conf import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

DEFAULT_SECRETS_PATH = "./secrets"
DEFAULT_HOST_FILE = "host.json"


class SecretsConfig(BaseModel):
    """Validated secret store configuration."""

    secrets_path: Path = Field(default=Path(DEFAULT_SECRETS_PATH))
    host_file_name: str = Field(default=DEFAULT_HOST_FILE)

    @field_validator("host_file_name")
    @classmethod
    def validate_host_file(cls, v: str) -> str:
        """Host secrets must live directly in the secrets directory."""
        if not v.endswith(".json"):
            raise ValueError(f"Host secrets file must be a .json file: {v}")
        if Path(v).name != v:
            raise ValueError(f"Host secrets file must be a bare file name: {v}")
        return v

    @classmethod
    def from_env(cls) -> "SecretsConfig":
        """Create SecretsConfig by loading values from environment.

        Returns:
            Populated SecretsConfig instance.
        """
        config = cls(
            secrets_path=os.environ.get(
                "FUNCTIONS_SECRETS_PATH", DEFAULT_SECRETS_PATH
            ),
            host_file_name=os.environ.get(
                "FUNCTIONS_HOST_SECRETS_FILE", DEFAULT_HOST_FILE
            ),
        )
        logger.debug(
            "Secrets configuration: path=%s host_file=%s",
            config.secrets_path, config.host_file_name,
        )
        return config
