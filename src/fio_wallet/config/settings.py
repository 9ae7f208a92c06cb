"""Library settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``FIOWALLET_``, nested via ``__``)
2. YAML config file (``FIOWALLET_CONFIG_PATH`` env var or ``AppConfig.from_yaml``)
3. Defaults defined here

Settings objects are passed explicitly to the functions that need them.
Only ``AppConfig`` reads the environment; the sub-configs are plain models,
so omitting ``config=`` always means the built-in defaults.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class EnvelopeEncoding(enum.StrEnum):
    """Text transport encoding for encrypted envelopes."""

    HEX = "hex"
    BASE64 = "base64"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class KeyConfig(BaseModel):
    """HD derivation settings.

    A plain model: building one never reads the environment. Environment
    overrides (``FIOWALLET_KEYS__*``) apply only through :class:`AppConfig`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    coin_type: int = Field(default=235, ge=0, lt=0x80000000)
    account: int = Field(default=0, ge=0, lt=0x80000000)
    change: int = Field(default=0, ge=0, lt=0x80000000)

    def derivation_path(self, index: int) -> str:
        """BIP44 path for the child key at *index*."""
        return f"m/44'/{self.coin_type}'/{self.account}'/{self.change}/{index}"


class MessagingConfig(BaseModel):
    """Encrypted content settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    envelope_encoding: EnvelopeEncoding = Field(
        default=EnvelopeEncoding.BASE64,
        description="Transport encoding for encrypted content: base64 or hex",
    )


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level configuration.

    Loads settings from environment variables (``FIOWALLET_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="FIOWALLET_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    config_path: str = ""

    keys: KeyConfig = Field(default_factory=KeyConfig)
    messaging: MessagingConfig = Field(default_factory=MessagingConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
