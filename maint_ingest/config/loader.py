from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.records import RecordKind
from ..services.kinds import DEFAULT_STORAGE_KEYS

"""Configuration loading.

Responsibilities:
- Load the YAML config (``config/ingest.yml`` by default)
- Validate it against the JSON schema shipped next to this module
- Apply defaults for every omitted key
"""

__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "StoreConfig",
    "IngestConfig",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "default_config",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Fallback connection settings; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class StoreConfig:
    backend: str = "json"  # memory | json | postgres
    directory: str = "./data"  # json backend
    table: str = "maint_blobs"  # postgres backend


@dataclass(frozen=True)
class IngestConfig:
    store: StoreConfig = field(default_factory=StoreConfig)
    storage_keys: dict[RecordKind, str] = field(default_factory=lambda: dict(DEFAULT_STORAGE_KEYS))
    strict_duplicates: bool = False  # reject colliding composite keys instead of merging
    derive_next_due: bool = False  # fill empty OCM next date from last date + 1 year
    keep_na_strings: list[str] = field(default_factory=list)
    log_dir: str = "./logs"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def storage_key(self, kind: RecordKind) -> str:
        return self.storage_keys[kind]


def default_config() -> IngestConfig:
    return IngestConfig()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> IngestConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    store_raw = data.get("store", {})
    store = StoreConfig(
        backend=store_raw.get("backend", "json"),
        directory=store_raw.get("directory", "./data"),
        table=store_raw.get("table", "maint_blobs"),
    )
    keys = dict(DEFAULT_STORAGE_KEYS)
    for name, key in data.get("storage_keys", {}).items():
        keys[RecordKind[name]] = key
    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return IngestConfig(
        store=store,
        storage_keys=keys,
        strict_duplicates=data.get("strict_duplicates", False),
        derive_next_due=data.get("derive_next_due", False),
        keep_na_strings=list(data.get("keep_na_strings", [])),
        log_dir=data.get("log_dir", "./logs"),
        database=db,
    )
