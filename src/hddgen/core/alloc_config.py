# src/hddgen/core/alloc_config.py
"""
Per-user allocation settings for hddgen (platformdirs + JSON).

Persisted items (schema v1):
- poll_interval_ms: int       (monitor loop cadence on the owner thread)
- progress_interval_ms: int   (minimum spacing between writer progress emissions)
- default_size_gib: int       (image size used when none is given)
- last_directory: str         (folder of the most recently created image)

Behavior:
- If config file missing or unreadable -> defaults are used
- If schema_version mismatches:
  - default: reset to defaults
  - optional: keep loaded but update version
- Optional "create_if_missing" flag to write defaults on first run

Design:
- AllocConfigData dataclass holds JSON-friendly data (dot access)
- AllocConfig manager provides explicit API for load/save and validation
- Field metadata carries min/max bounds used by set_attribute()
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from hddgen.core.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1

APP_NAME: str = "hddgen"
CONFIG_FILENAME: str = "alloc_config.json"

# Defaults
DEFAULT_POLL_INTERVAL_MS: int = 50
DEFAULT_PROGRESS_INTERVAL_MS: int = 100
DEFAULT_SIZE_GIB: int = 40
DEFAULT_LAST_DIRECTORY: str = ""


@dataclass
class AllocConfigData:
    """
    JSON-serializable config payload.

    Keep fields JSON-friendly (primitives only).
    """
    schema_version: int = SCHEMA_VERSION

    poll_interval_ms: int = field(
        default=DEFAULT_POLL_INTERVAL_MS,
        metadata={"label": "Monitor poll interval (ms)", "min": 1, "max": 1000},
    )

    progress_interval_ms: int = field(
        default=DEFAULT_PROGRESS_INTERVAL_MS,
        metadata={"label": "Progress emission interval (ms)", "min": 100, "max": 10_000},
    )

    default_size_gib: int = field(
        default=DEFAULT_SIZE_GIB,
        metadata={"label": "Default image size (GiB)", "min": 1, "max": 2048},
    )

    last_directory: str = field(
        default=DEFAULT_LAST_DIRECTORY,
        metadata={"label": "Last directory"},
    )

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def progress_interval_s(self) -> float:
        return self.progress_interval_ms / 1000.0

    def to_json_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "AllocConfigData":
        """
        Tolerant loader:
        - ignores unknown keys
        - replaces missing or out-of-range values with defaults
        """
        try:
            schema_version = int(d.get("schema_version", -1))
        except (TypeError, ValueError):
            schema_version = -1

        data = cls(schema_version=schema_version)
        for f in fields(cls):
            if f.name == "schema_version" or f.name not in d:
                continue
            raw = d[f.name]
            default = getattr(data, f.name)
            if isinstance(default, int):
                value = _coerce_int(raw, f.metadata)
                if value is None:
                    logger.warning(f"Invalid {f.name} '{raw}', using default '{default}'")
                    continue
                setattr(data, f.name, value)
            elif isinstance(raw, str):
                setattr(data, f.name, raw)
        return data


def _coerce_int(raw: Any, metadata: Any) -> Optional[int]:
    """Return ``raw`` as an int within metadata bounds, or None."""
    if isinstance(raw, bool):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    min_val = metadata.get("min")
    max_val = metadata.get("max")
    if min_val is not None and value < min_val:
        return None
    if max_val is not None and value > max_val:
        return None
    return value


class AllocConfig:
    """
    Manager for loading/saving AllocConfigData to disk.
    """

    def __init__(self, *, path: Path, data: Optional[AllocConfigData] = None):
        self.path = path
        self.data = data if data is not None else AllocConfigData()

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @staticmethod
    def default_config_path(
        app_name: str = APP_NAME,
        filename: str = CONFIG_FILENAME,
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user config path.

        macOS:   ~/Library/Application Support/hddgen/alloc_config.json
        Linux:   ~/.config/hddgen/alloc_config.json
        Windows: %APPDATA%\\hddgen\\alloc_config.json
        """
        return Path(user_config_dir(app_name, app_author)) / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
        create_if_missing: bool = False,
    ) -> "AllocConfig":
        """
        Load config from disk.

        If file doesn't exist or is unreadable -> defaults.
        If schema mismatch:
          - reset_on_version_mismatch=True -> defaults
          - else -> keep loaded but overwrite schema_version

        If create_if_missing=True and file is missing -> immediately write defaults.
        """
        path = config_path or cls.default_config_path()
        default_data = AllocConfigData(schema_version=schema_version)

        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(parsed, dict):
                logger.warning(f"Alloc config file at {path} does not contain a dict, using defaults")
                return cls(path=path, data=default_data)

            loaded = AllocConfigData.from_json_dict(parsed)

            if int(loaded.schema_version) != int(schema_version):
                if reset_on_version_mismatch:
                    logger.warning(
                        f"Alloc config schema version mismatch: loaded={loaded.schema_version}, "
                        f"expected={schema_version}, resetting to defaults"
                    )
                    return cls(path=path, data=default_data)
                loaded.schema_version = int(schema_version)

            return cls(path=path, data=loaded)

        except FileNotFoundError:
            logger.info(f"Alloc config file not found at {path}, using defaults")
            cfg = cls(path=path, data=default_data)
            if create_if_missing:
                cfg.save()
            return cfg
        except Exception as e:
            logger.error(f"Failed to load alloc config from {path}: {e}", exc_info=True)
            return cls(path=path, data=default_data)

    def save(self) -> None:
        """Write config to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"saving alloc_config to: {self.path}")
        self.path.write_text(json.dumps(self.data.to_json_dict(), indent=2), encoding="utf-8")

    # -----------------------------
    # Public API: attribute access
    # -----------------------------
    def get_attribute(self, key: str) -> Any:
        """
        Get attribute value by key.

        Raises:
            AttributeError: If key doesn't exist
        """
        if key == "schema_version" or not hasattr(self.data, key):
            raise AttributeError(f"AllocConfigData has no attribute '{key}'")
        return getattr(self.data, key)

    def set_attribute(self, key: str, value: Any) -> None:
        """
        Set attribute value by key with validation.

        Raises:
            AttributeError: If key doesn't exist
            ValueError: If value is invalid for the attribute
        """
        field_info = next((f for f in fields(self.data) if f.name == key), None)
        if field_info is None or key == "schema_version":
            raise AttributeError(f"AllocConfigData has no attribute '{key}'")

        current_value = getattr(self.data, key)
        if isinstance(current_value, int):
            coerced = _coerce_int(value, field_info.metadata)
            if coerced is None:
                meta = field_info.metadata
                raise ValueError(
                    f"Invalid value '{value}' for '{key}' (min={meta.get('min')}, max={meta.get('max')})"
                )
            value = coerced
        else:
            value = str(value)

        setattr(self.data, key, value)
        logger.debug(f"Set alloc_config.{key} = {value}")

    def remember_directory(self, image_path: Path) -> None:
        """Record the parent folder of a newly created image."""
        self.data.last_directory = str(Path(image_path).expanduser().resolve(strict=False).parent)
