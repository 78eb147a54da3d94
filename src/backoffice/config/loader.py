from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

DEFAULT_CONFIG_PATH = Path("backoffice.config.yaml")

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {
        "sqlite_path": "backoffice.db",
    },
    "pagination": {
        "per_page_options": [10, 25, 50, 100],
        "default_per_page": 25,
    },
    "uploads": {
        "directory": "storage/uploads",
        "max_size_kb": 2048,
        "allowed_mime_types": ["image/jpeg", "image/png", "image/gif", "image/webp"],
    },
    "logging": {
        "level": "INFO",
    },
}

EXAMPLE_CONFIG = """\
# backoffice configuration
storage:
  sqlite_path: backoffice.db

pagination:
  # Page sizes a client may request; anything else falls back to the default.
  per_page_options: [10, 25, 50, 100]
  default_per_page: 25

uploads:
  directory: storage/uploads
  max_size_kb: 2048
  allowed_mime_types:
    - image/jpeg
    - image/png
    - image/gif
    - image/webp

logging:
  level: INFO
"""


@dataclass(frozen=True)
class PaginationSettings:
    per_page_options: Tuple[int, ...] = (10, 25, 50, 100)
    default_per_page: int = 25


@dataclass(frozen=True)
class UploadSettings:
    directory: Path
    max_size_bytes: int
    allowed_mime_types: Tuple[str, ...]


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge user sections over the built-in defaults, one level deep."""
    merged = deepcopy(defaults)
    for section, values in overrides.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section] = {**merged[section], **values}
        else:
            merged[section] = values
    return merged


def _validate(config: Dict[str, Any]) -> None:
    for section in ("storage", "pagination", "uploads", "logging"):
        if not isinstance(config.get(section), dict):
            raise ValueError(f"Config section '{section}' must be a dictionary")

    if not config["storage"].get("sqlite_path"):
        raise ValueError("Config 'storage.sqlite_path' is required")

    options = config["pagination"].get("per_page_options")
    if not isinstance(options, list) or not options:
        raise ValueError("Config 'pagination.per_page_options' must be a non-empty list")
    for option in options:
        if isinstance(option, bool) or not isinstance(option, int) or option < 1:
            raise ValueError("Config 'pagination.per_page_options' must contain positive integers")
    if config["pagination"].get("default_per_page") not in options:
        raise ValueError("Config 'pagination.default_per_page' must be one of per_page_options")

    uploads = config["uploads"]
    max_size = uploads.get("max_size_kb")
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size < 1:
        raise ValueError("Config 'uploads.max_size_kb' must be a positive integer")
    mime_types = uploads.get("allowed_mime_types")
    if not isinstance(mime_types, list) or not all(isinstance(m, str) for m in mime_types):
        raise ValueError("Config 'uploads.allowed_mime_types' must be a list of strings")


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load configuration from YAML, merged over built-in defaults.

    Args:
        path: Optional path to the config file. Defaults to backoffice.config.yaml;
            when the default file is absent the built-in defaults are used.

    Returns:
        Validated configuration dictionary

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        ValueError: If config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return deepcopy(DEFAULT_CONFIG)

    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError("Config must be a dictionary")

    config = _merge(DEFAULT_CONFIG, raw)
    _validate(config)
    return config


def get_pagination_settings(config: Dict[str, Any] | None = None) -> PaginationSettings:
    section = (config or DEFAULT_CONFIG)["pagination"]
    return PaginationSettings(
        per_page_options=tuple(section["per_page_options"]),
        default_per_page=section["default_per_page"],
    )


def get_upload_settings(config: Dict[str, Any] | None = None) -> UploadSettings:
    section = (config or DEFAULT_CONFIG)["uploads"]
    return UploadSettings(
        directory=Path(section["directory"]),
        max_size_bytes=int(section["max_size_kb"]) * 1024,
        allowed_mime_types=tuple(m.lower() for m in section["allowed_mime_types"]),
    )
