from pathlib import Path
from typing import Any, Dict

import yaml
from jsonschema import Draft202012Validator

DEFAULT_CONFIG_PATH = Path("modelhub.config.yaml")

DEFAULT_DATABASE_URL = "sqlite:///modelhub.db"
DEFAULT_PAGE_SIZE = 10
DEFAULT_LOG_LEVEL = "INFO"

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "storage": {
            "type": "object",
            "properties": {
                "database_url": {"type": "string", "minLength": 1},
                "echo": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "pagination": {
            "type": "object",
            "properties": {
                "default_page_size": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": False,
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                },
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


def _format_error_path(path) -> str:
    parts = ["$", *map(str, path)]
    return ".".join(parts)


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate a config dict against CONFIG_SCHEMA.

    Raises:
        ValueError: Listing every violation, one per line
    """
    validator = Draft202012Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(config), key=lambda e: list(e.absolute_path))
    if errors:
        lines = [f"{_format_error_path(e.absolute_path)}: {e.message}" for e in errors]
        raise ValueError("Invalid modelhub config:\n" + "\n".join(lines))


def apply_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of config with every optional setting filled in."""
    result = {key: dict(value) for key, value in config.items()}

    storage = result.setdefault("storage", {})
    storage.setdefault("database_url", DEFAULT_DATABASE_URL)
    storage.setdefault("echo", False)

    pagination = result.setdefault("pagination", {})
    pagination.setdefault("default_page_size", DEFAULT_PAGE_SIZE)

    logging_cfg = result.setdefault("logging", {})
    logging_cfg.setdefault("level", DEFAULT_LOG_LEVEL)

    return result


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load modelhub configuration from YAML file.

    Args:
        path: Optional path to the config file. Defaults to modelhub.config.yaml

    Returns:
        Validated config dictionary with defaults applied

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")

    validate_config(config)
    return apply_defaults(config)


def get_database_url(config: Dict[str, Any]) -> str:
    return config.get("storage", {}).get("database_url", DEFAULT_DATABASE_URL)


def get_default_page_size(config: Dict[str, Any]) -> int:
    return int(config.get("pagination", {}).get("default_page_size", DEFAULT_PAGE_SIZE))
