"""Tests for config loading and validation."""

import pytest

from modelhub.config.loader import (
    DEFAULT_DATABASE_URL,
    DEFAULT_PAGE_SIZE,
    get_database_url,
    get_default_page_size,
    load_config,
    validate_config,
)


def test_load_config_applies_defaults(tmp_path):
    cfg = tmp_path / "modelhub.config.yaml"
    cfg.write_text("storage:\n  database_url: sqlite:///x.db\n", encoding="utf-8")

    config = load_config(cfg)

    assert get_database_url(config) == "sqlite:///x.db"
    assert config["storage"]["echo"] is False
    assert get_default_page_size(config) == DEFAULT_PAGE_SIZE
    assert config["logging"]["level"] == "INFO"


def test_empty_config_file_is_all_defaults(tmp_path):
    cfg = tmp_path / "modelhub.config.yaml"
    cfg.write_text("", encoding="utf-8")

    config = load_config(cfg)

    assert get_database_url(config) == DEFAULT_DATABASE_URL


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match="Config file not found"):
        load_config(tmp_path / "nope.yaml")


def test_non_mapping_config_is_rejected(tmp_path):
    cfg = tmp_path / "modelhub.config.yaml"
    cfg.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Config must be a dictionary"):
        load_config(cfg)


def test_invalid_values_are_reported_with_paths():
    with pytest.raises(ValueError) as exc_info:
        validate_config({"pagination": {"default_page_size": 0}, "logging": {"level": "LOUD"}})

    message = str(exc_info.value)
    assert "$.pagination.default_page_size" in message
    assert "$.logging.level" in message


def test_unknown_sections_are_rejected():
    with pytest.raises(ValueError, match="Invalid modelhub config"):
        validate_config({"storge": {}})
