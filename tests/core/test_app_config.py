"""Tests for src/core/config.py - YAML configuration and module output roots."""

import json
from pathlib import Path

import pytest

from core.config import (
    DEFAULT_MAX_RECORD_BYTES,
    DEFAULT_MODULE_NAME,
    DEFAULT_MODULE_OUTPUT_DIR,
    EmbeddedImagesConfig,
    ModuleOutputConfig,
    load_app_config,
    normalize_relative_dir,
)


def _write_config(base_dir: Path, text: str) -> None:
    config_dir = base_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "config.yml").write_text(text, encoding="utf-8")


class TestLoadAppConfig:
    """Tests for load_app_config()."""

    def test_defaults_without_config_file(self, tmp_path):
        """Missing config.yml yields defaults and creates the logs directory."""
        config = load_app_config(tmp_path)

        assert config.logs_dir == tmp_path / "logs"
        assert config.logs_dir.is_dir()
        assert config.logging.level == "INFO"
        assert config.embedded_images.module_name == DEFAULT_MODULE_NAME
        assert config.embedded_images.module_output_dir == DEFAULT_MODULE_OUTPUT_DIR
        assert config.embedded_images.max_record_bytes == DEFAULT_MAX_RECORD_BYTES

    def test_overrides_from_yaml(self, tmp_path):
        """Values in config.yml override the defaults."""
        _write_config(
            tmp_path,
            "logging:\n"
            "  level: debug\n"
            "  app_log_max_mb: 5\n"
            "  app_log_backup_count: 2\n"
            "embedded_images:\n"
            "  module_name: Pictures\n"
            "  module_output_dir: Out\n"
            "  max_record_bytes: 1024\n",
        )

        config = load_app_config(tmp_path)

        assert config.logging.level == "DEBUG"
        assert config.logging.app_log_max_mb == 5
        assert config.logging.app_log_backup_count == 2
        assert config.embedded_images.module_name == "Pictures"
        assert config.embedded_images.module_output_dir == "Out"
        assert config.embedded_images.max_record_bytes == 1024

    def test_empty_file_uses_defaults(self, tmp_path):
        """An empty config.yml is treated as no overrides."""
        _write_config(tmp_path, "")
        config = load_app_config(tmp_path)
        assert config.embedded_images.module_name == DEFAULT_MODULE_NAME

    def test_non_mapping_top_level_rejected(self, tmp_path):
        """A YAML list at the top level is a configuration error."""
        _write_config(tmp_path, "- one\n- two\n")
        with pytest.raises(ValueError, match="mapping"):
            load_app_config(tmp_path)

    def test_non_positive_record_limit_rejected(self, tmp_path):
        """max_record_bytes must be positive."""
        _write_config(tmp_path, "embedded_images:\n  max_record_bytes: 0\n")
        with pytest.raises(ValueError, match="max_record_bytes"):
            load_app_config(tmp_path)

    def test_to_json(self, tmp_path):
        """to_json() serializes the effective settings."""
        config = load_app_config(tmp_path)
        data = json.loads(config.to_json())
        assert data["embedded_images"]["module_name"] == DEFAULT_MODULE_NAME
        assert data["logging"]["level"] == "INFO"


class TestModuleOutputConfig:
    """Tests for ModuleOutputConfig and relative directory normalisation."""

    def test_for_case_defaults(self, tmp_path):
        """Output roots sit under <case>/ModuleOutput/<module name>."""
        output = ModuleOutputConfig.for_case(tmp_path)

        assert output.absolute_dir == tmp_path / "ModuleOutput" / "Embedded File Extractor"
        assert output.relative_dir == "ModuleOutput/Embedded File Extractor"

    def test_for_case_with_config(self, tmp_path):
        """Configured names are used for both roots."""
        output = ModuleOutputConfig.for_case(
            tmp_path, EmbeddedImagesConfig(module_name="Images", module_output_dir="Export\\Modules")
        )

        assert output.relative_dir == "Export/Modules/Images"
        assert output.absolute_dir == tmp_path / "Export" / "Modules" / "Images"

    def test_relative_dir_normalised_on_construction(self, tmp_path):
        """Back-slashes and outer slashes are removed from relative_dir."""
        output = ModuleOutputConfig(tmp_path, "\\ModuleOutput\\Embedded File Extractor\\")
        assert output.relative_dir == "ModuleOutput/Embedded File Extractor"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("ModuleOutput/Embedded", "ModuleOutput/Embedded"),
            ("/ModuleOutput//Embedded/", "ModuleOutput/Embedded"),
            ("ModuleOutput\\Embedded", "ModuleOutput/Embedded"),
            ("./ModuleOutput/./Embedded", "ModuleOutput/Embedded"),
            ("", ""),
        ],
    )
    def test_normalize_relative_dir(self, value, expected):
        assert normalize_relative_dir(value) == expected
