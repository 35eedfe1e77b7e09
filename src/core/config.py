from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict

import yaml

DEFAULT_MODULE_NAME = "Embedded File Extractor"
DEFAULT_MODULE_OUTPUT_DIR = "ModuleOutput"
DEFAULT_MAX_RECORD_BYTES = 256 * 1024 * 1024  # 256 MB


@dataclass(slots=True)
class LoggingConfig:
    """Logging configuration from config.yml."""

    level: str = "INFO"
    app_log_max_mb: int = 50
    app_log_backup_count: int = 10


@dataclass(slots=True)
class EmbeddedImagesConfig:
    """Embedded image extraction settings from config.yml."""

    module_name: str = DEFAULT_MODULE_NAME
    module_output_dir: str = DEFAULT_MODULE_OUTPUT_DIR
    # Upper bound for a single decoded picture (zip member or inflated BLIP)
    max_record_bytes: int = DEFAULT_MAX_RECORD_BYTES


@dataclass(slots=True)
class AppConfig:
    """Top-level configuration resolved from disk."""

    base_dir: Path
    logs_dir: Path
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    embedded_images: EmbeddedImagesConfig = field(default_factory=EmbeddedImagesConfig)

    def to_json(self) -> str:
        """Serialize the configuration into a JSON string for run manifests."""
        data = {
            "logs_dir": str(self.logs_dir),
            "logging": {
                "level": self.logging.level,
                "app_log_max_mb": self.logging.app_log_max_mb,
                "app_log_backup_count": self.logging.app_log_backup_count,
            },
            "embedded_images": {
                "module_name": self.embedded_images.module_name,
                "module_output_dir": self.embedded_images.module_output_dir,
                "max_record_bytes": self.embedded_images.max_record_bytes,
            },
        }
        return json.dumps(data, indent=2, sort_keys=True)


@dataclass(frozen=True, slots=True)
class ModuleOutputConfig:
    """
    Output roots for one ingest job.

    Attributes:
        absolute_dir: On-disk directory that receives per-document folders
        relative_dir: Same directory relative to the case folder, always
            forward-slash separated and without leading/trailing slashes
    """

    absolute_dir: Path
    relative_dir: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "relative_dir", normalize_relative_dir(self.relative_dir))

    @classmethod
    def for_case(cls, case_dir: Path, config: EmbeddedImagesConfig | None = None) -> ModuleOutputConfig:
        """Build the module output roots under ``case_dir``."""
        cfg = config or EmbeddedImagesConfig()
        relative = PurePosixPath(normalize_relative_dir(cfg.module_output_dir), cfg.module_name)
        return cls(absolute_dir=case_dir.joinpath(*relative.parts), relative_dir=str(relative))


def normalize_relative_dir(value: str) -> str:
    """Normalise a case-relative directory to forward slashes with no outer slashes."""
    parts = [part for part in value.replace("\\", "/").split("/") if part and part != "."]
    return "/".join(parts)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        content = yaml.safe_load(handle) or {}
        if not isinstance(content, dict):
            raise ValueError(f"Config file {path} must contain a mapping at the top level.")
        return content


def load_app_config(base_dir: Path) -> AppConfig:
    """Load application configuration from disk, providing sensible defaults."""

    config_yaml = base_dir / "config" / "config.yml"
    config_overrides = _load_yaml(config_yaml)

    logs_dir = base_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    logging_cfg = config_overrides.get("logging") or {}
    logging_config = LoggingConfig(
        level=str(logging_cfg.get("level", "INFO")).upper(),
        app_log_max_mb=int(logging_cfg.get("app_log_max_mb", 50)),
        app_log_backup_count=int(logging_cfg.get("app_log_backup_count", 10)),
    )

    images_cfg = config_overrides.get("embedded_images") or {}
    images_config = EmbeddedImagesConfig(
        module_name=str(images_cfg.get("module_name", DEFAULT_MODULE_NAME)),
        module_output_dir=str(images_cfg.get("module_output_dir", DEFAULT_MODULE_OUTPUT_DIR)),
        max_record_bytes=int(images_cfg.get("max_record_bytes", DEFAULT_MAX_RECORD_BYTES)),
    )
    if images_config.max_record_bytes <= 0:
        raise ValueError("embedded_images.max_record_bytes must be positive")

    return AppConfig(
        base_dir=base_dir,
        logs_dir=logs_dir,
        logging=logging_config,
        embedded_images=images_config,
    )
