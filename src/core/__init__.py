"""Core services shared by the extractors: configuration, logging, encoding."""

from .config import AppConfig, ModuleOutputConfig, load_app_config  # noqa: F401
from .logging import configure_from_config, configure_logging, get_logger  # noqa: F401
