from pathlib import Path

import pytest

from core.config import EmbeddedImagesConfig, ModuleOutputConfig


@pytest.fixture()
def case_folder(tmp_path: Path) -> Path:
    """Empty case folder that receives module output."""
    case_dir = tmp_path / "case"
    case_dir.mkdir()
    return case_dir


@pytest.fixture()
def module_output(case_folder: Path) -> ModuleOutputConfig:
    """Default module output roots inside ``case_folder``."""
    return ModuleOutputConfig.for_case(case_folder, EmbeddedImagesConfig())
