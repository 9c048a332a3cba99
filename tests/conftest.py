"""
Pytest Configuration and Fixtures

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mdrepair.config import RepairConfig  # noqa: E402


@pytest.fixture
def default_config() -> RepairConfig:
    """Default repair settings."""
    return RepairConfig()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """YAML config nesting the settings under a ``repair:`` key."""
    path = tmp_path / "mdrepair.yaml"
    path.write_text(
        "repair:\n"
        "  prune_passes: 4\n"
        "  substitution_passes: 6\n"
        "  normalize: true\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def partial_document(tmp_path: Path) -> Path:
    """A streamed document cut in the middle of a bold run."""
    path = tmp_path / "partial.md"
    path.write_text("# Title\n\nHello **bold", encoding="utf-8")
    return path
