"""
Tests for repair configuration

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import pytest

from mdrepair.config import RepairConfig, load_repair_config


class TestRepairConfig:
    """Tests for the RepairConfig dataclass."""

    def test_defaults(self, default_config):
        assert default_config.prune_passes == 10
        assert default_config.substitution_passes == 10
        assert default_config.normalize is True

    def test_passes_clamped(self):
        config = RepairConfig(prune_passes=0, substitution_passes=-3)
        assert config.prune_passes == 1
        assert config.substitution_passes == 1

    def test_from_dict_ignores_unknown(self):
        config = RepairConfig.from_dict({"prune_passes": 2, "color": "blue"})
        assert config.prune_passes == 2
        assert config.substitution_passes == 10

    def test_to_dict(self, default_config):
        assert default_config.to_dict() == {
            "prune_passes": 10,
            "substitution_passes": 10,
            "normalize": True,
        }


class TestLoadRepairConfig:
    """Tests for load_repair_config."""

    def test_nested_section(self, config_file):
        config = load_repair_config(config_file)
        assert config.prune_passes == 4
        assert config.substitution_passes == 6

    def test_top_level(self, tmp_path):
        path = tmp_path / "flat.yaml"
        path.write_text("normalize: false\n", encoding="utf-8")
        config = load_repair_config(path)
        assert config.normalize is False
        assert config.prune_passes == 10

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_repair_config(path) == RepairConfig()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_repair_config(path)
