"""
Configuration for the mdrepair engine.

Only the bounded loops of the repair pipeline are tunable. A config is a
plain value passed to each call; the engine never reads files or the
environment on its own. ``load_repair_config`` is a convenience for callers
such as the CLI.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union
import logging

import yaml

logger = logging.getLogger(__name__)


@dataclass
class RepairConfig:
    """Iteration caps and pipeline switches for one repair call."""
    prune_passes: int = 10            # Empty-node pruning passes
    substitution_passes: int = 10     # Placeholder substitution passes
    normalize: bool = True            # Re-parse once before pruning

    def __post_init__(self):
        self.prune_passes = max(1, int(self.prune_passes))
        self.substitution_passes = max(1, int(self.substitution_passes))
        self.normalize = bool(self.normalize)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RepairConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


def load_repair_config(path: Union[str, Path]) -> RepairConfig:
    """
    Load a RepairConfig from a YAML file.

    The file may hold the fields at top level or under a ``repair:`` key.
    An empty file yields the defaults.

    Args:
        path: YAML file path

    Returns:
        RepairConfig instance
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    if isinstance(data.get("repair"), dict):
        data = data["repair"]
    config = RepairConfig.from_dict(data)
    logger.debug(f"Loaded repair config from {path}: {config.to_dict()}")
    return config
