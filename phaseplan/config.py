# phaseplan/config.py
"""
Plan configuration file.

Example:
    phase: configure
    targets: [web1, web2]
    format: yaml
    precedence:
      always_after: [bootstrap]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .session import ORIGIN_TARGET

FORMATS = ("text", "json", "yaml")


@dataclass
class PlanConfig:
    """Settings for planning a phase from the command line."""
    phase: str = "configure"
    targets: List[str] = field(default_factory=lambda: [ORIGIN_TARGET])
    format: str = "text"
    precedence: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.format not in FORMATS:
            raise ValueError(f"Unknown output format: {self.format}. Expected one of {', '.join(FORMATS)}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanConfig":
        targets = data.get("targets", [ORIGIN_TARGET])
        if isinstance(targets, str):
            targets = [targets]
        precedence = data.get("precedence") or {}
        if not isinstance(precedence, dict):
            raise ValueError(f"precedence must be a mapping of relation to action names, got {type(precedence).__name__}")
        return cls(
            phase=data.get("phase", "configure"),
            targets=[str(t) for t in targets],
            format=data.get("format", "text"),
            precedence=precedence,
        )

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "PlanConfig":
        """Parse configuration from YAML string."""
        data = yaml.safe_load(yaml_content) or {}
        if not isinstance(data, dict):
            raise ValueError("Plan configuration must be a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path) -> "PlanConfig":
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            return cls.from_yaml(f.read())
