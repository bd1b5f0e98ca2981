"""
Configuration management for sysview.

Handles loading and saving user configuration from:
- XDG config directory: ~/.config/sysview/config.json
- Fallback: ~/.sysview/config.json
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .converter import EDGE_ID_STRATEGIES
from .diagram import LayoutConfig

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("table", "json")


@dataclass
class ProjectionConfig:
    """How diagrams are produced before layout."""
    placeholder_spacing: int = 200
    edge_ids: str = "deterministic"

    def __post_init__(self):
        if self.edge_ids not in EDGE_ID_STRATEGIES:
            raise ValueError(f"Unknown edge id strategy '{self.edge_ids}'")


@dataclass
class CLIConfig:
    """CLI default options."""
    verbose: bool = False
    color: bool = True
    output_format: str = "table"

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format '{self.output_format}'")


@dataclass
class SysviewConfig:
    """Main sysview configuration."""
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    cli: CLIConfig = field(default_factory=CLIConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "layout": asdict(self.layout),
            "projection": asdict(self.projection),
            "cli": asdict(self.cli),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SysviewConfig':
        """Create from dictionary."""
        return cls(
            layout=LayoutConfig(**data.get("layout", {})),
            projection=ProjectionConfig(**data.get("projection", {})),
            cli=CLIConfig(**data.get("cli", {})),
        )


def get_config_path() -> Path:
    """
    Get configuration file path.

    Follows XDG Base Directory specification:
    1. ~/.config/sysview/config.json
    2. Fallback: ~/.sysview/config.json

    Returns:
        Path to config file
    """
    xdg_config_home = Path.home() / ".config"
    if xdg_config_home.exists():
        config_dir = xdg_config_home / "sysview"
    else:
        config_dir = Path.home() / ".sysview"

    return config_dir / "config.json"


def load_config() -> SysviewConfig:
    """
    Load configuration from file.

    Returns:
        SysviewConfig instance with loaded values or defaults
    """
    config_path = get_config_path()

    if not config_path.exists():
        return SysviewConfig()

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
        return SysviewConfig.from_dict(data)
    except (json.JSONDecodeError, OSError, TypeError, ValueError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}; using defaults")
        return SysviewConfig()


def save_config(config: SysviewConfig) -> Path:
    """
    Save configuration to file.

    Args:
        config: Configuration to save

    Returns:
        Path the configuration was written to
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def update_config(
    # Layout settings
    layout_algorithm: Optional[str] = None,
    layout_direction: Optional[str] = None,
    node_spacing: Optional[int] = None,
    rank_spacing: Optional[int] = None,
    # Projection settings
    placeholder_spacing: Optional[int] = None,
    edge_ids: Optional[str] = None,
    # CLI settings
    verbose: Optional[bool] = None,
    color: Optional[bool] = None,
    output_format: Optional[str] = None,
) -> SysviewConfig:
    """
    Update configuration.

    Only updates provided values, leaving others unchanged. Values are
    validated by rebuilding the config before it is saved.

    Raises:
        ValueError: If a value is not valid
    """
    data = load_config().to_dict()

    updates = {
        ("layout", "algorithm"): layout_algorithm,
        ("layout", "direction"): layout_direction,
        ("layout", "node_spacing"): node_spacing,
        ("layout", "rank_spacing"): rank_spacing,
        ("projection", "placeholder_spacing"): placeholder_spacing,
        ("projection", "edge_ids"): edge_ids,
        ("cli", "verbose"): verbose,
        ("cli", "color"): color,
        ("cli", "output_format"): output_format,
    }
    for (section, key), value in updates.items():
        if value is not None:
            data[section][key] = value

    config = SysviewConfig.from_dict(data)
    save_config(config)
    return config
