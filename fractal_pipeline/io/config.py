"""
Configuration file handling for fractal rendering.

Render settings can be kept in a JSON file, either as a flat object or
nested under a ``render`` key. Command-line values override file values.
"""

import json
import numbers
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised for invalid render configuration, always before rendering starts."""


def require_int(name: str, value: Any) -> None:
    """Reject anything but an integer (bool included)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def require_real(name: str, value: Any) -> None:
    """Reject anything but a real number (bool included)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


def load_config(filepath: Union[str, Path]) -> Dict[str, Any]:
    """
    Load render settings from a JSON file.

    Args:
        filepath: Path to the configuration file

    Returns:
        Dictionary of render settings
    """
    filepath = Path(filepath)
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {filepath}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root in {filepath} must be an object")

    settings = data.get('render', data)
    if not isinstance(settings, dict):
        raise ConfigurationError(f"'render' section in {filepath} must be an object")

    logger.debug(f"Loaded {len(settings)} settings from {filepath}")
    return dict(settings)


class ConfigManager:
    """Merge configuration sources into a validated render configuration."""

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.settings: Dict[str, Any] = {}
        if config_file is not None:
            self.settings.update(load_config(config_file))

    def update(self, overrides: Dict[str, Any]) -> None:
        """Apply overrides, ignoring unset (None) values."""
        self.settings.update({k: v for k, v in overrides.items() if v is not None})

    def create_render_config(self):
        """Build a validated RenderConfig from the collected settings."""
        from ..api import RenderConfig

        config = RenderConfig.from_dict(self.settings)
        config.validate()
        return config
