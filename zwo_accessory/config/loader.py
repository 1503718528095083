"""
Loads the optional JSON configuration file.

Only overrides need to be present in the file; anything missing falls back
to the model defaults.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from zwo_accessory.utils.exceptions import ZwoAccessoryException

from .models import AppConfig


logger = logging.getLogger(__name__)


class ConfigurationError(ZwoAccessoryException):
    """Config file could not be read or did not validate."""
    pass


def _write_defaults(config_path: Path) -> AppConfig:
    """Write a config file holding every default; failure is only logged."""
    config = AppConfig()
    try:
        config_path.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
        logger.info(f"Wrote default configuration to {config_path}")
    except OSError as e:
        logger.warning(f"Could not write default configuration to {config_path}: {e}")
    return config


def _read_object(config_path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a JSON object")
    return data


def _describe(error: ValidationError) -> str:
    lines = [
        f"  - {' -> '.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    ]
    return "Configuration validation failed:\n" + "\n".join(lines)


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Load configuration.

    Args:
        path: JSON file to read. None means built-in defaults, with no file
            access at all. A path that does not exist yet is created with
            the defaults so it can be edited afterwards.

    Returns:
        Validated AppConfig instance.

    Raises:
        ConfigurationError: If the file is unreadable, not a JSON object, or
            fails validation.
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.info(f"{config_path} not found, using defaults")
        return _write_defaults(config_path)

    data = _read_object(config_path)
    try:
        config = AppConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(_describe(e)) from e

    logger.info(f"Configuration loaded from {config_path}")
    return config
