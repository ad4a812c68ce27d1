"""
Layered YAML configuration loading and validation.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

import yaml


VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `default.yaml` next to config_path (checked in)
    - `config.yaml` next to config_path (local overrides)
    - plus config_path itself (treated as overrides)

    Raises:
        OSError, yaml.YAMLError: If a present file cannot be read or parsed.
    """
    config_dir = os.path.dirname(config_path)
    try:
        base_path = os.path.join(config_dir, "default.yaml")
        base_cfg: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            local_cfg = _read_yaml(local_overrides_path)

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not one of the layers above
        if os.path.exists(config_path) and os.path.abspath(config_path) not in (
            os.path.abspath(base_path),
            os.path.abspath(local_overrides_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        raise


def _check_path(reader: Dict[str, Any], key: str, required: bool) -> Optional[str]:
    value = reader.get(key)
    if value is None or value == "":
        return f"Missing reader.{key}" if required else None
    if not isinstance(value, str):
        return f"reader.{key} must be a string"
    return None


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    for section in ['reader', 'log_path', 'log_level']:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    reader = config.get('reader') or {}
    if not isinstance(reader, dict):
        return False, "reader must be a mapping"

    for key in ('image_path', 'calibration_file'):
        error = _check_path(reader, key, required=True)
        if error:
            return False, error
    for key in ('depth_path', 'gamma_file', 'vignette_file', 'times_file'):
        error = _check_path(reader, key, required=False)
        if error:
            return False, error

    if not isinstance(config['log_path'], str) or not config['log_path']:
        return False, "log_path must be a non-empty string"
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None
