"""
Operational helpers: logging and configuration.
"""

from .config import load_config, validate_config
from .logging import setup_logging

__all__ = [
    "load_config",
    "validate_config",
    "setup_logging",
]
