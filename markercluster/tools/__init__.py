"""Configuration and input helpers."""

from .config_loader import ConfigLoader, get_config, load_config
from .records import coerce_records

__all__ = [
    "ConfigLoader",
    "get_config",
    "load_config",
    "coerce_records",
]
