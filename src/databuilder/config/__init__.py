"""
Configuration management: YAML project config with environment resolution.
"""

from databuilder.config.loader import Config, load_config
from databuilder.config.resolver import resolve_config

__all__ = [
    "load_config",
    "Config",
    "resolve_config",
]
