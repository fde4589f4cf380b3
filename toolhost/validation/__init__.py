"""
ToolHost validation module.

This module provides configuration loading and schema enforcement.
"""

from toolhost.validation.config import Config, ConfigError, ToolHostConfig

__all__ = ["Config", "ConfigError", "ToolHostConfig"]
