"""
ToolHost Configuration - Configuration loading and validation.

This module provides the Config class for managing ToolHost configuration
from global (~/.toolhost/config.yaml), local (.toolhost/config.yaml) or
explicitly given sources.
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from toolhost import __version__
from toolhost.mcp.schema import PROTOCOL_VERSION
from toolhost.tools.source import DEFAULT_MODULES


class ConfigError(Exception):
    """Raised when there's a configuration error."""

    pass


class ServerConfig(BaseModel):
    """Identity and handshake behaviour of the MCP server."""

    name: str = "toolhost"
    version: str = __version__
    protocol_version: str = PROTOCOL_VERSION
    strict_initialize: bool = False


class RegistryConfig(BaseModel):
    """Which tool modules to register and how."""

    modules: List[str] = Field(default_factory=lambda: list(DEFAULT_MODULES))
    exclude_params: List[str] = Field(default_factory=list)
    duplicates: Literal["replace", "reject"] = "replace"


class LoggingConfig(BaseModel):
    """Diagnostics written to standard error."""

    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return level


class ToolHostConfig(BaseModel):
    """Complete ToolHost configuration schema."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    settings: Dict[str, Any] = Field(default_factory=dict)


class Config:
    """
    ToolHost configuration manager.

    Handles loading, merging, and validating configuration from:
    - Global: ~/.toolhost/config.yaml
    - Local: .toolhost/config.yaml (nearest one up the directory tree)
    - Explicit: a path given on the command line, used instead of the local file

    Local (or explicit) configuration overrides global configuration.

    Example:
        >>> config = Config.load()
        >>> config.merged.registry.modules
        ['toolhost.tools.builtin', 'toolhost.tools.network', 'toolhost.tools.mail']
    """

    GLOBAL_CONFIG_DIR = Path.home() / ".toolhost"
    LOCAL_CONFIG_DIR = Path(".toolhost")

    def __init__(
        self,
        global_config: Optional[Dict[str, Any]] = None,
        local_config: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize Config.

        Args:
            global_config: Global configuration dictionary.
            local_config: Local (project) configuration dictionary.
        """
        self._global_config = global_config or {}
        self._local_config = local_config or {}
        self._merged: Optional[ToolHostConfig] = None

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """
        Load configuration from default locations.

        Args:
            path: Explicit config file. It must exist.

        Returns:
            Config instance with loaded configuration.
        """
        if path is not None:
            path = Path(path)
            if not path.is_file():
                raise ConfigError(f"Config file not found: {path}")
            local_path: Optional[Path] = path
        else:
            local_path = cls._find_local_config()

        global_config = cls._load_yaml(cls.GLOBAL_CONFIG_DIR / "config.yaml")
        local_config = cls._load_yaml(local_path)

        return cls(global_config=global_config, local_config=local_config)

    @classmethod
    def _load_yaml(cls, path: Optional[Path]) -> Dict[str, Any]:
        """Load YAML file if it exists."""
        if path is None or not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping at the top level")
        return data

    @classmethod
    def _find_local_config(cls) -> Optional[Path]:
        """Find the local config file by walking up the directory tree."""
        current = Path.cwd()
        while current != current.parent:
            config_path = current / cls.LOCAL_CONFIG_DIR / "config.yaml"
            if config_path.exists():
                return config_path
            current = current.parent
        return None

    def get_merged_config(self) -> Dict[str, Any]:
        """Get the merged configuration as a dictionary."""
        return self._deep_merge(self._global_config.copy(), self._local_config)

    @property
    def merged(self) -> ToolHostConfig:
        """Get the validated merged configuration."""
        if self._merged is None:
            try:
                self._merged = ToolHostConfig(**self.get_merged_config())
            except (TypeError, ValidationError) as e:
                raise ConfigError(f"Invalid configuration: {e}")
        return self._merged

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @classmethod
    def default_config(cls) -> Dict[str, Any]:
        return {
            "server": {
                "name": "toolhost",
                "strict_initialize": False,
            },
            "registry": {
                "modules": list(DEFAULT_MODULES),
                "exclude_params": [],
                "duplicates": "replace",
            },
            "logging": {"level": "WARNING"},
            "settings": {
                "dns_timeout": 5,
                "http_timeout": 30,
                "smtp_host": None,  # mail relay used by Send-MailMessage
                "smtp_port": 25,
                "mail_from": None,
            },
        }

    @classmethod
    def create_default(cls, global_: bool = False) -> Path:
        """Create a default configuration file, leaving an existing one alone."""
        config_dir = cls.GLOBAL_CONFIG_DIR if global_ else Path.cwd() / cls.LOCAL_CONFIG_DIR
        config_file = config_dir / "config.yaml"

        if config_file.exists():
            return config_file

        config_dir.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w", encoding="utf-8") as f:
            yaml.dump(cls.default_config(), f, default_flow_style=False, sort_keys=False)

        return config_file
