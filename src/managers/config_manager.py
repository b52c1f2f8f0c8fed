"""
Config Manager

Loads config.yaml (PyYAML) and maps it onto the typed AppConfig dataclasses.
"""

import os
import yaml
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Type

from models.config import AppConfig, LoggingConfig, ProtocolConfig, RenderConfig, ServerConfig, StripConfig
from models.enums import FramingMode, LogLevel, StripBackend
from models.errors import ConfigError
from utils.enum_helper import EnumHelper
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)

CONFIG_ENV_VAR = "LEDWIRE_CONFIG"

# section name → (dataclass, {field: enum type})
_SECTIONS = {
    "server": (ServerConfig, {}),
    "strip": (StripConfig, {"backend": StripBackend}),
    "render": (RenderConfig, {}),
    "protocol": (ProtocolConfig, {"mode": FramingMode}),
    "logging": (LoggingConfig, {"level": LogLevel}),
}


class ConfigManager:
    """
    Configuration manager

    Loads config.yaml, falling back to factory_defaults.yaml when the main
    file is missing or unreadable. Relative paths are resolved against src/.
    The main path can be overridden with the LEDWIRE_CONFIG environment
    variable.

    Example:
        config = ConfigManager()
        app_config = config.load()

        app_config.strip.led_count
        config.render.target_fps
    """

    def __init__(self, config_path: Optional[str] = None, defaults_path: str = "config/factory_defaults.yaml"):
        """
        Args:
            config_path: Path to main config.yaml (default: $LEDWIRE_CONFIG or config/config.yaml)
            defaults_path: Path to factory defaults fallback
        """
        self.config_path = Path(config_path or os.environ.get(CONFIG_ENV_VAR) or "config/config.yaml")
        self.factory_defaults_path = Path(defaults_path)
        self.data: Dict[str, Any] = {}
        self.config: AppConfig = AppConfig()

    @staticmethod
    def _resolve(path: Path) -> Path:
        if path.is_absolute():
            return path
        src_dir = Path(__file__).parent.parent
        return src_dir / path

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"top level of {path.name} must be a mapping")
        return data

    def load(self) -> AppConfig:
        """
        Load YAML configuration and build AppConfig

        Raises:
            ConfigError: a value is out of range or of the wrong kind
        """
        try:
            self.data = self._read_yaml(self._resolve(self.config_path))
            log.info(f"Loaded {self.config_path}", sections=str(list(self.data.keys())))
        except (OSError, ValueError, yaml.YAMLError) as ex:
            log.error(f"Failed to load {self.config_path}", error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to factory defaults")
            self.data = self._read_yaml(self._resolve(self.factory_defaults_path))

        self.config = self.build(self.data)
        return self.config

    @staticmethod
    def build(data: Dict[str, Any]) -> AppConfig:
        """Map a raw config dict onto AppConfig (missing keys keep their defaults)."""
        sections = {}
        for name, (section_type, enum_fields) in _SECTIONS.items():
            sections[name] = ConfigManager._build_section(name, data.get(name) or {}, section_type, enum_fields)

        for name in data:
            if name not in _SECTIONS:
                log.warn(f"Unknown config section '{name}' ignored")

        return AppConfig(**sections)

    @staticmethod
    def _build_section(name: str, raw: Any, section_type: Type, enum_fields: Dict[str, Type]):
        if not isinstance(raw, dict):
            raise ConfigError(name, f"section must be a mapping, got {type(raw).__name__}")

        known = {f.name for f in fields(section_type)}
        kwargs = {}
        for key, value in raw.items():
            if key not in known:
                log.warn(f"Unknown config key '{name}.{key}' ignored")
                continue
            if key in enum_fields:
                try:
                    value = EnumHelper.to_enum(enum_fields[key], value)
                except ValueError:
                    choices = EnumHelper.list_names(enum_fields[key], lowercase=True)
                    raise ConfigError(f"{name}.{key}", f"'{value}' is not one of {choices}")
            kwargs[key] = value

        try:
            return section_type(**kwargs)
        except (TypeError, ValueError, AttributeError) as ex:
            # e.g. "led_count: many" reaching a range check
            raise ConfigError(name, f"invalid value ({ex})") from ex

    # ===== Section access =====

    @property
    def server(self) -> ServerConfig:
        return self.config.server

    @property
    def strip(self) -> StripConfig:
        return self.config.strip

    @property
    def render(self) -> RenderConfig:
        return self.config.render

    @property
    def protocol(self) -> ProtocolConfig:
        return self.config.protocol

    @property
    def logging(self) -> LoggingConfig:
        return self.config.logging
