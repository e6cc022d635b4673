"""
Configuration loader for YAML files
"""
import yaml
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

from .models import AppConfig, EngineConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/engine.yaml"


def _known_kwargs(cls, data: Dict[str, Any], section: str) -> Dict[str, Any]:
    """Keep keys the dataclass knows, warn about the rest"""
    names = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - names)
    if unknown:
        logger.warning(f"Ignoring unknown {section} config keys: {unknown}")
    return {k: v for k, v in data.items() if k in names}


class ConfigLoader:
    """Loads and saves configuration from YAML files"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)

    def load(self) -> AppConfig:
        """
        Load configuration from YAML file

        Raises:
            ValueError: If the file can't be parsed or fails validation
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, creating default")
            return self._create_default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse config {self.config_path}: {e}") from e

        if not data:
            logger.warning("Empty config file, using defaults")
            return AppConfig()

        if not isinstance(data, dict):
            raise ValueError(f"Config {self.config_path} must be a mapping, got {type(data).__name__}")

        engine_data = data.get('engine') or {}
        app_data = {k: v for k, v in data.items() if k != 'engine'}

        config = AppConfig(
            engine=EngineConfig(**_known_kwargs(EngineConfig, engine_data, 'engine')),
            **_known_kwargs(AppConfig, app_data, 'app')
        )

        errors = config.validate()
        if errors:
            logger.error(f"Configuration validation errors: {errors}")
            raise ValueError(f"Configuration validation failed: {errors}")

        logger.info(f"Loaded configuration for {config.symbol} from {self.config_path}")
        return config

    def save(self, config: AppConfig) -> bool:
        """Save configuration to YAML file, refusing invalid configs"""
        errors = config.validate()
        if errors:
            logger.error(f"Cannot save invalid configuration: {errors}")
            return False

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False, indent=2)

        logger.info(f"Configuration saved to {self.config_path}")
        return True

    def _create_default_config(self) -> AppConfig:
        """Create and save default configuration"""
        config = AppConfig()
        self.save(config)
        return config


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Convenience function to load configuration"""
    loader = ConfigLoader(config_path)
    return loader.load()


def save_config(config: AppConfig, config_path: str = DEFAULT_CONFIG_PATH) -> bool:
    """Convenience function to save configuration"""
    loader = ConfigLoader(config_path)
    return loader.save(config)
