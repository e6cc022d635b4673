"""
Configuration package for the SMC confluence engine
"""

from .models import AppConfig, EngineConfig
from .loader import ConfigLoader, load_config, save_config

__all__ = [
    'AppConfig', 'EngineConfig', 'ConfigLoader', 'load_config', 'save_config'
]
