# settings/__init__.py

# Importações relativas para módulos dentro do mesmo pacote 'settings'
from .base import BaseConfig, ConfigError, SUPPORTED_HASHING_METHODS
from .development import DevelopmentConfig
from .testing import TestingConfig
from .production import ProductionConfig

config_map = {
    'development': DevelopmentConfig,
    'testing':     TestingConfig,
    'production':  ProductionConfig,
    'default':     BaseConfig # Default fallback configuration
}

__all__ = [
    'BaseConfig',
    'ConfigError',
    'DevelopmentConfig',
    'TestingConfig',
    'ProductionConfig',
    'SUPPORTED_HASHING_METHODS',
    'config_map',
]
