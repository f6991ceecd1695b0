"""Configuration package for the QR attendance service."""
import os
from typing import Type

from .base import BaseConfig
from .development import DevelopmentConfig
from .production import ProductionConfig
from .testing import TestingConfig

# Checked in order; FLASK_ENV is kept for existing deployments.
ENV_VARIABLES = ('QR_ATTENDANCE_ENV', 'FLASK_ENV')

config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}

def get_config(config_name: str = None) -> Type[BaseConfig]:
    """Configuration class by name, or from the environment when no name is given.
    
    Unknown names fall back to development so a typo never enables
    production settings silently.
    """
    if config_name is None:
        config_name = next((os.environ[var] for var in ENV_VARIABLES if os.environ.get(var)),
                           'development')
    
    return config_map.get(config_name.lower(), DevelopmentConfig)
