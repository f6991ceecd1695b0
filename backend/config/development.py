"""Development configuration."""
import os

from .base import BaseConfig

class DevelopmentConfig(BaseConfig):
    """Development configuration class."""
    
    DEBUG = True
    TESTING = False
    
    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL', 'sqlite:///qr_attendance_dev.db')
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', '').lower() == 'true'
    
    LOG_LEVEL = 'DEBUG'
