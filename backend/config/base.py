"""Settings shared by every environment."""
import os
from datetime import timedelta

class BaseConfig:
    """Base configuration class."""
    
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    JWT_ALGORITHM = 'HS256'
    
    # CORS
    CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]
    
    # Rate Limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_DEFAULT = "2000 per day, 500 per hour"
    
    # Redis (optional, used by the rate limiter and health check)
    REDIS_URL = os.getenv('REDIS_URL')
    
    # QR image rendering
    QR_IMAGE_BOX_SIZE = 10
    QR_IMAGE_BORDER = 2
    
    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
    
    # Institution timezone; lecture dates and start times are wall-clock times here
    TIMEZONE = os.getenv('TIMEZONE', 'UTC')
    
    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
