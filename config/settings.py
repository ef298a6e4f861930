"""Application configuration classes."""

import os

from dotenv import load_dotenv

from config.security import SecurityConfig

load_dotenv()

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _env_bool(name, default='false'):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config(SecurityConfig):
    """Base configuration."""
    VERSION = os.environ.get('APP_VERSION', '1.0.0')

    # Database - SQLite by default, any SQLAlchemy URL (mysql+pymysql://, postgresql://) works
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f'sqlite:///{os.path.join(basedir, "workhub_pro.db")}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DB_POOL_SIZE = int(os.environ.get('DB_POOL_SIZE', 10))
    DB_MAX_OVERFLOW = int(os.environ.get('DB_MAX_OVERFLOW', 0))
    AUTO_CREATE_TABLES = _env_bool('AUTO_CREATE_TABLES', 'true')

    # Mail Configuration
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = _env_bool('MAIL_USE_TLS', 'true')
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_FROM = os.environ.get('MAIL_FROM', 'WorkHub Pro <noreply@workhubpro.com>')
    MAIL_TIMEOUT = int(os.environ.get('MAIL_TIMEOUT', 30))
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL')

    # Branding used by the email templates
    SITE_NAME = os.environ.get('SITE_NAME', 'WorkHub Pro')
    SITE_URL = os.environ.get('SITE_URL', 'https://workhubpro.com')
    COMPANY_ADDRESS = os.environ.get('COMPANY_ADDRESS', '123 Business Street, City, State 12345')
    COMPANY_PHONE = os.environ.get('COMPANY_PHONE', '+1 (555) 123-4567')

    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')
    SLOW_REQUEST_THRESHOLD = 1000  # ms

    # Deployed behind a single reverse proxy
    PROXY_FIX = _env_bool('PROXY_FIX', 'true')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    EXPOSE_ERROR_DETAILS = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    AUTO_CREATE_TABLES = _env_bool('AUTO_CREATE_TABLES', 'false')


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    AUTO_CREATE_TABLES = True
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    ADMIN_API_TOKEN = 'test-admin-token'
    ADMIN_EMAIL = None
    PROXY_FIX = False
    LOG_FILE = None


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
