"""
Application Configuration
========================

Configuration settings for different environments. Values are read from
the environment (a project-level ``.env`` is loaded by the app factory).
"""

import os

from sitegen.paths import DATA_DIR


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    """Base configuration class."""

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database settings
    DATABASE_PATH = DATA_DIR / 'sitegen.db'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or f'sqlite:///{DATABASE_PATH}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Model provider (OpenRouter)
    OPENROUTER_API_KEY = os.environ.get('OPENROUTER_API_KEY', '')
    DEFAULT_MODEL = os.environ.get('DEFAULT_MODEL', 'anthropic/claude-sonnet-4.5')
    DEFAULT_PROVIDER = os.environ.get('DEFAULT_PROVIDER', 'OpenRouter')
    GENERATION_MAX_TOKENS = _env_int('GENERATION_MAX_TOKENS', 32000)
    GENERATION_TIMEOUT = _env_int('GENERATION_TIMEOUT', 600)

    # Template fetching
    GITHUB_TOKEN = os.environ.get('GITHUB_TOKEN') or os.environ.get('VITE_GITHUB_ACCESS_TOKEN')

    # Event stream
    SSE_HEARTBEAT_INTERVAL = _env_float('SSE_HEARTBEAT_INTERVAL', 5.0)

    # Pending result handoff
    PENDING_RESULT_TTL = _env_int('PENDING_RESULT_TTL', 300)
    PENDING_RESULT_MAX_ENTRIES = _env_int('PENDING_RESULT_MAX_ENTRIES', 64)


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    OPENROUTER_API_KEY = 'test-key'
    GITHUB_TOKEN = None
    SSE_HEARTBEAT_INTERVAL = 30.0


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig,
}
