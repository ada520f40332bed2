"""
Flask Application Factory
=========================

Factory pattern for creating Flask application instances with
proper initialization.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from sitegen.extensions import db
from sitegen.paths import DATA_DIR, PROJECT_ROOT
from sitegen.utils.logging_config import get_logger, setup_application_logging

logger = get_logger('factory')


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration environment name ('development',
            'testing', 'production'); defaults to ``FLASK_CONFIG``

    Returns:
        Configured Flask application
    """
    env_path = PROJECT_ROOT / '.env'
    if env_path.exists():
        load_dotenv(env_path)

    # Settings read the environment at import time, so import after .env
    from sitegen.config import config

    config_name = config_name or os.environ.get('FLASK_CONFIG', 'default')
    config_class = config.get(config_name, config['default'])

    setup_application_logging()

    app = Flask(__name__)
    app.config.from_object(config_class)
    if env_path.exists():
        logger.info(f"Loaded .env from {env_path}")

    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///') and not app.config.get('TESTING'):
        DATA_DIR.mkdir(parents=True, exist_ok=True)

    db.init_app(app)

    # Import models so their tables are registered before create_all
    from sitegen import models  # noqa: F401

    with app.app_context():
        db.create_all()

    from sitegen.utils.errors import register_error_handlers
    register_error_handlers(app)

    from sitegen.routes import register_blueprints
    register_blueprints(app)

    logger.info(f"SiteGen app created ({config_name} config)")
    return app


__all__ = ['create_app']
