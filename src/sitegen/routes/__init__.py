"""
Routes Package
Handles all application routes organized by type.
"""

from .api import generation_bp

__all__ = ['generation_bp', 'register_blueprints']


def register_blueprints(app):
    """
    Register all application blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(generation_bp)  # /api/project/*, /api/templates
