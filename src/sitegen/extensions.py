"""
Flask Extensions Configuration

Extensions are created here and then initialized in the app factory.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
