"""
Database Models for SiteGen

Models include:
- Project: a website project owned by a user, carrying its business profile
- ProjectSnapshot: the latest persisted file map of a project
"""

from __future__ import annotations

from ..extensions import db
from .project import Project, ProjectSnapshot

__all__ = ['db', 'Project', 'ProjectSnapshot']
