"""
API Routes Package
==================

- generation: website generation stream, snapshots, pending results and
  the template catalog
"""

from .generation import generation_bp

__all__ = ['generation_bp']
