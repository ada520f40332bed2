"""Service Base Utilities
=========================

Shared exception hierarchy for the service layer.

Usage Pattern:
    from .service_base import ServiceError, NotFoundError, ValidationError

All service modules should raise these exceptions so route / API layers can
map them uniformly to HTTP responses.
"""
from __future__ import annotations

from typing import List, Optional

__all__ = [
    'ServiceError', 'NotFoundError', 'ValidationError', 'ConflictError', 'OperationError',
]


class ServiceError(Exception):
    """Base class for all service layer errors."""


class NotFoundError(ServiceError):
    """Entity not found."""


class ValidationError(ServiceError):
    """Invalid input or failed validation rules."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class ConflictError(ServiceError):
    """State or uniqueness conflict when performing operation."""


class OperationError(ServiceError):
    """Generic failure performing an operation (e.g., external dependency)."""
