"""
Constants and Enums for SiteGen
===============================

Centralized enums shared by the generation pipeline, the persistence layer
and the HTTP transport.
"""

from enum import Enum


class BaseEnum(str, Enum):
    """Base enum class with string values for consistent behavior."""

    def __str__(self):
        return self.value


class GenerationPhase(BaseEnum):
    """Pipeline phases reported in progress events."""
    TEMPLATE_SELECTION = "template_selection"
    CONTENT_GENERATION = "content_generation"
    SNAPSHOT_SAVE = "snapshot_save"


class PhaseStatus(BaseEnum):
    """Status of a pipeline phase."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class PriceTier(BaseEnum):
    """Price positioning inferred for a business."""
    BUDGET = "budget"
    MID = "mid"
    UPSCALE = "upscale"
    LUXURY = "luxury"


class GenerationErrorCode(BaseEnum):
    """Machine readable codes carried by `error` events."""
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    NO_BUSINESS_PROFILE = "NO_BUSINESS_PROFILE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class FileSource(BaseEnum):
    """Which side of the pipeline produced a generated file."""
    TEMPLATE = "template"
    MODEL = "model"


class EventType(BaseEnum):
    """Names of the events in the generation stream."""
    PROGRESS = "progress"
    TEMPLATE_SELECTED = "template_selected"
    FILE = "file"
    COMPLETE = "complete"
    ERROR = "error"
    HEARTBEAT = "heartbeat"


TERMINAL_EVENTS = frozenset({EventType.COMPLETE.value, EventType.ERROR.value})
