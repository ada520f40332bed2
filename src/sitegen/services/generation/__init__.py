"""Website Generation Pipeline
===========================

Turns a business profile into a generated restaurant website, streamed as
events:

1. Analyze the profile and pick a template with a fast model
2. Load the template's files and prime the main model with them
3. Extract files from the model stream as each one completes
4. Assemble and persist the project snapshot

Components:
- profile_analyzer.py: category / cuisine / price tier / style inference
- theme_registry.py: catalog of website templates
- template_selector.py: fast-model template choice with fallback
- template_loader.py: local archive or GitHub download, ignore split
- content_primer.py: conversation that imports the template
- file_extractor.py: incremental file-write block extraction
- snapshot.py: file map assembly
- orchestrator.py: the event-producing pipeline
- events.py: SSE framing and heartbeats
- pending_results.py: read-once result handoff
"""

from .config import GenerationOptions, get_fast_model
from .content_primer import ContentPrimer, PrimedConversation
from .file_extractor import StreamingFileExtractor, extract_files
from .models import (
    BusinessProfile,
    GeneratedFile,
    GenerationEvent,
    PhaseOutcome,
    ProfileAnalysis,
    SnapshotInfo,
    TemplateSelection,
)
from .orchestrator import GenerationOrchestrator
from .pending_results import PendingResultStore, get_pending_result_store
from .profile_analyzer import analyze_business_profile, validate_business_profile
from .snapshot import SnapshotAssembler
from .template_loader import TemplateLoader, apply_ignore_patterns
from .template_selector import TemplateSelector
from .theme_registry import ThemeRegistry, get_theme_registry

__all__ = [
    # Types
    'BusinessProfile',
    'GeneratedFile',
    'GenerationEvent',
    'PhaseOutcome',
    'ProfileAnalysis',
    'SnapshotInfo',
    'TemplateSelection',
    'GenerationOptions',
    'PrimedConversation',
    # Pure stages
    'analyze_business_profile',
    'validate_business_profile',
    'get_fast_model',
    'StreamingFileExtractor',
    'extract_files',
    'SnapshotAssembler',
    'apply_ignore_patterns',
    # Effectful stages
    'TemplateSelector',
    'TemplateLoader',
    'ContentPrimer',
    'GenerationOrchestrator',
    'ThemeRegistry',
    'get_theme_registry',
    'PendingResultStore',
    'get_pending_result_store',
]
