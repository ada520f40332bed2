"""Centralized path constants for prompts and packaged templates.

All code should import from here instead of hardcoding paths.
"""
from __future__ import annotations
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]  # .../src/sitegen -> project root
SRC_DIR = PROJECT_ROOT / 'src'
# misc/ lives at project root for prompts and template archives
MISC_DIR = PROJECT_ROOT / 'misc'

# Jinja2 prompt templates
PROMPTS_DIR = MISC_DIR / 'prompts'

# Packaged template archives (<slug>.zip)
TEMPLATE_ARCHIVES_DIR = MISC_DIR / 'templates'

LOGS_DIR = PROJECT_ROOT / 'logs'
DATA_DIR = SRC_DIR / 'data'

# Root of the generated project inside the live workspace
WORK_DIR = '/home/project'
