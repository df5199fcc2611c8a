"""Constants used across the org-outline package."""

from __future__ import annotations

from .config import OutlineConfig

DEFAULT_CONFIG = OutlineConfig()

# Structure
NEWLINE = "\n"
DEFAULT_MARKER = DEFAULT_CONFIG.marker

# File handling
DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size
