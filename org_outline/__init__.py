"""
org-outline: structural parser and editor for outline documents.

Parses Org-style outlines (headings are a run of ``*`` followed by a space)
into an arena-held tree, validates every edit against the tree's structural
invariants, and emits text that is byte-identical wherever nothing changed.

CLI Usage:
    org-outline check notes.org
    org-outline tree notes.org

Library Usage:
    from org_outline import Arena

    arena = Arena()
    document = arena.parse("* A\\nbody\\n** B\\n")
    heading = next(document.root.children())
    heading.set_raw("* A\\nnew body\\n")
    text = document.emit()
"""

from .arena import Arena
from .config import ConfigError, OutlineConfig
from .emitter import emit_document, emit_section
from .exceptions import CrossArenaReference, EncodingError, OutlineError, StructureViolation
from .models import NodeId
from .parser import headline_level, scan_sections
from .rope import Rope
from .tree import Document, Section

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "Arena",
    "Document",
    "Section",
    "emit_document",
    "emit_section",
    # Data models
    "NodeId",
    "OutlineConfig",
    "Rope",
    # Utilities
    "headline_level",
    "scan_sections",
    # Exceptions
    "ConfigError",
    "CrossArenaReference",
    "EncodingError",
    "OutlineError",
    "StructureViolation",
    # Version
    "__version__",
]
