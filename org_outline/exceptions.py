"""Package-specific exception types."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import NodeId


class OutlineError(Exception):
    """Base class for errors raised by org-outline."""


class StructureViolation(OutlineError, ValueError):
    """Raised when a mutation would break the outline's structural invariants.

    The arena is left untouched when this is raised, so the caller can retry
    with corrected input.

    Args:
        reason: Human-readable description of the violation.
        line_number: One-based line of the offending text, when known.
        offset: Zero-based character offset of the offending line, when known.
    """

    def __init__(self, reason: str, line_number: int | None = None, offset: int | None = None):
        self.reason = reason
        self.line_number = line_number
        self.offset = offset
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if self.line_number is None:
            return self.reason
        location = f"line {self.line_number}"
        if self.offset is not None:
            location += f", offset {self.offset}"
        return f"{self.reason} ({location})"


class CrossArenaReference(OutlineError, LookupError):
    """Raised when a node identifier is resolved against an arena that did not issue it.

    Args:
        node_id: The identifier that failed to resolve.
        arena_serial: Serial number of the arena it was resolved against.
    """

    def __init__(self, node_id: NodeId, arena_serial: int):
        self.node_id = node_id
        self.arena_serial = arena_serial
        super().__init__(f"Node {node_id} does not belong to arena #{arena_serial}")


class EncodingError(OutlineError, ValueError):
    """Raised when input text is not valid UTF-8."""
