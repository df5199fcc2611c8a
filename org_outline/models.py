"""Data models for org-outline."""

from __future__ import annotations

from dataclasses import dataclass

from .rope import Rope


@dataclass(frozen=True, order=True)
class NodeId:
    """Arena-scoped node identifier.

    Attributes:
        arena: Serial number of the arena that issued the identifier.
        index: Position in the arena's node table. Never reused.
    """

    arena: int
    index: int

    def __str__(self) -> str:
        return f"{self.arena}:{self.index}"


@dataclass(eq=False)
class NodeRecord:
    """One tree vertex as stored in the arena's node table.

    Tree links are node-table indices rather than references, and children
    form an intrusive doubly linked list so that detaching and reattaching a
    subtree never scans its siblings.

    Attributes:
        node_id: Stable identifier of this node.
        level: Marker-run length of the heading line; 0 for a document root.
        text: Heading line plus body, line terminators included.
        parent: Index of the parent node, or None for roots and orphans.
        first_child: Index of the first child, if any.
        last_child: Index of the last child, if any.
        prev_sibling: Index of the previous sibling, if any.
        next_sibling: Index of the next sibling, if any.
    """

    node_id: NodeId
    level: int
    text: Rope
    parent: int | None = None
    first_child: int | None = None
    last_child: int | None = None
    prev_sibling: int | None = None
    next_sibling: int | None = None


@dataclass(frozen=True)
class SectionSpan:
    """Character range of one section found by the structural scan.

    Attributes:
        level: Heading level, 0 for the leading span before the first heading.
        start: Offset of the first character (inclusive).
        end: Offset one past the last character (exclusive).
        line_number: One-based line number where the span starts.
    """

    level: int
    start: int
    end: int
    line_number: int


@dataclass
class ParseResult:
    """Outcome of parsing a full document into an arena.

    Attributes:
        root_id: Identifier of the level-0 root node.
        section_count: Number of heading sections discovered.
        terminal_newline: Whether the source ended with a line terminator.
        source_empty: Whether the source was the empty string.
        leading_content: Whether text preceded the first heading.
    """

    root_id: NodeId
    section_count: int
    terminal_newline: bool
    source_empty: bool
    leading_content: bool
