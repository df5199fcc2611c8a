"""Text emission for section trees and documents."""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .constants import NEWLINE
from .rope import Rope

if TYPE_CHECKING:
    from .tree import Document, Section

_NEWLINE_ROPE = Rope(NEWLINE)


@dataclass
class Layout:
    """Emitted text plus where each section's text starts in it.

    Attributes:
        text: Emitted text.
        starts: Start offset of each non-empty section text, ascending.
        sections: Section owning the text at the matching entry of `starts`.
    """

    text: Rope
    starts: list[int]
    sections: list[Section]


def walk(root: Section) -> Iterator[Section]:
    """Yield `root` and its descendants in document order."""
    stack = [root]
    while stack:
        section = stack.pop()
        yield section
        stack.extend(section.reverse_children())


def layout(root: Section, terminal_newline: bool | None = None) -> Layout:
    """Concatenate the texts of a subtree in document order.

    Node texts are joined as they are stored. When a non-empty text lacks a
    trailing line terminator and more text follows, one terminator is
    inserted so the next heading still starts a line; this only happens
    after edits, never for an unmodified parse.

    `terminal_newline` applies document boundary metadata: True guarantees
    non-empty output ends with a terminator, False drops a final one, None
    leaves the end as stored.

    Examples:
        layout(document.root, terminal_newline=False).text
    """
    parts: list[Rope] = []
    starts: list[int] = []
    sections: list[Section] = []
    position = 0
    owe_newline = False

    for section in walk(root):
        text = section.text
        if not text:
            continue
        if owe_newline:
            parts.append(_NEWLINE_ROPE)
            position += 1
        starts.append(position)
        sections.append(section)
        parts.append(text)
        position += len(text)
        owe_newline = not text.endswith(NEWLINE)

    if position and terminal_newline is True and owe_newline:
        parts.append(_NEWLINE_ROPE)
    elif position and terminal_newline is False and not owe_newline:
        parts[-1] = parts[-1].slice(0, len(parts[-1]) - 1)

    return Layout(text=Rope.join(parts), starts=starts, sections=sections)


def locate(emitted: Layout, position: int) -> tuple[Section, int] | None:
    """Find the section owning `position` of an emitted layout.

    Inserted terminators belong to the section they follow.
    """
    if not 0 <= position < len(emitted.text):
        return None
    index = bisect_right(emitted.starts, position) - 1
    return emitted.sections[index], position - emitted.starts[index]


def emit_section(section: Section) -> str:
    """Render the subtree rooted at `section` as text.

    Examples:
        emit_section(child)  # "* A\\nbody\\n** B\\n"
    """
    return layout(section).text.to_text()


def emit_document(document: Document) -> str:
    """Render a document, applying its boundary metadata.

    For an unmodified parse this reproduces the source exactly, including
    the empty document and a missing final line terminator.

    Examples:
        emit_document(arena.parse("* A"))  # "* A"
    """
    return layout(document.root, document.terminal_newline).text.to_text()
