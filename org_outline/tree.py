"""Section handles, documents, and the invariant-enforcing edit model.

Every mutation validates first and only then touches the arena, so a
rejected call leaves the arena exactly as it was. Text edits are validated by
re-running the structural scan on the candidate text alone; structural edits
only rewire links and are checked against the level ordering rule.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, NoReturn

from .emitter import emit_document, emit_section, layout, locate, walk
from .exceptions import CrossArenaReference, StructureViolation
from .logger import get_logger
from .models import NodeId, NodeRecord
from .parser import check_section_text, decode_text
from .rope import Rope

if TYPE_CHECKING:
    from .arena import Arena

logger = get_logger(__name__)


@dataclass(frozen=True)
class Section:
    """Lightweight handle to one node of an arena.

    Handles are cheap to copy and compare; they stay valid for the lifetime
    of the arena, even after the node is detached from every document.

    Attributes:
        arena: Arena that issued the node.
        node_id: Identifier of the node within that arena.
    """

    arena: Arena
    node_id: NodeId

    def __repr__(self) -> str:
        return f"Section({self.node_id}, level={self.level})"

    @property
    def _record(self) -> NodeRecord:
        return self.arena.resolve(self.node_id)

    def _wrap(self, index: int | None) -> Section | None:
        if index is None:
            return None
        return Section(self.arena, NodeId(self.node_id.arena, index))

    # Navigation

    @property
    def level(self) -> int:
        return self._record.level

    @property
    def text(self) -> Rope:
        """Raw text of this node only: heading line plus body."""
        return self._record.text

    @property
    def raw(self) -> str:
        return self._record.text.to_text()

    @property
    def heading(self) -> str:
        """First line of the node text without its terminator."""
        text = self._record.text
        end = text.find("\n")
        return text.slice(0, len(text) if end < 0 else end).to_text()

    @property
    def is_root(self) -> bool:
        return self._record.level == 0

    @property
    def is_attached(self) -> bool:
        return self._record.parent is not None

    @property
    def parent(self) -> Section | None:
        return self._wrap(self._record.parent)

    @property
    def first_child(self) -> Section | None:
        return self._wrap(self._record.first_child)

    @property
    def last_child(self) -> Section | None:
        return self._wrap(self._record.last_child)

    @property
    def next_sibling(self) -> Section | None:
        return self._wrap(self._record.next_sibling)

    @property
    def previous_sibling(self) -> Section | None:
        return self._wrap(self._record.prev_sibling)

    def children(self) -> Iterator[Section]:
        child = self.first_child
        while child is not None:
            following = child.next_sibling
            yield child
            child = following

    def reverse_children(self) -> Iterator[Section]:
        child = self.last_child
        while child is not None:
            preceding = child.previous_sibling
            yield child
            child = preceding

    def following_siblings(self) -> Iterator[Section]:
        sibling = self.next_sibling
        while sibling is not None:
            yield sibling
            sibling = sibling.next_sibling

    def preceding_siblings(self) -> Iterator[Section]:
        sibling = self.previous_sibling
        while sibling is not None:
            yield sibling
            sibling = sibling.previous_sibling

    def ancestors(self) -> Iterator[Section]:
        """Yield the parent, grandparent, and so on up to the root."""
        ancestor = self.parent
        while ancestor is not None:
            yield ancestor
            ancestor = ancestor.parent

    def descendants(self) -> Iterator[Section]:
        """Yield this section and every section below it in document order."""
        return walk(self)

    def emit(self) -> str:
        return emit_section(self)

    # Text edits

    def set_raw(self, candidate: str | bytes | Rope) -> None:
        """Replace this node's text after validating it in isolation.

        A heading section must keep a first line opening exactly its current
        level and may not contain any other heading line. The root may not
        contain a heading line at all.

        Args:
            candidate: Replacement text, line terminators included.

        Raises:
            StructureViolation: If the text would change the tree's shape.
            EncodingError: If the text is not valid UTF-8.

        Examples:
            section.set_raw("* A\\nnew body\\n")
        """
        record = self._record
        text = decode_text(candidate)
        try:
            check_section_text(text, record.level, self.arena.config.marker)
        except StructureViolation as error:
            logger.debug("Rejected text for %s: %s", self.node_id, error)
            raise
        rope = candidate if isinstance(candidate, Rope) else Rope(text)
        self.arena.set_text(self.node_id, rope)

    def update_raw(self, transform: Callable[[str], str]) -> None:
        """Read-modify-write the node text through `set_raw`.

        Examples:
            section.update_raw(lambda text: text.replace("TODO", "DONE", 1))
        """
        self.set_raw(transform(self.raw))

    def set_level(self, new_level: int) -> None:
        """Rewrite the marker run of this node's heading line.

        The new level must stay above the parent's level and below every
        child's level. Only this node's text changes.

        Raises:
            StructureViolation: If the level would break the level ordering;
                reported at line 1, offset 0 of this section's text.
            TypeError: If `new_level` is not an integer.

        Examples:
            section.set_level(2)  # "* A\\n" becomes "** A\\n"
        """
        if isinstance(new_level, bool) or not isinstance(new_level, int):
            raise TypeError(f"level must be an integer, not {type(new_level).__name__}")

        record = self._record
        if new_level == record.level:
            return
        if record.level == 0:
            self._reject_level("a section without a heading line always has level 0")
        if new_level < 1:
            self._reject_level(f"heading level must be at least 1, got {new_level}")
        if new_level > self.arena.config.max_level:
            self._reject_level(
                f"heading level {new_level} exceeds the maximum of {self.arena.config.max_level}"
            )

        parent = self.parent
        if parent is not None and new_level <= parent.level:
            self._reject_level(
                f"level {new_level} is not deeper than the parent's level {parent.level}"
            )
        for child in self.children():
            if child.level <= new_level:
                self._reject_level(
                    f"level {new_level} is not shallower than the child's level {child.level}"
                )

        marker = self.arena.config.marker
        text = Rope(marker * new_level) + record.text.slice(record.level)
        self.arena.set_text(self.node_id, text, level=new_level)

    # Structural edits

    def append_child(self, child: Section, adjust_level: bool = False) -> None:
        """Move `child` (with its subtree) to the end of this section's children.

        With `adjust_level`, a child that is too shallow is first deepened to
        this section's level + 1, its descendants shifting by the same amount.
        """
        self._prepare_placement(child, self, adjust_level)
        self.arena.link_last(self.node_id, child.node_id)

    def prepend_child(self, child: Section, adjust_level: bool = False) -> None:
        """Move `child` (with its subtree) to the start of this section's children."""
        self._prepare_placement(child, self, adjust_level)
        self.arena.link_first(self.node_id, child.node_id)

    def insert_before(self, new_sibling: Section, adjust_level: bool = False) -> None:
        """Move `new_sibling` (with its subtree) directly before this section."""
        self._prepare_placement(new_sibling, self._sibling_parent(new_sibling), adjust_level)
        self.arena.link_before(self.node_id, new_sibling.node_id)

    def insert_after(self, new_sibling: Section, adjust_level: bool = False) -> None:
        """Move `new_sibling` (with its subtree) directly after this section."""
        self._prepare_placement(new_sibling, self._sibling_parent(new_sibling), adjust_level)
        self.arena.link_after(self.node_id, new_sibling.node_id)

    def attach(
        self, new_parent: Section, position: int | None = None, adjust_level: bool = False
    ) -> None:
        """Move this section under `new_parent` at child index `position`.

        `position` follows ``list.insert`` semantics; None appends.
        `adjust_level` works as for `append_child`.

        Raises:
            StructureViolation: If this section's level is not deeper than
                the new parent's. Structural rejections carry no line or
                offset, since no text is involved.
        """
        self._prepare_placement(self, new_parent, adjust_level)
        siblings = [child for child in new_parent.children() if child != self]
        if position is None:
            position = len(siblings)
        elif position < 0:
            position = max(position + len(siblings), 0)
        if position >= len(siblings):
            self.arena.link_last(new_parent.node_id, self.node_id)
        else:
            self.arena.link_before(siblings[position].node_id, self.node_id)

    def detach(self) -> Section:
        """Unlink this subtree from its parent; the handle stays valid."""
        self.arena.unlink(self.node_id)
        return self

    def remove_subtree(self) -> None:
        """Drop this subtree from its document. Its nodes remain reattachable."""
        self.detach()

    def remove_children(self) -> None:
        for child in list(self.children()):
            child.detach()

    def replace_with_children(self) -> None:
        """Unlink this node and splice its children into its former place.

        Raises:
            StructureViolation: If this section has no parent.
        """
        if self._record.parent is None:
            self._reject("cannot splice the children of a section that has no parent")
        for child in list(self.children()):
            self.arena.link_before(self.node_id, child.node_id)
        self.detach()

    def clone_subtree(self) -> Section:
        return self.arena.clone_subtree(self)

    # Validation helpers

    def _reject(
        self, reason: str, line_number: int | None = None, offset: int | None = None
    ) -> NoReturn:
        logger.debug("Rejected edit of %s: %s", self.node_id, reason)
        raise StructureViolation(reason, line_number=line_number, offset=offset)

    def _reject_level(self, reason: str) -> NoReturn:
        # Level changes only ever touch the heading line.
        self._reject(reason, line_number=1, offset=0)

    def _sibling_parent(self, new_sibling: Section) -> Section:
        parent = self.parent
        if parent is None:
            self._reject("cannot insert a sibling next to a section that has no parent")
        if new_sibling == self:
            self._reject("cannot insert a section next to itself")
        return parent

    def _check_arena(self, section: Section) -> None:
        if section.arena is not self.arena:
            raise CrossArenaReference(section.node_id, self.arena.serial)

    def _check_placement(self, child: Section, parent: Section) -> None:
        self._check_arena(child)
        self._check_arena(parent)
        # Level ordering also rules out cycles: ancestors are strictly shallower.
        child_level = child.level
        parent_level = parent.level
        if child_level <= parent_level:
            self._reject(
                f"a level-{child_level} section cannot be placed under a level-{parent_level} section"
            )

    def _prepare_placement(self, child: Section, parent: Section, adjust_level: bool) -> None:
        if not adjust_level:
            self._check_placement(child, parent)
            return

        self._check_arena(child)
        self._check_arena(parent)
        shift = parent.level + 1 - child.level
        if shift <= 0:
            return
        if child.level == 0:
            self._reject("a section without a heading line cannot be placed under another")
        if child == parent or child in parent.ancestors():
            self._reject("cannot move a section into its own subtree")

        subtree = list(child.descendants())
        deepest = max(section.level for section in subtree)
        max_level = self.arena.config.max_level
        if deepest + shift > max_level:
            self._reject(
                f"deepening by {shift} would push a level-{deepest} section past "
                f"the maximum of {max_level}"
            )

        marker = self.arena.config.marker
        for section in subtree:
            record = section._record
            level = record.level + shift
            text = Rope(marker * level) + record.text.slice(record.level)
            self.arena.set_text(section.node_id, text, level=level)
        logger.debug("Deepened %d sections under %s by %d", len(subtree), child.node_id, shift)


@dataclass
class Document:
    """Root section plus the boundary metadata needed for exact emission.

    Attributes:
        root: Level-0 root section; its text is the content before the first heading.
        terminal_newline: Whether emitted text ends with a line terminator.
            While False, emission drops a final "\\n" even when an edited
            section's text supplied it.
        source_empty: Whether the parsed source was the empty string.
        leading_content: Whether the parsed source had text before its first heading.
    """

    root: Section
    terminal_newline: bool
    source_empty: bool = False
    leading_content: bool = False

    @property
    def arena(self) -> Arena:
        return self.root.arena

    def sections(self) -> Iterator[Section]:
        """Yield every heading section in document order (root excluded)."""
        iterator = self.root.descendants()
        next(iterator)
        yield from iterator

    def emit(self) -> str:
        return emit_document(self)

    def to_rope(self) -> Rope:
        return layout(self.root, self.terminal_newline).text

    def to_bytes(self) -> bytes:
        return self.emit().encode("utf-8")

    def locate(self, position: int) -> tuple[Section, int] | None:
        """Map a character offset of the emitted text to ``(section, offset)``.

        Returns None when `position` is outside the emitted text.
        """
        return locate(layout(self.root, self.terminal_newline), position)
