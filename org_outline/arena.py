"""Arena: owner of every node record for one or more documents.

Nodes are never freed. Removing a section only unlinks it, so identifiers
stay valid for the arena's lifetime and detached sections can be reattached
later. Long editing sessions accumulate orphans; `Arena.rebuild` emits a
document and reparses it into a fresh arena when that matters.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator

from .config import OutlineConfig, validate_config
from .exceptions import CrossArenaReference, StructureViolation
from .logger import get_logger
from .models import NodeId, NodeRecord
from .parser import decode_text, parse_document, scan_sections, top_level_spans
from .rope import Rope
from .tree import Document, Section

logger = get_logger(__name__)

_arena_serials = itertools.count(1)


class Arena:
    """Growable table of node records with stable identifiers.

    Not safe for concurrent mutation; use one arena per thread or serialize
    access. Independent arenas share no mutable state.

    Examples:
        arena = Arena()
        document = arena.parse("* A\\nbody\\n** B\\n")
        document.emit()  # "* A\\nbody\\n** B\\n"
    """

    def __init__(self, config: OutlineConfig | None = None):
        config = config or OutlineConfig()
        validate_config(config)
        self.config = config
        self.serial = next(_arena_serials)
        self._nodes: list[NodeRecord] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"<Arena #{self.serial} nodes={len(self._nodes)}>"

    # Construction

    def parse(self, text: str | bytes) -> Document:
        """Parse `text` into a new document held by this arena.

        Raises:
            EncodingError: If `text` is not valid UTF-8.
        """
        result = parse_document(self, text)
        return Document(
            root=Section(self, result.root_id),
            terminal_newline=result.terminal_newline,
            source_empty=result.source_empty,
            leading_content=result.leading_content,
        )

    def new_section(self, text: str | bytes) -> Section:
        """Parse `text` as one free-standing section.

        A single top-level heading without leading text yields that heading
        (with its subtree) as an orphan. Text without headings, or leading
        text followed by a single heading, yields the level-0 root.

        Raises:
            StructureViolation: If the text holds more than one top-level heading.
                No node is allocated.
            EncodingError: If `text` is not valid UTF-8.

        Examples:
            arena.new_section("* Hello\\n** Sub\\n").level  # 1
            arena.new_section("* A\\n* B\\n")  # raises StructureViolation
        """
        text = decode_text(text)
        tops = top_level_spans(scan_sections(text, self.config.marker))
        if len(tops) > 1:
            raise StructureViolation(
                f"text holds {len(tops)} top-level sections; expected one",
                line_number=tops[1].line_number,
                offset=tops[1].start,
            )

        result = parse_document(self, text)
        root = Section(self, result.root_id)
        children = list(root.children())
        if len(children) == 1 and not result.leading_content:
            child = children[0]
            self.unlink(child.node_id)
            return child
        return root

    def allocate_node(self, level: int, text: Rope, parent: NodeId | None = None) -> NodeId:
        """Append a node record and return its identifier.

        Internal primitive used by the parser and the structural mutators;
        it performs no invariant checks.
        """
        node_id = NodeId(self.serial, len(self._nodes))
        record = NodeRecord(node_id=node_id, level=level, text=text)
        self._nodes.append(record)
        if parent is not None:
            self.link_last(parent, node_id)
        return node_id

    def resolve(self, node_id: NodeId) -> NodeRecord:
        """Return the node record for `node_id`.

        Raises:
            CrossArenaReference: If the identifier was not issued by this arena.
        """
        if (
            not isinstance(node_id, NodeId)
            or node_id.arena != self.serial
            or not 0 <= node_id.index < len(self._nodes)
        ):
            raise CrossArenaReference(node_id, self.serial)
        return self._nodes[node_id.index]

    def section(self, node_id: NodeId) -> Section:
        self.resolve(node_id)
        return Section(self, node_id)

    def own(self, section: Section) -> NodeRecord:
        """Resolve a section handle, rejecting handles from other arenas."""
        if section.arena is not self:
            raise CrossArenaReference(section.node_id, self.serial)
        return self.resolve(section.node_id)

    def clone_section(self, section: Section) -> Section:
        """Copy one node (level and text, no children) into a new orphan."""
        record = self.own(section)
        return Section(self, self.allocate_node(record.level, record.text))

    def clone_subtree(self, section: Section) -> Section:
        """Deep-copy the subtree rooted at `section` into new orphan nodes.

        Texts are shared copy-on-write, so the clone costs one record per
        node and no character copies. Later edits to either copy never reach
        the other.
        """
        copy = self.clone_section(section)
        stack = [(section.node_id, copy.node_id)]
        cloned = 1
        while stack:
            source_id, target_id = stack.pop()
            for child_index in self._child_indices(self.resolve(source_id)):
                child = self._nodes[child_index]
                child_copy = self.allocate_node(child.level, child.text, parent=target_id)
                stack.append((child.node_id, child_copy))
                cloned += 1
        logger.debug("Cloned %d nodes from %s as %s", cloned, section.node_id, copy.node_id)
        return copy

    def rebuild(self, document: Document) -> tuple[Arena, Document]:
        """Emit `document` and reparse it into a fresh arena.

        Sheds orphaned records accumulated by long editing sessions. Handles
        into the old arena are not carried over.
        """
        self.own(document.root)
        arena = Arena(self.config)
        rebuilt = arena.parse(document.emit())
        logger.debug(
            "Rebuilt document from arena #%d (%d nodes) into arena #%d (%d nodes)",
            self.serial,
            len(self),
            arena.serial,
            len(arena),
        )
        return arena, rebuilt

    # Link primitives. Callers validate; these only rewire indices.

    def _child_indices(self, record: NodeRecord) -> Iterator[int]:
        index = record.first_child
        while index is not None:
            following = self._nodes[index].next_sibling
            yield index
            index = following

    def set_text(self, node_id: NodeId, text: Rope, level: int | None = None) -> None:
        record = self.resolve(node_id)
        record.text = text
        if level is not None:
            record.level = level

    def unlink(self, node_id: NodeId) -> None:
        """Detach a node from its parent and siblings; a no-op for orphans."""
        record = self.resolve(node_id)
        if record.parent is None:
            return
        parent = self._nodes[record.parent]
        if record.prev_sibling is None:
            parent.first_child = record.next_sibling
        else:
            self._nodes[record.prev_sibling].next_sibling = record.next_sibling
        if record.next_sibling is None:
            parent.last_child = record.prev_sibling
        else:
            self._nodes[record.next_sibling].prev_sibling = record.prev_sibling
        record.parent = record.prev_sibling = record.next_sibling = None

    def link_last(self, parent_id: NodeId, node_id: NodeId) -> None:
        self.unlink(node_id)
        parent = self.resolve(parent_id)
        record = self.resolve(node_id)
        record.parent = parent_id.index
        record.prev_sibling = parent.last_child
        if parent.last_child is None:
            parent.first_child = node_id.index
        else:
            self._nodes[parent.last_child].next_sibling = node_id.index
        parent.last_child = node_id.index

    def link_first(self, parent_id: NodeId, node_id: NodeId) -> None:
        self.unlink(node_id)
        parent = self.resolve(parent_id)
        record = self.resolve(node_id)
        record.parent = parent_id.index
        record.next_sibling = parent.first_child
        if parent.first_child is None:
            parent.last_child = node_id.index
        else:
            self._nodes[parent.first_child].prev_sibling = node_id.index
        parent.first_child = node_id.index

    def link_before(self, anchor_id: NodeId, node_id: NodeId) -> None:
        self.unlink(node_id)
        anchor = self.resolve(anchor_id)
        record = self.resolve(node_id)
        record.parent = anchor.parent
        record.next_sibling = anchor_id.index
        record.prev_sibling = anchor.prev_sibling
        if anchor.prev_sibling is None:
            self._nodes[anchor.parent].first_child = node_id.index
        else:
            self._nodes[anchor.prev_sibling].next_sibling = node_id.index
        anchor.prev_sibling = node_id.index

    def link_after(self, anchor_id: NodeId, node_id: NodeId) -> None:
        self.unlink(node_id)
        anchor = self.resolve(anchor_id)
        record = self.resolve(node_id)
        record.parent = anchor.parent
        record.prev_sibling = anchor_id.index
        record.next_sibling = anchor.next_sibling
        if anchor.next_sibling is None:
            self._nodes[anchor.parent].last_child = node_id.index
        else:
            self._nodes[anchor.next_sibling].prev_sibling = node_id.index
        anchor.next_sibling = node_id.index
