from __future__ import annotations

import pytest

from org_outline import Arena, CrossArenaReference, NodeId, OutlineConfig, StructureViolation


def _headings(section) -> list[str]:
    return [child.heading for child in section.children()]


@pytest.fixture()
def document(arena: Arena):
    return arena.parse("* A\n** A1\n* B\n")


def _top(document) -> tuple:
    heading_a, heading_b = list(document.root.children())
    return heading_a, heading_b, next(heading_a.children())


def test_append_child_moves_subtree(document):
    heading_a, heading_b, heading_a1 = _top(document)

    heading_b.append_child(heading_a1)

    assert _headings(heading_a) == []
    assert _headings(heading_b) == ["** A1"]
    assert heading_a1.parent == heading_b
    assert document.emit() == "* A\n* B\n** A1\n"


def test_prepend_child(document):
    heading_a, heading_b, _ = _top(document)

    document.root.prepend_child(heading_b)

    assert _headings(document.root) == ["* B", "* A"]
    assert document.emit() == "* B\n* A\n** A1\n"


def test_insert_before_and_after(arena: Arena, document):
    heading_a, heading_b, _ = _top(document)
    first = arena.new_section("* First\n")
    last = arena.new_section("* Last\n")

    heading_a.insert_before(first)
    heading_b.insert_after(last)

    assert _headings(document.root) == ["* First", "* A", "* B", "* Last"]
    assert first.previous_sibling is None
    assert last.next_sibling is None
    assert list(heading_b.following_siblings()) == [last]
    assert list(heading_b.preceding_siblings()) == [heading_a, first]


def test_attach_at_position(arena: Arena, document):
    extra = arena.new_section("* Extra\n")

    extra.attach(document.root, 1)
    assert _headings(document.root) == ["* A", "* Extra", "* B"]

    extra.attach(document.root, 0)
    assert _headings(document.root) == ["* Extra", "* A", "* B"]

    extra.attach(document.root)
    assert _headings(document.root) == ["* A", "* B", "* Extra"]

    extra.attach(document.root, -1)
    assert _headings(document.root) == ["* A", "* Extra", "* B"]

    extra.attach(document.root, 99)
    assert _headings(document.root) == ["* A", "* B", "* Extra"]


def test_detach_keeps_handle_usable(arena: Arena, document):
    heading_a, _, heading_a1 = _top(document)
    node_id = heading_a.node_id

    detached = heading_a.detach()

    assert detached == heading_a
    assert not heading_a.is_attached
    assert heading_a.parent is None
    assert _headings(heading_a) == ["** A1"]
    assert document.emit() == "* B\n"
    assert arena.resolve(node_id).text == "* A\n"
    assert heading_a.emit() == "* A\n** A1\n"

    document.root.prepend_child(heading_a)
    assert document.emit() == "* A\n** A1\n* B\n"


def test_detach_of_orphan_is_noop(arena: Arena):
    orphan = arena.new_section("* Orphan\n")

    orphan.detach()

    assert orphan.parent is None


def test_remove_subtree_and_children(document):
    heading_a, heading_b, _ = _top(document)

    heading_a.remove_children()
    assert document.emit() == "* A\n* B\n"

    heading_b.remove_subtree()
    assert document.emit() == "* A\n"


def test_replace_with_children(arena: Arena):
    document = arena.parse("* A\n** A1\n** A2\n* B\n")
    heading_a = next(document.root.children())

    heading_a.replace_with_children()

    assert _headings(document.root) == ["** A1", "** A2", "* B"]
    assert document.emit() == "** A1\n** A2\n* B\n"
    assert heading_a.parent is None
    assert list(heading_a.children()) == []


def test_replace_with_children_requires_parent(arena: Arena):
    orphan = arena.new_section("* Orphan\n** Child\n")

    with pytest.raises(StructureViolation):
        orphan.replace_with_children()

    assert _headings(orphan) == ["** Child"]


def test_level_rule_rejects_shallow_child(document):
    heading_a, heading_b, heading_a1 = _top(document)

    with pytest.raises(StructureViolation) as excinfo:
        heading_a1.append_child(heading_b)
    assert excinfo.value.line_number is None
    with pytest.raises(StructureViolation):
        heading_a.append_child(heading_b)
    with pytest.raises(StructureViolation):
        heading_a1.insert_after(heading_b)

    assert document.emit() == "* A\n** A1\n* B\n"


def test_ancestor_cannot_move_under_descendant(document):
    heading_a, _, heading_a1 = _top(document)

    with pytest.raises(StructureViolation):
        heading_a1.append_child(heading_a)
    with pytest.raises(StructureViolation):
        heading_a.append_child(heading_a)

    assert heading_a1.parent == heading_a


def test_root_cannot_be_attached(arena: Arena, document):
    other = arena.parse("* X\n")
    heading_a, _, _ = _top(document)

    with pytest.raises(StructureViolation):
        heading_a.append_child(other.root)
    with pytest.raises(StructureViolation):
        document.root.insert_after(heading_a)
    with pytest.raises(StructureViolation):
        heading_a.insert_after(heading_a)


def test_cross_arena_operations_are_rejected(document):
    foreign_arena = Arena()
    foreign = foreign_arena.parse("* X\n")
    foreign_heading = next(foreign.root.children())

    with pytest.raises(CrossArenaReference):
        document.root.append_child(foreign_heading)
    with pytest.raises(CrossArenaReference):
        foreign_heading.attach(document.root)
    with pytest.raises(CrossArenaReference):
        foreign_arena.resolve(document.root.node_id)

    assert document.emit() == "* A\n** A1\n* B\n"
    assert foreign.emit() == "* X\n"


def test_unknown_node_identifier(arena: Arena):
    with pytest.raises(CrossArenaReference):
        arena.resolve(NodeId(arena.serial, 0))
    with pytest.raises(CrossArenaReference):
        arena.section(NodeId(arena.serial + 1000, 0))


def test_move_between_documents_of_one_arena(arena: Arena, document):
    other = arena.parse("* X\n")
    heading_x = next(other.root.children())

    document.root.append_child(heading_x)

    assert other.emit() == ""
    assert document.emit() == "* A\n** A1\n* B\n* X\n"


def test_clone_subtree_is_independent(document):
    heading_a, _, heading_a1 = _top(document)

    copy = heading_a.clone_subtree()
    copy_child = next(copy.children())

    assert copy.parent is None
    assert copy.node_id != heading_a.node_id
    assert copy.emit() == "* A\n** A1\n"

    heading_a.set_raw("* A\nchanged\n")
    copy_child.set_raw("** A1\ncopy only\n")

    assert copy.raw == "* A\n"
    assert heading_a1.raw == "** A1\n"
    assert copy.emit() == "* A\n** A1\ncopy only\n"


def test_clone_section_copies_one_node(arena: Arena, document):
    heading_a, _, _ = _top(document)

    copy = arena.clone_section(heading_a)

    assert copy.raw == "* A\n"
    assert list(copy.children()) == []


def test_clone_can_be_attached_elsewhere(document):
    heading_a, heading_b, _ = _top(document)

    heading_b.insert_after(heading_a.clone_subtree())

    assert document.emit() == "* A\n** A1\n* B\n* A\n** A1\n"


def test_new_section_single_heading(arena: Arena):
    section = arena.new_section("* Hello\n** Sub\n")

    assert section.level == 1
    assert section.parent is None
    assert section.emit() == "* Hello\n** Sub\n"


def test_new_section_without_heading_returns_root(arena: Arena):
    section = arena.new_section("just text\n")

    assert section.level == 0
    assert section.raw == "just text\n"


def test_new_section_with_leading_text_returns_root(arena: Arena):
    section = arena.new_section("intro\n* A\n")

    assert section.level == 0
    assert _headings(section) == ["* A"]


def test_new_section_rejects_several_top_level_headings(arena: Arena):
    with pytest.raises(StructureViolation) as excinfo:
        arena.new_section("* A\nbody\n* B\n")

    assert excinfo.value.line_number == 3
    assert excinfo.value.offset == 9
    assert len(arena) == 0


def test_new_section_counts_only_top_level_headings(arena: Arena):
    with pytest.raises(StructureViolation) as excinfo:
        arena.new_section("** A\n*** A1\n* B\n")

    assert excinfo.value.line_number == 3
    assert excinfo.value.offset == 12
    assert len(arena) == 0

    section = arena.new_section("** A\n*** A1\n")
    assert section.level == 2


def test_navigation(arena: Arena):
    document = arena.parse("* A\n** B\n*** C\n** D\n")
    heading_a = next(document.root.children())
    heading_b, heading_d = list(heading_a.children())
    heading_c = next(heading_b.children())

    assert list(heading_c.ancestors()) == [heading_b, heading_a, document.root]
    assert [section.heading for section in heading_a.descendants()] == [
        "* A",
        "** B",
        "*** C",
        "** D",
    ]
    assert heading_a.first_child == heading_b
    assert heading_a.last_child == heading_d
    assert list(heading_a.reverse_children()) == [heading_d, heading_b]
    assert heading_b.next_sibling == heading_d
    assert heading_d.previous_sibling == heading_b
    assert document.root.is_root
    assert not heading_a.is_root


def test_rebuild_sheds_orphans(arena: Arena, document):
    heading_a, _, _ = _top(document)
    for _ in range(5):
        heading_a.clone_subtree()
    heading_a.remove_subtree()

    fresh_arena, rebuilt = arena.rebuild(document)

    assert rebuilt.emit() == document.emit() == "* B\n"
    assert len(fresh_arena) == 2
    assert len(arena) > len(fresh_arena)
    assert fresh_arena.serial != arena.serial


def test_append_child_adjusting_level_deepens_subtree(arena: Arena):
    document = arena.parse("* A\n* B\nb body\n** B1\n")
    heading_a, heading_b = list(document.root.children())
    heading_b1 = next(heading_b.children())

    heading_a.append_child(heading_b, adjust_level=True)

    assert heading_b.level == 2
    assert heading_b1.level == 3
    assert heading_b.raw == "** B\nb body\n"
    assert heading_b1.raw == "*** B1\n"
    assert document.emit() == "* A\n** B\nb body\n*** B1\n"


def test_insert_after_adjusting_level(document):
    heading_a, heading_b, heading_a1 = _top(document)

    heading_a1.insert_after(heading_b, adjust_level=True)

    assert _headings(heading_a) == ["** A1", "** B"]
    assert document.emit() == "* A\n** A1\n** B\n"


def test_insert_before_and_prepend_adjusting_level(arena: Arena, document):
    heading_a, _, heading_a1 = _top(document)
    first = arena.new_section("* First\n")
    deep = arena.new_section("*** Deep\n")

    heading_a1.insert_before(first, adjust_level=True)
    heading_a.prepend_child(deep, adjust_level=True)

    assert first.raw == "** First\n"
    assert deep.raw == "*** Deep\n"
    assert _headings(heading_a) == ["*** Deep", "** First", "** A1"]


def test_attach_adjusting_level(arena: Arena, document):
    _, _, heading_a1 = _top(document)
    orphan = arena.new_section("* X\n** Y\n")

    orphan.attach(heading_a1, adjust_level=True)

    assert [section.raw for section in orphan.descendants()] == ["*** X\n", "**** Y\n"]
    assert document.emit() == "* A\n** A1\n*** X\n**** Y\n* B\n"


def test_adjusting_level_rejects_moving_into_own_subtree(document):
    heading_a, _, heading_a1 = _top(document)

    with pytest.raises(StructureViolation):
        heading_a1.append_child(heading_a, adjust_level=True)
    with pytest.raises(StructureViolation):
        heading_a.append_child(heading_a, adjust_level=True)

    assert document.emit() == "* A\n** A1\n* B\n"


def test_adjusting_level_rejects_exceeding_max_level():
    arena = Arena(OutlineConfig(max_level=3))
    document = arena.parse("* A\n** A1\n*** A2\n* B\n")
    heading_a, heading_b = list(document.root.children())

    with pytest.raises(StructureViolation):
        heading_b.append_child(heading_a, adjust_level=True)

    assert document.emit() == "* A\n** A1\n*** A2\n* B\n"
    assert heading_a.level == 1


def test_adjusting_level_rejects_root(arena: Arena, document):
    heading_a, _, _ = _top(document)
    other = arena.parse("intro\n")

    with pytest.raises(StructureViolation):
        heading_a.append_child(other.root, adjust_level=True)

    assert other.root.raw == "intro\n"


def test_adjusting_level_with_custom_marker():
    arena = Arena(OutlineConfig(marker="#"))
    document = arena.parse("# A\n# B\n")
    heading_a, heading_b = list(document.root.children())

    heading_a.append_child(heading_b, adjust_level=True)

    assert document.emit() == "# A\n## B\n"
