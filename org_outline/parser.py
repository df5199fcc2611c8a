"""Structural outline parsing utilities.

Only three characters carry meaning here: the line terminator, the heading
marker and the space that ends a marker run. Everything else is opaque body
text, so any valid Unicode input is accepted.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING

from .constants import DEFAULT_MARKER, NEWLINE
from .exceptions import EncodingError, StructureViolation
from .logger import get_logger
from .models import ParseResult, SectionSpan
from .rope import Rope

if TYPE_CHECKING:
    from .arena import Arena

logger = get_logger(__name__)


def decode_text(data: str | bytes | bytearray | memoryview | Rope) -> str:
    """Check and normalize input text at ingestion.

    Bytes must decode as strict UTF-8. Strings must be encodable as UTF-8,
    which rules out lone surrogates.

    Args:
        data: Raw input text.

    Returns:
        str: The validated text.

    Raises:
        EncodingError: If the input is not valid UTF-8.
        TypeError: If the input is not text or bytes.

    Examples:
        decode_text(b"* Heading\\n")  # "* Heading\\n"
    """
    if isinstance(data, Rope):
        data = data.to_text()
    if isinstance(data, (bytes, bytearray, memoryview)):
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as error:
            raise EncodingError(f"Input is not valid UTF-8: {error}") from error
    if not isinstance(data, str):
        raise TypeError(f"Expected str or bytes, not {type(data).__name__}")
    try:
        data.encode("utf-8")
    except UnicodeEncodeError as error:
        raise EncodingError(f"Input is not valid UTF-8: {error}") from error
    return data


def headline_level(text: str, offset: int = 0, marker: str = DEFAULT_MARKER) -> int:
    """Return the level of the heading starting at `offset`, or 0.

    A heading is one or more `marker` characters followed by a literal space.
    Must be called at the start of a line.

    Examples:
        headline_level("** Title")  # 2
        headline_level("**Title")  # 0
        headline_level(" * Title")  # 0
    """
    end = offset
    length = len(text)
    while end < length and text[end] == marker:
        end += 1
    if end > offset and end < length and text[end] == " ":
        return end - offset
    return 0


def next_line(text: str, offset: int) -> int:
    """Return the offset of the line following `offset`, or ``len(text)``.

    Examples:
        next_line("a\\nb", 0)  # 2
        next_line("a", 0)  # 1
    """
    index = text.find(NEWLINE, offset)
    return len(text) if index < 0 else index + 1


@lru_cache(maxsize=8)
def _heading_pattern(marker: str) -> re.Pattern[str]:
    return re.compile(rf"^({re.escape(marker)}+) ", re.MULTILINE)


def scan_sections(text: str, marker: str = DEFAULT_MARKER) -> list[SectionSpan]:
    """Split text into section spans in one left-to-right pass.

    The first span is always the level-0 leading region (possibly empty).
    Each further span starts at a heading line and runs up to the next
    heading line of any level or the end of the text.

    Args:
        text: Text to scan.
        marker: Heading marker character.

    Returns:
        list[SectionSpan]: Spans covering the whole text, in document order.

    Examples:
        scan_sections("intro\\n* A\\n")
        # [SectionSpan(0, 0, 6, 1), SectionSpan(1, 6, 10, 2)]
    """
    spans: list[SectionSpan] = []
    level, start, line_number = 0, 0, 1
    scanned, current_line = 0, 1

    for match in _heading_pattern(marker).finditer(text):
        heading_start = match.start()
        current_line += text.count(NEWLINE, scanned, heading_start)
        scanned = heading_start
        spans.append(SectionSpan(level, start, heading_start, line_number))
        level, start, line_number = len(match.group(1)), heading_start, current_line

    spans.append(SectionSpan(level, start, len(text), line_number))
    return spans


def parse_document(arena: Arena, text: str | bytes) -> ParseResult:
    """Parse a full document into `arena`.

    Keeps an explicit stack of open sections seeded with the level-0 root;
    each heading pops every open section whose level is not lower than its
    own and becomes the last child of what remains on top. All section texts
    are slices of one rope over the source, so no characters are copied.

    Args:
        arena: Arena that receives the node records.
        text: Document text.

    Returns:
        ParseResult: Root identifier and boundary metadata.

    Raises:
        EncodingError: If `text` is not valid UTF-8. No node is allocated.

    Examples:
        result = parse_document(arena, "* A\\nbody\\n** B\\n")
    """
    text = decode_text(text)
    spans = scan_sections(text, arena.config.marker)
    source = Rope(text)

    leading = spans[0]
    root_id = arena.allocate_node(0, source.slice(leading.start, leading.end))
    stack = [(root_id, 0)]

    for span in spans[1:]:
        while stack[-1][1] >= span.level:
            stack.pop()
        node_id = arena.allocate_node(
            span.level, source.slice(span.start, span.end), parent=stack[-1][0]
        )
        stack.append((node_id, span.level))

    logger.debug(
        "Parsed %d sections from %d characters into arena #%d",
        len(spans) - 1,
        len(text),
        arena.serial,
    )

    return ParseResult(
        root_id=root_id,
        section_count=len(spans) - 1,
        terminal_newline=text.endswith(NEWLINE),
        source_empty=not text,
        leading_content=leading.end > leading.start,
    )


def check_section_text(text: str, expected_level: int, marker: str = DEFAULT_MARKER) -> None:
    """Validate replacement text for a single section in isolation.

    For a heading section the first line must open a heading of exactly
    `expected_level` and no other line may open a heading. For a level-0
    root no line may open a heading at all.

    Args:
        text: Candidate section text.
        expected_level: Level the section currently has.
        marker: Heading marker character.

    Raises:
        StructureViolation: With the line number and offset of the first
            offending line.

    Examples:
        check_section_text("* A\\nbody\\n", 1)  # passes
        check_section_text("* A\\n** B\\n", 1)  # raises
    """
    spans = scan_sections(text, marker)

    if expected_level == 0:
        if len(spans) > 1:
            offending = spans[1]
            raise StructureViolation(
                "root text must not contain a heading line",
                line_number=offending.line_number,
                offset=offending.start,
            )
        return

    if len(spans) == 1 or spans[0].end > 0:
        raise StructureViolation(
            f"section text must start with a level-{expected_level} heading line",
            line_number=1,
            offset=0,
        )

    heading = spans[1]
    if heading.level != expected_level:
        raise StructureViolation(
            f"heading level {heading.level} does not match section level {expected_level}",
            line_number=1,
            offset=0,
        )

    if len(spans) > 2:
        offending = spans[2]
        raise StructureViolation(
            f"section text contains a nested level-{offending.level} heading",
            line_number=offending.line_number,
            offset=offending.start,
        )


def top_level_spans(spans: list[SectionSpan]) -> list[SectionSpan]:
    """Return the heading spans that parsing would place directly under the root.

    A heading is top level when it is no deeper than the previous top-level
    heading, since that closes every section still open.

    Examples:
        top_level_spans(scan_sections("** A\\n*** B\\n* C\\n"))  # spans of A and C
    """
    tops: list[SectionSpan] = []
    for span in spans[1:]:
        if not tops or span.level <= tops[-1].level:
            tops.append(span)
    return tops
