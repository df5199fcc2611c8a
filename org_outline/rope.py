"""Immutable copy-on-write text store.

A `Rope` is a sequence of pieces, each a ``(buffer, start, end)`` view into an
immutable ``str``. Slicing and concatenation only rearrange pieces, so
section texts carved out of one parsed document keep sharing the original
buffer until someone replaces them.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Iterator
from typing import NamedTuple


class Piece(NamedTuple):
    """View of ``buffer[start:end]``."""

    buffer: str
    start: int
    end: int


class Rope:
    """Immutable text built from shared pieces.

    Ropes compare equal to other ropes and to ``str`` holding the same
    characters. Materialization (``str(rope)``) happens once and is cached.

    Examples:
        rope = Rope("* A\\nbody\\n")
        rope.slice(0, 3)  # Rope('* A')
        rope + Rope("more\\n")  # Rope('* A\\nbody\\nmore\\n')
    """

    __slots__ = ("_pieces", "_starts", "_length", "_text")

    def __init__(self, text: str = ""):
        if not isinstance(text, str):
            raise TypeError(f"Rope text must be str, not {type(text).__name__}")
        pieces = (Piece(text, 0, len(text)),) if text else ()
        self._set_pieces(pieces)
        self._text = text

    @classmethod
    def from_pieces(cls, pieces: Iterable[Piece]) -> Rope:
        """Build a rope from pieces, merging contiguous views of one buffer."""
        merged: list[Piece] = []
        for piece in pieces:
            if piece.end <= piece.start:
                continue
            if merged:
                last = merged[-1]
                if last.buffer is piece.buffer and last.end == piece.start:
                    merged[-1] = Piece(last.buffer, last.start, piece.end)
                    continue
            merged.append(piece)

        rope = cls.__new__(cls)
        rope._set_pieces(tuple(merged))
        rope._text = None
        return rope

    @classmethod
    def join(cls, ropes: Iterable[Rope | str]) -> Rope:
        """Concatenate many ropes without copying their text."""
        pieces: list[Piece] = []
        for rope in ropes:
            pieces.extend(_as_rope(rope)._pieces)
        return cls.from_pieces(pieces)

    def _set_pieces(self, pieces: tuple[Piece, ...]) -> None:
        starts = []
        total = 0
        for piece in pieces:
            starts.append(total)
            total += piece.end - piece.start
        self._pieces = pieces
        self._starts = tuple(starts)
        self._length = total

    @property
    def pieces(self) -> tuple[Piece, ...]:
        return self._pieces

    def chunks(self) -> Iterator[str]:
        """Yield the text of each piece in order."""
        for piece in self._pieces:
            yield piece.buffer[piece.start : piece.end]

    def to_text(self) -> str:
        text = self._text
        if text is None:
            if len(self._pieces) == 1:
                piece = self._pieces[0]
                text = piece.buffer[piece.start : piece.end]
            else:
                text = "".join(self.chunks())
            self._text = text
        return text

    def to_bytes(self) -> bytes:
        return self.to_text().encode("utf-8")

    def slice(self, start: int, stop: int | None = None) -> Rope:
        """Return the characters in ``[start, stop)`` as a new rope.

        Negative indices count from the end, as with ``str`` slicing. No
        characters are copied: the result references the same buffers.
        """
        start, stop, _ = slice(start, stop).indices(self._length)
        if start >= stop:
            return EMPTY
        if start == 0 and stop == self._length:
            return self

        index = bisect_right(self._starts, start) - 1
        pieces: list[Piece] = []
        while index < len(self._pieces) and self._starts[index] < stop:
            piece = self._pieces[index]
            piece_start = self._starts[index]
            lo = piece.start + max(start - piece_start, 0)
            hi = piece.start + min(stop - piece_start, piece.end - piece.start)
            pieces.append(Piece(piece.buffer, lo, hi))
            index += 1
        return Rope.from_pieces(pieces)

    def concat(self, other: Rope | str) -> Rope:
        other = _as_rope(other)
        if not other._length:
            return self
        if not self._length:
            return other
        return Rope.from_pieces(self._pieces + other._pieces)

    def find(self, sub: str, start: int = 0) -> int:
        """Return the lowest index of single character `sub` at or after `start`, or -1."""
        if len(sub) != 1:
            return self.to_text().find(sub, start)
        start = max(start, 0)
        index = max(bisect_right(self._starts, start) - 1, 0)
        for piece_start, piece in zip(self._starts[index:], self._pieces[index:]):
            lo = piece.start + max(start - piece_start, 0)
            found = piece.buffer.find(sub, lo, piece.end)
            if found >= 0:
                return piece_start + found - piece.start
        return -1

    def startswith(self, prefix: str) -> bool:
        if len(prefix) > self._length:
            return False
        return self.slice(0, len(prefix)).to_text() == prefix

    def endswith(self, suffix: str) -> bool:
        if len(suffix) > self._length:
            return False
        if not suffix:
            return True
        return self.slice(self._length - len(suffix)).to_text() == suffix

    def __len__(self) -> int:
        return self._length

    def __bool__(self) -> bool:
        return self._length > 0

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"Rope({self.to_text()!r})"

    def __add__(self, other: object) -> Rope:
        if not isinstance(other, (Rope, str)):
            return NotImplemented
        return self.concat(other)

    def __radd__(self, other: object) -> Rope:
        if not isinstance(other, str):
            return NotImplemented
        return Rope(other).concat(self)

    def __getitem__(self, key: int | slice) -> Rope | str:
        if isinstance(key, slice):
            if key.step not in (None, 1):
                raise ValueError("Rope slices do not support a step")
            return self.slice(
                0 if key.start is None else key.start,
                self._length if key.stop is None else key.stop,
            )
        if key < 0:
            key += self._length
        if not 0 <= key < self._length:
            raise IndexError("Rope index out of range")
        index = bisect_right(self._starts, key) - 1
        piece = self._pieces[index]
        return piece.buffer[piece.start + key - self._starts[index]]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Rope):
            if other._length != self._length:
                return False
            return other.to_text() == self.to_text()
        if isinstance(other, str):
            return len(other) == self._length and other == self.to_text()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.to_text())


def _as_rope(value: Rope | str) -> Rope:
    if isinstance(value, Rope):
        return value
    return Rope(value)


EMPTY = Rope()
