"""File access for the org-outline command line.

Outline files are read and written as raw bytes. Decoding is left to the
parser's ingestion check, so line terminators and a missing final newline
survive a rewrite untouched.
"""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_MAX_FILE_SIZE

MAX_FILE_SIZE_ENV_VAR = "ORG_OUTLINE_MAX_FILE_SIZE"


@dataclass(frozen=True)
class FileSnapshot:
    """Stat results taken around a read.

    Attributes:
        before: Taken before reading; its access time is restored after a rewrite.
        after: Taken after reading; a rewrite is refused unless the file still matches it.
    """

    before: os.stat_result
    after: os.stat_result


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Return the file size limit, honouring ``ORG_OUTLINE_MAX_FILE_SIZE``.

    Raises:
        ValueError: If the variable is set to anything but a positive integer.

    Examples:
        get_max_file_size(default=config.max_file_size)
    """
    raw_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if raw_value is None:
        return default

    message = f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {raw_value!r}"
    try:
        limit = int(raw_value)
    except ValueError as error:
        raise ValueError(message) from error
    if limit <= 0:
        raise ValueError(message)
    return limit


def resolve_outline_path(raw_path: str) -> Path:
    """Turn a user-supplied path into the absolute path of a regular file.

    Files are rewritten in place, so a path that goes through a symlink is
    refused rather than followed.

    Raises:
        ValueError: If the path crosses a symlink, is missing, or is not a
            regular file.

    Examples:
        resolve_outline_path("notes/todo.org")
    """
    path = Path(raw_path).expanduser()

    for component in (path, *path.parents):
        if component.is_symlink():
            raise ValueError(f"Symlinks are not supported: {component}")

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Cannot resolve {path}: {error}") from error

    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")
    return resolved


def read_outline(path: Path, max_size: int) -> tuple[bytes, FileSnapshot]:
    """Read a whole outline file as bytes.

    Raises:
        IOError: If the file is larger than `max_size`, cannot be read, or
            changes while it is being read.

    Examples:
        data, snapshot = read_outline(Path("todo.org"), 10 * 1024 * 1024)
    """
    before = _stat_regular_file(path)
    if before.st_size > max_size:
        raise IOError(f"{path} exceeds the maximum allowed size of {max_size} bytes.")

    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as error:
        raise IOError(f"Cannot read {path}: {error}") from error

    after = _stat_regular_file(path)
    _ensure_unchanged(after, before, path)
    return data, FileSnapshot(before=before, after=after)


def write_outline(
    path: Path,
    data: bytes,
    snapshot: FileSnapshot,
    warn: Callable[[str], None] | None = None,
) -> None:
    """Atomically replace an outline file with emitted bytes.

    The new content goes to a temporary file in the same directory, which
    then takes over the original's mode and owner before ``os.replace``.
    The access time from before the read is restored; the modification time
    records this write.

    Args:
        path: File to replace.
        data: New file contents.
        snapshot: Stat results from `read_outline`.
        warn: Called with a message when ownership cannot be preserved.

    Raises:
        IOError: If the file changed since it was read.
    """
    _ensure_unchanged(_stat_regular_file(path), snapshot.after, path)
    expected = snapshot.after

    handle = tempfile.NamedTemporaryFile(
        mode="wb", delete=False, dir=path.parent, prefix=f".{path.name}."
    )
    temp_path = Path(handle.name)
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())

        os.chmod(temp_path, stat.S_IMODE(expected.st_mode))
        if hasattr(os, "chown"):
            try:
                os.chown(temp_path, expected.st_uid, expected.st_gid)
            except PermissionError:
                if warn is not None:
                    warn(f"Warning: could not preserve the ownership of {path.name}")

        os.replace(temp_path, path)
    finally:
        temp_path.unlink(missing_ok=True)

    os.utime(path, ns=(snapshot.before.st_atime_ns, path.stat().st_mtime_ns))


def _stat_regular_file(path: Path) -> os.stat_result:
    try:
        result = os.lstat(path)
    except OSError as error:
        raise IOError(f"Cannot access {path}: {error}") from error
    if not stat.S_ISREG(result.st_mode):
        raise IOError(f"{path} is not a regular file.")
    return result


def _ensure_unchanged(current: os.stat_result, expected: os.stat_result, path: Path) -> None:
    def fingerprint(result: os.stat_result) -> tuple[int, int, int, int]:
        return (result.st_dev, result.st_ino, result.st_size, result.st_mtime_ns)

    if fingerprint(current) != fingerprint(expected):
        raise IOError(f"{path} changed during processing; refusing to overwrite.")
