"""
Inspects and edits outline files from the command line.
Every edit goes through the same validated Section API as library callers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import click

from . import __version__
from .arena import Arena
from .config import ConfigError, OutlineConfig, build_config
from .exceptions import EncodingError, StructureViolation
from .filesystem import (
    FileSnapshot,
    get_max_file_size,
    read_outline,
    resolve_outline_path,
    write_outline,
)
from .tree import Document, Section

__all__ = ["cli"]


@dataclass
class LoadedDocument:
    """A parsed file together with the snapshots needed to rewrite it safely."""

    path: Path
    data: bytes
    config: OutlineConfig
    arena: Arena
    document: Document
    snapshot: FileSnapshot


def load_document(filepath: str, marker: str | None = None) -> LoadedDocument:
    """Validate, read, and parse an outline file.

    Raises:
        click.BadParameter: If the path or configuration is invalid.
        click.ClickException: If the file cannot be read safely or is not UTF-8.
    """
    try:
        path = resolve_outline_path(filepath)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error

    try:
        config = build_config(path.parent, marker=marker)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        data, snapshot = read_outline(path, max_file_size)
    except IOError as error:
        raise click.ClickException(str(error)) from error

    arena = Arena(config)
    try:
        document = arena.parse(data)
    except EncodingError as error:
        raise click.ClickException(f"{path}: {error}") from error

    return LoadedDocument(
        path=path,
        data=data,
        config=config,
        arena=arena,
        document=document,
        snapshot=snapshot,
    )


def find_section(document: Document, section_path: str) -> Section:
    """Resolve a dotted, one-based child path such as ``2.1``.

    Raises:
        click.BadParameter: If the path is malformed or points nowhere.
    """
    section = document.root
    for part in section_path.split("."):
        if not (part.isascii() and part.isdigit()) or int(part) < 1:
            raise click.BadParameter(
                f"Invalid section path {section_path!r}; expected dotted positive integers"
            )
        children = list(section.children())
        index = int(part) - 1
        if index >= len(children):
            raise click.BadParameter(f"Section path {section_path!r} does not exist")
        section = children[index]
    return section


@click.group()
@click.version_option(version=__version__, prog_name="org-outline")
@click.option("--marker", help="Heading marker character")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, marker: str | None = None, verbose: bool = False):
    """Inspect and edit outline documents without disturbing untouched text."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    ctx.obj = {"marker": marker}


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def check(ctx: click.Context, filepath: str):
    """
    Verify that a file parses and re-emits byte for byte.

    Examples:
        org-outline check notes.org
    """
    loaded = load_document(filepath, ctx.obj["marker"])
    section_count = sum(1 for _ in loaded.document.sections())

    if loaded.document.to_bytes() != loaded.data:
        raise click.ClickException(f"{loaded.path.name}: emitted text differs from the source")

    click.echo(f"{loaded.path.name}: {section_count} sections, round-trip OK")


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def tree(ctx: click.Context, filepath: str):
    """
    Print the outline of a file, one heading per line.

    Examples:
        org-outline tree notes.org
    """
    loaded = load_document(filepath, ctx.obj["marker"])
    indent = loaded.config.indent

    for section in loaded.document.sections():
        depth = sum(1 for _ in section.ancestors()) - 1
        click.echo(f"{indent * depth}{section.heading}")


@cli.command("set-level")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.argument("section_path")
@click.argument("level", type=int)
@click.pass_context
def set_level(ctx: click.Context, filepath: str, section_path: str, level: int):
    """
    Change the heading level of one section and rewrite the file in place.

    SECTION_PATH is a dotted, one-based child path: ``2.1`` is the first
    child of the second top-level heading.

    Examples:
        org-outline set-level notes.org 2.1 3
    """
    loaded = load_document(filepath, ctx.obj["marker"])
    section = find_section(loaded.document, section_path)

    try:
        section.set_level(level)
    except StructureViolation as error:
        raise click.ClickException(f"{loaded.path.name}: {error}") from error

    try:
        write_outline(
            loaded.path,
            loaded.document.to_bytes(),
            loaded.snapshot,
            warn=lambda message: click.echo(message, err=True),
        )
    except IOError as error:
        raise click.ClickException(str(error)) from error


if __name__ == "__main__":
    cli()
