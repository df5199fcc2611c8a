from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from org_outline import Arena
from org_outline.config import (
    ConfigError,
    OutlineConfig,
    apply_overrides,
    build_config,
    load_config,
    validate_config,
)


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_dotfile(base: Path, body: str) -> Path:
    path = base / ".org-outline.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.org-outline]
        marker = "#"
        max_level = 6
        indent = "\\t"
        max_file_size = 1
        """,
    )

    config = load_config(tmp_path)

    assert config == OutlineConfig(marker="#", max_level=6, indent="\t", max_file_size=1)


def test_loads_config_from_dotfile(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [org-outline]
        marker = "+"
        """,
    )
    nested = tmp_path / "child"
    nested.mkdir()

    config = load_config(nested)

    assert config.marker == "+"


def test_dotfile_accepts_tool_table(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [tool.org-outline]
        max_level = 4
        """,
    )

    assert load_config(tmp_path).max_level == 4


def test_load_config_walks_up_directories(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.org-outline]
        marker = "#"
        """,
    )
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)

    config = load_config(nested)

    assert config.marker == "#"


def test_empty_config_table_stops_inheritance(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.org-outline]
        marker = "#"
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [tool.org-outline]
        """,
    )

    config = load_config(child)

    assert config.marker == OutlineConfig().marker


def test_pyproject_without_table_is_skipped(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.org-outline]
        max_level = 3
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [project]
        name = "unrelated"
        """,
    )

    assert load_config(child).max_level == 3


def test_load_config_returns_defaults_when_missing(tmp_path: Path):
    config = load_config(tmp_path)

    assert config == OutlineConfig()


def test_load_config_skips_invalid_toml(tmp_path: Path):
    invalid_dir = tmp_path / "invalid"
    invalid_dir.mkdir()
    _write_pyproject(invalid_dir, "not = {valid")
    _write_pyproject(
        tmp_path,
        """
        [tool.org-outline]
        indent = "...."
        """,
    )

    nested = invalid_dir / "child"
    nested.mkdir()
    config = load_config(nested)

    assert config.indent == "...."


def test_load_config_errors_on_unknown_key(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.org-outline]
        marker = "*"
        unexpected = true
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_errors_on_non_table(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool]
        org-outline = "yes"
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_indent_spaces_sets_indent(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.org-outline]
        indent_spaces = 4
        """,
    )

    config = load_config(tmp_path)

    assert config.indent_spaces == 4
    assert config.indent == "    "


@pytest.mark.parametrize(
    "config",
    [
        OutlineConfig(marker=""),
        OutlineConfig(marker="**"),
        OutlineConfig(marker=" "),
        OutlineConfig(marker="\n"),
        OutlineConfig(indent=""),
        OutlineConfig(indent_spaces=0),
        OutlineConfig(max_level=0),
        OutlineConfig(max_file_size=-1),
    ],
)
def test_validate_config_rejects_invalid_values(config: OutlineConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


@pytest.mark.parametrize(
    "config",
    [
        OutlineConfig(max_level="3"),  # type: ignore[arg-type]
        OutlineConfig(max_file_size="big"),  # type: ignore[arg-type]
        OutlineConfig(max_level=True),  # type: ignore[arg-type]
        OutlineConfig(indent_spaces="2"),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_non_numeric_limits(config: OutlineConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_arena_validates_its_config():
    with pytest.raises(ConfigError):
        Arena(OutlineConfig(marker="ab"))


def test_apply_overrides_ignores_none():
    config = OutlineConfig()

    assert apply_overrides(config, marker=None) is config
    assert apply_overrides(config, marker="#").marker == "#"


def test_indent_override_replaces_indent_spaces():
    config = OutlineConfig(indent_spaces=4, indent="    ")

    updated = apply_overrides(config, indent="-")

    assert updated.indent == "-"
    assert updated.indent_spaces is None


def test_apply_overrides_rejects_unknown_fields():
    with pytest.raises(TypeError):
        apply_overrides(OutlineConfig(), colour="red")


def test_build_config_applies_overrides(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.org-outline]
        marker = "#"
        max_level = 5
        """,
    )

    config = build_config(tmp_path, marker="+")

    assert config.marker == "+"
    assert config.max_level == 5


def test_build_config_validates_overrides(tmp_path: Path):
    with pytest.raises(ConfigError):
        build_config(tmp_path, marker="  ")
