"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import tomllib


@dataclass(frozen=True)
class OutlineConfig:
    """Configuration for parsing and editing outline documents.

    Attributes:
        marker: Character whose run, followed by a space, opens a heading.
        max_level: Largest heading level `set_level` will produce.
        indent: Characters used per level when the CLI renders a tree.
        indent_spaces: Number of spaces per level (alternative to `indent`).
        max_file_size: Maximum file size in bytes the CLI will process.

    Examples:
        OutlineConfig(marker="#", max_level=6)
    """

    # Structure
    marker: str = "*"
    max_level: int = 10_000

    # Rendering
    indent: str = "  "
    indent_spaces: int | None = None

    # Limits
    max_file_size: int = 10 * 1024 * 1024


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`marker` must be a single character")
    """


def load_config(search_path: Path) -> OutlineConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.org-outline]`` table from `pyproject.toml` and the
    ``[org-outline]`` or ``[tool.org-outline]`` table from `.org-outline.toml`
    when present. Returns default values when no configuration is found. TOML
    files that cannot be read or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        OutlineConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("notes"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "org-outline")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".org-outline.toml",
            table_paths=[("org-outline",), ("tool", "org-outline")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return OutlineConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> OutlineConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> OutlineConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return OutlineConfig()

    try:
        return OutlineConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: OutlineConfig) -> OutlineConfig:
    """Fold `indent_spaces` into `indent`.

    Raises:
        ConfigError: If `indent_spaces` is not a positive integer.
    """
    if config.indent_spaces is None:
        return config

    _ensure_integers({"indent_spaces": config.indent_spaces})
    if config.indent_spaces <= 0:
        raise ConfigError("`indent_spaces` must be a positive integer")
    return replace(config, indent=" " * config.indent_spaces)


def validate_config(config: OutlineConfig) -> None:
    """Validate an `OutlineConfig` instance.

    Args:
        config: Configuration to validate.

    Raises:
        ConfigError: If the marker is not a single non-whitespace character,
            the indent is empty, or numeric limits are not positive integers.

    Examples:
        validate_config(OutlineConfig(marker="#"))
    """
    config = normalize_config(config)

    _ensure_integers({"max_level": config.max_level, "max_file_size": config.max_file_size})

    if not isinstance(config.marker, str) or len(config.marker) != 1:
        raise ConfigError("`marker` must be a single character")
    if config.marker.isspace():
        raise ConfigError("`marker` must not be whitespace")
    if not isinstance(config.indent, str) or not config.indent:
        raise ConfigError("`indent` must not be empty")

    _ensure_positive({"max_level": config.max_level, "max_file_size": config.max_file_size})


def apply_overrides(config: OutlineConfig, **overrides: object) -> OutlineConfig:
    """Apply override values to an `OutlineConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        OutlineConfig: New configuration with the overrides applied, or the
        original configuration when nothing changes.

    Raises:
        TypeError: If an override name is not defined on `OutlineConfig`.

    Examples:
        updated = apply_overrides(config, marker="#")
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if "indent" in changes and "indent_spaces" not in changes:
        changes["indent_spaces"] = None
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> OutlineConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        OutlineConfig: Validated configuration.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), marker="*")
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
