"""Configuration file loader for bumpwise.

Two formats are supported:

- ``bumpwise.toml`` — settings under a ``[bumpwise]`` table
- ``pyproject.toml`` — settings under a ``[tool.bumpwise]`` table

Discovery order:

1. Explicit path from ``--config`` or ``BUMPWISE_CONFIG``
2. ``bumpwise.toml`` in the current directory
3. ``pyproject.toml`` with a ``[tool.bumpwise]`` section

Example (``bumpwise.toml``)::

    [bumpwise]
    helper_command = ["node", "/opt/helpers/run.js"]
    resolver_timeout = 60
    check_conflicts = true
"""

from __future__ import annotations

from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import tomli as tomllib

from bumpwise.constants import (
    DEFAULT_ALLOW_PRERELEASES,
    DEFAULT_CHECK_CONFLICTS,
    DEFAULT_HELPER_COMMAND,
    DEFAULT_REGISTRY_URL,
    DEFAULT_RESOLVER_TIMEOUT,
)
from bumpwise.exceptions import ConfigError
from bumpwise.utils.logger import get_logger

logger = get_logger("config")


@dataclass
class BumpwiseConfig:
    """Parsed and validated bumpwise configuration.

    All fields have defaults, so an empty configuration file is valid.

    Attributes:
        helper_command: Native helper executable plus fixed arguments.
        resolver_timeout: Seconds one helper invocation may run.
        check_conflicts: Run the transitive conflict check for verdicts.
        allow_prereleases: Offer pre-release versions as targets.
        registry_url: JSON version listing URL template (``{package}``).
        source_path: Path to the loaded file, or ``None`` for defaults.
    """

    helper_command: List[str] = field(default_factory=lambda: list(DEFAULT_HELPER_COMMAND))
    resolver_timeout: float = DEFAULT_RESOLVER_TIMEOUT
    check_conflicts: bool = DEFAULT_CHECK_CONFLICTS
    allow_prereleases: bool = DEFAULT_ALLOW_PRERELEASES
    registry_url: str = DEFAULT_REGISTRY_URL

    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return user-facing options (no metadata) for debug logging."""
        return {
            "helper_command": list(self.helper_command),
            "resolver_timeout": self.resolver_timeout,
            "check_conflicts": self.check_conflicts,
            "allow_prereleases": self.allow_prereleases,
            "registry_url": self.registry_url,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to the config file, or ``None`` if none applies.

    Raises:
        ConfigError: *explicit_path* was given but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    bumpwise_toml = cwd / "bumpwise.toml"
    if bumpwise_toml.is_file():
        logger.debug("Found bumpwise.toml: %s", bumpwise_toml)
        return bumpwise_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_bumpwise_section(pyproject_toml):
        logger.debug("Found [tool.bumpwise] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_bumpwise_section(path: Path) -> bool:
    """Return True if *path* parses and has a ``[tool.bumpwise]`` table.

    An unparseable pyproject is not ours to report; discovery just moves on.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "bumpwise" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> BumpwiseConfig:
    """Load and validate bumpwise configuration.

    Args:
        config_path: Explicit path; auto-discovery when ``None``.

    Returns:
        A validated :class:`BumpwiseConfig` (defaults when no file found).

    Raises:
        ConfigError: The file cannot be parsed, has unknown keys, or
            holds values of the wrong type.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return BumpwiseConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("bumpwise", {})
    else:
        section = raw.get("bumpwise", {})

    if not section:
        logger.debug("Config file has no bumpwise section; using defaults")
        return BumpwiseConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _is_command(value: Any) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and all(isinstance(part, str) and part for part in value)
    )


def _is_url_template(value: Any) -> bool:
    return isinstance(value, str) and "{package}" in value


#: option -> (validator, description used in error messages)
_OPTIONS: Dict[str, Tuple[Callable[[Any], bool], str]] = {
    "helper_command": (_is_command, "a non-empty list of strings"),
    "resolver_timeout": (_is_positive_number, "a positive number"),
    "check_conflicts": (_is_bool, "a boolean"),
    "allow_prereleases": (_is_bool, "a boolean"),
    "registry_url": (_is_url_template, "a URL containing '{package}'"),
}


def _parse_section(section: Dict[str, Any], *, config_path: str) -> BumpwiseConfig:
    """Validate a ``[bumpwise]`` table and build a config from it.

    Raises:
        ConfigError: Unknown keys or invalid values.
    """
    unknown = set(section) - set(_OPTIONS)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = BumpwiseConfig()
    for option, value in section.items():
        validator, expected = _OPTIONS[option]
        if not validator(value):
            raise ConfigError(
                f"{option} must be {expected}, got {value!r}",
                config_path=config_path,
                option=option,
            )
        setattr(config, option, list(value) if option == "helper_command" else value)

    return config
