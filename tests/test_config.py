from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from bumpwise.config import (
    BumpwiseConfig,
    _parse_section,
    _pyproject_has_bumpwise_section,
    _read_toml,
    discover_config_file,
    load_config,
)
from bumpwise.constants import DEFAULT_HELPER_COMMAND, DEFAULT_RESOLVER_TIMEOUT
from bumpwise.exceptions import ConfigError


@pytest.mark.unit
class TestBumpwiseConfig:
    """Tests for BumpwiseConfig dataclass."""

    def test_default_initialization(self) -> None:
        """Test BumpwiseConfig initializes with correct defaults."""
        config = BumpwiseConfig()

        assert config.helper_command == list(DEFAULT_HELPER_COMMAND)
        assert config.resolver_timeout == DEFAULT_RESOLVER_TIMEOUT
        assert config.check_conflicts is True
        assert config.allow_prereleases is False
        assert "{package}" in config.registry_url
        assert config.source_path is None

    def test_helper_command_not_shared(self) -> None:
        """Test each instance gets its own helper command list."""
        first = BumpwiseConfig()
        first.helper_command.append("--debug")

        assert BumpwiseConfig().helper_command == list(DEFAULT_HELPER_COMMAND)

    def test_to_log_dict_omits_metadata(self) -> None:
        """Test to_log_dict returns options without source_path."""
        config = BumpwiseConfig(check_conflicts=False, source_path=Path("/x.toml"))

        result = config.to_log_dict()

        assert result["check_conflicts"] is False
        assert "source_path" not in result


@pytest.mark.unit
class TestDiscoverConfigFile:
    """Tests for discover_config_file."""

    def test_explicit_path_priority(self, tmp_path: Path) -> None:
        """Test an explicit path wins over auto-discovered files."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[bumpwise]\n", encoding="utf-8")
        (tmp_path / "bumpwise.toml").write_text("[bumpwise]\n", encoding="utf-8")

        with patch("bumpwise.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file(config_file)

        assert result == config_file.resolve()

    def test_explicit_path_not_found(self, tmp_path: Path) -> None:
        """Test a missing explicit path raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            discover_config_file(tmp_path / "missing.toml")

    def test_bumpwise_toml_before_pyproject(self, tmp_path: Path) -> None:
        """Test bumpwise.toml is preferred over pyproject.toml."""
        (tmp_path / "bumpwise.toml").write_text("[bumpwise]\n", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text("[tool.bumpwise]\n", encoding="utf-8")

        with patch("bumpwise.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == tmp_path / "bumpwise.toml"

    def test_pyproject_without_section_ignored(self, tmp_path: Path) -> None:
        """Test a pyproject.toml without [tool.bumpwise] is not used."""
        (tmp_path / "pyproject.toml").write_text("[tool.other]\n", encoding="utf-8")

        with patch("bumpwise.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() is None

    def test_pyproject_with_section(self, tmp_path: Path) -> None:
        """Test a pyproject.toml with [tool.bumpwise] is discovered."""
        (tmp_path / "pyproject.toml").write_text("[tool.bumpwise]\n", encoding="utf-8")

        with patch("bumpwise.config.Path.cwd", return_value=tmp_path):
            assert discover_config_file() == tmp_path / "pyproject.toml"

    def test_invalid_pyproject_skipped(self, tmp_path: Path) -> None:
        """Test an unparseable pyproject is skipped rather than reported."""
        path = tmp_path / "pyproject.toml"
        path.write_text("not = [valid", encoding="utf-8")

        assert _pyproject_has_bumpwise_section(path) is False


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        """Test defaults are returned when nothing is found."""
        with patch("bumpwise.config.Path.cwd", return_value=tmp_path):
            config = load_config()

        assert config == BumpwiseConfig()

    def test_loads_bumpwise_toml(self, tmp_path: Path) -> None:
        """Test every option is read from a [bumpwise] table."""
        path = tmp_path / "bumpwise.toml"
        path.write_text(
            "[bumpwise]\n"
            'helper_command = ["node", "helper.js"]\n'
            "resolver_timeout = 30\n"
            "check_conflicts = false\n"
            "allow_prereleases = true\n"
            'registry_url = "https://mirror.example/{package}.json"\n',
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.helper_command == ["node", "helper.js"]
        assert config.resolver_timeout == 30
        assert config.check_conflicts is False
        assert config.allow_prereleases is True
        assert config.registry_url == "https://mirror.example/{package}.json"
        assert config.source_path == path.resolve()

    def test_loads_pyproject_section(self, tmp_path: Path) -> None:
        """Test [tool.bumpwise] is read from pyproject.toml."""
        path = tmp_path / "pyproject.toml"
        path.write_text("[tool.bumpwise]\ncheck_conflicts = false\n", encoding="utf-8")

        assert load_config(path).check_conflicts is False

    def test_empty_section_uses_defaults(self, tmp_path: Path) -> None:
        """Test a file without the section yields defaults with source_path set."""
        path = tmp_path / "bumpwise.toml"
        path.write_text("[other]\n", encoding="utf-8")

        config = load_config(path)

        assert config.check_conflicts is True
        assert config.source_path == path.resolve()

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Test a TOML syntax error raises ConfigError."""
        path = tmp_path / "bumpwise.toml"
        path.write_text("[bumpwise\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            _read_toml(path)


@pytest.mark.unit
class TestParseSection:
    """Tests for _parse_section validation."""

    def test_unknown_key(self) -> None:
        """Test unknown keys are rejected by name."""
        with pytest.raises(ConfigError, match="max_depth"):
            _parse_section({"max_depth": 3}, config_path="x.toml")

    @pytest.mark.parametrize(
        "option,value",
        [
            ("helper_command", "node helper.js"),
            ("helper_command", []),
            ("resolver_timeout", 0),
            ("resolver_timeout", True),
            ("check_conflicts", "yes"),
            ("allow_prereleases", 1),
            ("registry_url", "https://example/json"),
        ],
    )
    def test_invalid_values(self, option: str, value) -> None:
        """Test wrongly typed values raise ConfigError naming the option."""
        with pytest.raises(ConfigError) as exc_info:
            _parse_section({option: value}, config_path="x.toml")

        assert option in str(exc_info.value)

    def test_valid_float_timeout(self) -> None:
        """Test fractional timeouts are accepted."""
        assert _parse_section({"resolver_timeout": 2.5}, config_path="x").resolver_timeout == 2.5
