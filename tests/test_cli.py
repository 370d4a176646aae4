"""End-to-end tests for the bumpwise command line."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
from click.testing import CliRunner

from bumpwise.__version__ import __version__
from bumpwise.cli import cli, main
from bumpwise.utils.logger import ROOT_LOGGER_NAME

CONFLICT_HELPER = [
    sys.executable,
    "-c",
    "import json, sys\n"
    "json.load(sys.stdin)\n"
    "print(json.dumps({'result': [{'name': 'express', 'version': '4.18.0',"
    " 'requirement': 'lib-c@<2.0'}]}))\n",
]


def _request(**overrides: Any) -> Dict[str, Any]:
    request: Dict[str, Any] = {
        "dependency": "lib-c",
        "dependencies": [
            {
                "name": "lib-c",
                "version": "1.0",
                "requirements": [{"file": "pom.xml", "requirement": ">=1.0,<2.0"}],
            }
        ],
        "manifests": [{"name": "pom.xml"}],
        "versions": {"lib-c": ["1.0", "1.5", "2.0"]},
    }
    request.update(overrides)
    return request


def _shared_request() -> Dict[str, Any]:
    def dependency(name: str, extra: List[Dict[str, Any]]) -> Dict[str, Any]:
        bound = {
            "file": "pom.xml",
            "requirement": "1.0",
            "metadata": {"property_name": "P", "property_source": "pom.xml"},
        }
        return {"name": name, "version": "1.0", "requirements": [bound] + extra}

    return {
        "dependency": "lib-a",
        "dependencies": [
            dependency("lib-a", []),
            dependency("lib-b", [{"file": "pom.xml", "requirement": "<3.0"}]),
        ],
        "manifests": [{"name": "pom.xml", "properties": {"P": "1.0"}}],
        "versions": {
            "lib-a": ["1.0", "2.0", "3.0"],
            "lib-b": ["1.0", "2.0", "3.0"],
        },
    }


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty directory with colour disabled."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("BUMPWISE_CONFIG", raising=False)
    return tmp_path


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    """Undo the logging setup each invocation performs."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(root.handlers)
    level = root.level
    propagate = root.propagate
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


@pytest.fixture
def write_json(tmp_path: Path):
    def _write(data: Dict[str, Any], name: str = "request.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.mark.integration
class TestCheckCommand:
    """Tests for ``bumpwise check``."""

    def test_json_report(self, write_json) -> None:
        """Test the JSON report carries the verdict and rewritten requirements."""
        path = write_json(_request())

        result = CliRunner().invoke(cli, ["check", str(path), "--format", "json"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.output)
        assert report["dependency"] == "lib-c"
        assert report["latest_version"] == "2.0"
        assert report["verdict"]["can_update"] is True
        assert report["verdict"]["target_version"] == "2.0"
        assert report["verdict"]["conflict_status"] == "skipped_no_lockfile"
        assert report["requirements"] == [
            {"file": "pom.xml", "property": None, "before": ">=1.0,<2.0", "after": ">=1.0,<2.1"}
        ]

    def test_table_report(self, write_json) -> None:
        """Test the table output ends with the verdict line."""
        path = write_json(_request())

        result = CliRunner().invoke(cli, ["check", str(path)])

        assert result.exit_code == 0, result.output
        assert "Update Verdict" in result.output
        assert "lib-c can be updated to 2.0" in result.output

    def test_up_to_date(self, write_json) -> None:
        """Test an up-to-date dependency is reported as such."""
        path = write_json(_request(versions={"lib-c": ["0.9", "1.0"]}))

        result = CliRunner().invoke(cli, ["check", str(path)])

        assert result.exit_code == 0
        assert "lib-c is up to date" in result.output

    def test_shared_property(self, write_json) -> None:
        """Test a shared property reports the jointly resolvable version."""
        path = write_json(_shared_request())

        result = CliRunner().invoke(cli, ["check", str(path), "-f", "json"])

        report = json.loads(result.output)
        assert report["latest_version"] == "3.0"
        assert report["latest_resolvable_version"] == "2.0"
        assert [dep["name"] for dep in report["updated_dependencies"]] == ["lib-a", "lib-b"]
        assert report["property_edits"] == [
            {"property_name": "P", "property_source": "pom.xml", "new_value": "2.0"}
        ]

    def test_conflicts_block_update(self, write_json, tmp_path: Path) -> None:
        """Test conflicts reported by the helper block the verdict."""
        config = tmp_path / "bumpwise.toml"
        config.write_text(f"[bumpwise]\nhelper_command = {json.dumps(CONFLICT_HELPER)}\n")
        path = write_json(
            _request(manifests=[{"name": "package.json"}, {"name": "package-lock.json"}])
        )

        result = CliRunner().invoke(cli, ["check", str(path), "-f", "json"])

        verdict = json.loads(result.output)["verdict"]
        assert verdict["can_update"] is False
        assert verdict["reason"] == "conflicting_dependencies"
        assert verdict["conflicts"][0]["name"] == "express"

    def test_no_conflicts_flag(self, write_json) -> None:
        """Test the conflict check can be switched off."""
        path = write_json(_request())

        result = CliRunner().invoke(cli, ["check", str(path), "--no-conflicts", "-f", "json"])

        assert json.loads(result.output)["verdict"]["conflict_status"] is None

    def test_group_help_describes_request(self) -> None:
        """Test the top-level help explains the request document and commands."""
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "REQUEST.json" in result.output
        assert "conflicts REQUEST.json -t VERSION" in result.output

    def test_missing_request_is_usage_error(self) -> None:
        """Test a request path that does not exist is rejected by click."""
        result = CliRunner().invoke(cli, ["check", "missing.json"])

        assert result.exit_code == 2


@pytest.mark.integration
class TestConflictsCommand:
    """Tests for ``bumpwise conflicts``."""

    def test_no_lockfile(self, write_json) -> None:
        """Test a request without lockfiles has nothing to conflict with."""
        path = write_json(_request())

        result = CliRunner().invoke(cli, ["conflicts", str(path), "--target", "2.0"])

        assert result.exit_code == 0
        assert "No lockfile present" in result.output

    def test_helper_conflicts_json(self, write_json, tmp_path: Path) -> None:
        """Test conflicts from the configured helper are printed as JSON."""
        config = tmp_path / "helper.toml"
        config.write_text(f"[bumpwise]\nhelper_command = {json.dumps(CONFLICT_HELPER)}\n")
        path = write_json(_request(manifests=[{"name": "yarn.lock"}]))

        result = CliRunner().invoke(
            cli,
            ["--config", str(config), "conflicts", str(path), "-t", "2.0", "-f", "json"],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "status": "completed",
            "conflicts": [
                {"name": "express", "version": "4.18.0", "requirement": "lib-c@<2.0"}
            ],
        }

    def test_target_required(self, write_json) -> None:
        """Test --target is mandatory."""
        path = write_json(_request())

        result = CliRunner().invoke(cli, ["conflicts", str(path)])

        assert result.exit_code == 2


@pytest.mark.unit
class TestMain:
    """Tests for the exit codes of :func:`main`."""

    def test_version(self, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        """Test --version prints the package version and exits cleanly."""
        monkeypatch.setattr(sys, "argv", ["bumpwise", "--version"])

        assert main() == 0
        assert f"bumpwise {__version__}" in capsys.readouterr().out

    def test_success(self, write_json, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a completed check exits 0 even when an update is available."""
        path = write_json(_request())
        monkeypatch.setattr(sys, "argv", ["bumpwise", "check", str(path)])

        assert main() == 0

    def test_malformed_request(self, write_json, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        """Test an application error exits 1 with a message."""
        path = write_json({"dependencies": []})
        monkeypatch.setattr(sys, "argv", ["bumpwise", "check", str(path)])

        assert main() == 1
        assert "Missing required field" in capsys.readouterr().out

    def test_malformed_advisory_exits_one(
        self, write_json, monkeypatch: pytest.MonkeyPatch, capsys
    ) -> None:
        """Test a bad advisory range is reported as an error, not a traceback."""
        path = write_json(
            _request(advisories=[{"dependency_name": "lib-c", "vulnerable_versions": [">=>1"]}])
        )
        monkeypatch.setattr(sys, "argv", ["bumpwise", "check", str(path)])

        assert main() == 1
        assert "Malformed request" in capsys.readouterr().out

    def test_usage_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a click usage error exits 2."""
        monkeypatch.setattr(sys, "argv", ["bumpwise", "nonexistent-command"])

        assert main() == 2

    def test_invalid_config(self, tmp_path: Path, write_json) -> None:
        """Test an invalid configuration file exits 1."""
        config = tmp_path / "bumpwise.toml"
        config.write_text("[bumpwise]\nunknown_key = 1\n")
        path = write_json(_request())

        result = CliRunner().invoke(cli, ["check", str(path)])

        assert result.exit_code == 1
        assert "Unknown configuration keys" in result.output

    def test_keyboard_interrupt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test Ctrl+C exits 130."""

        def interrupted(*args: Any, **kwargs: Any) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("bumpwise.cli.cli", interrupted)

        assert main() == 130
