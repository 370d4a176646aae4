"""Tests for request document loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from bumpwise.commands.request import RequestParser, load_request
from bumpwise.exceptions import FileOperationError, ParseError
from bumpwise.models import Dependency


def _write(tmp_path: Path, data: Any) -> Path:
    path = tmp_path / "request.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return path


@pytest.mark.unit
class TestLoadRequest:
    """Tests for load_request."""

    def test_dependency_by_name(self, tmp_path: Path) -> None:
        """Test the primary dependency can reference an entry by name."""
        path = _write(
            tmp_path,
            {
                "dependency": "lib-b",
                "dependencies": [
                    {"name": "lib-a", "version": "1.0"},
                    {"name": "lib-b", "version": "2.0", "directory": "/core"},
                ],
                "manifests": [{"name": "pom.xml", "properties": {"P": "1.0"}}],
                "versions": {"lib-b": ["2.0", {"version": "2.1", "source_url": "https://r"}]},
                "advisories": [{"dependency_name": "lib-b", "vulnerable_versions": ["[2.0]"]}],
                "ignored_versions": {"lib-b": ["[3.0,)"]},
            },
        )

        request = load_request(path)

        assert request.dependency == Dependency("lib-b", "2.0", directory="/core")
        assert len(request.dependencies) == 2
        assert request.manifests[0].properties == {"P": "1.0"}
        assert request.versions is not None and len(request.versions["lib-b"]) == 2
        assert request.advisories[0].is_vulnerable("2.0")
        assert request.ignored_versions == {"lib-b": ["[3.0,)"]}

    def test_inline_dependency_added_to_set(self, tmp_path: Path) -> None:
        """Test an inline primary dependency joins the dependency set."""
        path = _write(tmp_path, {"dependency": {"name": "lib-a", "version": "1.0"}})

        request = load_request(path)

        assert request.dependencies == [request.dependency]
        assert request.versions is None
        assert request.parser.parse(request.manifests) == [request.dependency]

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Test invalid JSON raises ParseError."""
        with pytest.raises(ParseError, match="Invalid JSON"):
            load_request(_write(tmp_path, "{not json"))

    def test_not_an_object(self, tmp_path: Path) -> None:
        """Test a JSON array is rejected."""
        with pytest.raises(ParseError, match="JSON object"):
            load_request(_write(tmp_path, []))

    def test_missing_field(self, tmp_path: Path) -> None:
        """Test a missing required field is named in the error."""
        with pytest.raises(ParseError) as exc_info:
            load_request(_write(tmp_path, {"dependencies": []}))

        assert exc_info.value.details["field"] == "dependency"

    def test_unknown_dependency_name(self, tmp_path: Path) -> None:
        """Test a name not in the dependency set is malformed."""
        with pytest.raises(ParseError, match="Malformed request"):
            load_request(_write(tmp_path, {"dependency": "lib-x", "dependencies": []}))

    def test_malformed_advisory_range(self, tmp_path: Path) -> None:
        """Test an unparseable advisory range is rejected while loading."""
        path = _write(
            tmp_path,
            {
                "dependency": {"name": "lib-a", "version": "1.0"},
                "advisories": [{"dependency_name": "lib-a", "vulnerable_versions": [">=>1"]}],
            },
        )

        with pytest.raises(ParseError, match="Malformed request"):
            load_request(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test an unreadable file raises FileOperationError."""
        with pytest.raises(FileOperationError):
            load_request(tmp_path / "absent.json")


@pytest.mark.unit
def test_request_parser_returns_copies() -> None:
    """Test parsing never hands out the parser's own list."""
    parser = RequestParser([Dependency("lib-a", "1.0")])

    first = parser.parse([])
    first.clear()

    assert parser.parse([]) == [Dependency("lib-a", "1.0")]
