"""Request document loading for bumpwise commands.

A request document is the JSON a caller (or the upstream parsing layer)
produces for one dependency update::

    {
      "dependency": "jackson-core",
      "dependencies": [{"name": "jackson-core", "version": "2.9.0", ...}],
      "manifests": [{"name": "pom.xml", "properties": {...}, ...}],
      "versions": {"jackson-core": ["2.9.0", "2.10.0"]},
      "advisories": [{"dependency_name": "jackson-core", ...}],
      "ignored_versions": {"jackson-core": ["[3.0,)"]}
    }

``dependency`` may be a full dependency object or the name of an entry in
``dependencies``. Without ``versions``, listings come from the configured
registry.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from bumpwise.exceptions import ParseError
from bumpwise.models import Dependency, ManifestFile, SecurityAdvisory
from bumpwise.utils.filesystem import safe_read_file
from bumpwise.utils.logger import get_logger

logger = get_logger("commands.request")


class RequestParser:
    """Structural parser serving the dependencies a request already carries.

    The request document is the output of an upstream parser, so parsing
    the same manifests again returns the same dependencies.
    """

    def __init__(self, dependencies: Sequence[Dependency]) -> None:
        self._dependencies = list(dependencies)

    def parse(self, manifests: Sequence[ManifestFile]) -> List[Dependency]:
        return list(self._dependencies)


@dataclass
class UpdateRequest:
    """A parsed request document."""

    dependency: Dependency
    dependencies: List[Dependency]
    manifests: List[ManifestFile]
    versions: Optional[Dict[str, List[Any]]] = None
    advisories: List[SecurityAdvisory] = field(default_factory=list)
    ignored_versions: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def parser(self) -> RequestParser:
        return RequestParser(self.dependencies)


def load_request(path: Path) -> UpdateRequest:
    """Read and validate the request document at *path*.

    Raises:
        FileOperationError: The file cannot be read.
        ParseError: The document is not valid JSON or lacks a field.
    """
    text = safe_read_file(path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON: {exc}", file_path=str(path)) from exc

    if not isinstance(data, dict):
        raise ParseError("Request must be a JSON object", file_path=str(path))

    try:
        request = _build_request(data)
    except KeyError as exc:
        raise ParseError(
            f"Missing required field {exc}",
            file_path=str(path),
            field=str(exc.args[0]),
        ) from exc
    except (TypeError, AttributeError, ValueError) as exc:
        raise ParseError(f"Malformed request: {exc}", file_path=str(path)) from exc

    logger.info(
        "Loaded request for %s (%d dependencies, %d manifests)",
        request.dependency.name,
        len(request.dependencies),
        len(request.manifests),
    )
    return request


def _build_request(data: Mapping[str, Any]) -> UpdateRequest:
    dependencies = [Dependency.from_dict(item) for item in data.get("dependencies") or ()]
    dependency = _primary_dependency(data["dependency"], dependencies)
    if all(dep.key != dependency.key for dep in dependencies):
        dependencies.insert(0, dependency)

    versions = data.get("versions")
    return UpdateRequest(
        dependency=dependency,
        dependencies=dependencies,
        manifests=[ManifestFile.from_dict(item) for item in data.get("manifests") or ()],
        versions={name: list(entries) for name, entries in versions.items()}
        if versions is not None
        else None,
        advisories=[SecurityAdvisory.from_dict(item) for item in data.get("advisories") or ()],
        ignored_versions={
            name: list(values) for name, values in (data.get("ignored_versions") or {}).items()
        },
    )


def _primary_dependency(value: Any, dependencies: Sequence[Dependency]) -> Dependency:
    if isinstance(value, str):
        for dependency in dependencies:
            if dependency.name == value:
                return dependency
        raise ValueError(f"dependency {value!r} is not listed in dependencies")
    return Dependency.from_dict(value)
