"""Registry version listing sources for bumpwise.

The decision core only needs, per dependency name, the versions that are
publicly available and the registry each is served from. Two sources are
provided:

- :class:`StaticVersionSource` — an in-memory listing (request documents,
  tests, or callers that already fetched the data).
- :class:`JSONRegistrySource` — a JSON listing in the PyPI
  ``/pypi/{package}/json`` shape fetched over HTTP.

Both satisfy the :class:`VersionSource` protocol.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Union

from bumpwise.constants import DEFAULT_REGISTRY_URL
from bumpwise.exceptions import RegistryError
from bumpwise.models.candidate import VersionCandidate
from bumpwise.utils.http import HTTPClient
from bumpwise.utils.logger import get_logger
from bumpwise.utils.version_utils import parse_version

logger = get_logger("registry")

__all__ = ["VersionSource", "StaticVersionSource", "JSONRegistrySource"]


class VersionSource(Protocol):
    """Anything that can list the available versions of a dependency."""

    async def list_versions(self, name: str) -> List[VersionCandidate]:
        ...


def _sorted_candidates(candidates: Iterable[VersionCandidate]) -> List[VersionCandidate]:
    """Drop unparseable versions and sort ascending by version."""
    parsed = [c for c in candidates if c.parsed is not None]
    return sorted(parsed, key=lambda c: c.parsed)


class StaticVersionSource:
    """Version listing backed by an in-memory mapping.

    Args:
        listings: ``name -> versions``; each entry is either a version
            string or a mapping with ``version`` and optional ``source_url``.
        default_source_url: Source URL for entries that do not name one.

    Example::

        >>> source = StaticVersionSource({"lib-a": ["1.0", "2.0"]})
    """

    def __init__(
        self,
        listings: Mapping[str, Sequence[Union[str, Mapping[str, Any]]]],
        *,
        default_source_url: Optional[str] = None,
    ) -> None:
        self._listings: Dict[str, List[VersionCandidate]] = {}
        for name, entries in listings.items():
            candidates = []
            for entry in entries:
                if isinstance(entry, str):
                    candidates.append(VersionCandidate(entry, default_source_url))
                else:
                    candidates.append(
                        VersionCandidate(
                            str(entry["version"]),
                            entry.get("source_url", default_source_url),
                        )
                    )
            self._listings[name] = _sorted_candidates(candidates)

    async def list_versions(self, name: str) -> List[VersionCandidate]:
        if name not in self._listings:
            raise RegistryError(f"No versions listed for '{name}'", package_name=name)
        return list(self._listings[name])


class JSONRegistrySource:
    """Version listing fetched from a PyPI-style JSON endpoint.

    Versions with no uploaded files are skipped, like yanked placeholders.

    Args:
        http_client: Shared :class:`HTTPClient`.
        url_template: Endpoint template containing ``{package}``.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        url_template: str = DEFAULT_REGISTRY_URL,
    ) -> None:
        self.http_client = http_client
        self.url_template = url_template

    async def list_versions(self, name: str) -> List[VersionCandidate]:
        url = self.url_template.format(package=name)
        data = await self.http_client.get_json(url)

        releases = data.get("releases")
        if not isinstance(releases, dict):
            raise RegistryError(
                f"Registry response for '{name}' has no releases",
                package_name=name,
                url=url,
            )

        candidates = [
            VersionCandidate(version, url)
            for version, files in releases.items()
            if files and parse_version(version) is not None
        ]
        logger.debug("Registry listed %d version(s) for %s", len(candidates), name)
        return _sorted_candidates(candidates)
