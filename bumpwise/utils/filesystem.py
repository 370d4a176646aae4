"""
Filesystem utilities for bumpwise.

Safe reading of request documents and request-scoped scratch workspaces
into which manifests are materialized for native helpers. All filesystem
errors are normalized to ``FileOperationError``.
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path, PurePosixPath
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Union

from bumpwise.constants import MAX_FILE_SIZE
from bumpwise.exceptions import FileOperationError
from bumpwise.utils.logger import get_logger

if TYPE_CHECKING:
    from bumpwise.models.manifest import ManifestFile

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Read a text file, refusing missing, non-regular or oversized files.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.

    Raises:
        FileOperationError: The file is missing, too large or unreadable.
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )

    size = path.stat().st_size
    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def _relative_target(root: Path, name: str) -> Path:
    """Resolve *name* under *root*, rejecting absolute or escaping paths."""
    relative = PurePosixPath(name)
    if relative.is_absolute() or ".." in relative.parts:
        raise FileOperationError(
            f"Refusing to materialize path outside workspace: {name}",
            file_path=name,
            operation="materialize",
        )
    return root.joinpath(*relative.parts)


def materialize_files(root: PathLike, files: Iterable["ManifestFile"]) -> List[Path]:
    """Write each manifest's content under *root*, keeping relative paths.

    Args:
        root: Workspace directory.
        files: Manifests and lockfiles to write.

    Returns:
        Paths written, in input order.

    Raises:
        FileOperationError: A name escapes *root* or a write fails.
    """
    base = Path(root)
    written: List[Path] = []

    for manifest in files:
        target = _relative_target(base, manifest.name)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(manifest.content, encoding="utf-8")
        except OSError as exc:
            raise FileOperationError(
                f"Failed to write workspace file: {exc}",
                file_path=str(target),
                operation="materialize",
                original_error=exc,
            ) from exc
        written.append(target)

    logger.debug("Materialized %d file(s) into %s", len(written), base)
    return written


@contextmanager
def scratch_workspace(prefix: str = "bumpwise-") -> Iterator[Path]:
    """Yield a fresh directory owned by one resolution; removed on exit.

    Concurrent resolutions each get their own directory, so helpers never
    share mutable filesystem state.
    """
    path = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("Created scratch workspace %s", path)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Removed scratch workspace %s", path)
