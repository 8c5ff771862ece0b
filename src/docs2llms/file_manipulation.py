from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from docs2llms.config import IGNORE_DIRECTORIES, SUPPORTED_EXTENSIONS, MatchedFile, TraversalConfig
from docs2llms.exceptions import FileSystemError
from docs2llms.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

MAX_READ_WORKERS = 8


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return str(path.relative_to(root)).replace("\\", "/")
    except ValueError:
        return str(path)


def skip_directory(name: str, skip: Iterable[str] = ()) -> bool:
    """Whether a directory (and its whole subtree) is left out of the walk.

    A directory is skipped when its name is in `skip`, is hidden (starts with
    ".") or belongs to `IGNORE_DIRECTORIES` (VCS metadata, dependencies, builds).

    Args:
        name (str): the directory base name
        skip (Iterable[str]): user supplied directory names to skip

    Returns:
        bool: True if the directory must not be visited
    """
    return name in skip or name.startswith(".") or name in IGNORE_DIRECTORIES


def is_supported_name(name: str, extensions: Iterable[str] = SUPPORTED_EXTENSIONS) -> bool:
    low = name.lower()
    return any(low.endswith(ext) for ext in extensions)


def is_excluded_name(name: str, exclude: Iterable[str]) -> bool:
    low = name.lower()
    return any(low.endswith(ext) for ext in exclude)


def within_size(size: int, max_size_bytes: int | None) -> bool:
    """A file exactly at the threshold is kept; None means no limit."""
    return max_size_bytes is None or size <= max_size_bytes


def walk_docs(root: Path, config: TraversalConfig | None = None) -> list[MatchedFile]:
    """Collect documentation files under `root`, depth first.

    Entries are visited in the order the filesystem lists them (`os.scandir`),
    and a subdirectory's files are emitted where the subdirectory is met, so the
    result is deterministic for an unchanged tree. Symlinked directories are not
    followed; symlinked files are kept when they otherwise match.

    Args:
        root (Path): the directory to walk
        config (TraversalConfig | None): skip names, excluded suffixes and size limit

    Raises:
        FileSystemError: if a directory cannot be listed or a file cannot be stat'ed.

    Returns:
        list[MatchedFile]: the matched files in traversal order
    """
    config = config or TraversalConfig()
    root = Path(root)
    matched: list[MatchedFile] = []

    def visit(current: Path) -> None:
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            raise FileSystemError(message=f"Cannot list directory: {e.strerror}", path=current) from e

        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                if skip_directory(entry.name, config.skip):
                    logger.debug("Skipping directory", path=relpath(Path(entry.path), root))
                    continue
                visit(Path(entry.path))
                continue
            if not is_supported_name(entry.name) or is_excluded_name(entry.name, config.exclude):
                continue
            try:
                if not entry.is_file():
                    continue
                size = entry.stat().st_size
            except FileNotFoundError:
                # broken symlink
                continue
            except OSError as e:
                raise FileSystemError(message=f"Cannot stat file: {e.strerror}", path=Path(entry.path)) from e
            if not within_size(size, config.max_size_bytes):
                logger.debug("Skipping large file", path=entry.path, size=size)
                continue
            path = Path(entry.path)
            rec = MatchedFile(rel=relpath(path, root), path=path, size=size)
            logger.debug("Matched", path=rec.rel, size=size)
            matched.append(rec)

    visit(root)
    logger.info("Directory walk finished", root=str(root), files=len(matched))
    return matched


def read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise FileSystemError(message=f"Cannot read file: {e.strerror}", path=path) from e


def read_all(files: Sequence[MatchedFile]) -> list[bytes]:
    """Read every file concurrently; the result keeps the order of `files`."""
    if not files:
        return []
    with ThreadPoolExecutor(max_workers=min(MAX_READ_WORKERS, len(files))) as pool:
        return list(pool.map(read_bytes, (f.path for f in files)))


def drop_paths(files: Sequence[MatchedFile], paths: Iterable[Path]) -> list[MatchedFile]:
    """Remove files that resolve to one of `paths` (previous outputs inside the scanned tree)."""
    targets = {Path(p).resolve() for p in paths}
    return [f for f in files if f.path.resolve() not in targets]
