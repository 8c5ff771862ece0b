from __future__ import annotations

import io
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from docs2llms.config import BACKUP_SUFFIX
from docs2llms.exceptions import FileSystemError
from docs2llms.file_manipulation import read_all
from docs2llms.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from docs2llms.config import MatchedFile, OutputConfig

CONTENT_SEPARATOR = b"\n\n"


def build_link_index(files: Sequence[MatchedFile], heading: str = "") -> str:
    """Build the llms.txt style index: one markdown link per file.

    Args:
        files (Sequence[MatchedFile]): the matched files, in traversal order
        heading (str): optional title written as a `# heading` line first

    Returns:
        str: the index document, newline terminated
    """
    out = io.StringIO()
    if heading:
        out.write(f"# {heading}\n\n")
    for f in files:
        out.write(f"- [{f.name}]({f.rel})\n")
    return out.getvalue()


def build_full_content(files: Sequence[MatchedFile]) -> bytes:
    """Concatenate the raw content of `files`, separated by a blank line."""
    return CONTENT_SEPARATOR.join(read_all(files))


def backup_existing(path: Path) -> Path | None:
    """Copy `path` to `path.bak` if it exists.

    Returns:
        Path | None: the backup path, or None when there was nothing to back up

    Raises:
        FileSystemError: if the copy fails for any reason other than a missing source.
    """
    target = path.with_name(path.name + BACKUP_SUFFIX)
    try:
        shutil.copyfile(path, target)
    except FileNotFoundError:
        return None
    except OSError as e:
        raise FileSystemError(message=f"Cannot back up file: {e.strerror}", path=path) from e
    logger.info("Backup created", path=str(path), backup=target.name)
    return target


def _write(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise FileSystemError(message=f"Cannot write file: {e.strerror}", path=path) from e


def write_outputs(files: Sequence[MatchedFile], output: OutputConfig) -> tuple[Path, Path]:
    """Write the link index and the full-content dump for `files`.

    Both documents are built in memory before anything is written, so a read
    failure leaves previous outputs untouched. Existing outputs are truncated.
    File names that are not valid UTF-8 keep their on-disk bytes in the index.

    Args:
        files (Sequence[MatchedFile]): the files to bundle, in traversal order
        output (OutputConfig): file names, target directory, backup flag and heading

    Returns:
        tuple[Path, Path]: the link index path and the full-content path
    """
    index = build_link_index(files, output.heading).encode("utf-8", errors="surrogateescape")
    content = build_full_content(files)

    try:
        output.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(message=f"Cannot create output directory: {e.strerror}", path=output.output_dir) from e

    if output.backup:
        for path in (output.llms_path, output.llms_full_path):
            backup = backup_existing(path)
            if backup is not None:
                print(f"{path} -> backup created: {backup.name}")

    _write(output.llms_path, index)
    _write(output.llms_full_path, content)
    logger.info(
        "Outputs written",
        llms=str(output.llms_path),
        llms_full=str(output.llms_full_path),
        files=len(files),
    )
    return output.llms_path, output.llms_full_path
