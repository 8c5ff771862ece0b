from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from docs2llms.config import MatchedFile, OutputConfig
from docs2llms.exceptions import FileSystemError
from docs2llms.file_manipulation import walk_docs
from docs2llms.output_construction import (
    backup_existing,
    build_full_content,
    build_link_index,
    write_outputs,
)


def _doc(root: Path, rel: str, content: bytes) -> MatchedFile:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return MatchedFile(rel=rel, path=path, size=len(content))


@pytest.mark.unit
def test_build_link_index_one_entry_per_file(tmp_path: Path) -> None:
    files = [
        _doc(tmp_path, "README.md", b"# readme"),
        _doc(tmp_path, "docs/guide/install.md", b"install"),
    ]

    index = build_link_index(files, heading="project")

    assert index == "# project\n\n- [README.md](README.md)\n- [install.md](docs/guide/install.md)\n"


@pytest.mark.unit
def test_build_link_index_without_heading(tmp_path: Path) -> None:
    files = [_doc(tmp_path, "a.md", b"a")]

    assert build_link_index(files) == "- [a.md](a.md)\n"


@pytest.mark.unit
def test_build_full_content_single_file_is_byte_identical(tmp_path: Path) -> None:
    content = b"# Guide\nhello world\n"
    files = [_doc(tmp_path, "docs/guide.md", content)]

    assert build_full_content(files) == content


@pytest.mark.unit
def test_build_full_content_separates_files_with_blank_line(tmp_path: Path) -> None:
    files = [_doc(tmp_path, "a.md", b"first"), _doc(tmp_path, "b.md", b"second")]

    assert build_full_content(files) == b"first\n\nsecond"


@pytest.mark.unit
def test_build_full_content_missing_file_raises(tmp_path: Path) -> None:
    ghost = MatchedFile(rel="ghost.md", path=tmp_path / "ghost.md", size=0)

    with pytest.raises(FileSystemError):
        build_full_content([ghost])


@pytest.mark.unit
def test_backup_existing_copies_file(tmp_path: Path) -> None:
    target = tmp_path / "llms.txt"
    target.write_text("old", encoding="utf-8")

    backup = backup_existing(target)

    assert backup == tmp_path / "llms.txt.bak"
    assert backup.read_text(encoding="utf-8") == "old"


@pytest.mark.unit
def test_backup_existing_ignores_missing_file(tmp_path: Path) -> None:
    assert backup_existing(tmp_path / "llms.txt") is None
    assert not (tmp_path / "llms.txt.bak").exists()


@pytest.mark.unit
def test_write_outputs_creates_dir_and_truncates(tmp_path: Path) -> None:
    src = tmp_path / "src"
    out_dir = tmp_path / "out"
    files = [_doc(src, "a.md", b"alpha"), _doc(src, "b/c.rst", b"gamma")]
    output = OutputConfig(output_dir=out_dir, heading="src")

    write_outputs(files, output)
    llms, full = write_outputs(files[:1], output)

    assert llms == out_dir / "llms.txt"
    assert full == out_dir / "llms-full.txt"
    assert llms.read_text(encoding="utf-8") == "# src\n\n- [a.md](a.md)\n"
    assert full.read_bytes() == b"alpha"


@pytest.mark.unit
def test_write_outputs_is_idempotent(tmp_path: Path) -> None:
    files = [_doc(tmp_path / "src", "a.md", b"alpha"), _doc(tmp_path / "src", "b.md", b"beta")]
    output = OutputConfig(output_dir=tmp_path / "out", llms_file="x.md", llms_full_file="y.md")

    first = [p.read_bytes() for p in write_outputs(files, output)]
    second = [p.read_bytes() for p in write_outputs(files, output)]

    assert first == second


@pytest.mark.unit
def test_write_outputs_backup(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    files = [_doc(tmp_path / "src", "a.md", b"new")]
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "llms-full.txt").write_bytes(b"previous")

    write_outputs(files, OutputConfig(output_dir=out_dir, backup=True))

    assert (out_dir / "llms-full.txt.bak").read_bytes() == b"previous"
    assert not (out_dir / "llms.txt.bak").exists()
    assert (out_dir / "llms-full.txt").read_bytes() == b"new"
    assert "backup created: llms-full.txt.bak" in capsys.readouterr().out


@pytest.mark.unit
def test_write_outputs_read_failure_keeps_previous_outputs(tmp_path: Path) -> None:
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "llms.txt").write_text("keep me", encoding="utf-8")
    ghost = MatchedFile(rel="ghost.md", path=tmp_path / "ghost.md", size=0)

    with pytest.raises(FileSystemError):
        write_outputs([ghost], OutputConfig(output_dir=out_dir))

    assert (out_dir / "llms.txt").read_text(encoding="utf-8") == "keep me"
    assert not (out_dir / "llms-full.txt").exists()


@pytest.mark.unit
@pytest.mark.skipif(sys.platform != "linux", reason="needs a filesystem accepting non UTF-8 names")
def test_write_outputs_keeps_undecodable_file_names(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / os.fsdecode(b"caf\xe9.md")).write_bytes(b"menu")

    llms_path, llms_full_path = write_outputs(walk_docs(src), OutputConfig(output_dir=tmp_path / "out"))

    assert llms_path.read_bytes() == b"- [caf\xe9.md](caf\xe9.md)\n"
    assert llms_full_path.read_bytes() == b"menu"
