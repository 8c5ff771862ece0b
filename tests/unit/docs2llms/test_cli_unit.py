from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from docs2llms import __version__, cli, interaction
from docs2llms.config import OutputFormat

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_parse_args_collects_lists_and_limits() -> None:
    settings = cli.parse_args(
        [
            "--local",
            "docs",
            "--skip",
            "examples,drafts",
            "tmp",
            "--exclude",
            "txt",
            "--max-size",
            "1.5",
            "--format",
            ".md",
            "--output-dir",
            "out",
            "--backup",
        ],
    )

    assert settings.local == Path("docs")
    assert settings.skip == ["examples", "drafts", "tmp"]
    assert settings.exclude == ["txt"]
    assert settings.max_size == 1.5  # noqa: PLR2004
    assert settings.format is OutputFormat.MD
    assert settings.output_dir == Path("out")
    assert settings.backup is True
    assert settings.preview is False


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
@pytest.mark.parametrize(
    "argv",
    [
        ["--local", ".", "--unknown"],
        ["--local", ".", "--preview", "--interactive"],
        ["--local", ".", "--analyze", "--summary"],
        ["--local", ".", "--github", "o/r"],
        ["--local", ".", "--format", "pdf"],
        ["--local", ".", "--max-size", "big"],
        ["--local", ".", "--max-size", "inf"],
        ["--local", ".", "--max-size", "nan"],
        ["--loc", "."],
        ["--local", ".", "--output-d", "out"],
        ["--local", ".", "--prev"],
    ],
)
def test_usage_errors_exit_with_one(argv: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)

    assert exc_info.value.code == 1
    assert "usage:" in capsys.readouterr().err


@pytest.mark.unit
def test_main_without_source_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main([])

    assert exit_code == 1
    assert "usage:" in capsys.readouterr().err


@pytest.mark.unit
def test_main_bad_config_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--config", str(tmp_path / "missing.yaml")])

    assert exit_code == 1
    assert "Error: Cannot read config file" in capsys.readouterr().err


@pytest.mark.unit
def test_main_missing_local_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--local", str(tmp_path / "missing")])

    assert exit_code == 1
    assert "Local directory not found" in capsys.readouterr().err


@pytest.mark.unit
def test_main_interactive_writes_confirmed_files(tmp_path: Path, mocker: MockerFixture) -> None:
    (tmp_path / "a.md").write_text("alpha", encoding="utf-8")
    out = tmp_path / "out"
    mocker.patch.object(interaction, "ask_user", return_value="n")

    exit_code = cli.main(["--local", str(tmp_path), "--interactive", "--output-dir", str(out)])

    assert exit_code == 0
    assert (out / "llms.txt").read_text(encoding="utf-8") == f"# {tmp_path.name}\n\n"
    assert (out / "llms-full.txt").read_bytes() == b""


@pytest.mark.unit
def test_main_summary_lists_files(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.md").write_text("alpha", encoding="utf-8")

    exit_code = cli.main(["--local", str(tmp_path), "--summary", "--output-dir", str(tmp_path / "out")])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Summary:" in out
    assert "+ docs/a.md" in out


@pytest.mark.unit
@pytest.mark.skipif(sys.platform != "linux", reason="needs a filesystem accepting non UTF-8 names")
def test_main_summary_with_undecodable_file_name(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / os.fsdecode(b"caf\xe9.md")).write_bytes(b"menu")
    out = tmp_path / "out"

    exit_code = cli.main(["--local", str(src), "--summary", "--output-dir", str(out)])

    assert exit_code == 0
    assert "+ caf\ufffd.md" in capsys.readouterr().out
    assert b"](caf\xe9.md)" in (out / "llms.txt").read_bytes()
