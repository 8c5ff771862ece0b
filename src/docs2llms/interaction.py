from __future__ import annotations

from typing import TYPE_CHECKING

from docs2llms.config import AnalysisReport
from docs2llms.file_manipulation import read_all

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from docs2llms.config import MatchedFile

    AskFn = Callable[[str], str]

YES = {"y", "yes"}


def printable(text: str) -> str:
    """Replace undecodable file name bytes (surrogate escapes) with U+FFFD for display."""
    return text.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")


def ask_user(prompt: str) -> str:
    """Read one answer from stdin; an exhausted stdin counts as an empty answer."""
    try:
        return input(prompt)
    except EOFError:
        return ""


def confirm(prompt: str, ask: AskFn = ask_user) -> bool:
    return ask(f"{prompt} (y/n) ").strip().lower() in YES


def group_by_folder(files: Sequence[MatchedFile]) -> dict[str, list[str]]:
    """Group file names by relative parent folder, keeping first-seen order."""
    groups: dict[str, list[str]] = {}
    for f in files:
        groups.setdefault(f.folder, []).append(f.name)
    return groups


def render_preview(files: Sequence[MatchedFile]) -> list[str]:
    lines = ["Preview:"]
    for folder, names in group_by_folder(files).items():
        lines.append("")
        lines.append(f"{printable(folder)}/")
        lines.extend(f"  - {printable(name)}" for name in names)
    return lines


def preview(files: Sequence[MatchedFile], ask: AskFn = ask_user) -> bool:
    """Print the grouped listing and ask whether to go on writing the outputs."""
    print("\n".join(render_preview(files)))
    return confirm("Continue with processing the content?", ask)


def select_interactively(files: Sequence[MatchedFile], ask: AskFn = ask_user) -> list[MatchedFile]:
    """Ask about each file in turn; only confirmed files are returned."""
    total = len(files)
    return [f for i, f in enumerate(files, start=1) if confirm(f"({i}/{total}): {printable(f.rel)}?", ask)]


def render_summary(files: Sequence[MatchedFile]) -> list[str]:
    return ["Summary:", *(f"+ {printable(f.rel)}" for f in files)]


def analyze(files: Sequence[MatchedFile]) -> AnalysisReport:
    """Aggregate statistics over the matched files.

    Words are whitespace-delimited tokens of the UTF-8 decoded content; the size
    total comes from the bytes actually read.
    """
    contents = read_all(files)
    return AnalysisReport(
        file_count=len(files),
        folder_count=len({f.folder for f in files}),
        total_words=sum(len(c.decode("utf-8", errors="replace").split()) for c in contents),
        total_bytes=sum(len(c) for c in contents),
    )


def render_analysis(report: AnalysisReport) -> list[str]:
    return [
        "Documentation Analysis",
        f"Folder count:      {report.folder_count}",
        f"File count:        {report.file_count}",
        f"Word count:        {report.total_words}",
        f"Average file size: {report.average_size / 1024:.2f} KB",
    ]
