#  -*- coding: utf-8 -*-
"""
docs2llms: Bundle a project's documentation for LLMs.

Overview
--------
Collects documentation files (`.md`, `.mdx`, `.txt`, `.rst`) from a local
directory or from a GitHub/GitLab repository and writes two files, following
the llms.txt convention:

1) **Link index (`llms.txt`)**: one markdown link per documentation file,
   under a heading named after the repository or directory.

2) **Full content (`llms-full.txt`)**: the content of every file, in
   traversal order, separated by a blank line.

Remote repositories are shallow-cloned with `git` into a temporary directory
(or fetched through the GitHub contents API with `--use-api`), which is removed
at the end of the run unless `--keep-clone` is given.

Usage
-----
Run `python -m docs2llms.cli --help` for full options. Common examples:
    - Local directory:
        docs2llms --local ./docs

    - GitHub repository, markdown output in ./out, skipping examples:
        docs2llms --github owner/repo --format md --output-dir out --skip examples

    - Sub-folder of a branch, only markdown files:
        docs2llms --github https://github.com/owner/repo/tree/dev/docs --exclude txt,rst

    - Statistics only:
        docs2llms --local . --analyze
"""

from __future__ import annotations

import argparse
import math
import sys
from typing import TYPE_CHECKING, NoReturn

from docs2llms import __version__, interaction
from docs2llms.config import OutputFormat
from docs2llms.exceptions import Docs2LlmsError
from docs2llms.file_manipulation import drop_paths, walk_docs
from docs2llms.logging import logger, setup_logging
from docs2llms.output_construction import write_outputs
from docs2llms.settings import build_settings, load_environment
from docs2llms.source import resolve_source

if TYPE_CHECKING:
    from collections.abc import Sequence

    from docs2llms.settings import Settings


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser reporting usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _output_format(value: str) -> str:
    fmt = value.strip().lstrip(".").lower()
    allowed = [f.value for f in OutputFormat]
    if fmt not in allowed:
        msg = f"invalid format {value!r} (choose from {', '.join(allowed)})"
        raise argparse.ArgumentTypeError(msg)
    return fmt


def _megabytes(value: str) -> float:
    try:
        mb = float(value)
    except ValueError:
        mb = -1.0
    if mb < 0 or not math.isfinite(mb):
        msg = f"invalid size {value!r} (expected a non-negative number of MB)"
        raise argparse.ArgumentTypeError(msg)
    return mb


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="docs2llms",
        description="Bundle documentation files into llms.txt and llms-full.txt.",
        allow_abbrev=False,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    source = p.add_mutually_exclusive_group()
    source.add_argument("--local", type=str, default=None, help="Local directory to scan.")
    source.add_argument("--github", type=str, default=None, help="GitHub owner/repository or URL.")
    source.add_argument("--gitlab", type=str, default=None, help="GitLab owner/repository or URL.")
    p.add_argument(
        "--branch",
        type=str,
        default=None,
        help="Repository branch to clone. Defaults to the remote default branch.",
    )

    p.add_argument("--llms", type=str, default=None, help="Base name of the link index. Defaults to llms.")
    p.add_argument(
        "--llms-full",
        type=str,
        default=None,
        help="Base name of the full-content file. Defaults to llms-full.",
    )
    p.add_argument(
        "--format",
        type=_output_format,
        default=None,
        help="Output extension: txt, md, mdx or rst. Defaults to txt.",
    )
    p.add_argument("--output-dir", type=str, default=None, help="Output directory. Defaults to '.'.")

    p.add_argument(
        "--skip",
        nargs="+",
        action="extend",
        default=None,
        help="Folders to skip (comma or space separated, repeatable).",
    )
    p.add_argument(
        "--exclude",
        nargs="+",
        action="extend",
        default=None,
        help="File extensions to exclude, e.g. 'txt,rst' (repeatable).",
    )
    p.add_argument(
        "--max-size",
        type=_megabytes,
        default=None,
        help="Only include files up to this size (in MB).",
    )

    modes = p.add_mutually_exclusive_group()
    modes.add_argument(
        "--preview",
        action="store_true",
        default=None,
        help="List matched files by folder and confirm before writing.",
    )
    modes.add_argument(
        "--interactive",
        action="store_true",
        default=None,
        help="Confirm each file to be written.",
    )
    modes.add_argument(
        "--summary",
        action="store_true",
        default=None,
        help="List the written files.",
    )
    modes.add_argument(
        "--analyze",
        action="store_true",
        default=None,
        help="Print folder, file and word counts and the average file size, then exit.",
    )

    p.add_argument(
        "--backup",
        action="store_true",
        default=None,
        help="Copy existing outputs to *.bak before overwriting them.",
    )
    p.add_argument(
        "--keep-clone",
        action="store_true",
        default=None,
        help="Keep the temporary clone of a remote repository.",
    )
    p.add_argument(
        "--use-api",
        action="store_true",
        default=None,
        help="Fetch GitHub files through the contents API instead of git (uses $GITHUB_TOKEN).",
    )
    p.add_argument("--verbose", action="store_true", default=None, help="Log every matched file.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("--config", type=str, default=None, help="YAML file with default option values.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line flags (and the optional `--config` file) into `Settings`.

    Raises:
        InvalidInputError: if the config file or the merged values are invalid.
    """
    args = vars(build_parser().parse_args(argv))
    config_file = args.pop("config")
    return build_settings(args, config_file)


def export_docs(settings: Settings) -> int:
    """Run one export: locate the source, walk it, then report or write."""
    with resolve_source(settings) as source:
        output = settings.output_config(heading=source.heading)
        files = walk_docs(source.root, settings.traversal_config())
        files = drop_paths(files, [output.llms_path, output.llms_full_path])

        if settings.analyze:
            print("\n".join(interaction.render_analysis(interaction.analyze(files))))
            return 0

        if settings.preview and not interaction.preview(files, ask=interaction.ask_user):
            print("Nothing written.")
            return 0

        if settings.interactive:
            files = interaction.select_interactively(files, ask=interaction.ask_user)

        llms_path, llms_full_path = write_outputs(files, output)
        print(interaction.printable(f"Wrote {llms_path} and {llms_full_path} files={len(files)}"))

        if settings.summary:
            print("\n".join(interaction.render_summary(files)))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    load_environment()
    try:
        settings = parse_args(argv)
    except Docs2LlmsError as e:
        print(interaction.printable(f"Error: {e}"), file=sys.stderr)
        return 1

    if settings.log_file or settings.verbose:
        setup_logging(settings.log_file or None, verbose=settings.verbose, force=True)

    if settings.source_kind is None:
        print("Error: provide a local directory, a GitHub or a GitLab repository.\n", file=sys.stderr)
        build_parser().print_help(sys.stderr)
        return 1

    try:
        return export_docs(settings)
    except (Docs2LlmsError, OSError) as e:
        logger.error("Export failed", error=str(e), kind=type(e).__name__)
        print(interaction.printable(f"Error: {e}"), file=sys.stderr)
        return 1


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
