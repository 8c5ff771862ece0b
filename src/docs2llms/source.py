from __future__ import annotations

import re
import shutil
import subprocess  # noqa: S404
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Self

from docs2llms.config import HOSTS, RepositoryURL, SourceKind
from docs2llms.exceptions import CloneError, InvalidInputError
from docs2llms.logging import logger
from docs2llms.remote_api import GitHubContentsClient

if TYPE_CHECKING:
    from types import TracebackType

    from docs2llms.settings import Settings

_SHORTHAND = re.compile(r"^(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+?)(?:\.git)?/?$")


def parse_repository_url(value: str, kind: SourceKind) -> RepositoryURL:
    """Parse an `owner/repo` shorthand or a GitHub/GitLab web URL.

    Accepted forms:
        - `owner/repo`
        - `https://<host>/owner/repo[.git]`
        - `https://<host>/owner/repo/tree/<branch>/<sub/path>` (GitHub)
        - `https://<host>/group/repo/-/tree/<branch>/<sub/path>` (GitLab)

    Args:
        value (str): what the user passed to `--github` / `--gitlab`
        kind (SourceKind): the hosting provider

    Raises:
        InvalidInputError: if `value` matches none of the forms above.

    Returns:
        RepositoryURL: the parsed location
    """
    host = HOSTS[kind]
    raw = value.strip()
    prefix = re.compile(rf"^(?:https?://)?(?:www\.)?{re.escape(host)}/", re.IGNORECASE)
    if not prefix.match(raw):
        m = _SHORTHAND.match(raw)
        if m is None or m["owner"].lower().removeprefix("www.") in HOSTS.values():
            raise InvalidInputError(message=f"Not a valid {kind.value} repository: {value!r}")
        return RepositoryURL(host=host, owner=m["owner"], repo=m["repo"])

    parts = [p for p in prefix.sub("", raw).split("/") if p]
    if len(parts) < 2:  # noqa: PLR2004
        raise InvalidInputError(message=f"Missing owner or repository in {value!r}")

    if "-" in parts:
        # GitLab: everything before "/-/" is the (possibly nested) project path
        dash = parts.index("-")
        project, rest = parts[:dash], parts[dash + 1 :]
    elif kind is SourceKind.GITLAB and not {"tree", "blob"} & set(parts[2:]):
        # GitLab groups nest: group/subgroup/project
        project, rest = parts, []
    else:
        project, rest = parts[:2], parts[2:]

    if len(project) < 2:  # noqa: PLR2004
        raise InvalidInputError(message=f"Missing owner or repository in {value!r}")

    branch: str | None = None
    path = ""
    if rest:
        if rest[0] not in {"tree", "blob"} or len(rest) < 2:  # noqa: PLR2004
            raise InvalidInputError(message=f"Unsupported repository URL: {value!r}")
        branch = rest[1]
        path = "/".join(rest[2:])

    repo = project[-1].removesuffix(".git")
    owner = "/".join(project[:-1])
    return RepositoryURL(host=host, owner=owner, repo=repo, branch=branch, path=path)


def clone_repository(url: str, destination: Path, branch: str | None = None) -> Path:
    """Shallow, single-branch `git clone` of `url` into `destination`.

    Args:
        url (str): the clone URL
        destination (Path): an empty directory receiving the checkout
        branch (str | None): the branch to clone; the remote default branch if None

    Raises:
        CloneError: if git is missing or exits with a non-zero status.

    Returns:
        Path: `destination`
    """
    cmd = ["git", "clone", "--depth", "1", "--single-branch"]
    if branch:
        cmd += ["--branch", branch]
    cmd += [url, str(destination)]
    logger.info("Cloning repository", url=url, branch=branch or "(default)")
    try:
        out = subprocess.run(  # noqa: S603
            cmd,
            text=True,
            capture_output=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise CloneError(
            message="git executable not found",
            command=" ".join(cmd),
            returncode=127,
            stderr=f"{e.filename or 'git'}: command not found",
        ) from e
    if out.returncode != 0:
        raise CloneError(
            message="git clone failed",
            command=" ".join(cmd),
            returncode=out.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
        )
    return destination


class ResolvedSource:
    """The root directory to walk, plus the temporary checkout backing it (if any).

    Use as a context manager: a temporary directory created for a remote source is
    removed on exit unless `keep` is set.
    """

    def __init__(self, root: Path, heading: str, tmpdir: Path | None = None, *, keep: bool = False) -> None:
        self.root = root
        self.heading = heading
        self.tmpdir = tmpdir
        self.keep = keep

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        if self.tmpdir is None:
            return
        if self.keep:
            logger.info("Keeping temporary checkout", path=str(self.tmpdir))
            print(f"Temporary checkout kept at {self.tmpdir}")
            return
        shutil.rmtree(self.tmpdir, ignore_errors=True)
        logger.debug("Removed temporary checkout", path=str(self.tmpdir))
        self.tmpdir = None


def _remote_root(checkout: Path, location: RepositoryURL, tmpdir: Path) -> Path:
    root = checkout / location.path if location.path else checkout
    if not root.is_dir():
        shutil.rmtree(tmpdir, ignore_errors=True)
        raise InvalidInputError(message=f"Path {location.path!r} not found in {location.owner}/{location.repo}")
    return root


def resolve_source(settings: Settings) -> ResolvedSource:
    """Turn the source flags of `settings` into a local directory to walk.

    Local directories are used in place. Remote repositories are cloned (or, with
    `use_api`, downloaded through the contents API) into a fresh temporary directory.

    Raises:
        InvalidInputError: no source, a missing local directory or a bad URL.
        CloneError: the clone failed.
        NetworkError: the contents API failed.
    """
    kind = settings.source_kind
    if kind is None:
        raise InvalidInputError(message="Provide a local directory, a GitHub or a GitLab repository.")

    if kind is SourceKind.LOCAL:
        root = Path(settings.local).expanduser().resolve()  # type: ignore[arg-type]
        if not root.is_dir():
            raise InvalidInputError(message=f"Local directory not found: {settings.local}")
        return ResolvedSource(root=root, heading=root.name)

    location = parse_repository_url(settings.remote or "", kind)
    branch = location.branch or settings.branch
    tmpdir = Path(tempfile.mkdtemp(prefix="docs2llms-"))
    try:
        if settings.use_api:
            with GitHubContentsClient(token=settings.github_token) as client:
                client.download_tree(
                    location.model_copy(update={"branch": branch}),
                    tmpdir,
                    skip=settings.traversal_config().skip,
                )
            checkout = tmpdir
        else:
            checkout = clone_repository(location.clone_url, tmpdir / location.repo, branch)
    except BaseException:
        shutil.rmtree(tmpdir, ignore_errors=True)
        raise
    root = _remote_root(checkout, location, tmpdir)
    heading = location.path.rsplit("/", 1)[-1] if location.path else location.repo
    return ResolvedSource(root=root, heading=heading, tmpdir=tmpdir, keep=settings.keep_clone)
