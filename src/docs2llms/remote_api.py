from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import quote

import requests

from docs2llms.config import SUPPORTED_EXTENSIONS, RepositoryURL
from docs2llms.exceptions import NetworkError
from docs2llms.file_manipulation import is_supported_name, skip_directory
from docs2llms.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

API_ROOT = "https://api.github.com"
RAW_ROOT = "https://raw.githubusercontent.com"


class GitHubContentsClient:
    """Minimal client for the GitHub contents API and raw file endpoint.

    Used instead of `git clone` when `--use-api` is given: only the documentation
    files are downloaded, into a directory laid out like the repository.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._timeout = float(timeout_seconds)
        self._headers = {"Accept": "application/vnd.github+json"}
        if token:
            self._headers["Authorization"] = f"token {token}"
        self._session = session or requests.Session()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _get(self, url: str, params: dict[str, str] | None = None) -> requests.Response:
        try:
            resp = self._session.get(url, params=params, headers=self._headers, timeout=self._timeout)
        except requests.RequestException as e:
            raise NetworkError(message="Request failed", url=url, reason=str(e)) from e
        if not resp.ok:
            raise NetworkError(
                message="GitHub request failed",
                url=url,
                status=resp.status_code,
                reason=resp.reason or "",
            )
        return resp

    def list_directory(self, location: RepositoryURL, path: str) -> list[dict[str, Any]]:
        """Return the contents-API entries of `path` (a file path yields a one-item list)."""
        url = f"{API_ROOT}/repos/{location.owner}/{location.repo}/contents/{quote(path)}"
        params = {"ref": location.branch} if location.branch else None
        data = self._get(url, params=params).json()
        return data if isinstance(data, list) else [data]

    def fetch_raw(self, location: RepositoryURL, item: dict[str, Any]) -> bytes:
        url = item.get("download_url") or (
            f"{RAW_ROOT}/{location.owner}/{location.repo}/{location.branch or 'HEAD'}/{quote(item['path'])}"
        )
        return self._get(url).content

    def iter_files(
        self,
        location: RepositoryURL,
        path: str,
        skip: frozenset[str],
    ) -> Iterator[dict[str, Any]]:
        """Depth-first walk of the remote tree, pruned like the local walk."""
        for item in self.list_directory(location, path):
            kind = item.get("type")
            if kind == "dir":
                if not skip_directory(item["name"], skip):
                    yield from self.iter_files(location, item["path"], skip)
            elif kind == "file" and is_supported_name(item["name"], SUPPORTED_EXTENSIONS):
                yield item

    def download_tree(self, location: RepositoryURL, destination: Path, skip: frozenset[str] = frozenset()) -> int:
        """Mirror the documentation files under `location.path` into `destination`.

        Files keep their repository path, so `destination / location.path` is the
        root to walk afterwards.

        Returns:
            int: the number of files downloaded
        """
        if location.path:
            Path(destination, *location.path.split("/")).mkdir(parents=True, exist_ok=True)
        count = 0
        for item in self.iter_files(location, location.path, skip):
            target = Path(destination, *item["path"].split("/"))
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(self.fetch_raw(location, item))
            logger.debug("Downloaded", path=item["path"], size=item.get("size"))
            count += 1
        logger.info("Downloaded documentation files", repo=f"{location.owner}/{location.repo}", files=count)
        return count
