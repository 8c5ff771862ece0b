from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Docs2LlmsError(Exception):
    """Base exception for errors in the docs2llms package."""

    message: str = "docs2llms failed."

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class InvalidInputError(Docs2LlmsError):
    """Raised when the source, a repository URL or a config file is unusable."""


@dataclass(frozen=True)
class CloneError(Docs2LlmsError):
    """Raised when `git clone` exits with a non-zero status."""

    command: str = ""
    returncode: int = 1
    stdout: str = ""
    stderr: str = ""

    def __str__(self) -> str:
        return f"Git clone failed ({self.returncode}): {self.stderr.strip() or self.message}"


@dataclass(frozen=True)
class FileSystemError(Docs2LlmsError):
    """Raised when reading, copying or writing a file fails."""

    path: Path | None = None

    def __str__(self) -> str:
        return f"{self.message} ({self.path})" if self.path else self.message


@dataclass(frozen=True)
class NetworkError(Docs2LlmsError):
    """Raised when the repository hosting API answers with an error."""

    url: str = ""
    status: int | None = None
    reason: str = ""

    def __str__(self) -> str:
        status = f"{self.status} {self.reason}".strip() if self.status else self.reason
        return f"{self.message}: {status} ({self.url})"
