from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class OutputFormat(StrEnum):
    """Extensions accepted for the two generated files."""

    TXT = auto()
    MD = auto()
    MDX = auto()
    RST = auto()


class SourceKind(StrEnum):
    """Where the documentation comes from."""

    LOCAL = auto()
    GITHUB = auto()
    GITLAB = auto()


SUPPORTED_EXTENSIONS: tuple[str, ...] = (".md", ".mdx", ".txt", ".rst")

IGNORE_DIRECTORIES = frozenset({"node_modules", ".git", "dist", "build"})

HOSTS: dict[SourceKind, str] = {
    SourceKind.GITHUB: "github.com",
    SourceKind.GITLAB: "gitlab.com",
}

DEFAULT_LLMS_NAME = "llms"
DEFAULT_LLMS_FULL_NAME = "llms-full"
DEFAULT_FORMAT = OutputFormat.TXT
BACKUP_SUFFIX = ".bak"
BYTES_PER_MB = 1024 * 1024


def normalize_extension(ext: str) -> str:
    """Return `ext` lower-cased with exactly one leading dot ("txt" -> ".txt")."""
    ext = ext.strip().lower()
    return "." + ext.lstrip(".") if ext else ""


def megabytes_to_bytes(max_size_mb: float | None) -> int | None:
    """Convert the `--max-size` value (MB, may be fractional) to a byte threshold."""
    if max_size_mb is None:
        return None
    return int(max_size_mb * BYTES_PER_MB)


class MatchedFile(BaseModel):
    """A documentation file selected by the directory walk.

    Attributes:
        rel: Path relative to the traversal root, with POSIX separators.
        path: Absolute path to the file on disk.
        size: File size in bytes at the time of the walk.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    rel: str = Field(..., description="File path relative to the traversal root")
    path: Path = Field(..., description="Absolute file path")
    size: int = Field(default=0, ge=0, description="File size in bytes")

    @computed_field
    @property
    def name(self) -> str:
        """Base name, used as link text in the index."""
        return PurePosixPath(self.rel).name

    @computed_field
    @property
    def folder(self) -> str:
        """Relative parent folder, "." for files sitting at the root."""
        return str(PurePosixPath(self.rel).parent)


class TraversalConfig(BaseModel):
    """Filters applied during one directory walk."""

    model_config = ConfigDict(frozen=True)

    skip: frozenset[str] = Field(default_factory=frozenset, description="Directory names to prune")
    exclude: frozenset[str] = Field(default_factory=frozenset, description="Excluded file suffixes")
    max_size_bytes: int | None = Field(default=None, ge=0, description="None means unbounded")

    @field_validator("exclude", mode="before")
    @classmethod
    def _normalize_exclude(cls, value: object) -> frozenset[str]:
        if isinstance(value, str):
            value = [value]
        return frozenset(normalize_extension(str(v)) for v in value or () if str(v).strip())  # type: ignore[union-attr]

    @field_validator("skip", mode="before")
    @classmethod
    def _normalize_skip(cls, value: object) -> frozenset[str]:
        if isinstance(value, str):
            value = [value]
        return frozenset(str(v).strip().strip("/") for v in value or () if str(v).strip())  # type: ignore[union-attr]


class OutputConfig(BaseModel):
    """Where and how the link index and the full-content dump are written."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    llms_file: str = Field(default=f"{DEFAULT_LLMS_NAME}.{DEFAULT_FORMAT}", description="Link index file name")
    llms_full_file: str = Field(
        default=f"{DEFAULT_LLMS_FULL_NAME}.{DEFAULT_FORMAT}",
        description="Full-content file name",
    )
    output_dir: Path = Field(default=Path(), description="Directory receiving both files")
    backup: bool = Field(default=False, description="Copy existing outputs to *.bak first")
    heading: str = Field(default="", description="Heading line of the link index")

    @computed_field
    @property
    def llms_path(self) -> Path:
        return self.output_dir / self.llms_file

    @computed_field
    @property
    def llms_full_path(self) -> Path:
        return self.output_dir / self.llms_full_file


class RepositoryURL(BaseModel):
    """A parsed GitHub/GitLab location.

    Attributes:
        host: "github.com" or "gitlab.com".
        owner: User, organisation or (GitLab) group path.
        repo: Repository name, without a ".git" suffix.
        branch: Branch named in a `/tree/<branch>` URL, None otherwise.
        path: Sub-path below the repository root ("" for the root).
    """

    model_config = ConfigDict(frozen=True)

    host: str
    owner: str
    repo: str
    branch: str | None = None
    path: str = ""

    @computed_field
    @property
    def clone_url(self) -> str:
        return f"https://{self.host}/{self.owner}/{self.repo}.git"


class AnalysisReport(BaseModel):
    """Aggregate statistics printed by `--analyze`."""

    model_config = ConfigDict(frozen=True)

    file_count: int = Field(default=0, ge=0)
    folder_count: int = Field(default=0, ge=0)
    total_words: int = Field(default=0, ge=0)
    total_bytes: int = Field(default=0, ge=0)

    @computed_field
    @property
    def average_size(self) -> float:
        """Mean file size in bytes, 0.0 when nothing matched."""
        if not self.file_count:
            return 0.0
        return self.total_bytes / self.file_count
