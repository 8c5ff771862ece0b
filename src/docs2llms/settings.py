from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from docs2llms.config import (
    DEFAULT_FORMAT,
    DEFAULT_LLMS_FULL_NAME,
    DEFAULT_LLMS_NAME,
    OutputConfig,
    OutputFormat,
    SourceKind,
    TraversalConfig,
    megabytes_to_bytes,
)
from docs2llms.exceptions import InvalidInputError

ENV_FILE = find_dotenv(usecwd=True)
TOKEN_ENV_VAR = "GITHUB_TOKEN"

MODE_FLAGS = ("preview", "interactive", "summary", "analyze")


def load_environment(env_file: str | None = None) -> None:
    """Load a `.env` file (without overriding variables already exported)."""
    path = env_file if env_file is not None else ENV_FILE
    if path:
        load_dotenv(path, override=False)


def split_list(values: Any) -> list[str]:  # noqa: ANN401
    """Flatten `["a,b", "c"]` (or `"a, b c"`) into `["a", "b", "c"]`."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    out: list[str] = []
    for v in values:
        out.extend(part for part in str(v).replace(",", " ").split() if part)
    return out


def with_format(name: str, fmt: str) -> str:
    """Attach `fmt` to an output base name, replacing a known format suffix."""
    stem, dot, suffix = name.rpartition(".")
    if dot and suffix.lower() in {f.value for f in OutputFormat}:
        name = stem
    return f"{name}.{fmt}"


class Settings(BaseModel):
    """Configuration record for one docs2llms run."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, extra="forbid")

    local: Path | None = Field(default=None, description="Local directory to scan.")
    github: str | None = Field(default=None, description="GitHub owner/repo or URL.")
    gitlab: str | None = Field(default=None, description="GitLab owner/repo or URL.")
    branch: str | None = Field(default=None, description="Branch to clone (remote default if unset).")

    llms: str = Field(default=DEFAULT_LLMS_NAME, description="Link index base name.")
    llms_full: str = Field(default=DEFAULT_LLMS_FULL_NAME, description="Full-content base name.")
    format: OutputFormat = Field(default=DEFAULT_FORMAT, description="Output file extension.")
    output_dir: Path = Field(default=Path(), description="Output directory.")

    skip: list[str] = Field(default_factory=list, description="Directory names to skip.")
    exclude: list[str] = Field(default_factory=list, description="File extensions to exclude.")
    max_size: float | None = Field(default=None, ge=0, allow_inf_nan=False, description="Maximum file size in MB.")

    preview: bool = Field(default=False, description="Preview matched files before writing.")
    interactive: bool = Field(default=False, description="Confirm each file before writing.")
    summary: bool = Field(default=False, description="List matched files after writing.")
    analyze: bool = Field(default=False, description="Print statistics and exit.")
    backup: bool = Field(default=False, description="Back up existing outputs to *.bak.")

    keep_clone: bool = Field(default=False, description="Leave the temporary clone on disk.")
    use_api: bool = Field(default=False, description="Fetch through the GitHub contents API.")
    verbose: bool = Field(default=False, description="Log every matched file.")
    log_file: str = Field(default="", description="Log file path.")
    github_token: str | None = Field(
        default_factory=lambda: os.environ.get(TOKEN_ENV_VAR) or None,
        repr=False,
        description="Token raising the GitHub API rate limit.",
    )

    @field_validator("skip", "exclude", mode="before")
    @classmethod
    def _split_lists(cls, value: Any) -> list[str]:  # noqa: ANN401
        return split_list(value)

    @field_validator("format", mode="before")
    @classmethod
    def _strip_format_dot(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, str):
            return value.strip().lstrip(".").lower()
        return value

    @model_validator(mode="after")
    def _check_exclusive(self) -> Settings:
        sources = [name for name in ("local", "github", "gitlab") if getattr(self, name)]
        if len(sources) > 1:
            msg = f"Only one source may be given, got: {', '.join(sources)}"
            raise ValueError(msg)
        modes = [name for name in MODE_FLAGS if getattr(self, name)]
        if len(modes) > 1:
            msg = f"Options cannot be combined: {', '.join('--' + m for m in modes)}"
            raise ValueError(msg)
        if self.use_api and not self.github:
            msg = "--use-api is only available for GitHub sources"
            raise ValueError(msg)
        return self

    @property
    def source_kind(self) -> SourceKind | None:
        if self.local:
            return SourceKind.LOCAL
        if self.github:
            return SourceKind.GITHUB
        if self.gitlab:
            return SourceKind.GITLAB
        return None

    @property
    def remote(self) -> str | None:
        return self.github or self.gitlab

    @property
    def llms_file(self) -> str:
        return with_format(self.llms, self.format)

    @property
    def llms_full_file(self) -> str:
        return with_format(self.llms_full, self.format)

    def traversal_config(self) -> TraversalConfig:
        return TraversalConfig(
            skip=self.skip,
            exclude=self.exclude,
            max_size_bytes=megabytes_to_bytes(self.max_size),
        )

    def output_config(self, heading: str = "") -> OutputConfig:
        return OutputConfig(
            llms_file=self.llms_file,
            llms_full_file=self.llms_full_file,
            output_dir=self.output_dir,
            backup=self.backup,
            heading=heading,
        )


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping of `Settings` fields (dashes in keys are accepted)."""
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise InvalidInputError(message=f"Cannot read config file {p}: {e.strerror}") from e
    except yaml.YAMLError as e:
        raise InvalidInputError(message=f"Invalid YAML in config file {p}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidInputError(message=f"Config file {p} must contain a mapping")
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def build_settings(cli_values: dict[str, Any], config_file: str | Path | None = None) -> Settings:
    """Merge config file values with explicitly given CLI values (CLI wins)."""
    merged: dict[str, Any] = load_config_file(config_file) if config_file else {}
    merged.update({k: v for k, v in cli_values.items() if v is not None})
    try:
        return Settings(**merged)
    except ValidationError as e:
        details = "; ".join(f"{'.'.join(map(str, err['loc'])) or 'settings'}: {err['msg']}" for err in e.errors())
        raise InvalidInputError(message=f"Invalid configuration: {details}") from e
