"""Shared Pydantic models: archive entries and build configuration."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_relative(path: str) -> str:
    """Return *path* as a slash-separated, archive-relative name.

    Backslashes become forward slashes, and leading `./` or `/` segments are
    dropped. `..` segments are rejected since they would escape the archive root.
    """
    parts = [p for p in path.replace("\\", "/").split("/") if p not in {"", "."}]
    if ".." in parts:
        raise ValueError(f"Relative path must not contain '..': {path!r}")
    return "/".join(parts)


def parse_mode(value: int | str | None) -> int | None:
    if value is None or isinstance(value, int):
        return value
    text = value.strip().lower()
    if text.startswith("0o"):
        text = text[2:]
    return int(text, 8)


class FileInfo(BaseModel):
    """One source file and its identity inside the archive.

    Attributes
    ----------
    relative: str
        Archive-internal path (slash separated, never a leading `/`).
    origin: Path
        Filesystem location the bytes are copied from.
    size: int
        Size in bytes.
    last_modified / last_access: datetime
        Source timestamps.
    mode: int | None
        POSIX permission bits; None means "use the format default".
    """

    model_config = ConfigDict(frozen=True)

    relative: str
    origin: Path
    size: int = Field(ge=0)
    last_modified: datetime
    last_access: datetime
    mode: int | None = None

    @field_validator("relative")
    @classmethod
    def _normalize(cls, v: str) -> str:
        rel = normalize_relative(v)
        if not rel or v.replace("\\", "/").endswith("/"):
            raise ValueError(f"File path must name a file: {v!r}")
        return rel

    def __lt__(self, other: FileInfo) -> bool:
        return self.relative < other.relative


class Directory(BaseModel):
    """A directory entry to materialize in the archive.

    Names always end with `/`. Owner and group are only honoured by
    formats that store them (tar).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    mode: int | None = None
    owner: str | None = None
    group: str | None = None
    last_modified: datetime | None = None

    @field_validator("name")
    @classmethod
    def _normalize(cls, v: str) -> str:
        rel = normalize_relative(v)
        if not rel:
            raise ValueError(f"Directory name must not be empty: {v!r}")
        return rel + "/"

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, v: int | str | None) -> int | None:
        return parse_mode(v)

    def __lt__(self, other: Directory) -> bool:
        return self.name < other.name


# --- Build configuration (archive.json) ------------------------------------


class FileSetModel(BaseModel):
    root: str
    prefix: str = ""
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    mode: int | None = None
    optional: bool = False

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, v: int | str | None) -> int | None:
        return parse_mode(v)


class DirectoryModel(BaseModel):
    name: str
    mode: int | None = None
    owner: str | None = None
    group: str | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, v: int | str | None) -> int | None:
        return parse_mode(v)


class ArchiveSpec(BaseModel):
    output: str
    format: Literal["jar", "zip", "tar", "tar.gz", "tgz"] | None = None
    fileSets: list[FileSetModel] = Field(default_factory=list)
    directories: list[DirectoryModel] = Field(default_factory=list)
    digest: bool = False
