"""Container format contract and resolver.

The builder drives every format through the same small capability set:

- `inject(dirs)` unions any directory the format mandates into the merged
  directory map (keyed by name) and returns the result.
- `open(path)` is a context manager yielding an EntryWriter; the output is
  flushed and closed when the block exits, on success or failure.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol

from archive_builder.types import Directory, FileInfo

DEFAULT_FILE_MODE = 0o644
DEFAULT_DIR_MODE = 0o755


class EntryWriter(Protocol):
    def add_directory(self, directory: Directory) -> None: ...

    def add_file(self, info: FileInfo) -> None: ...


class ArchiveFormat(Protocol):
    name: str

    def inject(self, directories: dict[str, Directory]) -> dict[str, Directory]: ...

    def open(self, path: Path) -> AbstractContextManager[EntryWriter]: ...


_SUFFIXES = {
    ".jar": "jar",
    ".war": "jar",
    ".zip": "zip",
    ".tar": "tar",
    ".tgz": "tar.gz",
    ".tar.gz": "tar.gz",
}


def format_name_for(path: Path | str) -> str:
    """Guess the format name from an output file suffix."""
    name = Path(path).name.lower()
    for suffix in sorted(_SUFFIXES, key=len, reverse=True):
        if name.endswith(suffix):
            return _SUFFIXES[suffix]
    raise ValueError(f"Cannot infer archive format from file name: {path}")


def format_for(name: str) -> ArchiveFormat:
    """Return the ArchiveFormat registered under *name* (jar|zip|tar|tar.gz|tgz)."""
    from .jar import JarFormat
    from .tar import TarFormat
    from .zip import ZipFormat

    key = name.lower()
    if key == "jar":
        return JarFormat()
    if key == "zip":
        return ZipFormat()
    if key == "tar":
        return TarFormat()
    if key in {"tar.gz", "tgz"}:
        return TarFormat(compression="gz")
    raise ValueError(f"Unsupported archive format: {name}")
