"""Read back built archives: list entries in stored order, read one member.

Works for ZIP/JAR and TAR (plain or compressed). Directory names are
reported with a trailing `/` for both container families.
"""

from __future__ import annotations

import stat
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    is_dir: bool
    size: int
    mode: int


def _zip_entries(path: Path) -> list[ArchiveEntry]:
    with zipfile.ZipFile(path) as z:
        return [
            ArchiveEntry(
                name=m.filename,
                is_dir=m.is_dir(),
                size=m.file_size,
                mode=stat.S_IMODE(m.external_attr >> 16),
            )
            for m in z.infolist()
        ]


def _tar_entries(path: Path) -> list[ArchiveEntry]:
    with tarfile.open(path, "r:*") as t:
        return [
            ArchiveEntry(
                name=m.name + "/" if m.isdir() else m.name,
                is_dir=m.isdir(),
                size=m.size,
                mode=m.mode,
            )
            for m in t.getmembers()
        ]


def list_entries(path: Path) -> list[ArchiveEntry]:
    path = Path(path)
    if zipfile.is_zipfile(path):
        return _zip_entries(path)
    if tarfile.is_tarfile(path):
        return _tar_entries(path)
    raise ValueError(f"Not a zip or tar archive: {path}")


def read_entry(path: Path, name: str) -> bytes:
    """Return the bytes of file member *name*; KeyError if it is absent."""
    path = Path(path)
    if zipfile.is_zipfile(path):
        with zipfile.ZipFile(path) as z:
            return z.read(name)
    if tarfile.is_tarfile(path):
        with tarfile.open(path, "r:*") as t:
            member = t.extractfile(name)
            if member is None:
                raise KeyError(f"Not a regular file member: {name}")
            return member.read()
    raise ValueError(f"Not a zip or tar archive: {path}")
