"""TAR container writer (PAX format, optional gzip).

Directory owner/group are written as uname/gname with uid/gid 0. Files carry
no ownership. Access time goes into the PAX `atime` record. For `tar.gz` the
gzip header mtime is pinned to 0 so repeated builds compress identically.
"""

from __future__ import annotations

import gzip
import tarfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from archive_builder.formats.base import DEFAULT_DIR_MODE, DEFAULT_FILE_MODE
from archive_builder.types import Directory, FileInfo


class TarEntryWriter:
    def __init__(self, tf: tarfile.TarFile) -> None:
        self._tf = tf

    def add_directory(self, directory: Directory) -> None:
        ti = tarfile.TarInfo(directory.name.rstrip("/"))
        ti.type = tarfile.DIRTYPE
        ti.mode = directory.mode if directory.mode is not None else DEFAULT_DIR_MODE
        ti.mtime = int(directory.last_modified.timestamp()) if directory.last_modified else 0
        ti.uname = directory.owner or ""
        ti.gname = directory.group or ""
        self._tf.addfile(ti)

    def add_file(self, info: FileInfo) -> None:
        ti = tarfile.TarInfo(info.relative)
        ti.size = info.size
        ti.mode = info.mode if info.mode is not None else DEFAULT_FILE_MODE
        ti.mtime = info.last_modified.timestamp()
        ti.pax_headers = {"atime": f"{info.last_access.timestamp():.6f}"}
        with open(info.origin, "rb") as src:
            self._tf.addfile(ti, src)


class TarFormat:
    def __init__(self, compression: str | None = None) -> None:
        if compression not in {None, "gz"}:
            raise ValueError(f"Unsupported tar compression: {compression}")
        self.compression = compression
        self.name = "tar.gz" if compression else "tar"

    def inject(self, directories: dict[str, Directory]) -> dict[str, Directory]:
        return dict(directories)

    @contextmanager
    def open(self, path: Path) -> Iterator[TarEntryWriter]:
        with open(path, "wb") as raw:
            if self.compression == "gz":
                with (
                    gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz,
                    tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tf,
                ):
                    yield TarEntryWriter(tf)
            else:
                with tarfile.open(fileobj=raw, mode="w", format=tarfile.PAX_FORMAT) as tf:
                    yield TarEntryWriter(tf)
