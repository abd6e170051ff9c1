"""ZIP container writer.

- Directories are stored, files deflated.
- Unix mode lives in the high 16 bits of `external_attr`.
- The DOS timestamp is the file's last-modified time (local time, clamped to
  1980-01-01, the earliest a DOS date can express). The Info-ZIP extended
  timestamp field (0x5455) carries exact mtime and atime in UTC seconds.
"""

from __future__ import annotations

import shutil
import stat
import struct
import time
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from archive_builder.formats.base import DEFAULT_DIR_MODE, DEFAULT_FILE_MODE
from archive_builder.types import Directory, FileInfo

_DOS_EPOCH = (1980, 1, 1, 0, 0, 0)
_EXT_TIMESTAMP = 0x5455
_MSDOS_DIRECTORY = 0x10


def _dos_time(ts: datetime | None) -> tuple[int, int, int, int, int, int]:
    if ts is None:
        return _DOS_EPOCH
    dt = time.localtime(ts.timestamp())[:6]
    return dt if dt >= _DOS_EPOCH else _DOS_EPOCH


def _unix_seconds(ts: datetime) -> int:
    return min(max(int(ts.timestamp()), 0), 0xFFFFFFFF)


def _extended_timestamp(mtime: datetime, atime: datetime | None = None) -> bytes:
    if atime is None:
        return struct.pack("<HHBL", _EXT_TIMESTAMP, 5, 0x01, _unix_seconds(mtime))
    return struct.pack(
        "<HHBLL", _EXT_TIMESTAMP, 9, 0x03, _unix_seconds(mtime), _unix_seconds(atime)
    )


class ZipEntryWriter:
    def __init__(self, zf: zipfile.ZipFile) -> None:
        self._zf = zf

    def add_directory(self, directory: Directory) -> None:
        zinfo = zipfile.ZipInfo(directory.name, date_time=_dos_time(directory.last_modified))
        mode = directory.mode if directory.mode is not None else DEFAULT_DIR_MODE
        zinfo.external_attr = ((stat.S_IFDIR | mode) << 16) | _MSDOS_DIRECTORY
        zinfo.compress_type = zipfile.ZIP_STORED
        if directory.last_modified is not None:
            zinfo.extra = _extended_timestamp(directory.last_modified)
        self._zf.writestr(zinfo, b"")

    def add_file(self, info: FileInfo) -> None:
        zinfo = zipfile.ZipInfo(info.relative, date_time=_dos_time(info.last_modified))
        mode = info.mode if info.mode is not None else DEFAULT_FILE_MODE
        zinfo.external_attr = (stat.S_IFREG | mode) << 16
        zinfo.compress_type = zipfile.ZIP_DEFLATED
        zinfo.file_size = info.size
        zinfo.extra = _extended_timestamp(info.last_modified, info.last_access)
        with (
            open(info.origin, "rb") as src,
            self._zf.open(zinfo, "w", force_zip64=info.size > zipfile.ZIP64_LIMIT) as dst,
        ):
            shutil.copyfileobj(src, dst, 1024 * 1024)


class ZipFormat:
    name = "zip"

    def inject(self, directories: dict[str, Directory]) -> dict[str, Directory]:
        return dict(directories)

    @contextmanager
    def open(self, path: Path) -> Iterator[ZipEntryWriter]:
        with zipfile.ZipFile(path, "w") as zf:
            yield ZipEntryWriter(zf)
