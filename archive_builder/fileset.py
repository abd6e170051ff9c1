"""File sets: a root directory plus selection rules.

A file set expands to the FileInfo of every selected file under its root and
to the Directory entries implied by those files' relative paths
(`a/b/c.txt` implies `a/` and `a/b/`).

Selection uses `fnmatch` patterns against the root-relative path, where `*`
also matches `/`. Includes default to "everything"; excludes win.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from datetime import UTC, datetime
from fnmatch import fnmatchcase
from pathlib import Path

from archive_builder.types import Directory, FileInfo, normalize_relative


class FileSetError(OSError):
    """A file-set root is missing or is not a directory."""


def _raise(error: OSError) -> None:
    raise error


@dataclass(frozen=True)
class FileSet:
    root: Path
    prefix: str = ""
    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    mode: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root))
        object.__setattr__(self, "prefix", normalize_relative(self.prefix))
        object.__setattr__(self, "includes", tuple(self.includes))
        object.__setattr__(self, "excludes", tuple(self.excludes))

    def check(self, optional: bool = False) -> bool:
        """Return True if the root can be expanded.

        Raises FileSetError when the root exists but is not a directory, or when
        it is missing and the set is required. A missing optional root returns False.
        """
        if self.root.is_file():
            raise FileSetError(f"The file set root [{self.root}] is a file and must be a directory")
        if not self.root.exists():
            if optional:
                return False
            raise FileSetError(f"The file set root [{self.root}] does not exist")
        if not self.root.is_dir():
            raise FileSetError(f"The file set root [{self.root}] is not a directory")
        return True

    def _selected(self, rel: str) -> bool:
        if self.includes and not any(fnmatchcase(rel, p) for p in self.includes):
            return False
        return not any(fnmatchcase(rel, p) for p in self.excludes)

    def _archive_path(self, rel: str) -> str:
        return f"{self.prefix}/{rel}" if self.prefix else rel

    def to_file_infos(self) -> list[FileInfo]:
        self.check()
        infos: list[FileInfo] = []
        for dirpath, dirnames, filenames in os.walk(self.root, onerror=_raise):
            dirnames.sort()
            base = Path(dirpath)
            for name in sorted(filenames):
                path = base / name
                if not path.is_file():
                    continue  # dangling symlinks, sockets, fifos
                rel = path.relative_to(self.root).as_posix()
                if not self._selected(rel):
                    continue
                st = path.stat()
                infos.append(
                    FileInfo(
                        relative=self._archive_path(rel),
                        origin=path,
                        size=st.st_size,
                        last_modified=datetime.fromtimestamp(st.st_mtime, UTC),
                        last_access=datetime.fromtimestamp(st.st_atime, UTC),
                        mode=self.mode if self.mode is not None else stat.S_IMODE(st.st_mode),
                    )
                )
        return infos

    def to_directories(self, infos: list[FileInfo] | None = None) -> set[Directory]:
        if infos is None:
            infos = self.to_file_infos()
        names: set[str] = set()
        for info in infos:
            parts = info.relative.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                names.add("/".join(parts[:i]))
        return {Directory(name=n) for n in names}

    def expand(self) -> tuple[list[FileInfo], set[Directory]]:
        infos = self.to_file_infos()
        return infos, self.to_directories(infos)
