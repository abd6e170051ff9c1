"""Archive builder: accumulate file sets and directories, then write once.

Resolution rules on `build()`:
- Files are keyed by relative path; the last registered file set wins.
- Directories are keyed by name; explicit `directory()` registrations win over
  directories derived from file paths, and a later explicit registration wins
  over an earlier one.
- The format's fixed directories are unioned in (JAR: `META-INF/`).
- Directories are written first, sorted by name, then files sorted by path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from archive_builder.fileset import FileSet
from archive_builder.formats.base import ArchiveFormat, format_for, format_name_for
from archive_builder.formats.jar import JarFormat
from archive_builder.formats.tar import TarFormat
from archive_builder.formats.zip import ZipFormat
from archive_builder.logging import get_logger
from archive_builder.types import Directory, FileInfo

log = get_logger(__name__)


@dataclass(frozen=True)
class _Registration:
    file_set: FileSet
    optional: bool


class ArchiveBuilder:
    def __init__(self, file: str | Path, archive_format: ArchiveFormat | None = None) -> None:
        self.file = Path(file)
        self.archive_format: ArchiveFormat = archive_format or ZipFormat()
        self.directories: list[Directory] = []
        self.file_sets: list[_Registration] = []

    # --- registration -------------------------------------------------------

    def file_set(self, file_set: FileSet | str | Path, **options) -> ArchiveBuilder:
        """Register a required file set; fails now if its root is missing or a file."""
        fs = file_set if isinstance(file_set, FileSet) else FileSet(Path(file_set), **options)
        fs.check()
        self.file_sets.append(_Registration(fs, optional=False))
        return self

    def optional_file_set(self, file_set: FileSet | str | Path, **options) -> ArchiveBuilder:
        """Register a file set whose root may be absent. A root that is a file still fails."""
        fs = file_set if isinstance(file_set, FileSet) else FileSet(Path(file_set), **options)
        if fs.check(optional=True):
            self.file_sets.append(_Registration(fs, optional=True))
        else:
            log.debug("Skipping optional file set", extra={"context": {"root": str(fs.root)}})
        return self

    def directory(
        self,
        directory: Directory | str | Path,
        mode: int | None = None,
        owner: str | None = None,
        group: str | None = None,
        last_modified: datetime | None = None,
    ) -> ArchiveBuilder:
        if not isinstance(directory, Directory):
            directory = Directory(
                name=str(directory), mode=mode, owner=owner, group=group, last_modified=last_modified
            )
        self.directories.append(directory)
        return self

    # --- build --------------------------------------------------------------

    def resolve(self) -> tuple[list[Directory], list[FileInfo]]:
        """Expand every file set and return the sorted, de-duplicated entries."""
        derived: dict[str, Directory] = {}
        files: dict[str, FileInfo] = {}
        for reg in self.file_sets:
            # Roots are re-checked: they may have changed since registration
            if not reg.file_set.check(optional=reg.optional):
                log.debug(
                    "Optional file set vanished before build",
                    extra={"context": {"root": str(reg.file_set.root)}},
                )
                continue
            infos, dirs = reg.file_set.expand()
            for info in infos:
                files[info.relative] = info
            for d in dirs:
                derived.setdefault(d.name, d)

        directories = dict(derived)
        for d in self.directories:
            directories[d.name] = d
        directories = self.archive_format.inject(directories)

        return (
            sorted(directories.values(), key=lambda d: d.name),
            sorted(files.values(), key=lambda f: f.relative),
        )

    def build(self) -> int:
        """Write the archive and return the number of entries written.

        Any prior file at the target path is deleted first. If the build fails
        after the output was opened, the partial file is removed as well.
        """
        if self.file.exists() or self.file.is_symlink():
            self.file.unlink()
        self.file.parent.mkdir(parents=True, exist_ok=True)

        directories, files = self.resolve()

        count = 0
        try:
            with self.archive_format.open(self.file) as writer:
                for d in directories:
                    writer.add_directory(d)
                    count += 1
                for f in files:
                    writer.add_file(f)
                    count += 1
        except BaseException:
            log.error(
                "Archive build failed",
                extra={"context": {"file": str(self.file), "written": count}},
            )
            self.file.unlink(missing_ok=True)
            raise

        log.info(
            "Archive built",
            extra={
                "context": {
                    "file": str(self.file),
                    "format": self.archive_format.name,
                    "directories": len(directories),
                    "files": len(files),
                }
            },
        )
        return count


class JarBuilder(ArchiveBuilder):
    def __init__(self, file: str | Path) -> None:
        super().__init__(file, JarFormat())


class ZipBuilder(ArchiveBuilder):
    def __init__(self, file: str | Path) -> None:
        super().__init__(file, ZipFormat())


class TarBuilder(ArchiveBuilder):
    def __init__(self, file: str | Path, compression: str | None = None) -> None:
        if compression is None and _infer_format(file) == "tar.gz":
            compression = "gz"
        super().__init__(file, TarFormat(compression))


def _infer_format(file: str | Path) -> str | None:
    try:
        return format_name_for(file)
    except ValueError:
        return None


def builder_for(output: str | Path, format_name: str | None = None) -> ArchiveBuilder:
    """Return a builder for *output*, inferring the format from its suffix if needed."""
    name = format_name or format_name_for(output)
    return ArchiveBuilder(output, format_for(name))

