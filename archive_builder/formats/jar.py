"""JAR container: a ZIP that always carries a `META-INF/` directory entry."""

from __future__ import annotations

from archive_builder.formats.zip import ZipFormat
from archive_builder.types import Directory

META_INF = "META-INF/"


class JarFormat(ZipFormat):
    name = "jar"

    def inject(self, directories: dict[str, Directory]) -> dict[str, Directory]:
        # Union, not a conflict check: file sets may already ship META-INF/ content.
        merged = dict(directories)
        merged.setdefault(META_INF, Directory(name=META_INF))
        return merged
