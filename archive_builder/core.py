"""Build orchestration: build file → builder → archive (+ optional digest)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from archive_builder.builder import ArchiveBuilder, builder_for
from archive_builder.digest import write_sidecar
from archive_builder.fileset import FileSet
from archive_builder.types import ArchiveSpec, Directory
from archive_builder.validator import load_spec


@dataclass
class BuildReport:
    path: Path
    format: str
    entries: int
    digest_path: Path | None = None


def _resolve(base_dir: Path, value: str) -> Path:
    p = Path(value)
    return p if p.is_absolute() else base_dir / p


def builder_from_spec(spec: ArchiveSpec, base_dir: Path) -> ArchiveBuilder:
    builder = builder_for(_resolve(base_dir, spec.output), spec.format)
    for fs in spec.fileSets:
        file_set = FileSet(
            _resolve(base_dir, fs.root),
            prefix=fs.prefix,
            includes=tuple(fs.includes),
            excludes=tuple(fs.excludes),
            mode=fs.mode,
        )
        if fs.optional:
            builder.optional_file_set(file_set)
        else:
            builder.file_set(file_set)
    for d in spec.directories:
        builder.directory(Directory(name=d.name, mode=d.mode, owner=d.owner, group=d.group))
    return builder


def build_from_spec(spec: ArchiveSpec, base_dir: Path) -> BuildReport:
    """Build the archive described by *spec*; relative paths resolve against *base_dir*."""
    builder = builder_from_spec(spec, base_dir)
    count = builder.build()
    digest_path = write_sidecar(builder.file) if spec.digest else None
    return BuildReport(
        path=builder.file,
        format=builder.archive_format.name,
        entries=count,
        digest_path=digest_path,
    )


def build_from_file(config: Path) -> BuildReport:
    config = Path(config)
    return build_from_spec(load_spec(config), config.resolve().parent)
