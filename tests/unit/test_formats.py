from __future__ import annotations

import os
import stat
import struct
import tarfile
import zipfile
from datetime import UTC, datetime
from pathlib import Path

import pytest

from archive_builder.formats.base import format_for, format_name_for
from archive_builder.formats.jar import META_INF, JarFormat
from archive_builder.formats.tar import TarFormat
from archive_builder.formats.zip import ZipFormat
from archive_builder.types import Directory, FileInfo

MTIME = 1_600_000_000
ATIME = 1_600_000_500


def _source(tmp_path: Path, mode: int | None = 0o640) -> FileInfo:
    src = tmp_path / "payload.bin"
    src.write_bytes(b"\x00\x01payload" * 100)
    os.utime(src, (ATIME, MTIME))
    return FileInfo(
        relative="lib/payload.bin",
        origin=src,
        size=src.stat().st_size,
        last_modified=datetime.fromtimestamp(MTIME, UTC),
        last_access=datetime.fromtimestamp(ATIME, UTC),
        mode=mode,
    )


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("app.jar", "jar"),
        ("app.war", "jar"),
        ("APP.ZIP", "zip"),
        ("dist.tar", "tar"),
        ("dist.tar.gz", "tar.gz"),
        ("dist.tgz", "tar.gz"),
    ],
)
def test_format_name_for_suffix(file_name: str, expected: str) -> None:
    assert format_name_for(file_name) == expected


def test_unknown_formats_are_rejected() -> None:
    with pytest.raises(ValueError):
        format_name_for("dist.rar")
    with pytest.raises(ValueError):
        format_for("rar")
    with pytest.raises(ValueError):
        TarFormat(compression="bz2")


def test_format_for_names() -> None:
    assert isinstance(format_for("JAR"), JarFormat)
    assert format_for("tgz").name == "tar.gz"
    assert format_for("tar").name == "tar"
    assert format_for("zip").name == "zip"


def test_jar_inject_is_a_union() -> None:
    assert set(JarFormat().inject({})) == {META_INF}

    explicit = Directory(name="META-INF", mode=0o700)
    merged = JarFormat().inject({META_INF: explicit})
    assert merged == {META_INF: explicit}


def test_zip_inject_adds_nothing() -> None:
    dirs = {"a/": Directory(name="a")}
    assert ZipFormat().inject(dirs) == dirs


def test_zip_entries_carry_mode_size_and_times(tmp_path: Path) -> None:
    info = _source(tmp_path)
    out = tmp_path / "out.zip"
    with ZipFormat().open(out) as writer:
        writer.add_directory(Directory(name="lib", mode=0o750))
        writer.add_file(info)

    with zipfile.ZipFile(out) as z:
        d, f = z.infolist()
        assert d.filename == "lib/" and d.is_dir()
        assert stat.S_ISDIR(d.external_attr >> 16)
        assert stat.S_IMODE(d.external_attr >> 16) == 0o750
        assert f.filename == "lib/payload.bin"
        assert f.file_size == info.size
        assert stat.S_IMODE(f.external_attr >> 16) == 0o640
        assert f.compress_type == zipfile.ZIP_DEFLATED
        assert z.read(f) == info.origin.read_bytes()
        header_id, size, flags, mtime, atime = struct.unpack("<HHBLL", f.extra[:13])
        assert (header_id, size, flags) == (0x5455, 9, 0x03)
        assert (mtime, atime) == (MTIME, ATIME)


def test_zip_default_modes(tmp_path: Path) -> None:
    out = tmp_path / "out.zip"
    with ZipFormat().open(out) as writer:
        writer.add_directory(Directory(name="d"))
        writer.add_file(_source(tmp_path, mode=None))

    with zipfile.ZipFile(out) as z:
        d, f = z.infolist()
        assert stat.S_IMODE(d.external_attr >> 16) == 0o755
        assert stat.S_IMODE(f.external_attr >> 16) == 0o644
        assert d.date_time == (1980, 1, 1, 0, 0, 0)


def test_zip_clamps_pre_dos_timestamps(tmp_path: Path) -> None:
    info = _source(tmp_path).model_copy(
        update={"last_modified": datetime(1970, 1, 2, tzinfo=UTC)}
    )
    out = tmp_path / "out.zip"
    with ZipFormat().open(out) as writer:
        writer.add_file(info)
    with zipfile.ZipFile(out) as z:
        assert z.infolist()[0].date_time == (1980, 1, 1, 0, 0, 0)


@pytest.mark.parametrize("compression", [None, "gz"])
def test_tar_entries(tmp_path: Path, compression: str | None) -> None:
    info = _source(tmp_path)
    out = tmp_path / "out.tar"
    with TarFormat(compression).open(out) as writer:
        writer.add_directory(Directory(name="lib", owner="root", group="staff"))
        writer.add_file(info)

    with tarfile.open(out, "r:*") as t:
        d, f = t.getmembers()
        assert d.isdir() and d.name == "lib"
        assert d.mode == 0o755
        assert (d.uname, d.gname) == ("root", "staff")
        assert f.name == "lib/payload.bin"
        assert f.size == info.size
        assert f.mode == 0o640
        assert int(f.mtime) == MTIME
        assert float(f.pax_headers["atime"]) == pytest.approx(ATIME)
        assert t.extractfile(f).read() == info.origin.read_bytes()


def test_tar_gz_output_is_reproducible(tmp_path: Path) -> None:
    info = _source(tmp_path)
    blobs = []
    for name in ("one.tgz", "two.tgz"):
        out = tmp_path / name
        with TarFormat("gz").open(out) as writer:
            writer.add_directory(Directory(name="lib"))
            writer.add_file(info)
        blobs.append(out.read_bytes())
    assert blobs[0] == blobs[1]
