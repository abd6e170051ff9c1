from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from archive_builder.cli import app
from archive_builder.listing import list_entries


def _write_tree(root: Path, files: dict[str, str]) -> Path:
    for rel, text in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
    return root


@pytest.mark.timeout(20)
def test_pack_list_and_verify(tmp_path: Path) -> None:
    src = _write_tree(tmp_path / "src", {"a/b/c.txt": "c", "d.txt": "d"})
    out = tmp_path / "dist" / "app.jar"
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "pack",
            str(out),
            "--fileset",
            str(src),
            "--optional",
            str(tmp_path / "missing"),
            "--dir",
            "conf",
            "--sha256",
        ],
    )
    assert result.exit_code == 0, result.output
    names = [e.name for e in list_entries(out)]
    assert names == ["META-INF/", "a/", "a/b/", "conf/", "a/b/c.txt", "d.txt"]
    assert (tmp_path / "dist" / "app.jar.sha256").exists()

    listed = runner.invoke(app, ["list", str(out)])
    assert listed.exit_code == 0, listed.output
    assert "META-INF/" in listed.output

    verified = runner.invoke(app, ["verify", str(out)])
    assert verified.exit_code == 0, verified.output

    bad = runner.invoke(app, ["verify", str(out), "0" * 64])
    assert bad.exit_code == 1


@pytest.mark.timeout(20)
def test_pack_missing_required_root_fails(tmp_path: Path) -> None:
    out = tmp_path / "app.zip"
    result = CliRunner().invoke(app, ["pack", str(out), "--fileset", str(tmp_path / "nope")])
    assert result.exit_code == 1
    assert "exist" in result.output
    assert not out.exists()


@pytest.mark.timeout(20)
def test_init_then_build(tmp_path: Path) -> None:
    _write_tree(tmp_path / "src", {"pkg/mod.py": "x = 1\n"})
    runner = CliRunner()

    init = runner.invoke(
        app, ["init", str(tmp_path), "--output", "build/pkg.tar.gz", "--format", "tar.gz"]
    )
    assert init.exit_code == 0, init.output
    config = tmp_path / "archive.json"
    assert json.loads(config.read_text(encoding="utf-8"))["fileSets"] == [{"root": "src"}]

    built = runner.invoke(app, ["--verbose", "build", str(config)])
    assert built.exit_code == 0, built.output
    names = [e.name for e in list_entries(tmp_path / "build" / "pkg.tar.gz")]
    assert names == ["pkg/", "pkg/mod.py"]


@pytest.mark.timeout(20)
def test_build_rejects_invalid_config(tmp_path: Path) -> None:
    config = tmp_path / "archive.json"
    config.write_text(json.dumps({"format": "jar"}), encoding="utf-8")
    result = CliRunner().invoke(app, ["build", str(config)])
    assert result.exit_code == 1
    assert "invalid build file" in result.output
