"""Integrity helpers: SHA-256 of built archives and `.sha256` sidecars."""

from __future__ import annotations

import hashlib
from pathlib import Path


def sha256(path: Path) -> str:
    """Return the hex SHA-256 of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def sidecar_path(archive: Path) -> Path:
    return archive.with_name(archive.name + ".sha256")


def write_sidecar(archive: Path) -> Path:
    """Write `<archive>.sha256` holding the archive's hex digest and return its path."""
    target = sidecar_path(archive)
    target.write_text(sha256(archive), encoding="utf-8")
    return target


def _normalize_expected(expected: str) -> str:
    exp = expected.strip().lower()
    return exp.removeprefix("sha256:")


def verify_sha256(path: Path, expected: str) -> None:
    """Raise ValueError if *path*'s sha256 does not match *expected* (hex or `sha256:<hex>`)."""
    got = sha256(path)
    exp = _normalize_expected(expected)
    if got != exp:
        raise ValueError(f"SHA-256 mismatch for {path}: got {got}, expected {exp}")


def verify_sidecar(archive: Path) -> None:
    side = sidecar_path(archive)
    if not side.exists():
        raise FileNotFoundError(f"Missing digest file: {side}")
    verify_sha256(archive, side.read_text(encoding="utf-8"))
