"""Build-file validation and scaffold helpers."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from jsonschema import Draft202012Validator

from archive_builder.types import ArchiveSpec

# --- Schema loaders ---------------------------------------------------------


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _archive_schema() -> dict:
    return _load_schema("archive_builder.schema", "archive.schema.json")


# --- Public validators ------------------------------------------------------


def validate_archive_config(data: dict) -> None:
    Draft202012Validator(_archive_schema()).validate(data)


def load_spec(path: Path) -> ArchiveSpec:
    """Read, schema-check and parse a JSON build file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    validate_archive_config(data)
    return ArchiveSpec.model_validate(data)


# --- Scaffolds --------------------------------------------------------------


def write_scaffold(path: Path, output: str, fmt: str, roots: list[str]) -> Path:
    """Write a minimal `archive.json` into *path* and return its location.

    The generated file is validated against the schema before it is written.
    """
    path.mkdir(parents=True, exist_ok=True)
    config = {
        "output": output,
        "format": fmt,
        "fileSets": [{"root": r} for r in roots],
        "directories": [],
        "digest": False,
    }
    validate_archive_config(config)
    target = path / "archive.json"
    target.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return target
