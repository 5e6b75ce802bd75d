from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. A factory that lays out sample solution directories under tmp_path.
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import pytest
import yaml

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Sample Solution
# -----------------------------------------------------------------------------
FileSpec = Union[str, bytes, Dict[str, Any], list]


def sample_manifest(name: str = "acme") -> Dict[str, Any]:
    return {
        "manifestVersion": "1.0.0",
        "name": name,
        "solutionVersion": "1.0.3",
        "dependencies": ["fmm"],
        "description": "Fleet management for acme",
        "objects": [
            {"type": f"{name}:namespace", "objectsFile": "objects/namespace.json"},
            {"type": "fmm:namespace", "objectsFile": f"objects/{name}.json"},
            {"type": f"{name}:widget", "objectsDir": "objects/model/widgets"},
        ],
        "types": ["types/widget.json"],
    }


def sample_files(name: str = "acme") -> Dict[str, FileSpec]:
    return {
        "objects/namespace.json": {"name": name, "isSystem": False},
        f"objects/{name}.json": {"name": name},
        "objects/model/widgets/a.json": {"namespace": {"name": name}, "name": "a", "title": f"{name}plus"},
        "objects/model/widgets/b.yaml": {"name": "b", "labels": [f"x-{name}-y", "other"]},
        "types/widget.json": {"name": "widget", "solution": name, name: name},
        "README.md": f"# {name}\n",
        ".tag": "dev\n",
    }


def write_solution(
        root: Path,
        manifest: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, FileSpec]] = None,
        manifest_name: str = "manifest.json",
) -> Path:
    """Write a manifest and files (dicts are JSON/YAML-encoded by extension)."""
    root.mkdir(parents=True, exist_ok=True)
    if manifest is not None:
        if manifest_name.endswith(".json"):
            (root / manifest_name).write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        else:
            (root / manifest_name).write_text(yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8")

    for rel, spec in (files or {}).items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(spec, bytes):
            path.write_bytes(spec)
        elif isinstance(spec, str):
            path.write_text(spec, encoding="utf-8")
        elif rel.endswith((".yaml", ".yml")):
            path.write_text(yaml.safe_dump(spec, sort_keys=False), encoding="utf-8")
        else:
            path.write_text(json.dumps(spec, indent=2), encoding="utf-8")
    return root


@pytest.fixture
def make_solution(tmp_path: Path) -> Callable[..., Path]:
    """
    Return a factory laying out a solution directory under tmp_path.

    Called without arguments it writes the 'acme' sample solution.
    """
    def _factory(
            dir_name: str = "acme",
            manifest: Optional[Dict[str, Any]] = None,
            files: Optional[Dict[str, FileSpec]] = None,
            manifest_name: str = "manifest.json",
    ) -> Path:
        if manifest is None and files is None:
            manifest, files = sample_manifest(), sample_files()
        return write_solution(tmp_path / dir_name, manifest, files, manifest_name)

    return _factory


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect the user data directory into tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("SOLUTIONKIT_SOLUTION_TAG", raising=False)
    return home
