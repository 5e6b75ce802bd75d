from __future__ import annotations

"""
Integration tests for the Fork Engine.

Verifies:
1. Whole-word renaming across every document of the solution.
2. Keys and unmatched files are left untouched.
3. Namespace file rename and transient file removal.
4. Target and name validation, archive sources.
"""

import json
from pathlib import Path

import pytest
import yaml

from solutionkit.core.fork.engine import normalize_solution_name, run_fork
from solutionkit.core.isolation.engine import run_isolation
from solutionkit.domain.errors import InvalidSolutionName
from solutionkit.infra.archive import pack_directory


def _json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def forked(make_solution, isolated_home, tmp_path: Path):
    source = make_solution()
    target = tmp_path / "beta"
    result = run_fork(str(source), str(target), "beta")
    assert result.ok, result.error
    return source, target, result


def test_fork_renames_manifest(forked) -> None:
    """TC-01: Verify name, object types and the namespace file path in the manifest."""
    _, target, result = forked
    manifest = _json(target / "manifest.json")

    assert result.solution_name == "beta"
    assert manifest["name"] == "beta"
    assert manifest["description"] == "Fleet management for acme"
    assert [o["type"] for o in manifest["objects"]] == ["beta:namespace", "fmm:namespace", "beta:widget"]
    assert manifest["objects"][1]["objectsFile"] == "objects/beta.json"
    assert manifest["dependencies"] == ["fmm"]


def test_fork_renames_namespace_file_and_drops_tag(forked) -> None:
    """TC-02: Verify the namespace file follows the new name and '.tag' is removed."""
    _, target, result = forked

    assert (target / "objects" / "beta.json").exists()
    assert not (target / "objects" / "acme.json").exists()
    assert not (target / ".tag").exists()
    assert result.summary["removed_files"] == [".tag"]
    assert result.summary["renamed_files"] == [["objects/acme.json", "objects/beta.json"]]


def test_fork_replaces_whole_words_in_values_only(forked) -> None:
    """TC-03: Verify word boundaries and key immunity across JSON and YAML."""
    _, target, _ = forked

    widget = _json(target / "objects" / "model" / "widgets" / "a.json")
    assert widget["namespace"]["name"] == "beta"
    assert widget["title"] == "acmeplus"

    labels = yaml.safe_load((target / "objects" / "model" / "widgets" / "b.yaml").read_text(encoding="utf-8"))
    assert labels["labels"] == ["x-beta-y", "other"]

    kt = _json(target / "types" / "widget.json")
    assert kt == {"name": "widget", "solution": "beta", "acme": "beta"}


def test_fork_keeps_unknown_and_unmatched_files(forked) -> None:
    """TC-04: Verify files that are not rewritten keep their original bytes."""
    source, target, result = forked

    assert (target / "README.md").read_bytes() == (source / "README.md").read_bytes()
    assert ["README.md", "unknown encoding"] in result.summary["skipped_files"]


def test_fork_untouched_document_bytes(make_solution, isolated_home, tmp_path: Path) -> None:
    """TC-05: Verify a document without matches is copied byte for byte."""
    original = b'{"a":   "other",\n  "b": [1,2]}'
    root = make_solution(manifest={"name": "acme"}, files={"data/x.json": original, "data/y.json": '{"n": "acme"}'})
    target = tmp_path / "beta"

    result = run_fork(str(root), str(target), "beta")

    assert result.ok, result.error
    assert (target / "data" / "x.json").read_bytes() == original
    assert _json(target / "data" / "y.json") == {"n": "beta"}
    assert result.summary["changed_files"] == {"data/y.json": 1}


def test_fork_summary_counts(forked) -> None:
    """TC-06: Verify the replacement statistics."""
    _, _, result = forked
    summary = result.summary

    assert summary["old_name"] == "acme"
    assert summary["new_name"] == "beta"
    assert summary["files_changed"] == 5
    assert summary["replacements"] == 6
    assert summary["warnings"] == []


def test_fork_rejects_non_empty_target(make_solution, isolated_home, tmp_path: Path) -> None:
    """TC-07: Verify a non-empty target directory is refused."""
    target = tmp_path / "busy"
    target.mkdir()
    (target / "x").write_text("x", encoding="utf-8")

    result = run_fork(str(make_solution()), str(target), "beta")
    assert not result.ok
    assert result.error_type == "InvalidTarget"


def test_fork_rejects_invalid_names(make_solution, isolated_home, tmp_path: Path) -> None:
    """TC-08: Verify the naming rules."""
    assert normalize_solution_name(" Beta_2 ") == "beta_2"
    for bad in ("", "2beta", "be-ta", "be ta"):
        with pytest.raises(InvalidSolutionName):
            normalize_solution_name(bad)

    result = run_fork(str(make_solution()), str(tmp_path / "x"), "be-ta")
    assert result.error_type == "InvalidSolutionName"


def test_fork_from_archive(make_solution, isolated_home, tmp_path: Path) -> None:
    """TC-09: Verify archive sources are forked like directories."""
    archive = pack_directory(str(make_solution()), str(tmp_path / "acme.zip"))
    target = tmp_path / "beta"

    result = run_fork(archive, str(target), "beta")

    assert result.ok, result.error
    assert _json(target / "manifest.json")["name"] == "beta"


def test_fork_then_isolate_pseudo_isolated(make_solution, isolated_home, tmp_path: Path) -> None:
    """TC-10: Verify a forked parametric solution still isolates under the new name."""
    root = make_solution(
        manifest={"name": "acme${$toSuffix(env.tag)}", "objects": [
            {"type": "fmm:namespace", "objectsFile": "objects/acme.json"}]},
        files={"objects/acme.json": {"name": "acme", "id": "${sys.solutionId}"}},
    )
    forked_dir = tmp_path / "beta"
    assert run_fork(str(root), str(forked_dir), "beta").ok

    iso_dir = tmp_path / "iso"
    result = run_isolation(str(forked_dir), str(iso_dir), tag="qa")

    assert result.ok, result.error
    assert result.solution_name == "betaqa"
    assert _json(iso_dir / "objects" / "beta.json") == {"name": "beta", "id": "betaqa"}
