from __future__ import annotations

"""
Unit tests for the Structural Renamer.

Verifies:
1. Whole-word replacement inside document values only.
2. Byte preservation of files without matches.
3. Namespace file rename and manifest updates.
4. Pseudo-isolation suffix handling and antipattern warnings.
"""

import json

import pytest
import yaml

from solutionkit.core.fork.renamer import (
    ForkContext,
    compile_identifier_pattern,
    fork_file_contents,
    rename_solution,
    replace_in_values,
    split_pseudo_isolation,
)
from solutionkit.core.tree.model import SolutionTree
from solutionkit.domain.errors import ComponentNotFound, EncodeDecodeError
from solutionkit.domain.tree_models import FileEncoding


@pytest.fixture
def context() -> ForkContext:
    return ForkContext(namespace_object_type="fmm:namespace", tag_file_name=".tag",
                       json_indent=2, archive_skip_levels=1)


def test_identifier_pattern_is_whole_word() -> None:
    """TC-01: Verify word boundaries around the identifier."""
    pattern = compile_identifier_pattern("acme")
    assert pattern.search("acme:widget")
    assert pattern.search("x-acme-y")
    assert not pattern.search("acmeplus")
    assert not pattern.search("myacme")
    assert not pattern.search("acme_ext")


def test_identifier_pattern_boundaries_are_ascii() -> None:
    """TC-01b: Verify non-ASCII letters count as word boundaries."""
    pattern = compile_identifier_pattern("acme")
    assert pattern.sub("corp", "acmeé") == "corpé"
    assert pattern.sub("corp", "éacme") == "écorp"


def test_identifier_pattern_escapes_metacharacters() -> None:
    """TC-02: Verify the identifier is matched literally."""
    pattern = compile_identifier_pattern("a.b")
    assert pattern.search("a.b")
    assert not pattern.search("axb")


def test_replace_in_values_skips_keys() -> None:
    """TC-03: Verify keys are immune while nested values are rewritten."""
    doc = {"acme": "acme", "list": ["acme", 1, None, {"deep": "acme:ns"}], "flag": True}
    out, count = replace_in_values(doc, compile_identifier_pattern("acme"), "beta")

    assert count == 3
    assert out == {"acme": "beta", "list": ["beta", 1, None, {"deep": "beta:ns"}], "flag": True}


def test_fork_file_contents_keeps_bytes_without_match() -> None:
    """TC-04: Verify untouched files keep their exact original formatting."""
    original = b'{"a":   "other",\n"b": 1}'
    out, count = fork_file_contents(original, FileEncoding.JSON, compile_identifier_pattern("acme"),
                                    "beta", "x.json", 2)
    assert out is original
    assert count == 0


def test_fork_file_contents_yaml() -> None:
    """TC-05: Verify YAML files are decoded, rewritten and re-encoded."""
    original = yaml.safe_dump({"name": "acme", "items": ["acme-x"]}).encode("utf-8")
    out, count = fork_file_contents(original, FileEncoding.YAML, compile_identifier_pattern("acme"),
                                    "beta", "x.yaml", 2)
    assert count == 2
    assert yaml.safe_load(out) == {"name": "beta", "items": ["beta-x"]}


def test_fork_file_contents_decode_error() -> None:
    """TC-06: Verify undecodable buffers raise EncodeDecodeError."""
    with pytest.raises(EncodeDecodeError):
        fork_file_contents(b"{broken", FileEncoding.JSON, compile_identifier_pattern("acme"),
                           "beta", "x.json", 2)


def test_split_pseudo_isolation() -> None:
    """TC-07: Verify the suffix is detected and stripped."""
    assert split_pseudo_isolation("acme${$toSuffix(env.tag)}") == ("acme", True)
    assert split_pseudo_isolation("acme") == ("acme", False)


def test_rename_solution_on_sample(make_solution, context: ForkContext) -> None:
    """TC-08: Verify the full rename of the sample tree."""
    tree = SolutionTree.build(str(make_solution()))
    report = rename_solution(tree, "beta", context)

    assert tree.manifest.name == "beta"
    assert [o.type for o in tree.manifest.objects] == ["beta:namespace", "fmm:namespace", "beta:widget"]
    assert tree.manifest.objects[1].objects_file == "objects/beta.json"
    assert report.renamed_files == [("objects/acme.json", "objects/beta.json")]
    assert report.removed_files == [".tag"]

    with pytest.raises(ComponentNotFound):
        tree.get_file(".tag")
    with pytest.raises(ComponentNotFound):
        tree.get_file("objects/acme.json")

    _, kt = tree.get_file("types/widget.json")
    assert json.loads(kt.contents) == {"name": "widget", "solution": "beta", "acme": "beta"}
    _, a = tree.get_file("objects/model/widgets/a.json")
    assert json.loads(a.contents)["title"] == "acmeplus"

    changed = {c.path: c.replacements for c in report.changed_files}
    assert changed["types/widget.json"] == 2
    assert changed["objects/beta.json"] == 1
    assert ("README.md", "unknown encoding") in report.skipped_files
    assert report.warnings == []


def test_rename_preserves_pseudo_isolation_suffix(make_solution, context: ForkContext) -> None:
    """TC-09: Verify a parametric name keeps its suffix after the rename."""
    root = make_solution(
        manifest={"name": "acme${$toSuffix(env.tag)}", "objects": [
            {"type": "fmm:namespace", "objectsFile": "objects/acme.json"}]},
        files={"objects/acme.json": {"name": "acme"}},
    )
    tree = SolutionTree.build(str(root))
    report = rename_solution(tree, "beta", context)

    assert report.old_name == "acme"
    assert tree.manifest.name == "beta${$toSuffix(env.tag)}"
    assert tree.manifest.objects[0].objects_file == "objects/beta.json"


def test_rename_warns_on_identifier_paths(make_solution, context: ForkContext) -> None:
    """TC-10: Verify declared paths embedding the name produce warnings."""
    root = make_solution(
        manifest={"name": "acme", "objects": [{"type": "acme:w", "objectsDir": "objects/acme-things"}]},
        files={"objects/acme-things/a.json": {"v": 1}},
    )
    tree = SolutionTree.build(str(root))
    report = rename_solution(tree, "beta", context)

    assert len(report.warnings) == 1
    assert "objects/acme-things" in report.warnings[0]


def test_rename_wraps_decode_failures(make_solution, context: ForkContext) -> None:
    """TC-11: Verify a malformed document aborts the rename with its path."""
    root = make_solution(manifest={"name": "acme"}, files={"data/bad.json": "{oops"})
    tree = SolutionTree.build(str(root))

    with pytest.raises(EncodeDecodeError) as exc:
        rename_solution(tree, "beta", context)
    assert exc.value.path == "data/bad.json"


def test_rename_reports_status_lines(make_solution) -> None:
    """TC-12: Verify progress lines are sent to the status callback."""
    lines = []
    ctx = ForkContext(namespace_object_type="fmm:namespace", tag_file_name=".tag",
                      json_indent=2, archive_skip_levels=1, status=lines.append)
    rename_solution(SolutionTree.build(str(make_solution())), "beta", ctx)

    assert lines[0] == "Forking 'acme' to 'beta'..."
    assert "Made 2 changes in 'types/widget.json'" in lines
    assert "Made 1 change in 'objects/beta.json'" in lines
