from __future__ import annotations

"""
Unit tests for the Manifest Model.

Verifies:
1. Parsing of JSON and YAML manifests.
2. Structural validation errors.
3. Serialization (omitted empty fields, preserved unknown keys and order).
"""

import json

import pytest
import yaml

from solutionkit.domain.errors import ManifestMalformed, ManifestUnreadable
from solutionkit.domain.manifest import Manifest, find_manifest_file, parse_manifest, read_manifest
from solutionkit.domain.tree_models import FileEncoding


def _json(doc) -> bytes:
    return json.dumps(doc).encode("utf-8")


def test_parse_json_manifest() -> None:
    """TC-01: Verify known fields and object declarations are parsed."""
    m = parse_manifest(_json({
        "manifestVersion": "1.0.0",
        "name": "acme",
        "solutionVersion": "1.2.3",
        "dependencies": ["fmm"],
        "objects": [{"type": "fmm:entity", "objectsDir": "objects/entities"}],
        "types": ["types/a.json"],
    }), "manifest.json")

    assert m.name == "acme"
    assert m.solution_version == "1.2.3"
    assert m.dependencies == ["fmm"]
    assert m.objects[0].type == "fmm:entity"
    assert m.objects[0].objects_dir == "objects/entities"
    assert m.objects[0].objects_file == ""
    assert m.types == ["types/a.json"]
    assert m.manifest_format == FileEncoding.JSON


def test_parse_yaml_manifest() -> None:
    """TC-02: Verify the format follows the file extension."""
    data = yaml.safe_dump({"name": "acme", "solutionVersion": "1.0.0"}).encode("utf-8")
    m = parse_manifest(data, "manifest.yml")

    assert m.name == "acme"
    assert m.manifest_format == FileEncoding.YAML
    assert m.file_name == "manifest.yml"


def test_parse_rejects_invalid_documents() -> None:
    """TC-03: Verify broken syntax and wrong shapes raise ManifestMalformed."""
    with pytest.raises(ManifestMalformed):
        parse_manifest(b"{not json", "manifest.json")
    with pytest.raises(ManifestMalformed):
        parse_manifest(_json(["a", "b"]), "manifest.json")
    with pytest.raises(ManifestMalformed):
        parse_manifest(_json({"name": "a", "objects": "nope"}), "manifest.json")
    with pytest.raises(ManifestMalformed):
        parse_manifest(_json({"name": "a", "types": [1, 2]}), "manifest.json")


def test_to_document_omits_empty_fields_but_keeps_dependencies() -> None:
    """TC-04: Verify optional empty fields are omitted while dependencies stay."""
    m = Manifest(name="acme", solution_version="1.0.0")
    doc = m.to_document()

    assert doc["dependencies"] == []
    assert "description" not in doc
    assert "objects" not in doc
    assert "types" not in doc


def test_round_trip_preserves_unknown_keys_and_order() -> None:
    """TC-05: Verify extra keys survive and the original key order is kept."""
    original = {
        "name": "acme",
        "isSubscribed": True,
        "manifestVersion": "1.0.0",
        "solutionVersion": "1.0.0",
        "dependencies": [],
    }
    m = parse_manifest(_json(original), "manifest.json")
    encoded = json.loads(m.encode().decode("utf-8"))

    assert list(encoded.keys()) == list(original.keys())
    assert encoded["isSubscribed"] is True


def test_encode_json_ends_with_newline() -> None:
    """TC-06: Verify JSON output is indented and newline-terminated."""
    out = Manifest(name="acme").encode()
    assert out.endswith(b"\n")
    assert b'\n  "name": "acme"' in out


def test_read_manifest_from_directory(tmp_path) -> None:
    """TC-07: Verify manifest discovery and the missing-manifest error."""
    with pytest.raises(ManifestUnreadable):
        read_manifest(str(tmp_path))

    (tmp_path / "manifest.yaml").write_text("name: acme\n", encoding="utf-8")
    assert find_manifest_file(str(tmp_path)) == "manifest.yaml"
    assert read_manifest(str(tmp_path)).name == "acme"
