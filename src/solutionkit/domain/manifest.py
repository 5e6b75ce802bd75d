from __future__ import annotations

"""
Solution Manifest Model.

Defines the manifest document (solution identity, dependencies, object and
knowledge-type declarations) together with its reading, parsing and
serialization. Keys the model does not know are carried through untouched,
in their original order.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from solutionkit.domain.constants import JSON_INDENT, MANIFEST_BASENAME, MANIFEST_FILE_NAMES
from solutionkit.domain.errors import (
    EncodeDecodeError,
    ManifestMalformed,
    ManifestUnreadable,
)
from solutionkit.domain.tree_models import FileEncoding
from solutionkit.infra.documents import decode_document, encode_document

# Attribute name -> document key, in canonical output order
_SCALAR_FIELDS: Dict[str, str] = {
    "manifest_version": "manifestVersion",
    "name": "name",
    "solution_version": "solutionVersion",
    "description": "description",
    "contact": "contact",
    "homepage": "homepage",
    "git_repo_url": "gitRepoUrl",
    "readme": "readme",
}
_KNOWN_KEYS = set(_SCALAR_FIELDS.values()) | {"dependencies", "objects", "types"}


# -----------------------------------------------------------------------------
# MODELS
# -----------------------------------------------------------------------------

@dataclass
class ComponentDef:
    """
    Object declaration of the manifest.

    Exactly one of objects_file / objects_dir must be set; this is checked
    when the tree is annotated.
    """
    type: str = ""
    objects_file: str = ""
    objects_dir: str = ""

    @classmethod
    def from_document(cls, doc: Any, index: int, source: str) -> "ComponentDef":
        if not isinstance(doc, dict):
            raise ManifestMalformed(f"objects[{index}] must be a mapping", path=source)
        values = {}
        for key in ("type", "objectsFile", "objectsDir"):
            value = doc.get(key) or ""
            if not isinstance(value, str):
                raise ManifestMalformed(f"objects[{index}].{key} must be a string", path=source)
            values[key] = value
        return cls(type=values["type"], objects_file=values["objectsFile"], objects_dir=values["objectsDir"])

    def to_document(self) -> Dict[str, str]:
        doc: Dict[str, str] = {}
        if self.type:
            doc["type"] = self.type
        if self.objects_file:
            doc["objectsFile"] = self.objects_file
        if self.objects_dir:
            doc["objectsDir"] = self.objects_dir
        return doc


@dataclass
class Manifest:
    """
    Root descriptor of a solution.

    Attributes:
        name: Solution identifier (may carry a pseudo-isolation suffix).
        dependencies: Names of solutions this one depends on.
        objects: Object declarations, in manifest order.
        types: Knowledge-type file paths, in manifest order.
        manifest_format: Encoding used when the manifest is written.
        file_name: Manifest file name the manifest was read from.
        extras: Keys not modelled explicitly, preserved verbatim.
        key_order: Original key order of the manifest document.
    """
    name: str = ""
    manifest_version: str = ""
    solution_version: str = ""
    description: str = ""
    contact: str = ""
    homepage: str = ""
    git_repo_url: str = ""
    readme: str = ""
    dependencies: List[str] = field(default_factory=list)
    objects: List[ComponentDef] = field(default_factory=list)
    types: List[str] = field(default_factory=list)
    manifest_format: FileEncoding = FileEncoding.JSON
    file_name: str = ""
    extras: Dict[str, Any] = field(default_factory=dict)
    key_order: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.file_name:
            self.file_name = f"{MANIFEST_BASENAME}.{self.manifest_format.value}"

    @classmethod
    def from_document(cls, doc: Any, manifest_format: FileEncoding, file_name: str = "") -> "Manifest":
        """
        Build a manifest from a decoded document.

        Raises:
            ManifestMalformed: If the document structure is invalid.
        """
        source = file_name or f"{MANIFEST_BASENAME}.{manifest_format.value}"
        if not isinstance(doc, dict):
            raise ManifestMalformed("manifest must be a mapping at the top level", path=source)

        kwargs: Dict[str, Any] = {}
        for attr, key in _SCALAR_FIELDS.items():
            value = doc.get(key)
            if value is None:
                continue
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                raise ManifestMalformed(f"manifest field {key!r} must be a string", path=source)
            kwargs[attr] = str(value)

        kwargs["dependencies"] = _string_list(doc, "dependencies", source)
        kwargs["types"] = _string_list(doc, "types", source)

        raw_objects = doc.get("objects") or []
        if not isinstance(raw_objects, list):
            raise ManifestMalformed("manifest field 'objects' must be a list", path=source)
        kwargs["objects"] = [ComponentDef.from_document(o, i, source) for i, o in enumerate(raw_objects)]

        return cls(
            manifest_format=manifest_format,
            file_name=file_name,
            extras={k: v for k, v in doc.items() if k not in _KNOWN_KEYS},
            key_order=list(doc.keys()),
            **kwargs,
        )

    def to_document(self) -> Dict[str, Any]:
        """
        Produce the manifest document, omitting empty optional fields.

        The 'dependencies' list is always present. Keys follow the original
        document order; keys new to the document are appended.
        """
        fields: Dict[str, Any] = {}
        for attr, key in _SCALAR_FIELDS.items():
            value = getattr(self, attr)
            if value:
                fields[key] = value
            if key == "solutionVersion":
                fields["dependencies"] = list(self.dependencies)
        if self.objects:
            fields["objects"] = [o.to_document() for o in self.objects]
        if self.types:
            fields["types"] = list(self.types)
        fields.update(self.extras)

        ordered: Dict[str, Any] = {k: fields[k] for k in self.key_order if k in fields}
        for k, v in fields.items():
            ordered.setdefault(k, v)
        return ordered

    def encode(self, indent: int = JSON_INDENT) -> bytes:
        """Serialize the manifest in its own format."""
        return encode_document(self.to_document(), self.manifest_format, self.file_name, indent=indent)


# -----------------------------------------------------------------------------
# READING
# -----------------------------------------------------------------------------

def find_manifest_file(root_path: str) -> Optional[str]:
    """
    Locate the manifest file directly under a solution root.

    Returns:
        Optional[str]: Manifest file name, or None if there is none.
    """
    for name in MANIFEST_FILE_NAMES:
        if os.path.isfile(os.path.join(root_path, name)):
            return name
    return None


def parse_manifest(data: bytes, file_name: str) -> Manifest:
    """
    Parse raw manifest bytes; the format follows the file extension.

    Raises:
        ManifestMalformed: If the bytes cannot be decoded or are invalid.
    """
    manifest_format = FileEncoding.from_file_name(file_name)
    try:
        doc = decode_document(data, manifest_format, file_name)
    except EncodeDecodeError as e:
        raise ManifestMalformed(f"failed to parse solution manifest: {e}", path=file_name) from e
    return Manifest.from_document(doc, manifest_format, file_name)


def read_manifest_bytes(root_path: str) -> tuple[str, bytes]:
    """
    Read the raw manifest of a solution directory.

    Returns:
        tuple[str, bytes]: Manifest file name and its contents.

    Raises:
        ManifestUnreadable: If no manifest exists or it cannot be read.
    """
    file_name = find_manifest_file(root_path)
    if file_name is None:
        raise ManifestUnreadable(f"{root_path!r} is not a solution root: no manifest found", path=root_path)
    full_path = os.path.join(root_path, file_name)
    try:
        with open(full_path, "rb") as f:
            return file_name, f.read()
    except OSError as e:
        raise ManifestUnreadable(f"error reading manifest {full_path!r}: {e}", path=full_path) from e


def read_manifest(root_path: str) -> Manifest:
    """Read and parse the manifest of a solution directory."""
    file_name, data = read_manifest_bytes(root_path)
    return parse_manifest(data, file_name)

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _string_list(doc: Dict[str, Any], key: str, source: str) -> List[str]:
    value = doc.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestMalformed(f"manifest field {key!r} must be a list of strings", path=source)
    return list(value)
