from __future__ import annotations

"""
Structured Document Codec.

Decodes JSON/YAML file buffers into generic document trees (dict/list/scalar)
and encodes them back. Mappings keep their insertion order in both directions
so that re-encoded files differ from the originals only where values changed.
"""

import json
from typing import Any

import yaml

from solutionkit.domain.constants import JSON_INDENT
from solutionkit.domain.errors import EncodeDecodeError, UnsupportedEncoding
from solutionkit.domain.tree_models import FileEncoding

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def decode_document(data: bytes, encoding: FileEncoding, source: str = "") -> Any:
    """
    Decode a raw buffer into a generic document.

    Args:
        data: Raw file contents.
        encoding: Declared encoding of the buffer.
        source: Root-relative path used in error messages.

    Returns:
        Any: Decoded document (dict, list or scalar).

    Raises:
        UnsupportedEncoding: If the encoding is not JSON or YAML.
        EncodeDecodeError: If the buffer is not a valid document.
    """
    try:
        text = data.decode("utf-8-sig")
        if encoding == FileEncoding.JSON:
            return json.loads(text)
        if encoding == FileEncoding.YAML:
            return yaml.safe_load(text)
    except (UnicodeDecodeError, ValueError, yaml.YAMLError) as e:
        raise EncodeDecodeError(f"error decoding {encoding.value} file {source!r}: {e}", path=source) from e

    raise UnsupportedEncoding(f"unsupported encoding {encoding.value!r} for {source!r}", path=source)


def encode_document(
        document: Any,
        encoding: FileEncoding,
        source: str = "",
        indent: int = JSON_INDENT,
) -> bytes:
    """
    Encode a generic document back into a buffer of the given encoding.

    JSON output is indented, keeps non-ASCII characters and ends with a
    newline. YAML output uses block style and keeps key order.

    Args:
        document: Document to serialize.
        encoding: Target encoding.
        source: Root-relative path used in error messages.
        indent: JSON indentation width.

    Returns:
        bytes: UTF-8 encoded document.
    """
    try:
        if encoding == FileEncoding.JSON:
            return (json.dumps(document, indent=indent, ensure_ascii=False) + "\n").encode("utf-8")
        if encoding == FileEncoding.YAML:
            text = yaml.safe_dump(
                document,
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False,
            )
            return text.encode("utf-8")
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise EncodeDecodeError(f"error encoding {encoding.value} file {source!r}: {e}", path=source) from e

    raise UnsupportedEncoding(f"unsupported encoding {encoding.value!r} for {source!r}", path=source)
