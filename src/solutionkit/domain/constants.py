from __future__ import annotations

"""
Domain Constants and Static Data Structures.

Centralizes the well-known file names, markers and patterns shared by the
tree model, the isolation engine and the fork engine.
"""

import re
from typing import Dict, FrozenSet, Pattern, Tuple

# -----------------------------------------------------------------------------
# SOLUTION LAYOUT
# -----------------------------------------------------------------------------

MANIFEST_BASENAME = "manifest"
MANIFEST_FILE_NAMES: Tuple[str, ...] = ("manifest.json", "manifest.yaml", "manifest.yml")
TAG_FILE_NAME = ".tag"
ENV_FILE_NAME = "env.json"

# Root files that are never treated as solution content
HIDDEN_ROOT_FILES: FrozenSet[str] = frozenset(MANIFEST_FILE_NAMES + (TAG_FILE_NAME,))

# Directory names never scanned nor bundled
EXCLUDED_DIR_NAMES: FrozenSet[str] = frozenset({".git"})

EXTENSION_ENCODINGS: Dict[str, str] = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}

NAMESPACE_OBJECT_TYPE = "fmm:namespace"

# -----------------------------------------------------------------------------
# ISOLATION
# -----------------------------------------------------------------------------

# Non-greedy marker; '.' does not cross line boundaries
MARKER_PATTERN: Pattern[bytes] = re.compile(rb"\$\{(.*?)\}")
INERT_MARKER_PREFIX = "."

ENV_KEY = "env"
ENV_TAG_KEY = "tag"
ENV_DEPENDENCY_TAGS_KEY = "dependencyTags"
SYS_KEY = "sys"
SYS_SOLUTION_ID_KEY = "solutionId"

STABLE_TAG = "stable"
TAG_ENV_VAR = "SOLUTIONKIT_SOLUTION_TAG"
TAG_PATTERN: Pattern[str] = re.compile(r"^[a-z][a-z0-9]*$")
TAG_MAX_LENGTH = 10

# -----------------------------------------------------------------------------
# FORK
# -----------------------------------------------------------------------------

PSEUDO_ISOLATION_SUFFIX = "${$toSuffix(env.tag)}"
SOLUTION_NAME_PATTERN: Pattern[str] = re.compile(r"^[a-z][a-z0-9_]*$")

JSON_INDENT = 2
