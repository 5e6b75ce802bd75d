from __future__ import annotations

"""
Isolation Environment.

Builds the variable environment that marker expressions are evaluated
against, and determines where it comes from: an explicit tag, an environment
file, the tag environment variable or the files of the solution directory.
"""

import copy
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from solutionkit.domain.constants import (
    ENV_FILE_NAME,
    ENV_KEY,
    ENV_TAG_KEY,
    STABLE_TAG,
    SYS_KEY,
    SYS_SOLUTION_ID_KEY,
    TAG_ENV_VAR,
    TAG_FILE_NAME,
    TAG_MAX_LENGTH,
    TAG_PATTERN,
)
from solutionkit.domain.errors import AmbiguousEnvironmentSource, EncodeDecodeError, InvalidTag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvironmentSource:
    """
    Where the isolation environment comes from.

    Exactly one of tag / env_file is set.

    Attributes:
        tag: Explicit tag.
        env_file: Path to a JSON environment file.
        origin: Human readable description of how the source was chosen.
    """
    tag: Optional[str] = None
    env_file: Optional[str] = None
    origin: str = ""

    def describe(self) -> str:
        what = f"tag {self.tag!r}" if self.tag else f"env file {self.env_file!r}"
        return f"{what} ({self.origin})" if self.origin else what


# ==============================================================================
# TAGS
# ==============================================================================

def is_valid_solution_tag(tag: str) -> bool:
    """Check a tag: a lowercase letter followed by lowercase letters or digits, at most 10 chars."""
    return bool(tag) and len(tag) <= TAG_MAX_LENGTH and TAG_PATTERN.match(tag) is not None


def validate_tag(tag: str, origin: str) -> str:
    if not is_valid_solution_tag(tag):
        raise InvalidTag(
            f"invalid tag {tag!r} from {origin}: must start with a lowercase letter, contain only "
            f"lowercase letters and digits and be at most {TAG_MAX_LENGTH} characters long"
        )
    return tag


def get_tag(env: Mapping[str, Any]) -> Optional[str]:
    """Return env.tag when it is a non-empty string."""
    section = env.get(ENV_KEY)
    if isinstance(section, dict):
        tag = section.get(ENV_TAG_KEY)
        if isinstance(tag, str) and tag:
            return tag
    return None


# ==============================================================================
# ENVIRONMENT CONSTRUCTION
# ==============================================================================

def load_environment_file(path: str) -> Dict[str, Any]:
    """
    Load a JSON environment file.

    Raises:
        EncodeDecodeError: If the file is not a JSON object.
        OSError: If the file cannot be read.
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            env = json.load(f)
        except ValueError as e:
            raise EncodeDecodeError(f"failed to parse env file {path!r}: {e}", path=path) from e
    if not isinstance(env, dict):
        raise EncodeDecodeError(f"env file {path!r} must contain a JSON object", path=path)
    return env


def build_environment(tag: Optional[str] = None, env_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the variable environment from a tag or an environment file.

    Raises:
        AmbiguousEnvironmentSource: If neither or both are supplied.
    """
    if bool(tag) == bool(env_file):
        raise AmbiguousEnvironmentSource("exactly one of a tag or an env file must be supplied")
    if tag:
        return {ENV_KEY: {ENV_TAG_KEY: tag}}
    return load_environment_file(env_file)


def with_system_values(env: Mapping[str, Any], solution_id: str) -> Dict[str, Any]:
    """Return a copy of env with sys.solutionId set to the resolved solution name."""
    augmented = copy.deepcopy(dict(env))
    section = augmented.get(SYS_KEY)
    if not isinstance(section, dict):
        section = {}
        augmented[SYS_KEY] = section
    section[SYS_SOLUTION_ID_KEY] = solution_id
    return augmented


def resolve_environment_source(
        source_dir: str,
        tag: Optional[str] = None,
        stable: bool = False,
        env_file: Optional[str] = None,
        cfg: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
) -> EnvironmentSource:
    """
    Determine the environment source of an isolation.

    Priority: explicit tag or stable flag, explicit env file, tag environment
    variable, tag file in the solution directory, env file in the solution
    directory.

    Raises:
        AmbiguousEnvironmentSource: If both a tag and the stable flag are
            given, or if no source can be found.
        InvalidTag: If the chosen tag is malformed.
    """
    cfg = cfg or {}
    environ = os.environ if environ is None else environ
    stable_tag = cfg.get("stable_tag", STABLE_TAG)

    if tag and stable:
        raise AmbiguousEnvironmentSource("a tag and the stable flag cannot be combined")
    if stable:
        return EnvironmentSource(tag=stable_tag, origin="stable flag")
    if tag:
        return EnvironmentSource(tag=validate_tag(tag, "command line"), origin="command line")
    if env_file:
        return EnvironmentSource(env_file=os.path.abspath(env_file), origin="command line")

    tag_env_var = cfg.get("tag_env_var", TAG_ENV_VAR)
    env_tag = environ.get(tag_env_var, "").strip()
    if env_tag:
        return EnvironmentSource(tag=validate_tag(env_tag, tag_env_var), origin=f"environment variable {tag_env_var}")

    if os.path.isdir(source_dir):
        tag_file = os.path.join(source_dir, cfg.get("tag_file_name", TAG_FILE_NAME))
        if os.path.isfile(tag_file):
            with open(tag_file, "r", encoding="utf-8") as f:
                file_tag = f.read().strip()
            if file_tag:
                return EnvironmentSource(tag=validate_tag(file_tag, tag_file), origin=f"tag file {tag_file}")

        default_env = os.path.join(source_dir, cfg.get("env_file_name", ENV_FILE_NAME))
        if os.path.isfile(default_env):
            return EnvironmentSource(env_file=default_env, origin="solution directory")

    raise AmbiguousEnvironmentSource(
        "no environment found: supply a tag, the stable flag or an env file", path=source_dir
    )
