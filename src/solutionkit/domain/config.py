from __future__ import annotations

"""
Configuration Domain Management.

Handles the runtime settings of the toolkit and their persistent overrides,
stored as JSON in the user data directory. Missing or corrupted files fall
back to the defaults.
"""

import json
import logging
import os
from typing import Any, Dict

from solutionkit.domain.constants import (
    ENV_FILE_NAME,
    JSON_INDENT,
    NAMESPACE_OBJECT_TYPE,
    STABLE_TAG,
    TAG_ENV_VAR,
    TAG_FILE_NAME,
)
from solutionkit.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
CONFIG_FILE_NAME = "config.json"
DEFAULT_ARCHIVE_SKIP_LEVELS = 1


def get_config_file() -> str:
    """Resolve the absolute path of the persistent configuration file."""
    return os.path.join(get_user_data_dir(), CONFIG_FILE_NAME)


def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.
    This dictionary drives the behavior of the isolation and fork engines.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Diagnostics
        "log_level": "INFO",
        "log_file": "",
        "quiet": False,

        # Environment discovery
        "env_file_name": ENV_FILE_NAME,
        "tag_file_name": TAG_FILE_NAME,
        "tag_env_var": TAG_ENV_VAR,
        "stable_tag": STABLE_TAG,

        # Fork
        "namespace_object_type": NAMESPACE_OBJECT_TYPE,
        "json_indent": JSON_INDENT,

        # Archives
        "archive_skip_levels": DEFAULT_ARCHIVE_SKIP_LEVELS,
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """
    Load the runtime configuration, merging persisted overrides over defaults.

    Returns:
        Dict[str, Any]: The merged configuration, or defaults on failure.
    """
    config = get_default_config()
    config_file = get_config_file()

    if not os.path.exists(config_file):
        logger.debug("Config file not found. Returning defaults.")
        return config

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Resetting to defaults.")
        return config

    settings = data.get("settings", {})
    if isinstance(settings, dict):
        config.update({k: v for k, v in settings.items() if k in config})
    return config

