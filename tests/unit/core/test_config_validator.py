from __future__ import annotations

"""
Unit tests for the Configuration Validator.

Verifies default filling, coercion of loose values and strict mode errors.
"""

import pytest

from solutionkit.core.validator import validate_config
from solutionkit.domain.config import get_default_config


def test_none_returns_defaults() -> None:
    """TC-01: Verify None yields defaults without warnings."""
    cfg, warnings = validate_config(None)
    assert cfg == get_default_config()
    assert warnings == []


def test_partial_config_is_completed() -> None:
    """TC-02: Verify missing keys are filled with defaults."""
    cfg, warnings = validate_config({"stable_tag": "prod"})
    assert cfg["stable_tag"] == "prod"
    assert cfg["tag_file_name"] == ".tag"
    assert warnings == []


def test_loose_values_are_coerced() -> None:
    """TC-03: Verify string numbers, string booleans and lowercase levels are normalized."""
    cfg, warnings = validate_config({"json_indent": "4", "quiet": "yes", "log_level": "debug"})
    assert cfg["json_indent"] == 4
    assert cfg["quiet"] is True
    assert cfg["log_level"] == "DEBUG"
    assert len(warnings) == 2


def test_invalid_values_fall_back() -> None:
    """TC-04: Verify invalid values are replaced by defaults with a warning."""
    cfg, warnings = validate_config({"archive_skip_levels": -1, "log_level": "LOUD", "stable_tag": 3})
    assert cfg["archive_skip_levels"] == 1
    assert cfg["log_level"] == "INFO"
    assert cfg["stable_tag"] == "stable"
    assert len(warnings) == 3


def test_non_dict_config() -> None:
    """TC-05: Verify non-dict input falls back, or raises in strict mode."""
    cfg, warnings = validate_config(["bad"])
    assert cfg == get_default_config()
    assert warnings

    with pytest.raises(TypeError):
        validate_config(["bad"], strict=True)


def test_strict_mode_raises() -> None:
    """TC-06: Verify strict mode rejects mismatched types and bad values."""
    with pytest.raises(TypeError):
        validate_config({"quiet": "yes"}, strict=True)
    with pytest.raises(ValueError):
        validate_config({"json_indent": -2}, strict=True)
    with pytest.raises(ValueError):
        validate_config({"log_level": "LOUD"}, strict=True)
