"""Configuration manager for quick open using TOML files.

The file lives at ``$QUICKOPEN_HOME/config.toml`` and has two sections::

    [index]
    vcs_markers = [".git", ".hg"]
    max_files = 20000

    [match]
    match_on = "path"
    filter = "running_mean"

Every section is validated into a pydantic model, so callers always get a
fully populated :class:`Settings` object.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal

import toml
from pydantic import BaseModel, Field, ValidationError

from . import config

logger = logging.getLogger(__name__)

SECTIONS = ("index", "match")


class IndexSettings(BaseModel):
    """How a workspace root is found and enumerated."""

    vcs_markers: List[str] = Field(default_factory=lambda: list(config.DEFAULT_VCS_MARKERS))
    ignore_files: List[str] = Field(default_factory=lambda: list(config.DEFAULT_IGNORE_FILES))
    respect_ignore_files: bool = True
    skip_hidden: bool = True
    max_files: int = Field(config.DEFAULT_MAX_FILES, ge=1)
    background: bool = False


class MatchSettings(BaseModel):
    """How queries are matched, filtered and truncated."""

    match_on: Literal["name", "path"] = "name"
    case: Literal["smart", "ignore", "respect"] = "smart"
    filter: Literal["running_mean", "none", "min_score"] = "running_mean"
    min_score: int = Field(0, ge=0)
    exhaustive: bool = False
    max_recursion: int = Field(config.DEFAULT_MAX_RECURSION, ge=1)
    max_matches: int = Field(config.DEFAULT_MAX_MATCHES, ge=1)
    # 0 means no limit
    limit: int = Field(config.DEFAULT_RESULT_LIMIT, ge=0)


class Settings(BaseModel):
    index: IndexSettings = Field(default_factory=IndexSettings)
    match: MatchSettings = Field(default_factory=MatchSettings)


def load_full_config() -> Dict[str, Any]:
    """Load the raw TOML config (all sections).

    Returns an empty dict when the file is missing or cannot be parsed.
    """
    path = config.CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read config file %s: %s", path, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> bool:
    """Write the entire config dict to the TOML file."""
    path = config.CONFIG_FILE
    try:
        config.ensure_base_dirs()
        with open(path, "w", encoding="utf-8") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config file %s: %s", path, exc)
        return False


def load_settings() -> Settings:
    """Load validated settings, falling back to defaults for invalid files."""
    raw = load_full_config()
    payload = {section: raw.get(section, {}) for section in SECTIONS}
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Invalid config in %s, using defaults: %s", config.CONFIG_FILE, exc)
        return Settings()


def _coerce(value: str) -> Any:
    """Interpret a command-line value the way TOML would."""
    try:
        return toml.loads(f"value = {value}")["value"]
    except toml.TomlDecodeError:
        return value


def save_setting(section: str, key: str, value: str) -> Settings:
    """Set ``section.key`` to *value* and persist it.

    Args:
        section: ``index`` or ``match``
        key: Field name inside the section
        value: Raw value, parsed as a TOML literal when possible

    Returns:
        The validated settings after the change.

    Raises:
        ValueError: If the section, key or value is invalid.
    """
    if section not in SECTIONS:
        raise ValueError(f"Unknown section '{section}' (expected one of: {', '.join(SECTIONS)})")
    model = IndexSettings if section == "index" else MatchSettings
    if key not in model.model_fields:
        raise ValueError(f"Unknown key '{key}' in section '{section}'")

    raw = load_full_config()
    raw.setdefault(section, {})[key] = _coerce(value)
    try:
        settings = Settings.model_validate({s: raw.get(s, {}) for s in SECTIONS})
    except ValidationError as exc:
        raise ValueError(f"Invalid value for {section}.{key}: {value}") from exc

    if not _save_full_config(raw):
        raise ValueError(f"Could not write {config.CONFIG_FILE}")
    return settings


def reset_config() -> bool:
    """Delete the config file. Returns True if a file was removed."""
    path = config.CONFIG_FILE
    if not path.exists():
        return False
    path.unlink()
    return True
