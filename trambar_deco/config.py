"""Persistent JSON config helpers and fixed repository naming conventions.

Stores the preferred description language, watch preference and log level.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "trambar-deco"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

SIDECAR_FOLDER_NAME = ".trambar"
IGNORE_FILE_NAME = ".gitignore"
METADATA_FOLDER_NAME = ".git"
DEFINITION_SUFFIX = ".md"
TEXT_SAMPLE_BYTES = 1024
MATCH_BLOCK_LANGUAGES = ("match", "fnmatch")
IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".gif", ".svg")

DEFAULT_LANGUAGE = "en"
LOG_LEVEL_ENV = "TRAMBAR_DECO_LOG_LEVEL"

_LANGUAGE_CODE_RE = re.compile(r"^[a-z]{2}$")


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON, ignoring write failures."""
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def normalize_language_code(value: object) -> str | None:
    """Return a lower-case two-letter code, or ``None`` when ``value`` is unusable."""
    if not isinstance(value, str):
        return None
    candidate = value.strip()[:2].lower()
    return candidate if _LANGUAGE_CODE_RE.match(candidate) else None


def load_language() -> str | None:
    """Load the persisted default language code."""
    return normalize_language_code(load_config().get("language"))


def load_watch_enabled() -> bool:
    """Return persisted watch preference; only explicit booleans are honored."""
    value = load_config().get("watch")
    return value if isinstance(value, bool) else True


def load_log_level() -> str | None:
    value = load_config().get("log_level")
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip().upper()


def resolve_language(explicit: str | None = None, environ: dict[str, str] | None = None) -> str:
    """Pick the default description language.

    Order: explicit value, persisted config, the ``LANG`` environment
    variable, then ``DEFAULT_LANGUAGE``.
    """
    env = os.environ if environ is None else environ
    for candidate in (explicit, load_language(), env.get("LANG")):
        code = normalize_language_code(candidate)
        if code is not None:
            return code
    return DEFAULT_LANGUAGE


def resolve_log_level(explicit: str | None = None, environ: dict[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    for candidate in (explicit, load_log_level(), env.get(LOG_LEVEL_ENV)):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip().upper()
    return "WARNING"


@dataclass(frozen=True)
class DecoConfig:
    """Resolved settings for one run."""

    start_path: Path
    language: str = DEFAULT_LANGUAGE
    watch: bool = True
    log_level: str = "WARNING"


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "SIDECAR_FOLDER_NAME",
    "IGNORE_FILE_NAME",
    "METADATA_FOLDER_NAME",
    "DEFINITION_SUFFIX",
    "TEXT_SAMPLE_BYTES",
    "MATCH_BLOCK_LANGUAGES",
    "IMAGE_SUFFIXES",
    "DEFAULT_LANGUAGE",
    "DecoConfig",
    "load_config",
    "save_config",
    "normalize_language_code",
    "load_language",
    "load_watch_enabled",
    "load_log_level",
    "resolve_language",
    "resolve_log_level",
]
