"""
Settings for the gitops-preview tool.

Settings are merged, lowest precedence first, from built-in defaults,
an optional YAML file (~/.gitops-preview/config.yaml, or the file named by
GITOPS_PREVIEW_CONFIG) and GITOPS_PREVIEW_* environment variables.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from box import Box

APP_NAME = "gitops_preview"
CONFIG_DIR = Path("~/.gitops-preview")

DEFAULTS: dict[str, Any] = {
    "log_level": "WARNING",
    "logfile": None,
    "repositories_file": str(CONFIG_DIR / "repositories.yaml"),
}

# environment variable -> settings key
ENV_VARS = {
    "GITOPS_PREVIEW_LOG_LEVEL": "log_level",
    "GITOPS_PREVIEW_LOGFILE": "logfile",
    "GITOPS_PREVIEW_REPOSITORIES": "repositories_file",
}


def load_settings(config_file: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Box:
    """Return the effective settings as a Box (dot-access dict)."""
    env = os.environ if environ is None else environ
    settings = Box(DEFAULTS)

    if config_file is None:
        config_file = env.get("GITOPS_PREVIEW_CONFIG") or CONFIG_DIR / "config.yaml"
    path = Path(config_file).expanduser()
    if path.is_file():
        payload = yaml.safe_load(path.read_text()) or {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"Invalid settings file {path}: expected a mapping")
        settings.merge_update(payload)

    for var, key in ENV_VARS.items():
        if env.get(var):
            settings[key] = env[var]
    return settings


def log_level(settings: Box) -> int:
    """Translate the configured level name (or number) into a logging level."""
    value = settings.log_level
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value!r}")
    return level


__all__ = ["APP_NAME", "load_settings", "log_level"]
