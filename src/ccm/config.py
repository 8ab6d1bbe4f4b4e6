"""Path resolution for ccm's config directory and the Claude settings file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

CONFIG_DIR_ENV = "CCM_CONFIG_DIR"
SETTINGS_PATH_ENV = "CLAUDE_SETTINGS_PATH"

PROFILES_DIRNAME = "profiles"
CURRENT_FILENAME = "current"
PROJECTS_FILENAME = "projects.json"
PROFILE_SUFFIX = ".json"


@dataclass(frozen=True)
class Paths:
    """Locations every ccm operation reads and writes."""

    config_dir: Path
    settings_path: Path

    @property
    def profiles_dir(self) -> Path:
        return self.config_dir / PROFILES_DIRNAME

    @property
    def current_file(self) -> Path:
        return self.config_dir / CURRENT_FILENAME

    @property
    def projects_file(self) -> Path:
        return self.config_dir / PROJECTS_FILENAME

    def profile_path(self, name: str) -> Path:
        return self.profiles_dir / f"{name}{PROFILE_SUFFIX}"


def default_config_dir(environ: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if environ is None else environ
    xdg = environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "ccm"


def default_settings_path() -> Path:
    return Path.home() / ".claude" / "settings.json"


def resolve_paths(
    config_dir: str | Path | None = None,
    settings_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Paths:
    """Build Paths from explicit values, then environment overrides, then defaults."""
    environ = os.environ if environ is None else environ

    if config_dir is None:
        config_dir = environ.get(CONFIG_DIR_ENV) or default_config_dir(environ)
    if settings_path is None:
        settings_path = environ.get(SETTINGS_PATH_ENV) or default_settings_path()

    return Paths(
        config_dir=Path(config_dir).expanduser(),
        settings_path=Path(settings_path).expanduser(),
    )
