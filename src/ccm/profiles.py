"""Profile store, current-profile pointer, project mapping and the live Claude settings file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ccm import storage
from ccm.config import PROFILE_SUFFIX, Paths
from ccm.errors import (
    ActiveProfileError,
    InvalidProfile,
    InvalidProfileName,
    MalformedProfile,
    ProfileAlreadyExists,
    ProfileNotFound,
)

logger = logging.getLogger(__name__)

BASE_URL = "ANTHROPIC_BASE_URL"
AUTH_TOKEN = "ANTHROPIC_AUTH_TOKEN"
MODEL = "ANTHROPIC_MODEL"
SMALL_FAST_MODEL = "ANTHROPIC_SMALL_FAST_MODEL"
TIMEOUT_MS = "API_TIMEOUT_MS"
DISABLE_NONESSENTIAL_TRAFFIC = "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC"

REQUIRED_KEYS = (BASE_URL, AUTH_TOKEN)
OPTIONAL_KEYS = (MODEL, SMALL_FAST_MODEL, TIMEOUT_MS, DISABLE_NONESSENTIAL_TRAFFIC)

ENV_KEY = "env"


@dataclass
class Profile:
    """A named set of environment variables for Claude Code."""

    name: str
    env: dict[str, Any] = field(default_factory=dict)
    # Other top-level keys, kept as-is.
    extra: dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {ENV_KEY: dict(self.env)}
        doc.update(self.extra)
        return doc

    @classmethod
    def from_document(cls, name: str, doc: dict[str, Any], source=None) -> Profile:
        env = doc.get(ENV_KEY, {})
        if not isinstance(env, dict):
            raise MalformedProfile(source or name, f"'{ENV_KEY}' is not an object")
        extra = {k: v for k, v in doc.items() if k != ENV_KEY}
        return cls(name=name, env=dict(env), extra=extra)


def validate_name(name: str) -> str:
    """Return name stripped, or raise if it can't be used as a file stem."""
    stripped = (name or "").strip()
    if not stripped:
        raise InvalidProfileName("Profile name must not be empty")
    if "/" in stripped or "\\" in stripped:
        raise InvalidProfileName(
            f"Profile name '{stripped}' must not contain path separators"
        )
    if stripped.startswith("."):
        raise InvalidProfileName(f"Profile name '{stripped}' must not start with '.'")
    return stripped


def validate_required(profile: Profile) -> None:
    for key in REQUIRED_KEYS:
        value = profile.env.get(key)
        if not isinstance(value, str) or not value.strip():
            raise InvalidProfile(
                f"Profile '{profile.name}' requires a non-empty {key}"
            )


# ---------------------------------------------------------------------------
# Profile store
# ---------------------------------------------------------------------------


def list_profiles(paths: Paths) -> list[str]:
    """Profile names in lexicographic order."""
    return storage.list_stems(paths.profiles_dir, PROFILE_SUFFIX)


def profile_exists(paths: Paths, name: str) -> bool:
    return paths.profile_path(validate_name(name)).is_file()


def find_profile(paths: Paths, name: str) -> Profile | None:
    """Load a profile, or None if it has no file."""
    name = validate_name(name)
    path = paths.profile_path(name)
    doc = storage.read_json(path)
    if doc is None:
        return None
    return Profile.from_document(name, doc, source=path)


def load_profile(paths: Paths, name: str) -> Profile:
    profile = find_profile(paths, name)
    if profile is None:
        raise ProfileNotFound(name)
    return profile


def save_profile(paths: Paths, profile: Profile) -> None:
    """Write profile, replacing any existing file with the same name."""
    storage.write_json(paths.profile_path(profile.name), profile.to_document())
    logger.debug("saved profile %s", profile.name)


def create_profile(paths: Paths, profile: Profile) -> Profile:
    """Store a new profile. Refuses duplicates and missing required keys."""
    profile.name = validate_name(profile.name)
    if profile_exists(paths, profile.name):
        raise ProfileAlreadyExists(profile.name)
    validate_required(profile)
    save_profile(paths, profile)
    return profile


def delete_profile(paths: Paths, name: str, project_dir: Path | None = None) -> None:
    """Remove a profile unless it is active globally or for project_dir."""
    name = validate_name(name)
    if get_current(paths) == name:
        raise ActiveProfileError(name)
    if project_dir is not None and get_project_profile(paths, project_dir) == name:
        raise ActiveProfileError(name, scope="this project")
    path = paths.profile_path(name)
    if not path.is_file():
        raise ProfileNotFound(name)
    storage.remove(path)


def rename_profile(paths: Paths, old: str, new: str) -> None:
    """Rename a profile, moving the current pointer and project mappings along."""
    old = validate_name(old)
    new = validate_name(new)
    src = paths.profile_path(old)
    dst = paths.profile_path(new)
    if not src.is_file():
        raise ProfileNotFound(old)
    if dst.exists():
        raise ProfileAlreadyExists(new)

    was_current = get_current(paths) == old
    storage.rename(src, dst)
    if was_current:
        set_current(paths, new)

    projects = _load_projects(paths)
    if old in projects.values():
        storage.write_json(
            paths.projects_file,
            {k: (new if v == old else v) for k, v in projects.items()},
        )


# ---------------------------------------------------------------------------
# Current pointer
# ---------------------------------------------------------------------------


def get_current(paths: Paths) -> str | None:
    """Name in the current pointer file, or None if unset."""
    text = storage.read_text(paths.current_file)
    if text is None:
        return None
    name = text.strip()
    return name or None


def set_current(paths: Paths, name: str) -> None:
    storage.write_text(paths.current_file, name + "\n")
    logger.debug("current profile -> %s", name)


def current_profile(paths: Paths) -> Profile | None:
    """The active profile, or None when unset or the pointer dangles."""
    name = get_current(paths)
    if name is None:
        return None
    try:
        return find_profile(paths, name)
    except InvalidProfileName:
        logger.debug("current pointer %r is not a profile name", name)
        return None


# ---------------------------------------------------------------------------
# Per-project mapping
# ---------------------------------------------------------------------------


def _project_key(project_dir: Path) -> str:
    return str(Path(project_dir).resolve())


def _load_projects(paths: Paths) -> dict[str, str]:
    data = storage.read_json(paths.projects_file) or {}
    return {k: v for k, v in data.items() if isinstance(v, str)}


def get_project_profile(paths: Paths, project_dir: Path) -> str | None:
    """Profile switched in for project_dir, or None."""
    return _load_projects(paths).get(_project_key(project_dir))


def set_project_profile(paths: Paths, project_dir: Path, name: str) -> None:
    projects = _load_projects(paths)
    projects[_project_key(project_dir)] = name
    storage.write_json(paths.projects_file, projects)
    logger.debug("project %s -> %s", project_dir, name)


def remove_project_profile(paths: Paths, project_dir: Path) -> bool:
    """Forget project_dir's profile. Returns False if none was set."""
    projects = _load_projects(paths)
    if projects.pop(_project_key(project_dir), None) is None:
        return False
    storage.write_json(paths.projects_file, projects)
    return True


# ---------------------------------------------------------------------------
# Claude settings file
# ---------------------------------------------------------------------------


def read_settings(paths: Paths) -> dict[str, Any] | None:
    """The live settings document, or None if the file does not exist."""
    return storage.read_json(paths.settings_path)


def write_settings(paths: Paths, doc: dict[str, Any]) -> None:
    storage.write_json(paths.settings_path, doc)
