"""Project-level profiles: merging a profile into .claude/settings.local.json."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ccm import storage
from ccm.config import Paths
from ccm.profiles import (
    find_profile,
    get_project_profile,
    load_profile,
    remove_project_profile,
    set_project_profile,
)

logger = logging.getLogger(__name__)

LOCAL_SETTINGS = Path(".claude") / "settings.local.json"


def local_settings_path(project_dir: Path) -> Path:
    return Path(project_dir) / LOCAL_SETTINGS


def merge_json(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Return base with overlay merged in.

    Nested objects merge key by key; any other overlay value replaces the
    base value.
    """
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = merge_json(merged[key], value)
        else:
            merged[key] = value
    return merged


def remove_json_keys(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Return base without the keys overlay defines.

    Nested objects are stripped recursively and dropped once empty.
    """
    result = dict(base)
    for key, value in overlay.items():
        if key not in result:
            continue
        if isinstance(result[key], dict) and isinstance(value, dict):
            nested = remove_json_keys(result[key], value)
            if nested:
                result[key] = nested
            else:
                del result[key]
        else:
            del result[key]
    return result


def switch_project(paths: Paths, name: str, project_dir: Path) -> Path:
    """Merge profile ``name`` into project_dir's settings.local.json.

    Existing local settings are kept; the profile's values win on conflict.
    Returns the path written.
    """
    profile = load_profile(paths, name)
    target = local_settings_path(project_dir)
    existing = storage.read_json(target)
    doc = profile.to_document()
    if existing is not None:
        doc = merge_json(existing, doc)

    storage.write_json(target, doc)
    set_project_profile(paths, project_dir, profile.name)
    logger.debug("project %s switched to %s", project_dir, profile.name)
    return target


class ClearStatus(enum.Enum):
    NOT_SET = "not-set"
    PROFILE_MISSING = "profile-missing"
    STRIPPED = "stripped"
    REMOVED_FILE = "removed-file"


@dataclass(frozen=True)
class ClearOutcome:
    status: ClearStatus
    name: str | None = None
    path: Path | None = None


def clear_project(paths: Paths, project_dir: Path) -> ClearOutcome:
    """Undo switch_project: strip the profile's keys and forget the mapping.

    settings.local.json is deleted when nothing else is left in it. If the
    mapped profile no longer exists the file is left alone, since there is no
    way to tell which keys it contributed.
    """
    name = get_project_profile(paths, project_dir)
    if name is None:
        return ClearOutcome(status=ClearStatus.NOT_SET)

    target = local_settings_path(project_dir)
    profile = find_profile(paths, name)
    if profile is None:
        remove_project_profile(paths, project_dir)
        return ClearOutcome(status=ClearStatus.PROFILE_MISSING, name=name, path=target)

    status = ClearStatus.STRIPPED
    existing = storage.read_json(target)
    if existing is not None:
        remaining = remove_json_keys(existing, profile.to_document())
        if remaining:
            storage.write_json(target, remaining)
        else:
            storage.remove(target)
            status = ClearStatus.REMOVED_FILE

    remove_project_profile(paths, project_dir)
    return ClearOutcome(status=status, name=name, path=target)
