"""Core sync engine: document diffing, profile switching and settings sync."""

from __future__ import annotations

import difflib
import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from ccm import storage
from ccm.config import Paths
from ccm.errors import CancelledByUser, ProfileAlreadyExists, SettingsNotFound
from ccm.profiles import (
    ENV_KEY,
    Profile,
    current_profile,
    get_current,
    load_profile,
    read_settings,
    save_profile,
    set_current,
    validate_name,
    write_settings,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiffResult:
    """Outcome of comparing a stored document (a) with a live one (b).

    ``equal`` is exact. The key tuples are for display only.
    """

    equal: bool
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    changed: tuple[str, ...] = ()

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(sorted(self.added + self.removed + self.changed))


def _same(a: Any, b: Any) -> bool:
    return storage.canonical(a) == storage.canonical(b)


def _key_diff(a: Mapping[str, Any], b: Mapping[str, Any]) -> tuple[list, list, list]:
    added = sorted(k for k in b if k not in a)
    removed = sorted(k for k in a if k not in b)
    changed = sorted(k for k in a if k in b and not _same(a[k], b[k]))
    return added, removed, changed


def diff_env(
    a: Mapping[str, Any] | None,
    b: Mapping[str, Any] | None,
) -> DiffResult:
    """Compare two env mappings. A missing mapping counts as empty."""
    a = a or {}
    b = b or {}
    added, removed, changed = _key_diff(a, b)
    return DiffResult(
        equal=_same(a, b),
        added=tuple(added),
        removed=tuple(removed),
        changed=tuple(changed),
    )


def diff_documents(
    a: Mapping[str, Any] | None,
    b: Mapping[str, Any] | None,
) -> DiffResult:
    """Compare two whole profile/settings documents.

    Entries of ``env`` are reported by variable name; any other top-level
    key is reported as a single unit under its own name. A missing ``env``
    equals an empty one.
    """
    a = a or {}
    b = b or {}
    a_env = a.get(ENV_KEY) if isinstance(a.get(ENV_KEY), dict) else None
    b_env = b.get(ENV_KEY) if isinstance(b.get(ENV_KEY), dict) else None

    env = diff_env(a_env, b_env)
    added, removed, changed = list(env.added), list(env.removed), list(env.changed)

    a_rest = {k: v for k, v in a.items() if not (k == ENV_KEY and a_env is not None)}
    b_rest = {k: v for k, v in b.items() if not (k == ENV_KEY and b_env is not None)}
    r_added, r_removed, r_changed = _key_diff(a_rest, b_rest)
    added += r_added
    removed += r_removed
    changed += r_changed

    return DiffResult(
        equal=env.equal and _same(a_rest, b_rest),
        added=tuple(sorted(set(added))),
        removed=tuple(sorted(set(removed))),
        changed=tuple(sorted(set(changed))),
    )


def render_diff(
    a: Mapping[str, Any] | None,
    b: Mapping[str, Any] | None,
    from_label: str = "profile",
    to_label: str = "settings.json",
) -> str:
    """Unified diff of two documents, pretty-printed with sorted keys."""
    a_text = storage.dumps(_sorted(a or {}))
    b_text = storage.dumps(_sorted(b or {}))
    diff_lines = difflib.unified_diff(
        a_text.splitlines(keepends=True),
        b_text.splitlines(keepends=True),
        fromfile=from_label,
        tofile=to_label,
    )
    return "".join(diff_lines)


def _sorted(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _sorted(value[k]) for k in sorted(value)}
    if isinstance(value, list):
        return [_sorted(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Switching
# ---------------------------------------------------------------------------


class SwitchDecision(enum.Enum):
    """How to resolve a current profile that no longer matches settings.json."""

    DIRECT = "direct"
    ABSORB = "absorb"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Conflict:
    """The current profile's stored content has drifted from settings.json."""

    current: str
    stored: dict[str, Any]
    live: dict[str, Any]
    diff: DiffResult


@dataclass(frozen=True)
class SwitchOutcome:
    name: str
    previous: str | None
    decision: SwitchDecision | None = None
    absorbed: DiffResult | None = None

    @property
    def had_conflict(self) -> bool:
        return self.decision is not None


Decider = Callable[[Conflict], SwitchDecision]


def check_conflict(paths: Paths) -> Conflict | None:
    """Compare the current profile with settings.json.

    Returns None when there is nothing that could be lost by overwriting
    settings.json: no current profile, a dangling pointer, no settings file,
    or matching content.
    """
    profile = current_profile(paths)
    if profile is None:
        return None
    live = read_settings(paths)
    if live is None:
        return None

    stored = profile.to_document()
    diff = diff_documents(stored, live)
    if diff.equal:
        return None
    return Conflict(current=profile.name, stored=stored, live=live, diff=diff)


def activate(paths: Paths, profile: Profile) -> None:
    """Write profile into settings.json and mark it current."""
    write_settings(paths, profile.to_document())
    set_current(paths, profile.name)
    logger.debug("activated profile %s", profile.name)


def switch_to(paths: Paths, name: str, decide: Decider) -> SwitchOutcome:
    """Make ``name`` the active profile.

    If the current profile differs from settings.json, ``decide`` is called
    once with the Conflict and its answer applied:

    - DIRECT overwrites settings.json, discarding the drift.
    - ABSORB first saves settings.json into the current profile.
    - CANCEL raises CancelledByUser before anything is written.

    The check runs even when ``name`` is already current.
    """
    target = load_profile(paths, name)
    previous = get_current(paths)

    conflict = check_conflict(paths)
    if conflict is None:
        activate(paths, target)
        return SwitchOutcome(name=target.name, previous=previous)

    decision = decide(conflict)
    logger.debug("conflict on %s resolved with %s", conflict.current, decision.value)

    if decision is SwitchDecision.CANCEL:
        raise CancelledByUser(f"Switch to '{name}' cancelled")

    absorbed = None
    if decision is SwitchDecision.ABSORB:
        updated = Profile.from_document(conflict.current, conflict.live)
        save_profile(paths, updated)
        absorbed = conflict.diff
        if updated.name == target.name:
            target = updated

    activate(paths, target)
    return SwitchOutcome(
        name=target.name,
        previous=previous,
        decision=decision,
        absorbed=absorbed,
    )


# ---------------------------------------------------------------------------
# Sync and import
# ---------------------------------------------------------------------------


class SyncStatus(enum.Enum):
    NOTHING_TO_SYNC = "nothing-to-sync"
    IN_SYNC = "in-sync"
    SYNCED = "synced"


@dataclass(frozen=True)
class SyncOutcome:
    status: SyncStatus
    name: str | None = None
    diff: DiffResult | None = None


def sync_current(paths: Paths) -> SyncOutcome:
    """Pull settings.json back into the current profile if they differ."""
    name = get_current(paths)
    profile = current_profile(paths)
    if profile is None:
        return SyncOutcome(status=SyncStatus.NOTHING_TO_SYNC, name=name)

    live = read_settings(paths)
    if live is None:
        raise SettingsNotFound(paths.settings_path)

    diff = diff_documents(profile.to_document(), live)
    if diff.equal:
        return SyncOutcome(status=SyncStatus.IN_SYNC, name=name, diff=diff)

    save_profile(paths, Profile.from_document(name, live, source=paths.settings_path))
    return SyncOutcome(status=SyncStatus.SYNCED, name=name, diff=diff)


def import_current(paths: Paths, name: str, force: bool = False) -> Profile:
    """Store settings.json as profile ``name`` and make it current."""
    name = validate_name(name)
    live = read_settings(paths)
    if live is None:
        raise SettingsNotFound(paths.settings_path)
    if not force and paths.profile_path(name).exists():
        raise ProfileAlreadyExists(name)

    profile = Profile.from_document(name, live, source=paths.settings_path)
    save_profile(paths, profile)
    set_current(paths, name)
    return profile
