"""Whole-file JSON I/O for profiles, the current pointer and the settings file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from ccm.errors import MalformedProfile, StorageError

logger = logging.getLogger(__name__)


def dumps(data: Any) -> str:
    """Serialize a document the way every file ccm writes is laid out."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def canonical(data: Any) -> str:
    """Order-independent serialization used for comparisons."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def read_text(path: Path) -> str | None:
    """Read a file. Returns None if it does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as e:
        raise MalformedProfile(path, str(e)) from e
    except OSError as e:
        raise StorageError("reading", path, e) from e


def read_json(path: Path) -> dict[str, Any] | None:
    """Load a JSON object from path. Returns None if the file does not exist."""
    text = read_text(path)
    if text is None:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedProfile(path, str(e)) from e
    if not isinstance(data, dict):
        raise MalformedProfile(path, "top level is not an object")
    return data


def write_text(path: Path, text: str) -> None:
    """Replace path's content atomically.

    The new content goes to a temp file in the same directory which is then
    renamed over the target, so readers never see a partial file. A symlink
    is written through: the file it points to is replaced, the link stays.
    """
    target = path.resolve()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, target)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise StorageError("writing", path, e) from e
    logger.debug("wrote %s (%d bytes)", path, len(text))


def write_json(path: Path, data: dict[str, Any]) -> None:
    write_text(path, dumps(data))


def remove(path: Path) -> None:
    try:
        path.unlink()
    except OSError as e:
        raise StorageError("removing", path, e) from e
    logger.debug("removed %s", path)


def rename(src: Path, dst: Path) -> None:
    try:
        os.replace(src, dst)
    except OSError as e:
        raise StorageError("renaming", src, e) from e
    logger.debug("renamed %s -> %s", src, dst)


def list_stems(directory: Path, suffix: str) -> list[str]:
    """Sorted stems of non-hidden files in directory ending with suffix."""
    if not directory.is_dir():
        return []
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise StorageError("listing", directory, e) from e
    return sorted(
        f.name[: -len(suffix)]
        for f in entries
        if f.is_file() and f.name.endswith(suffix) and not f.name.startswith(".")
    )
