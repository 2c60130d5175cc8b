"""Roster — a YAML manifest of the files present in a merge destination."""

from __future__ import annotations

import hashlib
import os
from datetime import datetime
from pathlib import Path

import yaml

from ctoldup.config.models import ROSTER_FILE
from ctoldup.sync.mirror import SkipFunc


def take_roster(root: str | Path, skip: SkipFunc | None = None, name: str = ROSTER_FILE) -> Path:
    """Write a manifest named *name* at *root* listing every file below it.

    The manifest itself, symbolic links, and anything *skip* rejects
    (including whole directories) are left out. An existing manifest is
    overwritten.

    Returns:
        Path of the manifest that was written.
    """
    root = Path(root)
    skip = skip or (lambda p: False)
    roster_path = root / name

    files = {}
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            d for d in dirnames
            if not (current / d).is_symlink() and not skip(current / d)
        )
        for filename in sorted(filenames):
            path = current / filename
            if path == roster_path or path.is_symlink() or skip(path):
                continue
            files[path.relative_to(root).as_posix()] = _describe(path)

    document = {
        "root": str(root.resolve()),
        "taken": datetime.now().isoformat(timespec="seconds"),
        "count": len(files),
        "files": files,
    }
    with open(roster_path, "w") as f:
        yaml.safe_dump(document, f, sort_keys=False, default_flow_style=False)
    return roster_path


def _describe(path: Path) -> dict:
    st = path.stat()
    return {
        "size": st.st_size,
        "mode": oct(st.st_mode & 0o777),
        "sha256": _sha256(path),
    }


def _sha256(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def read_roster(path: str | Path) -> dict:
    """Load a manifest written by :func:`take_roster`."""
    with open(path) as f:
        return yaml.safe_load(f) or {}
