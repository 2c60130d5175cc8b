"""Directory mirroring — make a destination tree match a source tree.

Unlike an additive copy, entries in the destination that have no
counterpart in the source are removed. Symbolic links in the source are
never followed or copied.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

SkipFunc = Callable[[Path], bool]


def skip_names(patterns: Iterable[str]) -> SkipFunc:
    """Build a skip predicate matching base names against glob *patterns*."""
    patterns = list(patterns)

    def skip(path: Path) -> bool:
        return any(fnmatch.fnmatch(path.name, p) for p in patterns)

    return skip


def mirror_tree(src: str | Path, dest: str | Path, skip: SkipFunc | None = None) -> list[Path]:
    """Mirror *src* into the directory *dest*.

    A directory source has its contents mirrored into *dest*; a file source
    is copied into *dest* under its own name. Entries for which *skip*
    returns True are neither copied from the source nor removed from the
    destination.

    Returns:
        Paths, relative to *dest*, of every entry that was copied.

    Raises:
        OSError: The source is missing or a filesystem operation failed.
    """
    src = Path(src)
    dest = Path(dest)
    skip = skip or (lambda p: False)
    copied: list[Path] = []

    if not src.exists() and not src.is_symlink():
        raise FileNotFoundError(f"source not found: {src}")

    if src.is_file() and not src.is_symlink():
        dest.mkdir(parents=True, exist_ok=True)
        target = dest / src.name
        _remove(target)
        shutil.copy2(src, target)
        return [Path(src.name)]

    if not src.is_dir() or src.is_symlink():
        logger.debug("skip %s (not a regular directory)", src)
        return copied

    _mirror_dir(src, dest, Path(), skip, copied)
    return copied


def _mirror_dir(src: Path, dest: Path, rel: Path, skip: SkipFunc, copied: list[Path]) -> None:
    if dest.is_symlink() or (dest.exists() and not dest.is_dir()):
        dest.unlink()
    dest.mkdir(parents=True, exist_ok=True)

    keep = set()
    with os.scandir(src) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        path = Path(entry.path)
        if entry.is_symlink() or skip(path):
            continue
        keep.add(entry.name)
        target = dest / entry.name
        if entry.is_dir():
            _mirror_dir(path, target, rel / entry.name, skip, copied)
        else:
            _remove(target)
            shutil.copy2(path, target)
        copied.append(rel / entry.name)

    with os.scandir(dest) as it:
        extras = [e for e in it if e.name not in keep and not skip(Path(e.path))]
    for entry in extras:
        logger.debug("remove %s", entry.path)
        _remove(Path(entry.path))


def _remove(path: Path) -> None:
    """Remove whatever is at *path* so a file can be written there."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()
