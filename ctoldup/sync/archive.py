"""Zip archiving of files and directory trees."""

from __future__ import annotations

import os
import zipfile
from pathlib import Path

ZIP_EXTENSION = ".zip"

# Member types that gain nothing from another deflate pass.
COMPRESSED_EXTENSIONS = {
    ".zip", ".gz", ".tgz", ".bz2", ".tbz2", ".xz", ".txz", ".lz", ".lzma",
    ".zst", ".7z", ".rar", ".jar", ".war", ".whl", ".apk",
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic",
    ".mp3", ".mp4", ".m4a", ".m4v", ".mov", ".avi", ".mkv", ".ogg", ".flac",
    ".pdf", ".docx", ".xlsx", ".pptx", ".odt",
}


def has_zip_extension(path: str | Path) -> bool:
    return str(path).lower().endswith(ZIP_EXTENSION)


def with_zip_extension(path: str) -> str:
    """Append ``.zip`` to *path* unless it already ends with it."""
    return path if has_zip_extension(path) else f"{path}{ZIP_EXTENSION}"


def write_zip(
    sources: list[str | Path],
    dest: str | Path,
    level: int = 9,
    overwrite: bool = True,
    selective: bool = True,
) -> int:
    """Archive each of *sources* as a top-level member of the zip *dest*.

    A directory source is stored under its own base name with its contents
    beneath it. Intermediate directories of *dest* are created.

    Args:
        sources: Files or directories to archive.
        dest: Path of the archive to write.
        level: 0 stores members uncompressed, 1-9 deflate at that level.
        overwrite: Replace an existing archive; otherwise refuse.
        selective: Store members that are already compressed.

    Returns:
        The number of file members written.

    Raises:
        FileExistsError: *dest* exists and *overwrite* is False.
        FileNotFoundError: A source does not exist.
        OSError: Reading a source or writing the archive failed.
    """
    dest = Path(dest)
    if dest.exists() and not overwrite:
        raise FileExistsError(f"file already exists: {dest}")
    for src in sources:
        if not Path(src).exists():
            raise FileNotFoundError(f"source not found: {src}")

    dest.parent.mkdir(parents=True, exist_ok=True)
    dest_abs = dest.resolve()
    method = zipfile.ZIP_STORED if level == 0 else zipfile.ZIP_DEFLATED

    count = 0
    with zipfile.ZipFile(dest, "w", compression=method, compresslevel=level or None) as zf:
        for src in sources:
            src = Path(src)
            top = src.resolve().name
            if src.is_file():
                _add_file(zf, src, top, method, level, selective)
                count += 1
                continue
            for dirpath, dirnames, filenames in os.walk(src):
                dirnames.sort()
                current = Path(dirpath)
                arcdir = Path(top) / current.relative_to(src)
                zf.write(current, arcdir.as_posix() + "/")
                for filename in sorted(filenames):
                    path = current / filename
                    if not path.exists() or path.resolve() == dest_abs:
                        continue  # dangling link, or the archive itself
                    _add_file(zf, path, (arcdir / filename).as_posix(), method, level, selective)
                    count += 1
    return count


def _add_file(zf: zipfile.ZipFile, path: Path, arcname: str, method: int, level: int, selective: bool) -> None:
    if selective and path.suffix.lower() in COMPRESSED_EXTENSIONS:
        zf.write(path, arcname, compress_type=zipfile.ZIP_STORED)
    else:
        zf.write(path, arcname, compress_type=method, compresslevel=level or None)
