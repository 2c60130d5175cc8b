"""Compression fan-out — produce an archive for every compression rule."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ctoldup.config.models import CompressionRule, Configuration
from ctoldup.errors import CompressionError
from ctoldup.sync.archive import with_zip_extension, write_zip
from ctoldup.tokens import resolve

logger = logging.getLogger(__name__)

METHODS = ("zip",)


@dataclass
class ArchiveOutcome:
    """What a single compression rule produced."""

    source: Path
    archive: Path
    method: str
    members: int = 0


def compress_all(cfg: Configuration, now: datetime | None = None) -> list[ArchiveOutcome]:
    """Run every compression rule of *cfg* in declaration order.

    Rules naming an unknown method are skipped. The first failing rule
    aborts the fan-out; archives already written are left in place.

    Raises:
        CompressionError: An archive could not be written.
    """
    outcomes = []
    for src, rule in cfg.compress.items():
        outcome = compress_one(cfg, src, rule, now)
        if outcome is not None:
            outcomes.append(outcome)
    return outcomes


def compress_one(
    cfg: Configuration,
    src: str,
    rule: CompressionRule,
    now: datetime | None = None,
) -> ArchiveOutcome | None:
    source = resolve(src, cfg, now)
    dest = resolve(rule.path, cfg, now)

    if rule.method not in METHODS:
        logger.warning("skip %s: unsupported compression method %r", source, rule.method)
        return None

    if dest == "":
        raise CompressionError(f"archive path undefined: {src!r}")
    dest = with_zip_extension(dest)
    logger.info("zip %s -> %s", source, dest)
    try:
        members = write_zip([source], dest, level=rule.level, overwrite=rule.overwrite)
    except (OSError, ValueError) as e:
        raise CompressionError(f"zip {source!r} -> {dest!r} failed: {e}") from e
    return ArchiveOutcome(source=Path(source), archive=Path(dest), method=rule.method, members=members)
