"""Merge fan-out — materialize every merge destination from its source."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ctoldup.config.models import ROSTER_FILE, Configuration, MergeRule
from ctoldup.errors import MergeIOError, UndefinedMergeDestination
from ctoldup.sync.mirror import mirror_tree, skip_names
from ctoldup.sync.roster import take_roster
from ctoldup.tokens import find_tokens, resolve

logger = logging.getLogger(__name__)


@dataclass
class MergeOutcome:
    """What a single merge rule produced."""

    source: Path
    destination: Path
    copied: int = 0
    roster: Path | None = None


def merge_all(
    cfg: Configuration,
    metadata_dir: str = ".svn",
    now: datetime | None = None,
) -> list[MergeOutcome]:
    """Run every merge rule of *cfg* in declaration order.

    The first failing rule aborts the fan-out; destinations produced by
    earlier rules are left in place.

    Raises:
        UndefinedMergeDestination: A rule's destination resolved to "".
        MergeIOError: Creating or mirroring a destination failed.
    """
    outcomes = []
    for src, rule in cfg.merge.items():
        outcomes.append(merge_one(cfg, src, rule, metadata_dir, now))
    return outcomes


def merge_one(
    cfg: Configuration,
    src: str,
    rule: MergeRule,
    metadata_dir: str = ".svn",
    now: datetime | None = None,
) -> MergeOutcome:
    logger.debug("merge rule %r tokens: %s", src, find_tokens(src) + find_tokens(rule.into))
    source = resolve(src, cfg, now)
    dest = resolve(rule.into, cfg, now)
    if dest == "":
        raise UndefinedMergeDestination(src)

    source_path = Path(source)
    dest_path = Path(dest)
    _check_overlap(cfg, source_path, dest_path)
    skip = skip_names([metadata_dir, *rule.skip])

    try:
        if not dest_path.exists():
            dest_path.mkdir(parents=True)
        logger.info("copy %s -> %s", source_path, dest_path)
        copied = mirror_tree(source_path, dest_path, skip=skip)
    except OSError as e:
        raise MergeIOError(f"merge {source!r} -> {dest!r} failed: {e}") from e

    outcome = MergeOutcome(source=source_path, destination=dest_path, copied=len(copied))
    if rule.roster:
        logger.info("roster %s -> %s", dest_path, dest_path / ROSTER_FILE)
        try:
            outcome.roster = take_roster(dest_path, skip=skip)
        except OSError as e:
            raise MergeIOError(f"cannot write roster in {dest!r}: {e}") from e
    return outcome


def _check_overlap(cfg: Configuration, source: Path, dest: Path) -> None:
    """Refuse destinations whose mirror would delete or recurse into inputs.

    Mirroring prunes everything in the destination that the source lacks,
    so a destination holding the source (or the configuration file) would
    lose it. A destination inside the source would be copied into itself.
    """
    source = source.resolve()
    dest = dest.resolve()
    if not source.is_dir():
        if dest in (source, source.parent):
            raise MergeIOError(f"merge would copy {str(source)!r} onto itself")
        return
    if dest == source or dest in source.parents:
        raise MergeIOError(f"merge destination {str(dest)!r} contains its source {str(source)!r}")
    if source in dest.parents:
        raise MergeIOError(f"merge destination {str(dest)!r} is inside its source {str(source)!r}")
    if dest in Path(cfg.path).resolve().parents:
        raise MergeIOError(
            f"merge destination {str(dest)!r} contains the configuration file {str(cfg.path)!r}"
        )
