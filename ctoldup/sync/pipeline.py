"""Orchestrator — load, fetch, checkpoint the revision, then fan out.

One run walks a fixed sequence of states::

    INIT -> LOADED -> FETCHED -> UPDATED_PERSISTED | UNCHANGED
         -> MERGED_COMPRESSED -> DONE

Any error moves the run to ABORTED and is re-raised. The new revision is
written to the configuration file before the fan-out starts, so a crash
during the fan-out is recovered by simply running again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from ctoldup.config import Configuration, SourceConfig, load_config, save_config
from ctoldup.sync.compress import ArchiveOutcome, compress_all
from ctoldup.sync.detector import is_updated
from ctoldup.sync.merge import MergeOutcome, merge_all
from ctoldup.vcs import VersionClient, create_client, fetch

logger = logging.getLogger(__name__)


class RunState(Enum):
    INIT = "init"
    LOADED = "loaded"
    FETCHED = "fetched"
    UPDATED_PERSISTED = "updated_persisted"
    UNCHANGED = "unchanged"
    MERGED_COMPRESSED = "merged_compressed"
    DONE = "done"
    ABORTED = "aborted"


class FanoutPolicy(Enum):
    """When the merge and compression fan-outs run."""

    ALWAYS = "always"  # every run, updated or not
    UPDATED = "updated"  # only when a new revision was fetched
    NEVER = "never"  # fetch and checkpoint only


@dataclass
class RunResult:
    """Summary of a completed run."""

    config_path: Path
    revision: str = ""
    previous: str = ""
    updated: bool = False
    fanout_ran: bool = False
    state: RunState = RunState.INIT
    merges: list[MergeOutcome] = field(default_factory=list)
    archives: list[ArchiveOutcome] = field(default_factory=list)


ClientFactory = Callable[[SourceConfig], VersionClient]


class Pipeline:
    """A single synchronization run against one configuration file."""

    def __init__(
        self,
        config_path: str | Path,
        fanout: FanoutPolicy = FanoutPolicy.ALWAYS,
        client_factory: ClientFactory | None = None,
    ):
        self.config_path = Path(config_path)
        self.fanout = fanout
        self.client_factory = client_factory or create_client
        self.state = RunState.INIT
        self.config: Configuration | None = None
        self.error: Exception | None = None

    def run(self) -> RunResult:
        """Execute the run to completion.

        Raises:
            CtoldupError: Whichever stage failed first. On this or any other
                exception ``self.state`` is ``ABORTED`` and ``self.error``
                holds it.
        """
        result = RunResult(config_path=self.config_path)
        try:
            self._run(result)
        except Exception as e:
            self.error = e
            self._enter(RunState.ABORTED)
            result.state = self.state
            raise
        result.state = self.state
        return result

    def _run(self, result: RunResult) -> None:
        cfg = load_config(self.config_path)
        self.config = cfg
        self._enter(RunState.LOADED)

        client = self.client_factory(cfg.source)
        revision = fetch(client)
        self._enter(RunState.FETCHED)

        result.revision = revision
        result.previous = cfg.source.last
        result.updated = is_updated(revision, cfg.source.last)
        if result.updated:
            if cfg.source.last_valid:
                logger.info("revision %s -> %s", cfg.source.last, revision)
            else:
                logger.info("revision %s", revision)
            cfg.source.last = revision
            save_config(cfg)
            self._enter(RunState.UPDATED_PERSISTED)
        else:
            logger.info("revision %s (no change)", revision)
            self._enter(RunState.UNCHANGED)

        if not self._should_fan_out(result.updated):
            logger.info("fan-out skipped (policy %s)", self.fanout.value)
            self._enter(RunState.DONE)
            return

        result.fanout_ran = True
        result.merges = merge_all(cfg, metadata_dir=client.metadata_dir)
        result.archives = compress_all(cfg)
        self._enter(RunState.MERGED_COMPRESSED)
        self._enter(RunState.DONE)

    def _should_fan_out(self, updated: bool) -> bool:
        if self.fanout is FanoutPolicy.ALWAYS:
            return True
        if self.fanout is FanoutPolicy.UPDATED:
            return updated
        return False

    def _enter(self, state: RunState) -> None:
        logger.debug("state %s -> %s", self.state.value, state.value)
        self.state = state


def initialize(config_path: str | Path) -> Configuration:
    """Write a default configuration to *config_path*.

    Raises:
        ConfigExistsError: The file already exists.
        ConfigPathError: The path is otherwise unusable.
        ConfigWriteError: The file could not be written.
    """
    cfg = load_config(config_path, create=True)
    save_config(cfg)
    return cfg
