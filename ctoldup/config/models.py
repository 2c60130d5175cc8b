"""Configuration records — source settings plus merge and compression rules."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from ctoldup.tokens import SOURCE_TOKEN, TAG_TOKEN, REVISION_TOKEN, DATETIME_TOKEN

REPO_DEFAULT = "https://github.com/ardnew/ctoldup"
TAG_DEFAULT = "trunk"
LOCAL_DEFAULT = ".ctoldup"
LAST_DEFAULT = ""  # never synchronized
VCS_DEFAULT = "svn"

ROSTER_FILE = ".roster.yml"


@dataclass
class SourceConfig:
    """Where the remote tree lives and where its working copy is kept."""

    repo: str = REPO_DEFAULT
    tag: str = TAG_DEFAULT
    local: str = LOCAL_DEFAULT
    last: str = LAST_DEFAULT
    vcs: str = VCS_DEFAULT

    @property
    def url(self) -> str:
        return f"{self.repo}/{self.tag}"

    @property
    def working_copy(self) -> Path:
        return Path(os.path.normpath(os.path.join(self.local, self.tag)))

    @property
    def last_valid(self) -> bool:
        return self.last != LAST_DEFAULT


@dataclass
class MergeRule:
    into: str = ""
    roster: bool = True
    skip: list[str] = field(default_factory=list)  # base-name globs


@dataclass
class CompressionRule:
    path: str = ""
    overwrite: bool = True
    method: str = "zip"
    level: int = 9


def default_merge() -> dict[str, MergeRule]:
    return {SOURCE_TOKEN: MergeRule(into="", roster=True)}


def default_compress() -> dict[str, CompressionRule]:
    return {
        SOURCE_TOKEN: CompressionRule(
            path=f"ctold-{TAG_TOKEN}-r{REVISION_TOKEN}-{DATETIME_TOKEN}.zip",
            overwrite=True,
            method="zip",
            level=9,
        )
    }


@dataclass
class Configuration:
    """A configuration file: source settings and the fan-out rules.

    ``path`` is where the configuration is persisted; it is never serialized.
    Rule maps keep the order they were declared in.
    """

    path: Path
    source: SourceConfig = field(default_factory=SourceConfig)
    merge: dict[str, MergeRule] = field(default_factory=default_merge)
    compress: dict[str, CompressionRule] = field(default_factory=default_compress)
