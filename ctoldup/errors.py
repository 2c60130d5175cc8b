"""Error taxonomy for the ctoldup pipeline.

Every failure that aborts a run derives from :class:`CtoldupError` and names
the pipeline stage it belongs to, along with the process exit code the CLI
reports for that stage.
"""

from __future__ import annotations


class CtoldupError(Exception):
    """Base class for all errors that abort a run."""

    stage = "run"
    exit_code = 1


# ── Configuration ────────────────────────────────────────────────────


class ConfigError(CtoldupError):
    stage = "config"
    exit_code = 1


class ConfigPathError(ConfigError):
    """The configuration path cannot be used."""

    prefix = "invalid configuration path"

    def __init__(self, path: str):
        self.path = str(path)
        super().__init__(f"{self.prefix}: {self.path}")


class DirectoryNotFoundError(ConfigPathError):
    prefix = "directory not found"


class InvalidPathError(ConfigPathError):
    prefix = "invalid file path"


class NotRegularFileError(ConfigPathError):
    prefix = "not a regular file"


class ConfigExistsError(ConfigPathError):
    prefix = "file already exists"


class ConfigParseError(ConfigError):
    """The configuration document is malformed."""


class ConfigWriteError(CtoldupError):
    """The configuration could not be written to disk."""

    stage = "write"
    exit_code = 2


# ── Version client ───────────────────────────────────────────────────


class ClientError(CtoldupError):
    """A version client could not be constructed."""

    stage = "client"
    exit_code = 3


class VcsError(Exception):
    """Raised by a version client backend when a VCS operation fails.

    Not a :class:`CtoldupError`; :func:`ctoldup.vcs.fetch` translates it into
    a :class:`SyncFailure`.
    """


class SyncFailure(CtoldupError):
    """Checkout, update, or revision query against the remote failed."""

    stage = "fetch"
    exit_code = 4
    prefix = "cannot synchronize with repository"

    def __init__(self, remote: str, reason: str = ""):
        self.remote = remote
        self.reason = reason
        message = f"{self.prefix}: {remote}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ConnectivityError(SyncFailure):
    """The remote repository did not answer a ping."""

    prefix = "cannot connect to repository"


# ── Fan-out ──────────────────────────────────────────────────────────


class MergeError(CtoldupError):
    stage = "merge"
    exit_code = 5


class UndefinedMergeDestination(MergeError):
    """A merge rule resolved to an empty destination."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"merge destination undefined: {source!r}")


class MergeIOError(MergeError):
    """Creating or mirroring a merge destination failed."""


class CompressionError(CtoldupError):
    """Creating an archive failed."""

    stage = "compress"
    exit_code = 6
