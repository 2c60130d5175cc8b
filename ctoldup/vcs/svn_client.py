"""Subversion backend — drives the ``svn`` command line."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ctoldup.errors import VcsError

logger = logging.getLogger(__name__)


class SvnClient:
    """Keeps ``path`` checked out from ``url`` (``repo/tag``)."""

    metadata_dir = ".svn"

    def __init__(self, url: str, path: str | Path, executable: str = "svn", timeout: int | None = None):
        self.url = url
        self.path = Path(path)
        self.executable = executable
        self.timeout = timeout

    @property
    def remote(self) -> str:
        return self.url

    def ping(self) -> bool:
        try:
            self._svn("info", self.url)
        except VcsError:
            return False
        return True

    def has_local_copy(self) -> bool:
        return (self.path / self.metadata_dir).is_dir()

    def checkout(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._svn("checkout", self.url, str(self.path))

    def update(self) -> None:
        self._svn("update", str(self.path))

    def current_revision(self) -> str:
        out = self._svn("info", "--show-item", "last-changed-revision", str(self.path))
        revision = out.strip()
        if not revision:
            raise VcsError(f"svn reported no revision for {self.path}")
        return revision

    def local_path(self) -> Path:
        return self.path

    def _svn(self, *args: str) -> str:
        command = [self.executable, "--non-interactive", *args]
        logger.debug("run %s", " ".join(command))
        try:
            proc = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise VcsError(f"svn {args[0]} timed out after {self.timeout}s") from e
        except OSError as e:
            raise VcsError(f"cannot run {self.executable}: {e}") from e
        if proc.returncode != 0:
            detail = proc.stderr.strip() or f"exit status {proc.returncode}"
            raise VcsError(f"svn {args[0]} failed: {detail}")
        return proc.stdout
