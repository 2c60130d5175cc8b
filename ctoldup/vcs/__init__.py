"""Version clients — the backends that keep the working copy current.

The pipeline only sequences the calls of :class:`VersionClient`; the
transport itself belongs to the backend (``svn`` command line or GitPython).
"""

from __future__ import annotations

import shutil

from ctoldup.config.models import SourceConfig
from ctoldup.errors import ClientError
from ctoldup.vcs.base import VersionClient, fetch

__all__ = ["VersionClient", "create_client", "fetch"]

BACKENDS = ("svn", "git")


def create_client(source: SourceConfig) -> VersionClient:
    """Construct the backend named by ``source.vcs``.

    Raises:
        ClientError: Unknown backend, or its tooling is not installed.
    """
    kind = source.vcs.lower()
    if kind == "svn":
        from ctoldup.vcs.svn_client import SvnClient

        if shutil.which("svn") is None:
            raise ClientError("svn executable not found on PATH")
        return SvnClient(source.url, source.working_copy)

    if kind == "git":
        try:
            from ctoldup.vcs.git_client import GitClient
        except ImportError as e:
            raise ClientError(f"git backend unavailable: {e}") from e
        return GitClient(source.repo, source.tag, source.working_copy)

    raise ClientError(f"unknown vcs {source.vcs!r} (expected one of: {', '.join(BACKENDS)})")
