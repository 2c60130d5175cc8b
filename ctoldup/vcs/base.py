"""Version client contract and the fetch sequence built on it."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from ctoldup.errors import ConnectivityError, SyncFailure, VcsError

logger = logging.getLogger(__name__)


@runtime_checkable
class VersionClient(Protocol):
    """What the pipeline needs from a version-control backend.

    ``remote`` identifies the upstream in messages; ``metadata_dir`` is the
    name of the per-directory metadata folder merges must not copy.
    """

    remote: str
    metadata_dir: str

    def ping(self) -> bool: ...

    def has_local_copy(self) -> bool: ...

    def checkout(self) -> None: ...

    def update(self) -> None: ...

    def current_revision(self) -> str: ...

    def local_path(self) -> Path: ...


def fetch(client: VersionClient) -> str:
    """Bring the working copy up to date and return its revision.

    Pings the remote, then updates an existing working copy or checks out a
    new one, then queries the revision. No retry is attempted.

    Raises:
        ConnectivityError: The remote did not answer.
        SyncFailure: Checkout, update, or the revision query failed.
    """
    logger.info("ping %s", client.remote)
    if not client.ping():
        raise ConnectivityError(client.remote)

    try:
        if client.has_local_copy():
            logger.info("update %s -> %s", client.remote, client.local_path())
            client.update()
        else:
            logger.info("checkout %s -> %s", client.remote, client.local_path())
            client.checkout()
        return client.current_revision()
    except (VcsError, OSError) as e:
        raise SyncFailure(client.remote, str(e)) from e
