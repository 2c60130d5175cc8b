"""Update detection — has the remote advanced past the recorded revision?"""

from __future__ import annotations

from ctoldup.config.models import LAST_DEFAULT


def is_updated(fetched: str, last: str) -> bool:
    """Return True when *fetched* differs from *last*.

    A working copy that was never synchronized (``last`` is empty) always
    counts as updated, even if the fetched revision is empty too.
    """
    return fetched != last or last == LAST_DEFAULT
