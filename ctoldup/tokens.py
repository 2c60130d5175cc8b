"""Token resolution for path and name templates.

Merge and compression rules name their sources and destinations with
templates such as ``ctold-${CTOLD.TAG}-r${CTOLD.REV}.zip``. Four tokens are
recognized; anything else shaped like ``${...}`` is left untouched.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ctoldup.config.models import Configuration

SOURCE_TOKEN = "${CTOLD}"
TAG_TOKEN = "${CTOLD.TAG}"
REVISION_TOKEN = "${CTOLD.REV}"
DATETIME_TOKEN = "${DATETIME.NOW}"

TOKENS = (SOURCE_TOKEN, TAG_TOKEN, REVISION_TOKEN, DATETIME_TOKEN)

DATETIME_FORMAT = "%Y%m%d-%H%M%S"

_TOKEN_RE = re.compile("|".join(re.escape(t) for t in TOKENS))


def token_values(cfg: Configuration, now: datetime | None = None) -> dict[str, str]:
    """Return the current value of every token for *cfg*."""
    if now is None:
        now = datetime.now()
    return {
        SOURCE_TOKEN: str(cfg.source.working_copy),
        TAG_TOKEN: cfg.source.tag,
        REVISION_TOKEN: cfg.source.last,
        DATETIME_TOKEN: now.strftime(DATETIME_FORMAT),
    }


def resolve(template: str, cfg: Configuration, now: datetime | None = None) -> str:
    """Substitute every recognized token in *template*.

    The substitution is a single pass: substituted values are never scanned
    again, so a tag that happens to contain ``${CTOLD.REV}`` stays literal.
    """
    if not template:
        return template
    values = token_values(cfg, now)
    return _TOKEN_RE.sub(lambda m: values[m.group(0)], template)


def find_tokens(template: str) -> list[str]:
    """List the recognized tokens in *template*, in order of appearance."""
    return _TOKEN_RE.findall(template or "")
