"""Tests for token resolution in path templates."""

import itertools
from datetime import datetime
from pathlib import Path

from ctoldup.config import Configuration, SourceConfig
from ctoldup.tokens import (
    DATETIME_TOKEN,
    REVISION_TOKEN,
    SOURCE_TOKEN,
    TAG_TOKEN,
    TOKENS,
    find_tokens,
    resolve,
)

NOW = datetime(2024, 3, 7, 9, 5, 1)


def _config(**source) -> Configuration:
    defaults = {"repo": "svn://host/repo", "tag": "trunk", "local": "wc", "last": "142"}
    defaults.update(source)
    return Configuration(path=Path("ctoldup.yml"), source=SourceConfig(**defaults))


def test_each_token():
    cfg = _config()
    assert resolve(SOURCE_TOKEN, cfg, NOW) == str(Path("wc/trunk"))
    assert resolve(TAG_TOKEN, cfg, NOW) == "trunk"
    assert resolve(REVISION_TOKEN, cfg, NOW) == "142"
    assert resolve(DATETIME_TOKEN, cfg, NOW) == "20240307-090501"


def test_default_archive_template():
    cfg = _config()
    template = f"ctold-{TAG_TOKEN}-r{REVISION_TOKEN}-{DATETIME_TOKEN}.zip"
    assert resolve(template, cfg, NOW) == "ctold-trunk-r142-20240307-090501.zip"


def test_strings_without_tokens_are_unchanged():
    cfg = _config()
    for s in ["", "plain/path", "out.zip", "${", "$CTOLD", "{CTOLD}", "${ctold}"]:
        assert resolve(s, cfg, NOW) == s


def test_unknown_tokens_are_left_verbatim():
    cfg = _config()
    assert resolve("${HOME}/${CTOLD.TAG}/${NOPE}", cfg, NOW) == "${HOME}/trunk/${NOPE}"


def test_every_occurrence_is_replaced():
    cfg = _config()
    assert resolve(f"{TAG_TOKEN}-{TAG_TOKEN}", cfg, NOW) == "trunk-trunk"


def test_resolution_is_order_independent():
    cfg = _config()
    single = {t: resolve(t, cfg, NOW) for t in TOKENS}
    for perm in itertools.permutations(TOKENS):
        template = "|".join(perm)
        expected = "|".join(single[t] for t in perm)
        assert resolve(template, cfg, NOW) == expected


def test_values_are_not_expanded_again():
    cfg = _config(tag=REVISION_TOKEN, last=TAG_TOKEN)
    assert resolve(f"{TAG_TOKEN}/{REVISION_TOKEN}", cfg, NOW) == f"{REVISION_TOKEN}/{TAG_TOKEN}"


def test_values_reflect_live_configuration():
    cfg = _config(last="")
    assert resolve(REVISION_TOKEN, cfg, NOW) == ""
    cfg.source.last = "143"
    assert resolve(REVISION_TOKEN, cfg, NOW) == "143"


def test_datetime_defaults_to_now():
    cfg = _config()
    value = resolve(DATETIME_TOKEN, cfg)
    parsed = datetime.strptime(value, "%Y%m%d-%H%M%S")
    assert abs((datetime.now() - parsed).total_seconds()) < 60


def test_find_tokens():
    assert find_tokens("a/${CTOLD}/${X}/${CTOLD.REV}") == [SOURCE_TOKEN, REVISION_TOKEN]
    assert find_tokens("") == []
