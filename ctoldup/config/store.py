"""Load and persist the YAML configuration file."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from ctoldup.config.models import (
    CompressionRule,
    Configuration,
    MergeRule,
    SourceConfig,
)
from ctoldup.errors import (
    ConfigExistsError,
    ConfigParseError,
    ConfigWriteError,
    DirectoryNotFoundError,
    InvalidPathError,
    NotRegularFileError,
)

logger = logging.getLogger(__name__)

# Permissions of configuration files created on disk.
PERMISSIONS = 0o600

SOURCE_KEY = "ctold"
MERGE_KEY = "merge"
COMPRESS_KEY = "compress"


def new_config(path: str | Path) -> Configuration:
    """Return an in-memory configuration at *path* holding the defaults."""
    return Configuration(path=Path(path))


def load_config(path: str | Path, create: bool = False) -> Configuration:
    """Load the configuration at *path*, or the defaults if it does not exist.

    Args:
        path: Location of the YAML configuration file.
        create: Strict creation: fail if the file already exists.

    Raises:
        DirectoryNotFoundError: The containing directory is missing.
        InvalidPathError: The containing path is not a directory.
        NotRegularFileError: *path* exists but is not a regular file.
        ConfigExistsError: *create* was requested and *path* exists.
        ConfigParseError: The document is unreadable or malformed.
    """
    path = Path(path)
    directory = path.parent
    if not directory.exists():
        raise DirectoryNotFoundError(str(directory))
    if not directory.is_dir():
        raise InvalidPathError(str(directory))

    if not path.exists():
        return new_config(path)
    if not path.is_file():
        raise NotRegularFileError(str(path))
    if create:
        raise ConfigExistsError(str(path))

    logger.info("parse %s", path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"{path}: {e}") from e
    except OSError as e:
        raise ConfigParseError(f"cannot read {path}: {e}") from e

    return config_from_dict(path, data)


def save_config(cfg: Configuration) -> None:
    """Write *cfg* to ``cfg.path`` as YAML.

    Raises:
        ConfigWriteError: The file could not be written.
    """
    text = yaml.safe_dump(config_to_dict(cfg), sort_keys=False, default_flow_style=False)
    try:
        fd = os.open(cfg.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PERMISSIONS)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise ConfigWriteError(f"cannot write {cfg.path}: {e}") from e
    logger.debug("wrote %s", cfg.path)


# ── Conversion ───────────────────────────────────────────────────────


def config_to_dict(cfg: Configuration) -> dict:
    source = cfg.source
    return {
        SOURCE_KEY: {
            "repo": source.repo,
            "tag": source.tag,
            "local": source.local,
            "last": source.last,
            "vcs": source.vcs,
        },
        MERGE_KEY: {
            src: {"into": rule.into, "roster": rule.roster, "skip": list(rule.skip)}
            for src, rule in cfg.merge.items()
        },
        COMPRESS_KEY: {
            src: {
                "path": rule.path,
                "overwrite": rule.overwrite,
                "method": rule.method,
                "level": rule.level,
            }
            for src, rule in cfg.compress.items()
        },
    }


def config_from_dict(path: str | Path, data) -> Configuration:
    """Build a configuration from parsed YAML, seeded with the defaults.

    Omitted sections and fields keep their defaults. A ``merge`` or
    ``compress`` section that is present replaces the default rule map.
    """
    cfg = new_config(path)
    if data is None:
        return cfg
    if not isinstance(data, dict):
        raise ConfigParseError(f"{path}: expected a mapping at top level")

    source = _section(data, SOURCE_KEY, path)
    if source is not None:
        defaults = cfg.source
        cfg.source = SourceConfig(
            repo=_str(source, "repo", defaults.repo),
            tag=_str(source, "tag", defaults.tag),
            local=_str(source, "local", defaults.local),
            last=_str(source, "last", defaults.last),
            vcs=_str(source, "vcs", defaults.vcs),
        )

    merge = _section(data, MERGE_KEY, path)
    if merge is not None:
        cfg.merge = {
            str(src): _merge_rule(rule or {}, path, src) for src, rule in merge.items()
        }

    compress = _section(data, COMPRESS_KEY, path)
    if compress is not None:
        cfg.compress = {
            str(src): _compression_rule(rule or {}, path, src)
            for src, rule in compress.items()
        }

    return cfg


def _section(data: dict, key: str, path) -> dict | None:
    if key not in data or data[key] is None:
        return None
    value = data[key]
    if not isinstance(value, dict):
        raise ConfigParseError(f"{path}: section {key!r} must be a mapping")
    return value


def _merge_rule(data, path, src) -> MergeRule:
    if not isinstance(data, dict):
        raise ConfigParseError(f"{path}: merge rule {src!r} must be a mapping")
    rule = MergeRule()
    skip = data.get("skip") or []
    if not isinstance(skip, list):
        raise ConfigParseError(f"{path}: merge rule {src!r}: skip must be a list")
    return MergeRule(
        into=_str(data, "into", rule.into),
        roster=_bool(data, "roster", rule.roster, path),
        skip=[str(s) for s in skip],
    )


def _compression_rule(data, path, src) -> CompressionRule:
    if not isinstance(data, dict):
        raise ConfigParseError(f"{path}: compress rule {src!r} must be a mapping")
    rule = CompressionRule()
    level = data.get("level", rule.level)
    if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level <= 9:
        raise ConfigParseError(
            f"{path}: compress rule {src!r}: level must be an integer 0-9, got {level!r}"
        )
    return CompressionRule(
        path=_str(data, "path", rule.path),
        overwrite=_bool(data, "overwrite", rule.overwrite, path),
        method=_str(data, "method", rule.method),
        level=level,
    )


def _str(data: dict, key: str, default: str) -> str:
    value = data.get(key, default)
    if value is None:
        return ""
    return str(value)


def _bool(data: dict, key: str, default: bool, path) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigParseError(f"{path}: {key!r} must be true or false, got {value!r}")
    return value
