"""Tests for the orchestrator — revision checkpointing and fan-out sequencing."""

import tempfile
import zipfile
from pathlib import Path

import pytest

from ctoldup.config import (
    CompressionRule,
    Configuration,
    MergeRule,
    SourceConfig,
    load_config,
    save_config,
)
from ctoldup.errors import (
    ClientError,
    ConfigExistsError,
    ConfigParseError,
    SyncFailure,
    UndefinedMergeDestination,
)
from ctoldup.sync.pipeline import FanoutPolicy, Pipeline, RunState, initialize

from fakes import FakeClient


def _setup(tmp: Path, last: str = "", merge=None, compress=None) -> Path:
    """Write a configuration whose rules stage and zip the working copy."""
    path = tmp / "ctoldup.yml"
    cfg = Configuration(
        path=path,
        source=SourceConfig(repo="fake://repo", tag="trunk", local=str(tmp / "wc"), last=last),
        merge=merge if merge is not None else {
            "${CTOLD}": MergeRule(into=str(tmp / "stage"), roster=True),
        },
        compress=compress if compress is not None else {
            str(tmp / "stage"): CompressionRule(path=str(tmp / "dist" / "ctold-r${CTOLD.REV}")),
        },
    )
    save_config(cfg)
    return path


def _factory(client_box: list, **kwargs):
    def factory(source: SourceConfig) -> FakeClient:
        client = FakeClient(source.working_copy, **kwargs)
        client_box.append(client)
        return client

    return factory


# --- Scenario Tests ---


def test_first_run_records_revision_and_fans_out():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp, last="")
        clients = []

        result = Pipeline(path, client_factory=_factory(clients, revision="142")).run()

        assert result.updated
        assert result.revision == "142"
        assert result.previous == ""
        assert result.fanout_ran
        assert result.state is RunState.DONE
        assert load_config(path).source.last == "142"
        assert clients[0].calls[2] == "checkout"

        assert (tmp / "stage" / "README").exists()
        assert (tmp / "stage" / ".roster.yml").exists()
        assert not (tmp / "stage" / ".svn").exists()
        archive = tmp / "dist" / "ctold-r142.zip"
        assert result.archives[0].archive == archive
        with zipfile.ZipFile(archive) as zf:
            assert "stage/src/main.c" in zf.namelist()


def test_unchanged_revision_still_fans_out():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp, last="142")
        before = path.read_text()

        pipeline = Pipeline(path, client_factory=_factory([], revision="142"))
        result = pipeline.run()

        assert not result.updated
        assert result.fanout_ran
        assert load_config(path).source.last == "142"
        assert path.read_text() == before
        assert (tmp / "stage" / "README").exists()
        assert (tmp / "dist" / "ctold-r142.zip").exists()


def test_empty_first_revision_counts_as_update():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp, last="", merge={}, compress={})
        result = Pipeline(path, client_factory=_factory([], revision="")).run()
        assert result.updated


def test_undefined_merge_destination_aborts_before_compression():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(
            tmp,
            last="",
            merge={"${CTOLD}": MergeRule(into="", roster=True)},
            compress={"${CTOLD}": CompressionRule(path=str(tmp / "dist" / "wc"))},
        )
        pipeline = Pipeline(path, client_factory=_factory([], revision="142"))

        with pytest.raises(UndefinedMergeDestination) as exc:
            pipeline.run()

        assert exc.value.source == "${CTOLD}"
        assert pipeline.state is RunState.ABORTED
        assert pipeline.error is exc.value
        assert not (tmp / "dist").exists()
        # The checkpoint was written before the fan-out started
        assert load_config(path).source.last == "142"


def test_rerun_after_failed_fanout_is_unchanged_but_fans_out():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp, last="", merge={"${CTOLD}": MergeRule(into="")})
        with pytest.raises(UndefinedMergeDestination):
            Pipeline(path, client_factory=_factory([], revision="142")).run()

        cfg = load_config(path)
        cfg.merge = {"${CTOLD}": MergeRule(into=str(tmp / "stage"))}
        save_config(cfg)

        result = Pipeline(path, client_factory=_factory([], revision="142")).run()
        assert not result.updated
        assert result.fanout_ran
        assert (tmp / "stage" / "README").exists()


# --- Fan-out Policy Tests ---


def test_updated_policy_skips_fanout_when_unchanged():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp, last="142")
        result = Pipeline(path, fanout=FanoutPolicy.UPDATED, client_factory=_factory([], revision="142")).run()
        assert not result.fanout_ran
        assert result.state is RunState.DONE
        assert not (tmp / "stage").exists()


def test_updated_policy_fans_out_on_new_revision():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp, last="141")
        result = Pipeline(path, fanout=FanoutPolicy.UPDATED, client_factory=_factory([], revision="142")).run()
        assert result.fanout_ran
        assert result.previous == "141"
        assert (tmp / "stage" / "README").exists()


def test_never_policy_only_checkpoints():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp, last="")
        result = Pipeline(path, fanout=FanoutPolicy.NEVER, client_factory=_factory([], revision="9")).run()
        assert not result.fanout_ran
        assert load_config(path).source.last == "9"
        assert not (tmp / "stage").exists()


# --- Failure Tests ---


def test_fetch_failure_leaves_checkpoint_untouched():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp, last="141")
        pipeline = Pipeline(path, client_factory=_factory([], fail_on="checkout"))
        with pytest.raises(SyncFailure):
            pipeline.run()
        assert pipeline.state is RunState.ABORTED
        assert load_config(path).source.last == "141"
        assert not (tmp / "stage").exists()


def test_client_construction_failure():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        path = _setup(tmp)

        def factory(source):
            raise ClientError("no backend")

        with pytest.raises(ClientError):
            Pipeline(path, client_factory=factory).run()


def test_unexpected_error_still_aborts():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _setup(Path(tmpdir))

        def factory(source):
            raise RuntimeError("backend exploded")

        pipeline = Pipeline(path, client_factory=factory)
        with pytest.raises(RuntimeError):
            pipeline.run()
        assert pipeline.state is RunState.ABORTED
        assert isinstance(pipeline.error, RuntimeError)


def test_parse_failure_aborts_in_init_state():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "ctoldup.yml"
        path.write_text("ctold: [broken\n")
        pipeline = Pipeline(path, client_factory=_factory([]))
        with pytest.raises(ConfigParseError):
            pipeline.run()
        assert pipeline.state is RunState.ABORTED


# --- Initialize Tests ---


def test_initialize_writes_defaults_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "ctoldup.yml"
        cfg = initialize(path)
        assert path.exists()
        assert load_config(path) == cfg
        with pytest.raises(ConfigExistsError):
            initialize(path)
