"""ctoldup CLI — synchronize the working copy and fan it out."""

import logging

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ctoldup import __version__
from ctoldup.errors import CtoldupError

console = Console()

CONFIG_FILE_DEFAULT = "ctoldup.yml"


@click.command()
@click.version_option(version=__version__)
@click.option(
    "--file", "-f", "config_path",
    default=CONFIG_FILE_DEFAULT,
    envvar="CTOLDUP_CONFIG",
    show_default=True,
    help="Configuration file path",
)
@click.option("--init", "-n", "init", is_flag=True, help="Initialize config file with default settings")
@click.option(
    "--fanout",
    default="always",
    type=click.Choice(["always", "updated", "never"]),
    show_default=True,
    help="When to run the merge and compression rules",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every step, including debug detail")
@click.pass_context
def main(ctx: click.Context, config_path: str, init: bool, fanout: str, verbose: bool):
    """ctoldup — keep a local working copy in sync with its repository.

    On every run the working copy is updated (or checked out), the new
    revision is recorded in the configuration file, and the configured
    merge and compression rules are applied.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        if init:
            _init(config_path)
        else:
            _sync(config_path, fanout)
    except CtoldupError as e:
        console.print(f"[red]error[/] ({e.stage}): {escape(str(e))}")
        ctx.exit(e.exit_code)


def _init(config_path: str) -> None:
    from ctoldup.sync.pipeline import initialize

    console.print(f"\n[bold blue]ctoldup[/] — Initializing: {config_path}\n")
    initialize(config_path)
    console.print(f"  [green]v[/] Wrote default configuration to {config_path}")


def _sync(config_path: str, fanout: str) -> None:
    from ctoldup.sync.pipeline import FanoutPolicy, Pipeline

    console.print(f"\n[bold blue]ctoldup[/] — Synchronizing: {config_path}\n")
    result = Pipeline(config_path, fanout=FanoutPolicy(fanout)).run()

    if result.updated:
        previous = result.previous or "(none)"
        console.print(f"  [green]v[/] Revision {previous} -> {result.revision}")
    else:
        console.print(f"  [green]v[/] Revision {result.revision} (no change)")

    if not result.fanout_ran:
        console.print("  [yellow]![/] Fan-out skipped")
        return

    if result.merges or result.archives:
        table = Table(title="Fan-out")
        table.add_column("Kind", style="dim")
        table.add_column("Source", style="cyan")
        table.add_column("Output")
        table.add_column("Files", justify="right", style="green")
        for m in result.merges:
            table.add_row("merge", str(m.source), str(m.destination), str(m.copied))
        for a in result.archives:
            table.add_row(a.method, str(a.source), str(a.archive), str(a.members))
        console.print(table)

    console.print("\n[green]Success![/]")


if __name__ == "__main__":
    main()
