"""CLI entry point: rubyscan.

Subcommands:
    rubyscan scan                                  # scan the current directory
    rubyscan scan --repo github.com/org/repo       # identify the repository
    rubyscan -v scan --subdir lib/foo              # verbose diagnostics on stderr
"""

from __future__ import annotations

from pathlib import Path

import click
import structlog

from rubyscan.core.logging import setup_logging
from rubyscan.scanner import scan, serialize


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging (stderr)")
def main(verbose: bool) -> None:
    """rubyscan: discover Ruby gems and scripts in a directory tree."""
    setup_logging(verbose)


@main.command("scan")
@click.option("--repo", default=None, help="URI of the repository being scanned")
@click.option("--subdir", default=None, help="Path of the current dir relative to the repo root")
@click.argument("args", nargs=-1, metavar="")
def scan_command(repo: str | None, subdir: str | None, args: tuple[str, ...]) -> None:
    """Discover Ruby gems and loose scripts under the current directory.

    Writes one JSON array of units, sorted by name, to stdout.
    """
    if args:
        raise click.UsageError(
            f"no args may be specified to scan (got {list(args)!r}); "
            "it only scans the current directory"
        )
    with structlog.contextvars.bound_contextvars(repo=repo, subdir=subdir):
        units = scan(Path.cwd(), repo=repo)
    click.echo(serialize(units))


if __name__ == "__main__":
    main()
