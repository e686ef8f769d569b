"""
Command-line interface for twig.

Thin glue over Repository: each command calls one repository operation
and prints its result. Any TwigError is printed as a single line and the
process exits with status 1.
"""

import functools
import sys
from pathlib import Path
from typing import Callable, Optional

import click

from twig import __version__
from twig.config import config
from twig.errors import TwigError
from twig.logging import initialize_logging
from twig.merge import MergeStrategy
from twig.repository import Repository, format_log_entry


def _setup_logging(root: Path) -> None:
    log_config = config.logging
    initialize_logging(
        log_dir=config.repository.control_path(root) / log_config.log_dir,
        level=log_config.level,
        format_string=log_config.format,
        rotation=log_config.rotation,
        retention=log_config.retention,
        enable_file_logging=log_config.enable_file_logging
        and config.repository.control_path(root).is_dir(),
        enable_console_logging=log_config.enable_console_logging,
    )


def reports_errors(func: Callable) -> Callable:
    """Print TwigError messages instead of tracebacks and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TwigError as e:
            click.echo(str(e))
            sys.exit(1)

    return wrapper


@click.group()
@click.option(
    "--repo",
    "root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Working tree root (default: current directory)",
)
@click.version_option(version=__version__, prog_name="twig")
@click.pass_context
def cli(ctx: click.Context, root: Path):
    """twig - a small version-control system."""
    _setup_logging(root)
    ctx.obj = Repository(root)


@cli.command()
@click.pass_obj
@reports_errors
def init(repo: Repository):
    """Create a new repository in the working tree."""
    repo.init()


@cli.command()
@click.argument("path")
@click.pass_obj
@reports_errors
def add(repo: Repository, path: str):
    """Stage PATH for the next commit."""
    repo.add(path)


@cli.command()
@click.argument("message", default="")
@click.pass_obj
@reports_errors
def commit(repo: Repository, message: str):
    """Commit the staged changes with MESSAGE."""
    repo.commit(message)


@cli.command()
@click.argument("path")
@click.pass_obj
@reports_errors
def rm(repo: Repository, path: str):
    """Unstage PATH, or stage its removal if it is tracked."""
    repo.rm(path)


@cli.command()
@click.option("-n", "--max-count", type=int, default=None, help="Limit the number of commits")
@click.pass_obj
@reports_errors
def log(repo: Repository, max_count: Optional[int]):
    """Show first-parent history from HEAD."""
    for entry in repo.log(max_count=max_count):
        click.echo(format_log_entry(entry, repo.abbrev_length))


@cli.command(name="global-log")
@click.pass_obj
@reports_errors
def global_log(repo: Repository):
    """Show every commit ever made."""
    for entry in repo.global_log():
        click.echo(format_log_entry(entry, repo.abbrev_length))


@cli.command()
@click.argument("message")
@click.pass_obj
@reports_errors
def find(repo: Repository, message: str):
    """Print the ids of all commits with exactly MESSAGE."""
    for digest in repo.find(message):
        click.echo(digest)


@cli.command()
@click.pass_obj
@reports_errors
def status(repo: Repository):
    """Show branches, staged files and working-tree changes."""
    click.echo(repo.status().format())


@cli.command()
@click.argument("target", required=False)
@click.option("--file", "-f", "path", default=None, help="Restore a single file")
@click.pass_obj
@reports_errors
def checkout(repo: Repository, target: Optional[str], path: Optional[str]):
    """
    Switch branches or restore a file.

    \b
    twig checkout BRANCH           switch to BRANCH
    twig checkout --file PATH      restore PATH from HEAD
    twig checkout COMMIT --file PATH
                                   restore PATH from COMMIT
    """
    if path is not None:
        repo.checkout_file(path, commit_id=target)
    elif target is not None:
        repo.checkout_branch(target)
    else:
        raise click.UsageError("Incorrect operands.")


@cli.command()
@click.argument("name")
@click.pass_obj
@reports_errors
def branch(repo: Repository, name: str):
    """Create branch NAME at HEAD."""
    repo.branch(name)


@cli.command(name="rm-branch")
@click.argument("name")
@click.pass_obj
@reports_errors
def rm_branch(repo: Repository, name: str):
    """Delete branch NAME."""
    repo.rm_branch(name)


@cli.command()
@click.argument("commit_id")
@click.pass_obj
@reports_errors
def reset(repo: Repository, commit_id: str):
    """Move the current branch to COMMIT_ID and check it out."""
    repo.reset(commit_id)


@cli.command()
@click.argument("branch_name")
@click.pass_obj
@reports_errors
def merge(repo: Repository, branch_name: str):
    """Merge BRANCH_NAME into the current branch."""
    result = repo.merge(branch_name)
    if result.has_conflicts:
        click.echo("Encountered a merge conflict.")
    elif result.strategy == MergeStrategy.FAST_FORWARD:
        click.echo("Current branch fast-forwarded.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
