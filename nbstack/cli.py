"""CLI entrypoint for nbstack."""

import sys
from pathlib import Path

import click

from . import __version__


@click.group()
@click.version_option(__version__, prog_name="nbstack")
def cli() -> None:
    """nbstack - install and configure the complete nb_ frontend stack.

    Orchestrates nb_vite, nb_routes, nb_serializer, nb_ts and nb_inertia
    with coordinated configuration.
    """


@cli.command()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project root to install into",
)
@click.option(
    "--framework",
    type=str,
    default=None,
    help="Client framework: react (default), vue, or svelte",
)
@click.option(
    "--typescript/--no-typescript",
    default=None,
    help="Enable TypeScript (default: enabled)",
)
@click.option(
    "--ssr/--no-ssr",
    default=None,
    help="Enable server-side rendering (default: disabled)",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompts",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show planned operations without writing anything",
)
def install(
    root: Path,
    framework: str | None,
    typescript: bool | None,
    ssr: bool | None,
    yes: bool,
    dry_run: bool,
) -> None:
    """Install the stack into a project.

    Examples:

        nbstack install

        nbstack install --framework vue

        nbstack install --no-typescript --yes

        nbstack install --ssr --dry-run
    """
    from .commands.install import run_install

    exit_code = run_install(
        root.resolve(),
        framework=framework,
        typescript=typescript,
        ssr=ssr,
        yes=yes,
        dry_run=dry_run,
    )
    sys.exit(exit_code)


@cli.command()
def units() -> None:
    """List installer units in dependency order."""
    from .commands.install import run_units

    sys.exit(run_units())


@cli.command()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project root",
)
@click.option("--last", "last_n", type=int, default=None, help="Show only the last N installs")
def history(root: Path, last_n: int | None) -> None:
    """Show installs recorded in the audit log."""
    from .commands.history import run_history

    sys.exit(run_history(root.resolve(), last_n=last_n))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
