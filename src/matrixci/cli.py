# cli.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence

import click

from matrixci.errors import ConfigurationError
from matrixci.matrix import load_matrix, reference_matrix, select_variants
from matrixci.model import Variant
from matrixci.runner import default_workers, run_all
from matrixci.steps import STEPS, display_command, render_command, should_run
from matrixci.ui.console import Console, set_console, get_console


def resolve_matrix(matrix_arg: str | None, only: Sequence[str]) -> tuple[str, list[Variant]]:
    """
    Load the matrix from --matrix, or fall back to the built-in reference matrix.

    Raises:
        ConfigurationError: bad matrix file or unknown --only label
    """
    if matrix_arg:
        variants = load_matrix(matrix_arg)
        source = Path(matrix_arg).name
    else:
        variants = reference_matrix()
        source = "reference"
    return source, select_variants(variants, only)


def _config_error(e: ConfigurationError) -> None:
    get_console().print_error(
        "Invalid matrix configuration",
        str(e),
        suggestion="Check channel/features/labels in the matrix, or list it with:\n  matrixci list",
    )
    sys.exit(2)


matrix_option = click.option(
    "--matrix",
    "matrix_file",
    default=None,
    help="Matrix file (.py defining MATRIX or build_matrix()); defaults to the built-in matrix",
)
only_option = click.option(
    "--only",
    multiple=True,
    help="Run only the variant with this label (repeatable)",
)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and full step output)",
)
def cli(debug):
    """matrixci — run a toolchain/feature build matrix."""
    console = Console(debug=debug)
    set_console(console)


@cli.command()
@matrix_option
@only_option
@click.option("--workers", default=None, type=click.IntRange(min=1), help="Number of variants run in parallel")
@click.option(
    "--repo-root",
    default=".",
    show_default=True,
    type=click.Path(exists=True, file_okay=False),
    help="Checkout the commands run in",
)
@click.option("--timeout", default=None, type=float, help="Per-step timeout in seconds")
def run(matrix_file, only, workers, repo_root, timeout):
    """Run every variant of the matrix."""
    console = get_console()

    try:
        source, variants = resolve_matrix(matrix_file, only)
    except ConfigurationError as e:
        _config_error(e)

    if workers is None:
        workers = default_workers()
    console.print_run_started(source=source, variant_count=len(variants), workers=workers)

    try:
        passed = run_all(variants, workers=workers, repo_root=repo_root, timeout=timeout)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except ConfigurationError as e:
        _config_error(e)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    if not passed:
        sys.exit(1)


@cli.command()
@matrix_option
@only_option
def plan(matrix_file, only):
    """Show which steps each variant would run, without running anything."""
    console = get_console()
    try:
        _source, variants = resolve_matrix(matrix_file, only)
    except ConfigurationError as e:
        _config_error(e)

    for v in variants:
        rows = [
            (s.name, should_run(s, v), display_command(render_command(s, v)))
            for s in STEPS
        ]
        console.print_plan(v, rows)


@cli.command(name="list")
@matrix_option
def list_variants(matrix_file):
    """List the variants of the matrix."""
    try:
        _source, variants = resolve_matrix(matrix_file, ())
    except ConfigurationError as e:
        _config_error(e)
    get_console().print_matrix(variants)


if __name__ == "__main__":
    cli()
