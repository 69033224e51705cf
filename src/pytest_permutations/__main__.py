"""CLI utilities for inspecting specification expansion.

Shows what a specification expands to without running pytest: the
names of the generated units, or their full generated source.
"""

from pathlib import Path

from click import Choice, ClickException, argument, echo, group, option
from click import Path as PathParam

from pytest_permutations.core import permutations
from pytest_permutations.errors import PermutationsError
from pytest_permutations.schema import OutputBundle

YAML_SUFFIXES = ('.yaml', '.yml')

SourceFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)

syntax_option = option(
    '--syntax',
    type=Choice(['block', 'yaml']),
    default=None,
    help='Specification syntax. Inferred from the file extension by default.',
)


def _expand(source: Path, syntax: str | None) -> OutputBundle:
    """Expand a specification file.

    Args:
        source: Path to the specification file.
        syntax: Explicit syntax, or `None` to infer it from the extension.

    Returns:
        The expanded bundle.

    Raises:
        ClickException: If the specification is invalid.
    """
    if syntax is None:
        syntax = 'yaml' if source.suffix in YAML_SUFFIXES else 'block'

    try:
        with source.open('rt', encoding='utf-8') as content:
            return permutations(content, syntax=syntax, filename=str(source))  # type: ignore[arg-type]

    except PermutationsError as error:
        raise ClickException(str(error)) from error


@group(help='Command-line utilities for pytest-permutations.')
def cli() -> None:
    """Root CLI group for pytest-permutations tools."""
    return None


@cli.command(
    name='list',
    help='Print the identifier of every unit generated from a specification.',
)
@syntax_option
@argument('source', type=SourceFilepath)
def list_units(source: Path, syntax: str | None) -> None:
    """Print `title::unit` for every generated unit."""
    bundle = _expand(source, syntax)
    for name in bundle.names:
        echo(f'{bundle.title}::{name}')


@cli.command(
    name='expand',
    help='Print the generated Python source of every unit of a specification.',
)
@syntax_option
@argument('source', type=SourceFilepath)
def expand_source(source: Path, syntax: str | None) -> None:
    """Print the expanded source."""
    echo(_expand(source, syntax).render(), nl=False)


if __name__ == '__main__':
    cli()
