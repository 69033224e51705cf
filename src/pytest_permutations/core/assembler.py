"""Expansion pipeline.

Ties the parser, the combination generator, the name synthesizer and
the unit emitter together. Every call builds its own synthesizer and
emitter, so expansions never share state, even for two specifications
expanded from the same module.
"""

from collections import Counter
from typing import TYPE_CHECKING

from pytest_permutations.errors import NameCollisionError
from pytest_permutations.names import NameSynthesizer
from pytest_permutations.schema import OutputBundle
from pytest_permutations.settings import Settings

from .combinations import generate_combinations
from .emitter import UnitEmitter
from .parser import SpecParser

if TYPE_CHECKING:
    from io import TextIOBase

    from pytest_permutations.schema import Specification

    from .parser import Syntax


def expand(specification: 'Specification', *,
           settings: Settings | None = None) -> OutputBundle:
    """Expand a specification into a bundle of generated units.

    Args:
        specification: Validated specification.
        settings: Expansion settings; resolved from the environment
            when omitted.

    Returns:
        Bundle with one unit per combination, in enumeration order.

    Raises:
        NameCollisionError: If unit names are not pairwise distinct.
    """
    if settings is None:
        settings = Settings()

    names = NameSynthesizer(specification.variables, delimiter=settings.delimiter)
    emitter = UnitEmitter(specification, names=names)

    units = tuple(
        emitter.emit(combination)
        for combination in generate_combinations(specification.variables)
    )

    duplicates = tuple(
        name
        for name, count in Counter(unit.name for unit in units).items()
        if count > 1
    )
    if duplicates:
        raise NameCollisionError(
            f'Specification {specification.title!r} produces duplicate unit names',
            values=duplicates,
        )

    return OutputBundle(title=specification.title, units=units)


def permutations(source: 'TextIOBase | str', *,
                 syntax: 'Syntax' = 'block',
                 filename: str | None = None,
                 settings: Settings | None = None) -> OutputBundle:
    """Parse a specification and expand it into generated units.

    Assign the result to a module-level name in a test module and the
    pytest plugin collects one test per combination under the
    specification title.

    Args:
        source: Specification text as a string or file-like object.
        syntax: Surface syntax of the source (`block` or `yaml`).
        filename: Name of the source, used in error messages.
        settings: Expansion settings; resolved from the environment
            when omitted.

    Returns:
        Bundle with one unit per combination, in enumeration order.

    Raises:
        SpecSyntaxError: If the source violates the grammar.
        SpecSemanticError: If the source is not a meaningful specification.
        NameCollisionError: If unit names are not pairwise distinct.
    """
    specification = SpecParser(filename=filename).parse(source, syntax=syntax)

    return expand(specification, settings=settings)
