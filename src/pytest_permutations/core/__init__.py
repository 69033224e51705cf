"""Specification parsing and expansion.

This package implements the expansion pipeline:

- `SpecParser` turns specification text into a `Specification`;
- `generate_combinations` enumerates the Cartesian product of the
  declared value sets;
- `UnitEmitter` writes one generated unit per combination;
- `expand` and `permutations` assemble the units into an `OutputBundle`.
"""

from .assembler import expand, permutations
from .combinations import combination_at, count_combinations, generate_combinations
from .emitter import UnitEmitter
from .parser import SpecParser, Syntax

__all__ = (
    'SpecParser',
    'Syntax',
    'UnitEmitter',
    'combination_at',
    'count_combinations',
    'expand',
    'generate_combinations',
    'permutations',
)
