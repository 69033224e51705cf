"""Combination enumeration.

Combinations are enumerated with a mixed-radix counter over the value
sets of the declared variables: the first variable is the most
significant digit and the last variable varies fastest. The resulting
order is the same as `itertools.product` over the value sets and depends
only on declaration order, never on value content.
"""

from math import prod
from typing import TYPE_CHECKING

from pytest_permutations.schema import Binding, Combination

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from pytest_permutations.schema import VariableDecl


def count_combinations(variables: 'Sequence[VariableDecl]') -> int:
    """Return the number of combinations of the value sets."""
    return prod(len(variable.values) for variable in variables)


def combination_at(variables: 'Sequence[VariableDecl]', index: int) -> Combination:
    """Decode the combination at an enumeration index.

    Args:
        variables: Declared variables in declaration order.
        index: Enumeration index.

    Returns:
        The combination binding one value of every variable.

    Raises:
        IndexError: If the index is out of range.
    """
    total = count_combinations(variables)
    if not 0 <= index < total:
        raise IndexError(f'combination index {index} out of range 0..{total - 1}')

    positions = []
    remainder = index
    for variable in reversed(variables):
        remainder, digit = divmod(remainder, len(variable.values))
        positions.append(digit)
    positions.reverse()

    return Combination(
        index=index,
        bindings=tuple(
            Binding(name=variable.name, value=variable.values[position], position=position)
            for variable, position in zip(variables, positions, strict=True)
        ),
    )


def generate_combinations(variables: 'Sequence[VariableDecl]') -> 'Iterator[Combination]':
    """Enumerate all combinations in order.

    Args:
        variables: Declared variables in declaration order.

    Yields:
        Combinations for indices `0 .. count - 1`.
    """
    for index in range(count_combinations(variables)):
        yield combination_at(variables, index)
