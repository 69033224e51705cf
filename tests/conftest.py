"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest

from pytest_permutations.core import SpecParser

if TYPE_CHECKING:
    from typing import Any

    from pytest_permutations.schema import Specification

#: Reference specification used across the suite.
DOUBLES_SOURCE = (
    'title doubles_example;\n'
    'let a = A1 or A2 or A3;\n'
    'let b = B10 or B20;\n'
    'when result = { some_code(a, b) }\n'
    'then { assert result == 2 * a + 4 * b }\n'
)

#: Names of the units generated from `DOUBLES_SOURCE`.
DOUBLES_UNITS = (
    'a_A1__b_B10',
    'a_A1__b_B20',
    'a_A2__b_B10',
    'a_A2__b_B20',
    'a_A3__b_B10',
    'a_A3__b_B20',
)


def some_code(a: int, b: int) -> int:
    """Double the sum of `a` and the double of `b`."""
    return (a + (b << 1)) << 1


@pytest.fixture
def doubles_source() -> str:
    """Provide the reference specification text."""
    return DOUBLES_SOURCE


@pytest.fixture
def doubles_spec(doubles_source: str) -> 'Specification':
    """Provide the parsed reference specification."""
    return SpecParser().parse(doubles_source)


@pytest.fixture
def namespace() -> 'dict[str, Any]':
    """Provide module-like globals for compiling generated units.

    Holds the constants referenced by the reference specification
    values and the function exercised by its run block.
    """
    return {
        'A1': 1,
        'A2': 2,
        'A3': 3,
        'B10': 10,
        'B20': 20,
        'some_code': some_code,
    }


@pytest.fixture
def doubles_units() -> tuple[str, ...]:
    """Provide the unit names of the reference specification."""
    return DOUBLES_UNITS
