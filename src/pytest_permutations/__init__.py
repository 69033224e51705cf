"""Cartesian-product test generation for pytest.

The `pytest_permutations` package expands one declarative scenario,
described by a few variables with finite value sets plus shared run and
check logic, into one independent pytest test per combination of values.

Key features:
- a small block syntax (and an equivalent YAML form) for scenarios;
- deterministic enumeration and collision-free test names;
- generated tests collected by pytest under the scenario title, each
  reported and selectable on its own.
"""

from pytest_permutations.core import permutations

__all__ = (
    'permutations',
)
